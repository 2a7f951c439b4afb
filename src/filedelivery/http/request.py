"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes of a request head into an HTTPRequest.

The download server only ever needs three things from a request: the
method, the path, and a handful of headers (Range above all). The parser
stays small accordingly, but it is strict about the request line and
lenient about individual header lines.

    GET /files/video.mp4 HTTP/1.1\r\n       ← request line
    Host: localhost:8080\r\n
    Range: bytes=0-1048575\r\n              ← the header deliveries care about
    \r\n

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import unquote, urlparse
import re


class HTTPParseError(Exception):
    """
    Raised when a request can't be parsed.

    Carries the status code the server should answer with (400 by default).
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """A parsed HTTP request. Header names are stored lowercase."""

    method: str
    path: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    client_address: tuple[str, int] = ("", 0)

    @property
    def range_header(self) -> Optional[str]:
        """The Range header value, or None if the client sent none."""
        return self.headers.get("range")

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

        parser = RequestParser()
        request = parser.parse(b"GET /files/a.pdf HTTP/1.1\\r\\n\\r\\n")
        request.path   # "/files/a.pdf"
    """

    VALID_METHODS = {
        "GET", "HEAD", "POST", "PUT", "DELETE",
        "PATCH", "OPTIONS", "TRACE", "CONNECT",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 64 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Parse raw request bytes.

        Raises:
            HTTPParseError: On oversized, incomplete or malformed requests.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        # latin-1 never fails, every byte maps to one character
        header_section = data[:header_end].decode("latin-1")

        lines = header_section.split("\r\n")
        method, path, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            client_address=client_address,
        )

    def _parse_request_line(
        self,
        line: str,
    ) -> tuple[str, str, str]:
        """Split "GET /path?x=1 HTTP/1.1" into method, path and version."""
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505,
            )

        parsed = urlparse(uri)
        # The query string plays no part in which file is served
        path = unquote(parsed.path) or "/"

        # Path traversal: "GET /files/../../etc/passwd HTTP/1.1"
        if ".." in path.split("/"):
            raise HTTPParseError("Invalid path: contains ..", status_code=400)

        return method, path, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse "Name: value" lines.

        Names are lowercased. Repeated headers are joined with ", "
        (RFC 7230 §3.2.2). Malformed lines are skipped.
        """
        headers: Dict[str, str] = {}

        for line in lines:
            if not line:
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers
