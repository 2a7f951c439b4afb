"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds complete, in-memory HTTP/1.1 responses.

File bodies are never built here: they are streamed chunk by chunk through
a ResponseWriter (see writer.py). This module covers everything that fits
in memory: error pages, 416 answers, sendfile delegation stubs, and the
serialized response head that a streamed download starts with.

=============================================================================
RESPONSE HEAD
=============================================================================

    HTTP/1.1 206 Partial Content\r\n        ← status line
    Content-Type: video/mp4\r\n
    Content-Range: bytes 200-499/1000\r\n
    Content-Length: 300\r\n
    Date: Wed, 01 Jan 2026 12:00:00 GMT\r\n ← auto-added
    Server: filedelivery/1.0\r\n            ← auto-added
    \r\n                                    ← end of head
    <300 body bytes, streamed separately>

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Union
import json

from .status_codes import HTTPStatus


DEFAULT_SERVER_NAME = "filedelivery/1.0"


@dataclass
class HTTPResponse:
    """
    A complete HTTP response: status, headers and (small) body.

    Use ResponseBuilder for a more convenient way to construct one.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Example: "HTTP/1.1 416 Range Not Satisfiable"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def head_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the status line and headers, including the blank line.

        Content-Length is NOT auto-added here: a streamed response knows
        its length from the byte range, not from self.body.
        """
        return serialize_head(self.status, self.headers, server_name, self.version)

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the whole response for socket.sendall().

        Content-Length is computed from the body when not set explicitly.
        """
        headers = dict(self.headers)
        if "Content-Length" not in headers:
            headers["Content-Length"] = str(len(self.body))
        return serialize_head(self.status, headers, server_name, self.version) + self.body


class ResponseBuilder:
    """
    Fluent builder for in-memory responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.NOT_FOUND)
            .no_cache()
            .text("File not found.")
            .build())

    Every method except build() returns self.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        """Set the HTTP status code."""
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Add a single response header."""
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        """Add multiple headers at once."""
        self._headers.update(headers)
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set the raw body (strings are encoded as UTF-8)."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        """Set a plain-text body."""
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = "text/plain; charset=utf-8"
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        """Set a JSON body."""
        self._body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self._headers["Content-Type"] = "application/json; charset=utf-8"
        return self

    def no_cache(self) -> "ResponseBuilder":
        """
        Add headers to prevent caching.

        - Cache-Control: no-store (HTTP/1.1)
        - Pragma: no-cache (HTTP/1.0 fallback)
        - Expires: 0 (already stale)
        """
        self._headers.update(no_cache_headers())
        return self

    def close_connection(self) -> "ResponseBuilder":
        """Tell the client the connection closes after this response."""
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        """Construct the HTTPResponse."""
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def no_cache_headers() -> Dict[str, str]:
    """Headers that keep browsers and proxies from storing a response."""
    return {
        "Cache-Control": "no-store, no-cache, must-revalidate",
        "Pragma": "no-cache",
        "Expires": "0",
    }


def serialize_head(
    status: HTTPStatus,
    headers: Dict[str, str],
    server_name: str = DEFAULT_SERVER_NAME,
    version: str = "HTTP/1.1",
) -> bytes:
    """
    Serialize a status line plus headers into wire format.

    Date and Server are added when missing. Header values are encoded as
    latin-1 (the HTTP/1.1 wire charset); callers are expected to have
    ASCII-sanitized anything user controlled already.
    """
    status = HTTPStatus(status)
    response_headers = dict(headers)

    if "Date" not in response_headers:
        response_headers["Date"] = format_http_date(datetime.now(timezone.utc))
    if "Server" not in response_headers:
        response_headers["Server"] = server_name

    lines = [f"{version} {int(status)} {status.phrase}"]
    for name, value in response_headers.items():
        lines.append(f"{name}: {value}")
    lines.append("")

    return "\r\n".join(lines).encode("latin-1", errors="replace") + b"\r\n"


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Example: Wed, 01 Jan 2026 12:00:00 GMT

    HTTP dates are always GMT, never local time.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """A no-cache plain-text error page."""
    return (ResponseBuilder()
        .status(status)
        .no_cache()
        .header("X-Content-Type-Options", "nosniff")
        .text(message)
        .build())


def not_found(message: str = "Not Found") -> HTTPResponse:
    """404 Not Found."""
    return error_response(HTTPStatus.NOT_FOUND, message)


def forbidden(message: str = "Forbidden") -> HTTPResponse:
    """403 Forbidden."""
    return error_response(HTTPStatus.FORBIDDEN, message)


def method_not_allowed(allowed: str = "GET") -> HTTPResponse:
    """405 Method Not Allowed, with the Allow header."""
    response = error_response(HTTPStatus.METHOD_NOT_ALLOWED, "Method Not Allowed")
    response.headers["Allow"] = allowed
    return response


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """500 Internal Server Error."""
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)
