"""
=============================================================================
HTTP STATUS CODES USED BY FILE DELIVERY
=============================================================================

Only the status codes a file delivery can actually produce live here.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                 STATUS CODES IN A DOWNLOAD'S LIFE                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   200 OK                  Whole file (or sendfile delegation)       │
    │   206 Partial Content     Range request fulfilled                   │
    │   400 Bad Request         Malformed request line / headers          │
    │   403 Forbidden           Path escapes the mounted folder           │
    │   404 Not Found           Missing or unreadable file                │
    │   405 Method Not Allowed  Anything but GET                          │
    │   416 Range Not Satisf.   Range outside the file                    │
    │   500 Internal Error      File could not be opened                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes as an integer enum.

    IntEnum lets a status compare equal to a plain int:

        HTTPStatus.PARTIAL_CONTENT == 206   # True
        f"{HTTPStatus.NOT_FOUND}"           # "404"
    """

    # 2xx SUCCESS
    OK = 200                            # Full body follows
    PARTIAL_CONTENT = 206               # Body is the requested byte range

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413
    RANGE_NOT_SATISFIABLE = 416         # Content-Range: bytes */<size>

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line, e.g. "Partial Content"."""
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.PARTIAL_CONTENT: "Partial Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.RANGE_NOT_SATISFIABLE: "Range Not Satisfiable",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
