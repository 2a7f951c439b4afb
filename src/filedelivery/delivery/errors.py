"""
Delivery failures that end in a clean error response.

Each error carries the HTTP status it is answered with. They are all
decided before the first body byte, so the responder can always turn them
into a complete response. Failures after that point (client gone, read
error mid-stream) are not exceptions: they just end the transfer.
"""

from ..http.status_codes import HTTPStatus


class DeliveryError(Exception):
    """Base class for terminal delivery failures."""

    status = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class NotFound(DeliveryError):
    """The source path is missing, not a regular file, or unreadable."""

    status = HTTPStatus.NOT_FOUND


class RangeNotSatisfiable(DeliveryError):
    """A parsed byte range falls outside the file."""

    status = HTTPStatus.RANGE_NOT_SATISFIABLE

    def __init__(self, message: str, file_size: int, path: str = ""):
        super().__init__(message, path)
        self.file_size = file_size

    @property
    def content_range(self) -> str:
        """Content-Range value for the 416 answer: "bytes */<size>"."""
        return f"bytes */{self.file_size}"


class FileReadError(DeliveryError):
    """The file could not be opened for reading."""

    status = HTTPStatus.INTERNAL_SERVER_ERROR
