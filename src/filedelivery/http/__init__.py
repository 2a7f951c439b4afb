"""
HTTP building blocks: status codes, media types, request parsing,
in-memory responses and the streaming ResponseWriter.
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    error_response,
    not_found,
    forbidden,
    method_not_allowed,
    internal_error,
)
from .status_codes import HTTPStatus
from .mime_types import get_mime_type, base_type
from .writer import ResponseWriter, MemoryResponseWriter, HeadersAlreadySentError

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",

    # In-memory responses
    "HTTPResponse",
    "ResponseBuilder",
    "error_response",
    "not_found",
    "forbidden",
    "method_not_allowed",
    "internal_error",

    # Streaming sink
    "ResponseWriter",
    "MemoryResponseWriter",
    "HeadersAlreadySentError",

    # Status codes / media types
    "HTTPStatus",
    "get_mime_type",
    "base_type",
]
