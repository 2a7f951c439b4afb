"""
The file delivery core: content policy, option resolution, byte ranges,
download headers, sendfile delegation and the streaming responder.
"""

from .environment import DEFAULT_INTERNAL_PATH, SendfileEnvironment, SendfileMode
from .errors import DeliveryError, FileReadError, NotFound, RangeNotSatisfiable
from .headers import content_disposition, download_headers, sanitize_filename
from .options import DeliveryOptions, DeliveryOverrides, resolve_options
from .policy import DANGEROUS_TYPES, Classification, ContentPolicy, enforce, is_dangerous
from .ranges import ByteRange, parse_range_header, resolve_range
from .registry import DeliveryRegistry, ProtectedFolder, sanitize_key
from .responder import DeliveryResponder, DeliveryResult
from .transfer import FileAccess, TransferState

__all__ = [
    # Responder
    "DeliveryResponder",
    "DeliveryResult",

    # Options and policy
    "DeliveryOptions",
    "DeliveryOverrides",
    "resolve_options",
    "ContentPolicy",
    "Classification",
    "DANGEROUS_TYPES",
    "enforce",
    "is_dangerous",

    # Ranges
    "ByteRange",
    "parse_range_header",
    "resolve_range",

    # Headers
    "download_headers",
    "content_disposition",
    "sanitize_filename",

    # Sendfile
    "SendfileEnvironment",
    "SendfileMode",
    "DEFAULT_INTERNAL_PATH",

    # Registry
    "DeliveryRegistry",
    "ProtectedFolder",
    "sanitize_key",

    # Filesystem
    "FileAccess",
    "TransferState",

    # Errors
    "DeliveryError",
    "NotFound",
    "RangeNotSatisfiable",
    "FileReadError",
]
