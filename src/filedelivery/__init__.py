"""
=============================================================================
FILEDELIVERY
=============================================================================

Serve files over HTTP with byte-range support, a per-type delivery policy
and optional hand-off to the front-end server's sendfile.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          PACKAGE LAYOUT                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   delivery/    The core. Works with any ResponseWriter.             │
    │     responder    DeliveryResponder.deliver()                        │
    │     policy       media type → inline/attachment, chunk size         │
    │     options      option layers → DeliveryOptions                    │
    │     ranges       Range header → ByteRange / 416                     │
    │     headers      download header block, RFC 5987 filenames          │
    │     environment  X-Sendfile / X-Accel-Redirect                      │
    │     registry     named folders                                      │
    │                                                                      │
    │   http/        Requests, in-memory responses, ResponseWriter        │
    │   core/        Listening socket, connections, socket writer         │
    │   handlers/    URL → folder → responder                             │
    │   server.py    FileServer (thread pool + access log)                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
EMBEDDING THE CORE
=============================================================================

    from filedelivery import DeliveryResponder, MemoryResponseWriter

    writer = MemoryResponseWriter()
    result = DeliveryResponder().deliver("report.pdf", writer, "bytes=0-99")

    result.status           # HTTPStatus.PARTIAL_CONTENT
    writer.sent_headers     # {"Content-Range": "bytes 0-99/...", ...}
    writer.body             # the first 100 bytes

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .delivery import (
    DeliveryOptions,
    DeliveryOverrides,
    DeliveryRegistry,
    DeliveryResponder,
    DeliveryResult,
    SendfileEnvironment,
    SendfileMode,
)
from .http import MemoryResponseWriter, ResponseWriter
from .server import FileServer

__all__ = [
    "DeliveryOptions",
    "DeliveryOverrides",
    "DeliveryRegistry",
    "DeliveryResponder",
    "DeliveryResult",
    "SendfileEnvironment",
    "SendfileMode",
    "MemoryResponseWriter",
    "ResponseWriter",
    "FileServer",
    "ServerConfig",
    "__version__",
]
