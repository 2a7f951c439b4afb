"""
=============================================================================
RESPONSE WRITER
=============================================================================

A ResponseWriter is the sink a delivery writes into. It replaces "print
headers, echo bytes, hope nothing was printed before" with an explicit
object that knows where the response is in its life:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     RESPONSE WRITER LIFECYCLE                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   OPEN ──────────► HEAD SENT ──────────► FINISHED                   │
    │    │  set_status()     │  write(chunk)        end()                 │
    │    │  set_header()     │  flush()                                   │
    │    │  discard_buffer() │  is_connected()                            │
    │    │                   │                                             │
    │    └─ first write() or send_headers() commits the head              │
    │                                                                      │
    │   After the head is committed, set_status()/set_header() raise      │
    │   HeadersAlreadySentError: HTTP cannot retract a status line.       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Two implementations ship with the package:

    MemoryResponseWriter       Captures everything in memory (tests,
                               embedding in another framework).
    ConnectionResponseWriter   Writes to a client socket
                               (filedelivery.core.writer).

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .response import HTTPResponse
from .status_codes import HTTPStatus


class HeadersAlreadySentError(RuntimeError):
    """Raised when the status or headers change after the head went out."""


class ResponseWriter(ABC):
    """
    Base class for response sinks.

    Subclasses implement how bytes leave the process (_emit_head,
    _emit_body, _flush) and how peer liveness is detected
    (is_connected). The head-before-body rules live here.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._headers_sent = False
        self._finished = False
        self.compression_enabled = True
        self.time_limit_lifted = False

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def status(self) -> HTTPStatus:
        return self._status

    @property
    def headers(self) -> Dict[str, str]:
        """A copy of the headers set so far."""
        return dict(self._headers)

    @property
    def headers_sent(self) -> bool:
        return self._headers_sent

    @property
    def finished(self) -> bool:
        return self._finished

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self._headers.items():
            if key.lower() == lowered:
                return value
        return default

    # =========================================================================
    # HEAD
    # =========================================================================

    def set_status(self, status: HTTPStatus) -> None:
        self._ensure_head_open()
        self._status = HTTPStatus(status)

    def set_header(self, name: str, value) -> None:
        self._ensure_head_open()
        self.remove_header(name)
        self._headers[name] = str(value)

    def set_headers(self, headers: Dict[str, str]) -> None:
        for name, value in headers.items():
            self.set_header(name, value)

    def remove_header(self, name: str) -> None:
        self._ensure_head_open()
        lowered = name.lower()
        for key in [k for k in self._headers if k.lower() == lowered]:
            del self._headers[key]

    def send_headers(self) -> None:
        """Commit the status line and headers. Idempotent."""
        if self._headers_sent:
            return
        self._headers_sent = True
        self._emit_head(self._status, dict(self._headers))

    # =========================================================================
    # ENVIRONMENT
    # =========================================================================

    def discard_buffer(self) -> None:
        """
        Throw away anything prepared but not yet sent.

        Resets the status and headers and drops pending body bytes so a
        delivery starts from a clean slate. Once the head is on the wire
        there is nothing left to discard safely.
        """
        self._ensure_head_open()
        self._status = HTTPStatus.OK
        self._headers.clear()
        self._discard_pending()

    def disable_compression(self) -> None:
        """Binary transfers are never re-encoded by the transport."""
        self.compression_enabled = False

    def lift_time_limit(self) -> None:
        """Allow a long-running transfer; subclasses relax their deadlines."""
        self.time_limit_lifted = True

    # =========================================================================
    # BODY
    # =========================================================================

    def write(self, data: bytes) -> None:
        """Write a body chunk, committing the head first if needed."""
        if self._finished:
            raise RuntimeError("Response already finished")
        if not self._headers_sent:
            self.send_headers()
        if data:
            self._emit_body(data)

    def flush(self) -> None:
        """Push buffered bytes to the transport."""
        if not self._headers_sent:
            self.send_headers()
        self._flush()

    def end(self) -> None:
        """Finish the response. Nothing may be written afterwards."""
        if self._finished:
            return
        self.send_headers()
        self._flush()
        self._finished = True
        self._close()

    def write_response(self, response: HTTPResponse) -> None:
        """Send a complete in-memory response and finish."""
        self.set_status(response.status)
        self.set_headers(response.headers)
        if self.get_header("Content-Length") is None:
            self.set_header("Content-Length", len(response.body))
        self.write(response.body)
        self.end()

    @abstractmethod
    def is_connected(self) -> bool:
        """Whether the peer is still there to receive bytes."""

    # =========================================================================
    # TRANSPORT HOOKS
    # =========================================================================

    @abstractmethod
    def _emit_head(self, status: HTTPStatus, headers: Dict[str, str]) -> None:
        ...

    @abstractmethod
    def _emit_body(self, data: bytes) -> None:
        ...

    @abstractmethod
    def _flush(self) -> None:
        ...

    def _discard_pending(self) -> None:
        pass

    def _close(self) -> None:
        pass

    def _ensure_head_open(self) -> None:
        if self._headers_sent:
            raise HeadersAlreadySentError(
                "Cannot change status or headers after the response head was sent"
            )


class MemoryResponseWriter(ResponseWriter):
    """
    Captures a response in memory.

    Used by the test-suite and by code that embeds deliveries in a
    framework with its own response object.

    Args:
        disconnect_after: Pretend the client hangs up once this many body
                          bytes have been written. None means never.
    """

    def __init__(self, disconnect_after: Optional[int] = None):
        super().__init__()
        self.disconnect_after = disconnect_after
        self.connected = True

        self.sent_status: Optional[HTTPStatus] = None
        self.sent_headers: Dict[str, str] = {}
        self.chunks: List[bytes] = []
        self.flush_points: List[int] = []
        self.discard_count = 0

    @property
    def body(self) -> bytes:
        return b"".join(self.chunks)

    @property
    def body_length(self) -> int:
        return sum(len(chunk) for chunk in self.chunks)

    def sent_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive lookup in the committed head."""
        lowered = name.lower()
        for key, value in self.sent_headers.items():
            if key.lower() == lowered:
                return value
        return default

    def is_connected(self) -> bool:
        if not self.connected:
            return False
        if self.disconnect_after is not None:
            return self.body_length < self.disconnect_after
        return True

    def _emit_head(self, status: HTTPStatus, headers: Dict[str, str]) -> None:
        self.sent_status = status
        self.sent_headers = headers

    def _emit_body(self, data: bytes) -> None:
        self.chunks.append(bytes(data))

    def _flush(self) -> None:
        self.flush_points.append(self.body_length)

    def _discard_pending(self) -> None:
        self.discard_count += 1
