"""
=============================================================================
DELIVERY RESPONDER
=============================================================================

Delivers one file as one complete HTTP response.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        deliver(path, writer)                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. readable?          no  → 404, done                             │
    │   2. resolve options    defaults → configured → call → policy       │
    │   3. prepare writer     discard pending output, no compression,     │
    │                         no time limit                               │
    │   4. sendfile?          yes → headers + X-Accel-Redirect /          │
    │                               X-Sendfile, empty body, done          │
    │   5. range?             invalid → 416 + Content-Range */size, done  │
    │                         valid   → 206 + Content-Range               │
    │                         none    → 200 + Accept-Ranges               │
    │   6. open file          fails → 500, done                           │
    │   7. stream             seek, read ≤ chunk_size, write,             │
    │                         flush every 10 MiB, stop on disconnect      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
THE ONE ASYMMETRY THAT MATTERS
=============================================================================

Everything that can fail cleanly (404, 416, 500 on open) is decided BEFORE
the response head is committed, so it becomes a proper error response.

Once the status line is on the wire it cannot be taken back. From then on
a problem (client hangs up, read error) can only *stop* the transfer: it
is logged, never raised, and the partial body stands.

    Start ──► HeadersSent ──► Streaming ──► Complete
                                   │
                                   └──────► Aborted (disconnect / read error)

=============================================================================
STATE AND THREADS
=============================================================================

A responder holds only configuration. Each deliver() call keeps its
options, range and TransferState in locals, so one responder can serve
many threads at once without locks. Concurrent deliveries of the same
file are independent readers.

=============================================================================
"""

from dataclasses import dataclass
import logging
import os
from typing import Any, Callable, Mapping, Optional, Union

from ..http.mime_types import get_mime_type
from ..http.response import error_response
from ..http.status_codes import HTTPStatus
from ..http.writer import ResponseWriter
from .environment import SendfileEnvironment
from .errors import DeliveryError, FileReadError, NotFound, RangeNotSatisfiable
from .headers import download_headers, sanitize_filename
from .options import DeliveryOptions, DeliveryOverrides, resolve_options
from .policy import MIB, ContentPolicy
from .ranges import ByteRange, parse_range_header, resolve_range
from .transfer import FileAccess, TransferState


logger = logging.getLogger(__name__)

OverridesLike = Union[DeliveryOverrides, Mapping[str, Any], None]


@dataclass
class DeliveryResult:
    """
    What a deliver() call did. The response is already finished.

    mode is "sendfile", "stream" or "error". complete is False when a
    stream stopped before its last byte.
    """

    status: HTTPStatus
    mode: str
    bytes_sent: int = 0
    complete: bool = True
    error: Optional[DeliveryError] = None


class DeliveryResponder:
    """
    Streams files with range support, or hands them to the front-end.

    =========================================================================
    USAGE
    =========================================================================

        responder = DeliveryResponder(
            options={"enable_range": True},
            environment=SendfileEnvironment.parse("off"),
        )

        writer = ConnectionResponseWriter(conn)
        result = responder.deliver(
            "/srv/files/video.mp4",
            writer,
            range_header=request.range_header,
            overrides={"filename": "Holiday.mp4"},
        )

    =========================================================================
    """

    FLUSH_INTERVAL = 10 * MIB

    def __init__(
        self,
        options: OverridesLike = None,
        policy: Optional[ContentPolicy] = None,
        environment: Optional[SendfileEnvironment] = None,
        files: Optional[FileAccess] = None,
        sanitize: Callable[[str], str] = sanitize_filename,
        detect_media_type: Callable[[str], str] = get_mime_type,
        flush_interval: int = FLUSH_INTERVAL,
    ):
        """
        Args:
            options: Configured overrides applied to every delivery.
            policy: Per-media-type defaults (ContentPolicy()).
            environment: Sendfile probe. None means always self-stream.
            files: Filesystem access (FileAccess()).
            sanitize: Filename → ASCII-safe filename.
            detect_media_type: Path → media type.
            flush_interval: Flush the writer after this many body bytes.
        """
        if flush_interval <= 0:
            raise ValueError(f"flush_interval must be > 0, got {flush_interval}")

        self._configured = _as_overrides(options)
        self.policy = policy or ContentPolicy()
        self.environment = environment or SendfileEnvironment()
        self.files = files or FileAccess()
        self.sanitize = sanitize
        self.detect_media_type = detect_media_type
        self.flush_interval = flush_interval

    # =========================================================================
    # CONFIGURED OPTIONS
    # =========================================================================

    @property
    def options(self) -> DeliveryOverrides:
        return self._configured

    def set_option(self, name: str, value: Any) -> "DeliveryResponder":
        """Set one configured option. Returns self for chaining."""
        return self.set_options({name: value})

    def set_options(self, options: Mapping[str, Any]) -> "DeliveryResponder":
        """Merge several configured options. Returns self for chaining."""
        self._configured = self._configured.merged(DeliveryOverrides.from_mapping(options))
        return self

    def resolve(self, path: str, overrides: OverridesLike = None) -> DeliveryOptions:
        """The DeliveryOptions a deliver() call for this path would use."""
        return resolve_options(
            path,
            configured=self._configured,
            overrides=_as_overrides(overrides),
            policy=self.policy,
            detect_media_type=self.detect_media_type,
            basename=self.files.basename,
        )

    # =========================================================================
    # DELIVERY
    # =========================================================================

    def deliver(
        self,
        path: Union[str, os.PathLike],
        writer: ResponseWriter,
        range_header: Optional[str] = None,
        overrides: OverridesLike = None,
        internal_path: Optional[str] = None,
    ) -> DeliveryResult:
        """
        Deliver one file and finish the response.

        Args:
            path: File to deliver.
            writer: Response sink; it is finished when this returns.
            range_header: The request's Range header, if any.
            overrides: Per-call options.
            internal_path: X-Accel-Redirect prefix for this call.

        Returns:
            DeliveryResult describing the outcome.

        Raises:
            ValueError: If the merged options are invalid (e.g. a
                        non-positive chunk_size). Nothing is written then.
        """
        path = os.fspath(path)

        if not self.files.is_readable(path):
            return self._fail(writer, NotFound("File not found or not readable.", path=path))

        options = self.resolve(path, overrides)
        logger.debug(
            f"Delivering {path} as {options.media_type} "
            f"({'attachment' if options.force_download else 'inline'}, "
            f"chunk={options.chunk_size}, ranges={options.enable_range})"
        )

        self._prepare(writer)

        if self.environment.available:
            return self._delegate(path, options, writer, internal_path)

        return self._stream(path, options, writer, range_header)

    def _prepare(self, writer: ResponseWriter) -> None:
        writer.discard_buffer()
        writer.disable_compression()
        writer.lift_time_limit()

    def _headers(self, options: DeliveryOptions) -> dict:
        return download_headers(
            options.filename,
            options.media_type,
            inline=options.inline,
            sanitize=self.sanitize,
        )

    # =========================================================================
    # DELEGATED DELIVERY
    # =========================================================================

    def _delegate(
        self,
        path: str,
        options: DeliveryOptions,
        writer: ResponseWriter,
        internal_path: Optional[str],
    ) -> DeliveryResult:
        """Headers only; the front-end server sends the bytes."""
        header_name, header_value = self.environment.header_for(path, internal_path)

        writer.set_status(HTTPStatus.OK)
        writer.set_headers(self._headers(options))
        writer.set_header(header_name, header_value)
        writer.set_header("Content-Length", "0")
        writer.end()

        logger.debug(f"Delegated {path} via {header_name}: {header_value}")
        return DeliveryResult(status=HTTPStatus.OK, mode="sendfile")

    # =========================================================================
    # SELF-STREAMING
    # =========================================================================

    def _stream(
        self,
        path: str,
        options: DeliveryOptions,
        writer: ResponseWriter,
        range_header: Optional[str],
    ) -> DeliveryResult:
        try:
            file_size = self.files.size(path)
        except OSError as exc:
            # Removed or made unreadable since the readability check
            logger.warning(f"Cannot stat {path}: {exc}")
            return self._fail(writer, NotFound("File not found or not readable.", path=path))

        # ─────────────────────────────────────────────────────────────────
        # RANGE DECISION
        # ─────────────────────────────────────────────────────────────────
        spec = None
        if options.enable_range and range_header:
            spec = parse_range_header(range_header)
            if spec is None:
                logger.debug(f"Ignoring unsupported Range header {range_header!r} for {path}")

        if spec is not None:
            try:
                byte_range = resolve_range(spec, file_size, path)
            except RangeNotSatisfiable as exc:
                return self._fail(writer, exc)
            status = HTTPStatus.PARTIAL_CONTENT
        else:
            byte_range = ByteRange.whole(file_size)
            status = HTTPStatus.OK

        # ─────────────────────────────────────────────────────────────────
        # HEAD (prepared, not yet committed)
        # ─────────────────────────────────────────────────────────────────
        writer.set_status(status)
        writer.set_headers(self._headers(options))

        if status == HTTPStatus.PARTIAL_CONTENT:
            writer.set_header("Accept-Ranges", "bytes")
            writer.set_header("Content-Range", byte_range.content_range(file_size))
            writer.set_header("Content-Length", byte_range.length)
        else:
            writer.set_header("Accept-Ranges", "bytes" if options.enable_range else "none")
            writer.set_header("Content-Length", file_size)

        # ─────────────────────────────────────────────────────────────────
        # OPEN + SEEK, still before the head goes out
        # ─────────────────────────────────────────────────────────────────
        try:
            handle = self.files.open(path)
        except OSError as exc:
            logger.error(f"Cannot open {path} for reading: {exc}")
            return self._fail(writer, FileReadError("Cannot open file for reading.", path=path))

        with handle:
            if byte_range is not None and byte_range.start > 0:
                try:
                    handle.seek(byte_range.start)
                except OSError as exc:
                    logger.error(f"Cannot seek to byte {byte_range.start} of {path}: {exc}")
                    return self._fail(writer, FileReadError("Cannot read file.", path=path))

            writer.send_headers()

            if byte_range is None:
                state = TransferState(bytes_target=0)
            else:
                state = self._pump(path, handle, byte_range, options.chunk_size, writer)

        writer.end()

        return DeliveryResult(
            status=status,
            mode="stream",
            bytes_sent=state.bytes_sent,
            complete=state.done,
        )

    def _pump(
        self,
        path: str,
        handle,
        byte_range: ByteRange,
        chunk_size: int,
        writer: ResponseWriter,
    ) -> TransferState:
        """
        The streaming loop.

        Reads at most chunk_size bytes per iteration and never more than
        what is left of the range. Stops, without raising, when the range
        is done, the file ends early, a read fails, or the client is gone.
        """
        state = TransferState(bytes_target=byte_range.length, position=byte_range.start)
        unflushed = 0

        while not state.done:
            if not writer.is_connected():
                logger.info(
                    f"Client disconnected after {state.bytes_sent}/{state.bytes_target} "
                    f"bytes of {path}"
                )
                break

            try:
                data = handle.read(state.next_read_size(chunk_size))
            except OSError as exc:
                logger.error(f"Read failed at byte {state.position} of {path}: {exc}")
                break

            if not data:
                logger.warning(
                    f"{path} ended at byte {state.position}, "
                    f"{state.remaining} bytes short of the range"
                )
                break

            try:
                writer.write(data)
            except OSError as exc:
                logger.info(f"Write failed after {state.bytes_sent} bytes of {path}: {exc}")
                break

            state.advance(len(data))
            unflushed += len(data)

            if unflushed >= self.flush_interval:
                writer.flush()
                unflushed = 0

        writer.flush()
        return state

    # =========================================================================
    # ERRORS
    # =========================================================================

    def _fail(self, writer: ResponseWriter, error: DeliveryError) -> DeliveryResult:
        """
        Answer with an error response, or abort if that is too late.
        """
        if writer.headers_sent:
            logger.error(f"Aborting response for {error.path}: {error}")
            writer.end()
            return DeliveryResult(status=writer.status, mode="error", complete=False, error=error)

        if isinstance(error, RangeNotSatisfiable):
            logger.warning(f"416 for {error.path}: {error}")
            response = error_response(error.status, "")
            response.headers["Content-Range"] = error.content_range
        else:
            if isinstance(error, NotFound):
                logger.warning(f"404 for {error.path or '<empty path>'}")
            response = error_response(error.status, str(error))

        writer.discard_buffer()
        writer.write_response(response)
        return DeliveryResult(status=error.status, mode="error", error=error)


def _as_overrides(value: OverridesLike) -> DeliveryOverrides:
    if value is None:
        return DeliveryOverrides()
    if isinstance(value, DeliveryOverrides):
        return value
    return DeliveryOverrides.from_mapping(value)
