"""
=============================================================================
FILE DELIVERY SERVER
=============================================================================

A small threaded HTTP/1.1 server whose only job is to serve files out of
registered folders through the DeliveryResponder.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         REQUEST FLOW                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer.accept()                                             │
    │        │                                                            │
    │        ▼                                                            │
    │   ThreadPoolExecutor.submit(_process_connection)                    │
    │        │              (no free slot → 503)                          │
    │        ▼                                                            │
    │   Connection.read_request()   timeout → 408, too big → 413          │
    │        │                                                            │
    │        ▼                                                            │
    │   RequestParser.parse()       HTTPParseError → its status           │
    │        │                                                            │
    │        ▼                                                            │
    │   GET only                    anything else → 405                   │
    │        │                                                            │
    │        ▼                                                            │
    │   DownloadHandler.handle(request, ConnectionResponseWriter)         │
    │        │                                                            │
    │        ▼                                                            │
    │   access log, close connection                                      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

One request per connection: every response carries "Connection: close".

=============================================================================
CAPACITY
=============================================================================

A download holds its worker thread for the whole transfer. The executor
gets max_workers threads plus an equal number of queue slots; a connection
arriving when all of them are taken is answered 503 straight away instead
of waiting behind multi-gigabyte transfers.

=============================================================================
"""

from concurrent.futures import ThreadPoolExecutor
import logging
import threading
import time
from typing import Optional, Tuple
import uuid

from .accesslog import log_download
from .config import ServerConfig
from .core import Connection, ConnectionResponseWriter, SocketServer
from .delivery import DeliveryOverrides, DeliveryRegistry, DeliveryResponder, DeliveryResult
from .handlers import DownloadHandler
from .http import HTTPParseError, HTTPStatus, RequestParser, ResponseBuilder, method_not_allowed


logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET",)


class FileServer:
    """
    Threaded download server.

    =========================================================================
    USAGE
    =========================================================================

        config = ServerConfig(port=8080, folders={"media": "/srv/media"})
        server = FileServer(config)
        server.run()                      # blocks until Ctrl+C

    Or with a registry built in code:

        registry = DeliveryRegistry()
        registry.register("reports", "/srv/reports", {"force_download": True})
        FileServer(config, registry=registry).run()

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        registry: Optional[DeliveryRegistry] = None,
        responder: Optional[DeliveryResponder] = None,
    ):
        self.config = config or ServerConfig()
        self.config.validate()

        self.registry = registry or DeliveryRegistry()
        for folder_id, path in self.config.all_folders.items():
            self.registry.register(folder_id, path)

        self.responder = responder or DeliveryResponder(
            options=DeliveryOverrides(
                chunk_size=self.config.chunk_size,
                enable_range=self.config.enable_range,
            ),
            environment=self.config.sendfile_environment(),
        )
        self.handler = DownloadHandler(self.registry, self.responder)

        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._socket_server = SocketServer(self.config)
        self._executor: Optional[ThreadPoolExecutor] = None
        self._slots = threading.BoundedSemaphore(self.config.max_workers * 2)
        self._running = False

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.bound_address

    @property
    def is_running(self) -> bool:
        return self._running

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listener is bound (useful with port 0)."""
        return self._socket_server.wait_until_ready(timeout)

    def run(self):
        """Start serving. Blocks until stop() or SIGINT/SIGTERM."""
        self._setup_logging()
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="filedelivery",
        )
        self._running = True

        folders = ", ".join(f"/{folder.id}/ → {folder.root_dir}" for folder in self.registry)
        logger.info(
            f"Serving {len(self.registry)} folder(s) with {self.config.max_workers} workers"
            f"{': ' + folders if folders else ''}"
        )
        if self.responder.environment.available:
            logger.info(f"Delegating transfers via {self.responder.environment.mode.value}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def stop(self):
        """Stop accepting connections. run() returns once in-flight work is done."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("filedelivery").setLevel(level)

    def _shutdown(self):
        logger.info("Waiting for in-flight downloads...")
        self._running = False
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Called on the accept thread; hands the connection to a worker."""
        if not self._slots.acquire(blocking=False):
            logger.warning(f"[{conn.id}] All workers busy, rejecting {conn.client_ip}")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()
            return

        try:
            self._executor.submit(self._run_slot, conn)
        except RuntimeError:
            # Executor already shut down
            self._slots.release()
            conn.close()

    def _run_slot(self, conn: Connection):
        try:
            self._process_connection(conn)
        finally:
            self._slots.release()

    def _process_connection(self, conn: Connection):
        """Serve exactly one request on a connection (runs in a worker)."""
        with conn:
            try:
                raw_request = conn.read_request()
            except TimeoutError:
                self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                return
            except ValueError as e:
                self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                return

            if raw_request is None:
                return

            try:
                request = self._parser.parse(raw_request, conn.address)
            except HTTPParseError as e:
                self._send_error(conn, HTTPStatus(e.status_code), str(e))
                return

            request_id = uuid.uuid4().hex[:8]
            start_time = time.time()
            writer = ConnectionResponseWriter(conn, server_name=self.config.server_name)

            if request.method not in ALLOWED_METHODS:
                writer.write_response(method_not_allowed(", ".join(ALLOWED_METHODS)))
                result = DeliveryResult(status=HTTPStatus.METHOD_NOT_ALLOWED, mode="error")
            else:
                result = self._deliver(conn, request, writer)

            if self.config.access_log:
                duration_ms = (time.time() - start_time) * 1000
                log_download(request_id, request, result, duration_ms, self.config.log_format)

    def _deliver(self, conn: Connection, request, writer: ConnectionResponseWriter) -> DeliveryResult:
        try:
            return self.handler.handle(request, writer)
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error: {e}")

            if writer.headers_sent:
                writer.end()
            else:
                writer.discard_buffer()
                writer.write_response(ResponseBuilder()
                    .status(HTTPStatus.INTERNAL_SERVER_ERROR)
                    .no_cache()
                    .json({"error": "Internal Server Error"})
                    .build())
            return DeliveryResult(
                status=HTTPStatus.INTERNAL_SERVER_ERROR, mode="error", complete=False
            )

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        """Error answer for failures before a request could be parsed."""
        response = (ResponseBuilder()
            .status(status)
            .json({"error": message})
            .close_connection()
            .build())
        conn.send(response.to_bytes(self.config.server_name))

