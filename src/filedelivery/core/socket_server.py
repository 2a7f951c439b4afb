"""
=============================================================================
LISTENING SOCKET
=============================================================================

Owns the listening TCP socket and the accept loop. Every accepted client is
wrapped in a Connection and handed to a callback; what happens next (thread
pool, request parsing, delivery) is the FileServer's business.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          ACCEPT LOOP                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   socket() → bind() → listen() → ready                              │
    │                                    │                                │
    │                    ┌───────────────▼───────────────┐                │
    │                    │ while running:                │                │
    │                    │   accept()   (1s timeout)     │                │
    │                    │   Connection(...)             │                │
    │                    │   handler(conn)               │                │
    │                    └───────────────┬───────────────┘                │
    │                                    │ shutdown()                     │
    │                                    ▼                                │
    │                               close socket                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The 1 second accept timeout is what makes shutdown() work from another
thread or a signal handler: accept() returns at least once a second and the
loop re-checks its running flag.

Port 0 asks the OS for a free port; bound_address reports the real one
once the ready event is set.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

ACCEPT_TIMEOUT = 1.0


class SocketServer:
    """
    TCP listener.

    Usage:
        server = SocketServer(config)
        server.start(handle_connection)   # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._bound_address: Optional[Tuple[str, int]] = None
        self._ready = threading.Event()
        self._stopped = threading.Event()
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def bound_address(self) -> Tuple[str, int]:
        """The (host, port) actually bound, or the configured one before start()."""
        return self._bound_address or (self.config.host, self.config.port)

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._ready.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._stopped.wait(timeout)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(ACCEPT_TIMEOUT)
        return sock

    def _setup_signals(self):
        """
        Install SIGTERM/SIGINT handlers that trigger a graceful shutdown.

        Python only allows this from the main thread. A server started from
        another thread (tests, embedding) keeps the existing handlers and
        must be stopped with shutdown().
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down")
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop. Blocks until shutdown().

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()
        self._stopped.clear()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            self._stopped.set()
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]
        self._running = True
        self._setup_signals()

        host, port = self._bound_address
        logger.info(f"Listening on {host}:{port}")
        self._ready.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                write_timeout=self.config.write_timeout,
                max_request_size=self.config.max_request_size,
            )
            connection_handler(conn)

    def shutdown(self):
        """Stop accepting. Safe to call repeatedly and from any thread."""
        if self._running:
            logger.info("Stopping listener")
        self._running = False

    def _cleanup(self):
        self._restore_signals()
        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None
        self._ready.clear()
        self._stopped.set()
        logger.info("Listener stopped")
