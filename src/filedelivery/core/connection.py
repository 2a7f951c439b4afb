"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted socket for the lifetime of one download.

A download connection is short and lopsided: a few hundred bytes of request
head come in, then possibly gigabytes go out.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                   ONE CONNECTION, ONE DOWNLOAD                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   NEW ──► READING ──► SENDING ──────────────────► CLOSED            │
    │             │   request head      headers + body     ▲              │
    │             │   (read timeout)    (write timeout)    │              │
    │             │                                        │              │
    │             └── timeout / garbage / hang-up ─────────┘              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Responses always carry "Connection: close". A byte stream that may stop
halfway (client gone, read error) cannot be followed by another response
on the same connection anyway.

=============================================================================
TWO TIMEOUTS
=============================================================================

    read timeout    How long a client may take to send its request head.
                    Short: a client that connects and says nothing is
                    holding a worker for nothing.

    write timeout   How long one sendall() may block. A slow client on a
                    large file legitimately takes minutes in total, so
                    the budget is per send, not per response.

=============================================================================
DETECTING A VANISHED CLIENT
=============================================================================

After the request is read the client has nothing more to say. If the socket
then becomes readable, either the client closed it (recv returns b"") or
it reset it (recv raises). Both mean nobody is listening:

    selector.select(timeout=0)     → readable?
    sock.recv(1, MSG_PEEK)         → b""  : closed
                                   → data : pipelined junk, still there
                                   → error: reset

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
import logging
import selectors
import socket
import time
from typing import Optional
import uuid


logger = logging.getLogger(__name__)

HEADER_TERMINATOR = b"\r\n\r\n"


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    SENDING = "sending"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    One client socket.

    Attributes:
        socket: The accepted client socket.
        address: Client (ip, port).
        id: Short identifier used in log lines.
        timeout: Read timeout for the request head, in seconds.
        write_timeout: Timeout for each send once the transfer is running.
        max_request_size: Upper bound on the request head, in bytes.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    bytes_sent: int = 0

    buffer_size: int = 8192
    timeout: float = 30.0
    write_timeout: float = 60.0
    max_request_size: int = 64 * 1024

    _broken: bool = field(default=False, repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else "-"

    @property
    def age(self) -> float:
        return time.time() - self.created_at

    @property
    def closed(self) -> bool:
        return self.state is ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read one request head, up to and including the blank line.

        Anything after the blank line is ignored: the server only serves
        GET, which has no body.

        Returns:
            The request head bytes, or None if the client closed the
            connection without sending a complete head.

        Raises:
            TimeoutError: If the client is too slow.
            ValueError: If the head exceeds max_request_size.
        """
        self.state = ConnectionState.READING
        buffer = b""

        try:
            while HEADER_TERMINATOR not in buffer:
                chunk = self._recv()
                if not chunk:
                    if buffer:
                        logger.debug(f"[{self.id}] Client closed mid-request")
                    return None

                buffer += chunk
                if len(buffer) > self.max_request_size:
                    raise ValueError(f"Request head too large: {len(buffer)} bytes")
        except socket.timeout:
            raise TimeoutError("Request read timeout")

        end = buffer.find(HEADER_TERMINATOR) + len(HEADER_TERMINATOR)
        return buffer[:end]

    def _recv(self) -> bytes:
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def begin_transfer(self) -> None:
        """Switch from the read timeout to the per-send write timeout."""
        self.state = ConnectionState.SENDING
        if not self.closed:
            self.socket.settimeout(self.write_timeout)

    def send(self, data: bytes) -> bool:
        """
        Send all of data.

        Returns:
            True on success. False if the client is gone; the connection
            is then marked broken and every later send fails fast.
        """
        if self._broken or self.closed:
            return False

        try:
            self.socket.sendall(data)
        except socket.timeout:
            logger.warning(f"[{self.id}] Send timed out after {self.bytes_sent} bytes")
            self._broken = True
            return False
        except OSError as e:
            logger.debug(f"[{self.id}] Send failed after {self.bytes_sent} bytes: {e}")
            self._broken = True
            return False

        self.bytes_sent += len(data)
        return True

    def is_peer_connected(self) -> bool:
        """Whether the client still appears to be there. Never blocks."""
        if self._broken or self.closed:
            return False

        try:
            # A selector, unlike select.select(), copes with fds >= FD_SETSIZE
            with selectors.DefaultSelector() as selector:
                selector.register(self.socket, selectors.EVENT_READ)
                readable = selector.select(timeout=0)
            if not readable:
                return True
            peeked = self.socket.recv(1, socket.MSG_PEEK)
        except (OSError, ValueError):
            self._broken = True
            return False

        if not peeked:
            self._broken = True
            return False
        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self) -> None:
        """
        Shut down the write side, drain briefly, release the socket.

        Draining lets the client read the tail of the response instead of
        getting a reset because unread request bytes were still queued.
        """
        if self.closed:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Closed after {self.bytes_sent} bytes, {self.age:.2f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
