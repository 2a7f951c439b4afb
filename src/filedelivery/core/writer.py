"""
ResponseWriter that sends to a client Connection.

Body bytes are buffered and pushed out with sendall() on flush(), or as
soon as the buffer passes buffer_limit. A failed send marks the client as
gone; it is never raised into the delivery, which notices through
is_connected() and stops reading the file.
"""

import logging
from typing import Dict

from ..http.response import DEFAULT_SERVER_NAME, serialize_head
from ..http.status_codes import HTTPStatus
from ..http.writer import ResponseWriter
from .connection import Connection


logger = logging.getLogger(__name__)


class ConnectionResponseWriter(ResponseWriter):
    """
    Args:
        connection: The client connection.
        server_name: Value of the Server header.
        buffer_limit: Send early once this many body bytes are pending.
    """

    def __init__(
        self,
        connection: Connection,
        server_name: str = DEFAULT_SERVER_NAME,
        buffer_limit: int = 256 * 1024,
    ):
        super().__init__()
        self.connection = connection
        self.server_name = server_name
        self.buffer_limit = buffer_limit
        self.body_bytes = 0
        self._pending = bytearray()
        self._failed = False

    def is_connected(self) -> bool:
        if self._failed:
            return False
        return self.connection.is_peer_connected()

    def lift_time_limit(self) -> None:
        super().lift_time_limit()
        self.connection.begin_transfer()

    def _emit_head(self, status: HTTPStatus, headers: Dict[str, str]) -> None:
        headers = dict(headers)
        headers["Connection"] = "close"
        self._send(serialize_head(status, headers, self.server_name))

    def _emit_body(self, data: bytes) -> None:
        if self._failed:
            return
        self._pending += data
        self.body_bytes += len(data)
        if len(self._pending) >= self.buffer_limit:
            self._flush()

    def _flush(self) -> None:
        if self._pending:
            data = bytes(self._pending)
            self._pending.clear()
            self._send(data)

    def _discard_pending(self) -> None:
        self._pending.clear()

    def _send(self, data: bytes) -> None:
        if self._failed:
            return
        if not self.connection.send(data):
            self._failed = True
            logger.info(f"[{self.connection.id}] Client went away during response")
