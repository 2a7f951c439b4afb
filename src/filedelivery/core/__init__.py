"""
Socket layer: the listener, client connections and the socket-backed
ResponseWriter.
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer
from .writer import ConnectionResponseWriter

__all__ = [
    "Connection",
    "ConnectionState",
    "SocketServer",
    "ConnectionResponseWriter",
]
