"""
Unit tests for the ResponseWriter implementations.
"""

import os
import socket

import pytest

from filedelivery.core import Connection, ConnectionResponseWriter
from filedelivery.http import (
    HeadersAlreadySentError,
    HTTPStatus,
    MemoryResponseWriter,
    ResponseBuilder,
)


class TestMemoryResponseWriter:
    """Tests for the head-before-body rules via MemoryResponseWriter."""

    def test_first_write_commits_head(self):
        writer = MemoryResponseWriter()
        writer.set_status(HTTPStatus.PARTIAL_CONTENT)
        writer.set_header("Content-Length", 3)

        writer.write(b"abc")

        assert writer.headers_sent is True
        assert writer.sent_status == HTTPStatus.PARTIAL_CONTENT
        assert writer.sent_headers == {"Content-Length": "3"}
        assert writer.body == b"abc"

    def test_header_change_after_head_rejected(self):
        writer = MemoryResponseWriter()
        writer.send_headers()

        with pytest.raises(HeadersAlreadySentError):
            writer.set_header("X-Late", "1")
        with pytest.raises(HeadersAlreadySentError):
            writer.set_status(HTTPStatus.NOT_FOUND)
        with pytest.raises(HeadersAlreadySentError):
            writer.discard_buffer()

    def test_set_header_case_insensitive_replace(self):
        """Test that setting a header replaces any differently cased copy."""
        writer = MemoryResponseWriter()
        writer.set_header("content-type", "text/plain")
        writer.set_header("Content-Type", "application/pdf")

        assert writer.headers == {"Content-Type": "application/pdf"}
        assert writer.get_header("CONTENT-TYPE") == "application/pdf"

    def test_remove_header(self):
        writer = MemoryResponseWriter()
        writer.set_header("X-A", "1")
        writer.remove_header("x-a")

        assert writer.get_header("X-A") is None

    def test_discard_buffer_resets(self):
        writer = MemoryResponseWriter()
        writer.set_status(HTTPStatus.NOT_FOUND)
        writer.set_header("X-A", "1")

        writer.discard_buffer()

        assert writer.status == HTTPStatus.OK
        assert writer.headers == {}
        assert writer.discard_count == 1

    def test_send_headers_idempotent(self):
        writer = MemoryResponseWriter()
        writer.send_headers()
        writer.send_headers()

        assert writer.sent_status == HTTPStatus.OK

    def test_write_after_end_rejected(self):
        writer = MemoryResponseWriter()
        writer.end()

        with pytest.raises(RuntimeError):
            writer.write(b"x")

    def test_end_idempotent(self):
        writer = MemoryResponseWriter()
        writer.end()
        writer.end()

        assert writer.finished is True
        assert writer.flush_points == [0]

    def test_write_response(self):
        writer = MemoryResponseWriter()
        response = ResponseBuilder().status(HTTPStatus.NOT_FOUND).text("nope").build()

        writer.write_response(response)

        assert writer.sent_status == HTTPStatus.NOT_FOUND
        assert writer.sent_header("Content-Length") == "4"
        assert writer.body == b"nope"
        assert writer.finished is True

    def test_disconnect_after(self):
        writer = MemoryResponseWriter(disconnect_after=2)

        assert writer.is_connected() is True
        writer.write(b"ab")
        assert writer.is_connected() is False


@pytest.fixture
def socket_pair():
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    for sock in (server_side, client_side):
        try:
            sock.close()
        except OSError:
            pass


def read_all(sock: socket.socket) -> bytes:
    sock.settimeout(2.0)
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


class TestConnectionResponseWriter:
    """Tests for the socket-backed writer, using a socketpair."""

    def test_wire_format(self, socket_pair):
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 0))
        writer = ConnectionResponseWriter(conn, server_name="test/1.0")

        writer.set_status(HTTPStatus.PARTIAL_CONTENT)
        writer.set_header("Content-Length", 5)
        writer.write(b"hello")
        writer.end()
        conn.close()

        data = read_all(client_side)
        head, _, body = data.partition(b"\r\n\r\n")

        assert head.startswith(b"HTTP/1.1 206 Partial Content\r\n")
        assert b"Content-Length: 5" in head
        assert b"Connection: close" in head
        assert b"Server: test/1.0" in head
        assert b"Date: " in head
        assert body == b"hello"

    def test_buffer_limit_sends_early(self, socket_pair):
        """Test that pending bytes go out once buffer_limit is reached."""
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 0))
        writer = ConnectionResponseWriter(conn, buffer_limit=4)

        writer.write(b"abcd")

        assert conn.bytes_sent > 0
        client_side.settimeout(2.0)
        assert b"abcd" in client_side.recv(65536)

    def test_peer_gone(self, socket_pair):
        """Test that a closed peer is reported and sends stop quietly."""
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 0))
        writer = ConnectionResponseWriter(conn)

        client_side.close()

        assert writer.is_connected() is False
        writer.write(b"x" * 1024)
        writer.flush()
        assert writer.is_connected() is False

    def test_liveness_check_on_high_descriptor(self, socket_pair):
        """Test that sockets numbered above FD_SETSIZE are still checked correctly."""
        resource = pytest.importorskip("resource")
        high_fd = 1100
        soft_limit, _ = resource.getrlimit(resource.RLIMIT_NOFILE)
        if soft_limit != resource.RLIM_INFINITY and soft_limit <= high_fd:
            pytest.skip("open file limit too low for a descriptor above 1024")

        server_side, client_side = socket_pair
        os.dup2(server_side.fileno(), high_fd)
        high_socket = socket.socket(fileno=high_fd)
        conn = Connection(socket=high_socket, address=("127.0.0.1", 0))
        try:
            assert conn.is_peer_connected() is True

            client_side.close()

            assert conn.is_peer_connected() is False
        finally:
            high_socket.close()

    def test_lift_time_limit_switches_timeout(self, socket_pair):
        server_side, _ = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 0), timeout=5.0, write_timeout=42.0)
        writer = ConnectionResponseWriter(conn)

        writer.lift_time_limit()

        assert writer.time_limit_lifted is True
        assert server_side.gettimeout() == 42.0
