"""
pytest configuration and fixtures.
"""

import threading
from pathlib import Path
from typing import Callable, Generator

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from filedelivery import DeliveryRegistry, DeliveryResponder, FileServer, ServerConfig
from filedelivery.http import MemoryResponseWriter


SAMPLE_SIZE = 1000


@pytest.fixture
def sample_bytes() -> bytes:
    """1000 bytes where every offset is recognisable."""
    return bytes(i % 251 for i in range(SAMPLE_SIZE))


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., Path]:
    """Factory: make_file("name.ext", data) → path inside tmp_path."""
    def _make(name: str, data: bytes = b"") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path
    return _make


@pytest.fixture
def sample_file(make_file, sample_bytes: bytes) -> Path:
    """A 1000 byte PDF-named file (inline, 1 MiB chunks)."""
    return make_file("report.pdf", sample_bytes)


@pytest.fixture
def writer() -> MemoryResponseWriter:
    return MemoryResponseWriter()


@pytest.fixture
def responder() -> DeliveryResponder:
    return DeliveryResponder()


class RunningServer:
    """A FileServer running in a background thread."""

    def __init__(self, server: FileServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def base_url(self) -> str:
        host, port = self.server.address
        return f"http://{host}:{port}"

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.stop()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def served_dir(tmp_path: Path, sample_bytes: bytes) -> Path:
    """A folder with a few files for the integration server."""
    root = tmp_path / "served"
    (root / "docs").mkdir(parents=True)
    (root / "report.pdf").write_bytes(sample_bytes)
    (root / "clip.mp4").write_bytes(sample_bytes)
    (root / "page.html").write_bytes(b"<script>alert(1)</script>")
    (root / "docs" / "notes.txt").write_bytes(b"hello\n")
    (root / "empty.bin").write_bytes(b"")
    return root


@pytest.fixture
def running_server(served_dir: Path) -> Generator[RunningServer, None, None]:
    """A live server on a free port serving served_dir as /files/."""
    registry = DeliveryRegistry()
    registry.register("private", served_dir, {"force_download": True})

    server = FileServer(
        ServerConfig(
            host="127.0.0.1",
            port=0,
            max_workers=4,
            timeout=5.0,
            root_dir=str(served_dir),
            log_level="WARNING",
        ),
        registry=registry,
    )
    running = RunningServer(server)
    running.start()

    yield running

    running.stop()
