"""
File access and per-transfer bookkeeping.

FileAccess is the only way the responder touches the filesystem, so tests
(and callers with unusual storage) can substitute their own. TransferState
is the byte accounting of one streaming loop.
"""

from dataclasses import dataclass
import os
from typing import BinaryIO


class FileAccess:
    """Local filesystem access."""

    def is_readable(self, path: str) -> bool:
        return os.path.isfile(path) and os.access(path, os.R_OK)

    def size(self, path: str) -> int:
        return os.path.getsize(path)

    def basename(self, path: str) -> str:
        return os.path.basename(path)

    def open(self, path: str) -> BinaryIO:
        return open(path, "rb")


@dataclass
class TransferState:
    """
    Byte accounting for one streaming loop.

    bytes_target is fixed at start; bytes_sent and position only grow.
    """

    bytes_target: int
    position: int = 0
    bytes_sent: int = 0

    @property
    def remaining(self) -> int:
        return self.bytes_target - self.bytes_sent

    @property
    def done(self) -> bool:
        return self.bytes_sent >= self.bytes_target

    def next_read_size(self, chunk_size: int) -> int:
        """min(chunk_size, remaining): the last read never overshoots."""
        return min(chunk_size, self.remaining)

    def advance(self, count: int) -> None:
        self.bytes_sent += count
        self.position += count
