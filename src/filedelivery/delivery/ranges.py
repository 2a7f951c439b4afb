"""
=============================================================================
BYTE RANGES (RFC 7233, single-interval subset)
=============================================================================

A client that wants part of a file sends a Range header:

    Range: bytes=200-499      bytes 200..499 inclusive (300 bytes)
    Range: bytes=9500-        from byte 9500 to the end of the file
    Range: bytes=-500         the last 500 bytes

    ┌─────────────────────────────────────────────────────────────────────┐
    │                  FILE OF 1000 BYTES, bytes=200-499                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   0        200                 499                        999       │
    │   ├─────────┼───────────────────┼──────────────────────────┤         │
    │             └──── sent (206) ───┘                                   │
    │                                                                      │
    │   Content-Range: bytes 200-499/1000                                 │
    │   Content-Length: 300                                               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHAT WE ACCEPT, WHAT WE IGNORE, WHAT WE REJECT
=============================================================================

    Parse (syntax)                      Resolve (against the file size)
    ──────────────                      ───────────────────────────────
    bytes=S-E      → (S, E)             start > end           → 416
    bytes=S-       → (S, None)          start >= file_size    → 416
    bytes=-N       → (None, N)          end   >= file_size    → 416
    anything else  → None               otherwise             → ByteRange

"Anything else" covers multi-range requests (bytes=0-1,5-9), other units,
"bytes=-" and non-digits. Those are NOT errors: the request is served as if
no Range header was sent, i.e. a plain 200 with the whole file. Clients
that send exotic ranges still get their file.

A 416 answer carries "Content-Range: bytes */<file_size>" so the client
learns the real size.

=============================================================================
INTERVIEW QUESTIONS ABOUT RANGE REQUESTS
=============================================================================

Q: "Why would a download manager send Range headers?"
A: "To resume an interrupted transfer (bytes=<received>-) and to split a
   file into parallel segments."

Q: "Why is bytes=900-1999 on a 1000 byte file a 416 and not a 206?"
A: "RFC 7233 would allow clamping the end to 999. We deliberately reject
   it: an end past EOF usually means the client's idea of the file is
   stale, and the 416 tells it the current size."

=============================================================================
"""

from dataclasses import dataclass
import re
from typing import Optional, Tuple

from .errors import RangeNotSatisfiable


RANGE_PATTERN = re.compile(r"^bytes\s*=\s*(\d*)\s*-\s*(\d*)$", re.IGNORECASE)

# (start, end) as written by the client; a suffix request is (None, N)
RangeSpec = Tuple[Optional[int], Optional[int]]


@dataclass(frozen=True)
class ByteRange:
    """An inclusive byte interval [start, end] inside a file."""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.start > self.end:
            raise ValueError(f"Invalid byte range: {self.start}-{self.end}")

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, file_size: int) -> str:
        """Content-Range value, e.g. "bytes 200-499/1000"."""
        return f"bytes {self.start}-{self.end}/{file_size}"

    @classmethod
    def whole(cls, file_size: int) -> Optional["ByteRange"]:
        """The full file, or None for an empty one."""
        if file_size <= 0:
            return None
        return cls(0, file_size - 1)


def parse_range_header(range_header: Optional[str]) -> Optional[RangeSpec]:
    """
    Parse a Range header into (start, end).

    Returns None when the header is missing or not a single byte interval.

    Examples:
        >>> parse_range_header("bytes=0-499")
        (0, 499)
        >>> parse_range_header("bytes=500-")
        (500, None)
        >>> parse_range_header("bytes=-500")
        (None, 500)
        >>> parse_range_header("bytes=0-49,50-99") is None
        True
    """
    if not range_header:
        return None

    match = RANGE_PATTERN.match(range_header.strip())
    if not match:
        return None

    start_str, end_str = match.groups()
    if not start_str and not end_str:
        # "bytes=-"
        return None

    start = int(start_str) if start_str else None
    end = int(end_str) if end_str else None
    return start, end


def resolve_range(spec: RangeSpec, file_size: int, path: str = "") -> ByteRange:
    """
    Turn a parsed spec into a concrete ByteRange for a file.

    Raises:
        RangeNotSatisfiable: If the interval does not fit inside the file.
    """
    start, end = spec

    if start is None:
        # Suffix: last `end` bytes. A suffix longer than the file means
        # the whole file.
        start = max(file_size - end, 0)
        end = file_size - 1
    elif end is None:
        end = file_size - 1

    if start > end or start >= file_size or end >= file_size:
        raise RangeNotSatisfiable(
            f"Range {start}-{end} not satisfiable for {file_size} byte file",
            file_size=file_size,
            path=path,
        )

    return ByteRange(start, end)
