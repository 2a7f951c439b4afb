"""
=============================================================================
CONTENT POLICY
=============================================================================

Decides, per media type, how a file should be delivered:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      DELIVERY POLICY TABLE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   MEDIA TYPE                DISPOSITION      CHUNK                  │
    │   ──────────                ───────────      ─────                  │
    │   application/pdf           inline           1 MiB                  │
    │   image/*                   inline           512 KiB                │
    │   image/svg+xml             attachment       512 KiB                │
    │   video/*                   inline           2 MiB                  │
    │   audio/*                   inline           1 MiB                  │
    │   text/plain, csv, md       inline           512 KiB                │
    │   archives                  attachment       4 MiB                  │
    │   octet-stream, office      attachment       4 MiB                  │
    │   everything else           attachment       1 MiB                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Why chunk sizes differ:
    - Media players seek constantly. Each seek is a new range request, so
      chunks only need to be big enough to keep syscall overhead low.
    - Archives are downloaded start to finish. Bigger reads, fewer loops.

=============================================================================
THE DENY-LIST
=============================================================================

Some types would be *executed* by the browser if served inline from our
origin (HTML, JavaScript, PHP source). Those are always rewritten to

    Content-Type: application/octet-stream
    Content-Disposition: attachment

This is a security rule, not a performance preference: no option, no
override, no configured profile can turn it off. enforce() is the single
place it is applied.

=============================================================================
"""

from dataclasses import dataclass
from typing import FrozenSet, Tuple

from ..http.mime_types import base_type


KIB = 1024
MIB = 1024 * KIB

DEFAULT_CHUNK_SIZE = 1 * MIB

SAFE_DOWNLOAD_TYPE = "application/octet-stream"

DANGEROUS_TYPES: FrozenSet[str] = frozenset({
    "text/html",
    "text/javascript",
    "application/javascript",
    "application/x-javascript",
    "application/x-httpd-php",
})

ARCHIVE_TYPES: FrozenSet[str] = frozenset({
    "application/zip",
    "application/gzip",
    "application/x-gzip",
    "application/x-tar",
    "application/x-bzip2",
    "application/x-xz",
    "application/x-7z-compressed",
    "application/vnd.rar",
    "application/x-rar-compressed",
})

DOCUMENT_TYPES: FrozenSet[str] = frozenset({
    "application/octet-stream",
    "application/msword",
    "application/vnd.ms-excel",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "application/vnd.oasis.opendocument.text",
    "application/epub+zip",
})

INLINE_TEXT_TYPES: FrozenSet[str] = frozenset({
    "text/plain",
    "text/csv",
    "text/markdown",
})


@dataclass(frozen=True)
class Classification:
    """Recommended delivery for one media type."""

    inline: bool
    chunk_size: int

    @property
    def force_download(self) -> bool:
        return not self.inline


def is_dangerous(media_type: str) -> bool:
    """Whether the type is on the executable/script deny-list."""
    return base_type(media_type) in DANGEROUS_TYPES


def enforce(media_type: str, force_download: bool) -> Tuple[str, bool]:
    """
    Apply the deny-list.

    Returns the (media_type, force_download) pair that may actually be
    sent. Safe types pass through unchanged.
    """
    if is_dangerous(media_type):
        return SAFE_DOWNLOAD_TYPE, True
    return media_type, force_download


class ContentPolicy:
    """
    Media type → Classification. Pure, stateless, safe to share.

        policy = ContentPolicy()
        policy.classify("video/mp4")          # inline, 2 MiB
        policy.classify("application/zip")    # attachment, 4 MiB
        policy.classify("text/html")          # attachment (deny-list)
    """

    def classify(self, media_type: str) -> Classification:
        kind = base_type(media_type)
        major = kind.split("/", 1)[0]

        if kind in DANGEROUS_TYPES:
            return Classification(inline=False, chunk_size=DEFAULT_CHUNK_SIZE)

        if kind == "application/pdf":
            return Classification(inline=True, chunk_size=1 * MIB)

        if kind == "image/svg+xml":
            # SVG can carry script; show it only when the caller insists
            return Classification(inline=False, chunk_size=512 * KIB)

        if major == "image":
            return Classification(inline=True, chunk_size=512 * KIB)

        if major == "video":
            return Classification(inline=True, chunk_size=2 * MIB)

        if major == "audio":
            return Classification(inline=True, chunk_size=1 * MIB)

        if kind in INLINE_TEXT_TYPES:
            return Classification(inline=True, chunk_size=512 * KIB)

        if kind in ARCHIVE_TYPES or kind in DOCUMENT_TYPES:
            return Classification(inline=False, chunk_size=4 * MIB)

        return Classification(inline=False, chunk_size=DEFAULT_CHUNK_SIZE)

    def should_force_download(self, media_type: str) -> bool:
        return self.classify(media_type).force_download

    def optimal_chunk_size(self, media_type: str) -> int:
        return self.classify(media_type).chunk_size
