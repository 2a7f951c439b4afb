"""
=============================================================================
MEDIA TYPE DETECTION
=============================================================================

Maps a file path to the media type the delivery policy is keyed on.

    report.PDF   →  application/pdf     (extension match is case-insensitive)
    clip.mp4     →  video/mp4
    backup.tgz   →  application/gzip
    unknown.xyz  →  application/octet-stream

Detection is by extension only. Content sniffing is deliberately left to
nobody: every delivery sends X-Content-Type-Options: nosniff, so the type
chosen here is the type the client will use.

=============================================================================
"""

from pathlib import Path
from typing import Optional, Union


MIME_TYPES = {
    # -------------------------------------------------------------------------
    # DOCUMENTS
    # -------------------------------------------------------------------------
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".odt": "application/vnd.oasis.opendocument.text",
    ".epub": "application/epub+zip",
    ".txt": "text/plain",
    ".csv": "text/csv",
    ".md": "text/markdown",
    ".json": "application/json",
    ".xml": "application/xml",

    # -------------------------------------------------------------------------
    # IMAGES
    # -------------------------------------------------------------------------
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".bmp": "image/bmp",
    ".ico": "image/x-icon",
    ".svg": "image/svg+xml",        # XML, can carry script

    # -------------------------------------------------------------------------
    # AUDIO / VIDEO
    # -------------------------------------------------------------------------
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
    ".flac": "audio/flac",
    ".mp4": "video/mp4",
    ".m4v": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".mkv": "video/x-matroska",

    # -------------------------------------------------------------------------
    # ARCHIVES
    # -------------------------------------------------------------------------
    ".zip": "application/zip",
    ".gz": "application/gzip",
    ".tgz": "application/gzip",
    ".tar": "application/x-tar",
    ".bz2": "application/x-bzip2",
    ".xz": "application/x-xz",
    ".7z": "application/x-7z-compressed",
    ".rar": "application/vnd.rar",

    # -------------------------------------------------------------------------
    # EXECUTABLE / SCRIPT
    # -------------------------------------------------------------------------
    # Listed so they are recognised and caught by the download deny-list,
    # instead of slipping through as something harmless.
    ".html": "text/html",
    ".htm": "text/html",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".php": "application/x-httpd-php",
    ".exe": "application/octet-stream",
    ".bin": "application/octet-stream",
}

# "I don't know what this is, treat as binary"
DEFAULT_MIME_TYPE = "application/octet-stream"


def get_mime_type(path: Union[str, Path], default: Optional[str] = None) -> str:
    """
    Get the media type for a file path from its extension.

    Args:
        path: File path (string or Path). Only the suffix is looked at.
        default: Type to return for unknown extensions.

    Returns:
        Media type without parameters, e.g. "video/mp4".
    """
    if isinstance(path, str):
        path = Path(path)

    extension = path.suffix.lower()  # .MP4 → .mp4
    return MIME_TYPES.get(extension, default or DEFAULT_MIME_TYPE)


def base_type(media_type: Optional[str]) -> str:
    """
    Normalise a media type for comparisons.

        "Text/HTML; charset=UTF-8"  →  "text/html"
    """
    if not media_type:
        return ""
    return media_type.split(";", 1)[0].strip().lower()
