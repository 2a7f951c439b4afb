"""
=============================================================================
DOWNLOAD HEADERS
=============================================================================

Every delivery, streamed or delegated, starts with the same header block:

    Cache-Control: no-store, no-cache, must-revalidate
    Pragma: no-cache
    Expires: 0
    X-Robots-Tag: noindex, nofollow
    X-Content-Type-Options: nosniff
    Content-Type: application/pdf
    Content-Description: File Transfer
    Content-Transfer-Encoding: binary
    Content-Disposition: inline; filename="report.pdf"

=============================================================================
NON-ASCII FILENAMES (RFC 6266 / RFC 5987)
=============================================================================

Header values are ASCII on the wire. A name like "résumé.pdf" is sent
twice: once transliterated for old clients, once percent-encoded for
clients that understand the extended parameter:

    Content-Disposition: attachment; filename="resume.pdf";
                         filename*=UTF-8''r%C3%A9sum%C3%A9.pdf

Clients prefer filename* when they support it, so the original name
survives. The extended parameter is only added when sanitizing actually
changed something.

=============================================================================
"""

import re
import unicodedata
from typing import Callable, Dict
from urllib.parse import quote

from ..http.response import no_cache_headers
from .policy import enforce


FALLBACK_FILENAME = "download"

# Characters that break a quoted-string header value or a filesystem path
_UNSAFE_CHARS = re.compile(r'[\x00-\x1f\x7f"\\/;:*?<>|]')
_WHITESPACE = re.compile(r"\s+")


def sanitize_filename(filename: str) -> str:
    """
    Produce an ASCII-only filename safe to put inside a quoted header value.

        sanitize_filename("résumé.pdf")      → "resume.pdf"
        sanitize_filename('a"b;c.txt')       → "a_b_c.txt"
        sanitize_filename("../../etc/passwd") → "passwd"
        sanitize_filename("файл.pdf")        → "download.pdf"
    """
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]

    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    ascii_name = _UNSAFE_CHARS.sub("_", ascii_name)
    ascii_name = _WHITESPACE.sub(" ", ascii_name).strip()

    stem, dot, extension = ascii_name.rpartition(".")
    if dot and not stem.strip(" ._"):
        return f"{FALLBACK_FILENAME}.{extension}" if extension else FALLBACK_FILENAME
    if not dot and not ascii_name.strip(" ._"):
        return FALLBACK_FILENAME

    return ascii_name


def content_disposition(
    filename: str,
    inline: bool = False,
    sanitize: Callable[[str], str] = sanitize_filename,
) -> str:
    """
    Build a Content-Disposition value.

    Adds the RFC 5987 filename* parameter when the sanitized name differs
    from the original.
    """
    disposition = "inline" if inline else "attachment"
    safe_filename = sanitize(filename)

    if safe_filename != filename:
        encoded = quote(filename, safe="")
        return (
            f'{disposition}; filename="{safe_filename}"; '
            f"filename*=UTF-8''{encoded}"
        )

    return f'{disposition}; filename="{safe_filename}"'


def download_headers(
    filename: str,
    media_type: str,
    inline: bool = False,
    sanitize: Callable[[str], str] = sanitize_filename,
) -> Dict[str, str]:
    """
    The standard header block for a file delivery.

    The deny-list is applied here as well as during option resolution, so
    no caller can produce an inline text/html download through this
    function either.
    """
    media_type, force_download = enforce(media_type, not inline)

    headers = no_cache_headers()
    headers.update({
        "X-Robots-Tag": "noindex, nofollow",
        "X-Content-Type-Options": "nosniff",
        "Content-Type": media_type,
        "Content-Description": "File Transfer",
        "Content-Transfer-Encoding": "binary",
        "Content-Disposition": content_disposition(
            filename, inline=not force_download, sanitize=sanitize
        ),
    })
    return headers
