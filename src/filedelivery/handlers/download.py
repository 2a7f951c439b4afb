"""
=============================================================================
DOWNLOAD HANDLER
=============================================================================

Maps a request path onto a registered folder and hands the file to the
DeliveryResponder.

    GET /reports/2026/q3.pdf
         └──┬──┘ └────┬────┘
         folder id   path inside the folder

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         HANDLER FLOW                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   unknown folder / no file path          → 404                      │
    │   resolved path escapes the folder root  → 403                      │
    │   directory                              → 403                      │
    │   anything else                          → responder.deliver()      │
    │                                             (404/416/200/206/...)   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    GET /reports/..%2F..%2Fetc/passwd

The parser rejects literal ".." segments, but symlinks can still point
outside a folder. So the check is done on the fully resolved path:

    full_path = (root_dir / relative).resolve()    # follows symlinks
    full_path.relative_to(root_dir)                # ValueError if outside

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

from ..delivery.registry import DeliveryRegistry, ProtectedFolder
from ..delivery.responder import DeliveryResponder, DeliveryResult
from ..http.request import HTTPRequest
from ..http.response import forbidden, not_found
from ..http.status_codes import HTTPStatus
from ..http.writer import ResponseWriter


logger = logging.getLogger(__name__)


class DownloadHandler:
    """
    Serves files out of the folders in a DeliveryRegistry.

    The responder carries the server-wide options; each folder's own
    options are passed per call and win over them.

    Usage:
        registry = DeliveryRegistry()
        registry.register("media", "/srv/media")

        handler = DownloadHandler(registry, DeliveryResponder())
        result = handler.handle(request, writer)
    """

    def __init__(self, registry: DeliveryRegistry, responder: Optional[DeliveryResponder] = None):
        self.registry = registry
        self.responder = responder or DeliveryResponder()

    def handle(self, request: HTTPRequest, writer: ResponseWriter) -> DeliveryResult:
        folder_id, relative = self._split_path(request.path)

        folder = self.registry.get(folder_id) if folder_id else None
        if folder is None or not relative:
            return self._reject(writer, not_found(), HTTPStatus.NOT_FOUND)

        full_path = self.resolve(folder, relative)
        if full_path is None:
            logger.warning(f"Path traversal attempt in folder {folder.id!r}: {relative}")
            return self._reject(writer, forbidden("Access denied"), HTTPStatus.FORBIDDEN)

        if full_path.is_dir():
            return self._reject(
                writer, forbidden("Directory listing not allowed"), HTTPStatus.FORBIDDEN
            )

        return self.responder.deliver(
            full_path,
            writer,
            range_header=request.range_header,
            overrides=folder.options,
            internal_path=folder.internal_path,
        )

    def resolve(self, folder: ProtectedFolder, relative: str) -> Optional[Path]:
        """
        The filesystem path for a file inside a folder, or None if it
        resolves outside the folder root.
        """
        root = Path(folder.root_dir).resolve()
        try:
            full_path = (root / relative.lstrip("/")).resolve()
            full_path.relative_to(root)
        except (ValueError, OSError):
            # ValueError covers both "outside root" and embedded NUL bytes
            return None
        return full_path

    @staticmethod
    def _split_path(path: str) -> Tuple[str, str]:
        """"/media/a/b.mp4" → ("media", "a/b.mp4")."""
        folder_id, _, relative = path.lstrip("/").partition("/")
        return folder_id, relative

    @staticmethod
    def _reject(writer: ResponseWriter, response, status: HTTPStatus) -> DeliveryResult:
        writer.discard_buffer()
        writer.write_response(response)
        return DeliveryResult(status=status, mode="error")
