"""
Named folder configurations.

A DeliveryRegistry maps folder ids to ProtectedFolder records: where the
files live, which delivery options apply to them, and which internal
location nginx serves them from. The caller creates and owns the registry;
there is no process-wide instance.

    registry = DeliveryRegistry()
    registry.register("reports", "/srv/reports", {"force_download": True})
    registry.get("Reports")          # ids are normalized, same folder
"""

from dataclasses import dataclass, field
import logging
import os
import re
import threading
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from .options import DeliveryOverrides


logger = logging.getLogger(__name__)

_KEY_UNSAFE = re.compile(r"[^a-z0-9_\-]")


def sanitize_key(key: str) -> str:
    """Lowercase, keep only a-z, 0-9, "_" and "-"."""
    return _KEY_UNSAFE.sub("", str(key).lower())


@dataclass(frozen=True)
class ProtectedFolder:
    """One registered folder."""

    id: str
    root_dir: str
    options: DeliveryOverrides = field(default_factory=DeliveryOverrides)
    internal_path: Optional[str] = None
    """X-Accel-Redirect prefix for this folder. None uses the responder's."""


class DeliveryRegistry:
    """
    Caller-owned store of ProtectedFolder records, safe to share between
    request threads.
    """

    def __init__(self):
        self._folders: Dict[str, ProtectedFolder] = {}
        self._lock = threading.Lock()

    def register(
        self,
        folder_id: str,
        root_dir: Union[str, os.PathLike],
        options: Union[DeliveryOverrides, Mapping[str, Any], None] = None,
        internal_path: Optional[str] = None,
    ) -> ProtectedFolder:
        """
        Register a folder, or return the one already registered under the
        same id (the new arguments are then ignored).

        Raises:
            ValueError: If the id is empty after sanitizing, or options
                        contain an unknown name.
        """
        key = sanitize_key(folder_id)
        if not key:
            raise ValueError(f"Folder id cannot be empty (got {folder_id!r})")

        if not isinstance(options, DeliveryOverrides):
            options = DeliveryOverrides.from_mapping(options)

        with self._lock:
            existing = self._folders.get(key)
            if existing is not None:
                return existing

            folder = ProtectedFolder(
                id=key,
                root_dir=os.path.abspath(os.fspath(root_dir)),
                options=options,
                internal_path=internal_path or None,
            )
            self._folders[key] = folder

        logger.debug(f"Registered folder {key!r} at {folder.root_dir}")
        return folder

    def get(self, folder_id: str) -> Optional[ProtectedFolder]:
        return self._folders.get(sanitize_key(folder_id))

    def has(self, folder_id: str) -> bool:
        return sanitize_key(folder_id) in self._folders

    def remove(self, folder_id: str) -> bool:
        """Unregister a folder. Returns False if it was not registered."""
        with self._lock:
            removed = self._folders.pop(sanitize_key(folder_id), None)
        return removed is not None

    def all(self) -> List[ProtectedFolder]:
        return list(self._folders.values())

    def ids(self) -> List[str]:
        """Registered folder ids, in registration order."""
        return list(self._folders)

    def count(self) -> int:
        return len(self._folders)

    def clear(self) -> None:
        """Unregister every folder."""
        with self._lock:
            self._folders.clear()

    def __len__(self) -> int:
        return len(self._folders)

    def __iter__(self) -> Iterator[ProtectedFolder]:
        return iter(self.all())

    def __contains__(self, folder_id) -> bool:
        return isinstance(folder_id, str) and self.has(folder_id)
