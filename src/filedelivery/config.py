"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Everything the download server needs to know before it starts, in one
dataclass.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m filedelivery --port 3000                        │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── FILEDELIVERY_PORT=3000 python -m filedelivery             │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FOLDERS
=============================================================================

Files are only ever served out of registered folders. Each folder has an
id that becomes the first URL segment:

    folders = {"reports": "/srv/reports", "media": "/srv/media"}

    GET /reports/2026/q3.pdf   →  /srv/reports/2026/q3.pdf
    GET /media/intro.mp4       →  /srv/media/intro.mp4

root_dir is a shorthand for a single folder registered as "files".

=============================================================================
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from .delivery.environment import DEFAULT_INTERNAL_PATH, SendfileEnvironment


DEFAULT_FOLDER_ID = "files"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the download server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK     host, port, backlog, buffer_size, timeout, write_timeout,
                max_request_size
    THREADING   max_workers
    FOLDERS     root_dir, folders
    DELIVERY    sendfile, internal_path, chunk_size, enable_range
    LOGGING     log_level, log_format, access_log

    =========================================================================
    """

    # =========================================================================
    # NETWORK
    # =========================================================================

    host: str = "127.0.0.1"
    """Address to bind. "0.0.0.0" for all interfaces."""

    port: int = 8080
    """Port to listen on. 0 lets the OS pick a free one."""

    backlog: int = 128

    buffer_size: int = 8192
    """recv() size while reading request heads."""

    timeout: Optional[float] = 30.0
    """Seconds a client may take to send its request head."""

    write_timeout: float = 60.0
    """Seconds a single send may block once a transfer is running."""

    max_request_size: int = 64 * 1024
    """Largest accepted request head. Downloads have no request body."""

    # =========================================================================
    # THREADING
    # =========================================================================

    max_workers: int = 16
    """
    Concurrent downloads. Each one occupies a thread for its whole
    transfer, so this is also the cap on simultaneous clients.
    """

    # =========================================================================
    # FOLDERS
    # =========================================================================

    root_dir: Optional[str] = None
    folders: Dict[str, str] = field(default_factory=dict)

    # =========================================================================
    # DELIVERY
    # =========================================================================

    sendfile: str = "off"
    """off | x-sendfile | x-accel-redirect (and their aliases)."""

    internal_path: str = DEFAULT_INTERNAL_PATH
    """X-Accel-Redirect location prefix."""

    chunk_size: Optional[int] = None
    """Forces one chunk size for every type. None follows the content policy."""

    enable_range: bool = True

    # =========================================================================
    # LOGGING
    # =========================================================================

    log_level: str = "INFO"

    log_format: str = "text"
    """Access log format: "text" or "json"."""

    access_log: bool = True

    server_name: str = "filedelivery/1.0"

    @property
    def all_folders(self) -> Dict[str, str]:
        """folders plus root_dir under DEFAULT_FOLDER_ID."""
        merged = dict(self.folders)
        if self.root_dir and DEFAULT_FOLDER_ID not in merged:
            merged[DEFAULT_FOLDER_ID] = self.root_dir
        return merged

    def sendfile_environment(self) -> SendfileEnvironment:
        return SendfileEnvironment.parse(self.sendfile, self.internal_path)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        FILEDELIVERY_HOST            Bind address (default: 127.0.0.1)
        FILEDELIVERY_PORT            Port (default: 8080)
        FILEDELIVERY_WORKERS         Worker threads (default: 16)
        FILEDELIVERY_TIMEOUT         Request read timeout (default: 30)
        FILEDELIVERY_ROOT            Folder served as /files/
        FILEDELIVERY_SENDFILE        off | x-sendfile | x-accel-redirect
        FILEDELIVERY_INTERNAL_PATH   X-Accel-Redirect prefix
        FILEDELIVERY_CHUNK_SIZE      Fixed chunk size in bytes
        FILEDELIVERY_LOG_LEVEL       Logging level (default: INFO)

        =====================================================================
        """
        chunk_size = os.getenv("FILEDELIVERY_CHUNK_SIZE")

        return cls(
            host=os.getenv("FILEDELIVERY_HOST", "127.0.0.1"),
            port=int(os.getenv("FILEDELIVERY_PORT", "8080")),
            max_workers=int(os.getenv("FILEDELIVERY_WORKERS", "16")),
            timeout=float(os.getenv("FILEDELIVERY_TIMEOUT", "30")),
            root_dir=os.getenv("FILEDELIVERY_ROOT"),
            sendfile=os.getenv("FILEDELIVERY_SENDFILE", "off"),
            internal_path=os.getenv("FILEDELIVERY_INTERNAL_PATH", DEFAULT_INTERNAL_PATH),
            chunk_size=int(chunk_size) if chunk_size else None,
            log_level=os.getenv("FILEDELIVERY_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Fail fast on bad values, at startup rather than on the first
        download.

        Raises:
            ValueError: Describing the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.write_timeout <= 0:
            raise ValueError("write_timeout must be > 0")

        if self.chunk_size is not None and self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be > 0, got {self.chunk_size}")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {self.log_format!r}")

        self.sendfile_environment()

        for folder_id, path in self.all_folders.items():
            if not os.path.isdir(path):
                raise ValueError(f"Folder {folder_id!r} is not a directory: {path}")
