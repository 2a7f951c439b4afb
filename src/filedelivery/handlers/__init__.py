"""
Request handlers.

DownloadHandler turns "GET /<folder-id>/<path>" into a file delivery.
"""

from .download import DownloadHandler

__all__ = [
    "DownloadHandler",
]
