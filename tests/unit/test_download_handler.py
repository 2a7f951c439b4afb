"""
Unit tests for DownloadHandler.
"""

import os

import pytest

from filedelivery.delivery import (
    DeliveryRegistry,
    DeliveryResponder,
    SendfileEnvironment,
    SendfileMode,
)
from filedelivery.handlers import DownloadHandler
from filedelivery.http import HTTPRequest, HTTPStatus, MemoryResponseWriter


@pytest.fixture
def folder(tmp_path, sample_bytes):
    root = tmp_path / "root"
    (root / "sub").mkdir(parents=True)
    (root / "report.pdf").write_bytes(sample_bytes)
    (root / "sub" / "clip.mp4").write_bytes(sample_bytes)
    (tmp_path / "secret.txt").write_bytes(b"top secret")
    return root


@pytest.fixture
def handler(folder):
    registry = DeliveryRegistry()
    registry.register("files", folder)
    registry.register("private", folder, {"force_download": True}, internal_path="/private-internal/")
    return DownloadHandler(registry, DeliveryResponder())


def get(path: str, range_header: str = None) -> HTTPRequest:
    headers = {"range": range_header} if range_header else {}
    return HTTPRequest(method="GET", path=path, headers=headers)


class TestDownloadHandler:
    """Tests for URL → folder → file mapping."""

    def test_serves_file(self, handler, sample_bytes):
        writer = MemoryResponseWriter()

        result = handler.handle(get("/files/report.pdf"), writer)

        assert result.status == HTTPStatus.OK
        assert writer.body == sample_bytes

    def test_nested_path_with_range(self, handler, sample_bytes):
        writer = MemoryResponseWriter()

        result = handler.handle(get("/files/sub/clip.mp4", "bytes=0-9"), writer)

        assert result.status == HTTPStatus.PARTIAL_CONTENT
        assert writer.body == sample_bytes[:10]

    def test_folder_id_case_insensitive(self, handler):
        writer = MemoryResponseWriter()

        result = handler.handle(get("/FILES/report.pdf"), writer)

        assert result.status == HTTPStatus.OK

    def test_folder_options_applied(self, handler):
        """Test that a folder's own options reach the responder."""
        writer = MemoryResponseWriter()

        handler.handle(get("/private/report.pdf"), writer)

        assert writer.sent_header("Content-Disposition") == 'attachment; filename="report.pdf"'

    def test_folder_internal_path(self, folder):
        registry = DeliveryRegistry()
        registry.register("private", folder, internal_path="/private-internal/")
        responder = DeliveryResponder(
            environment=SendfileEnvironment(SendfileMode.X_ACCEL_REDIRECT)
        )
        writer = MemoryResponseWriter()

        DownloadHandler(registry, responder).handle(get("/private/report.pdf"), writer)

        assert writer.sent_header("X-Accel-Redirect") == "/private-internal/report.pdf"

    def test_responder_internal_path_used_by_default(self, folder):
        """Test that a folder without its own prefix uses the environment's."""
        registry = DeliveryRegistry()
        registry.register("files", folder)
        responder = DeliveryResponder(
            environment=SendfileEnvironment(SendfileMode.X_ACCEL_REDIRECT, "/internal/")
        )
        writer = MemoryResponseWriter()

        DownloadHandler(registry, responder).handle(get("/files/report.pdf"), writer)

        assert writer.sent_header("X-Accel-Redirect") == "/internal/report.pdf"

    @pytest.mark.parametrize("path", ["/unknown/report.pdf", "/files", "/files/", "/"])
    def test_not_found(self, handler, path):
        writer = MemoryResponseWriter()

        result = handler.handle(get(path), writer)

        assert result.status == HTTPStatus.NOT_FOUND
        assert writer.sent_status == HTTPStatus.NOT_FOUND

    def test_missing_file(self, handler):
        writer = MemoryResponseWriter()

        result = handler.handle(get("/files/nope.pdf"), writer)

        assert result.status == HTTPStatus.NOT_FOUND

    def test_directory_forbidden(self, handler):
        writer = MemoryResponseWriter()

        result = handler.handle(get("/files/sub"), writer)

        assert result.status == HTTPStatus.FORBIDDEN

    def test_symlink_escape_forbidden(self, handler, folder, tmp_path):
        """Test that a symlink pointing outside the folder is refused."""
        link = folder / "escape.txt"
        try:
            os.symlink(tmp_path / "secret.txt", link)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")
        writer = MemoryResponseWriter()

        result = handler.handle(get("/files/escape.txt"), writer)

        assert result.status == HTTPStatus.FORBIDDEN
        assert b"top secret" not in writer.body

    def test_resolve_rejects_traversal(self, handler, folder):
        registry_folder = handler.registry.get("files")

        assert handler.resolve(registry_folder, "../secret.txt") is None
        assert handler.resolve(registry_folder, "report.pdf") == (folder / "report.pdf").resolve()
