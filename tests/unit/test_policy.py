"""
Unit tests for the content policy and the deny-list.
"""

import pytest

from filedelivery.delivery.policy import (
    DANGEROUS_TYPES,
    KIB,
    MIB,
    ContentPolicy,
    enforce,
    is_dangerous,
)


class TestContentPolicy:
    """Tests for ContentPolicy.classify()."""

    @pytest.mark.parametrize("media_type, inline, chunk_size", [
        ("application/pdf", True, 1 * MIB),
        ("image/png", True, 512 * KIB),
        ("image/jpeg", True, 512 * KIB),
        ("image/svg+xml", False, 512 * KIB),
        ("video/mp4", True, 2 * MIB),
        ("video/webm", True, 2 * MIB),
        ("audio/mpeg", True, 1 * MIB),
        ("text/plain", True, 512 * KIB),
        ("text/csv", True, 512 * KIB),
        ("text/markdown", True, 512 * KIB),
        ("application/zip", False, 4 * MIB),
        ("application/gzip", False, 4 * MIB),
        ("application/x-7z-compressed", False, 4 * MIB),
        ("application/octet-stream", False, 4 * MIB),
        ("application/msword", False, 4 * MIB),
        ("application/json", False, 1 * MIB),
        ("application/x-unknown", False, 1 * MIB),
    ])
    def test_table(self, media_type, inline, chunk_size):
        """Test each row of the policy table."""
        classification = ContentPolicy().classify(media_type)

        assert classification.inline is inline
        assert classification.chunk_size == chunk_size

    def test_parameters_and_case_ignored(self):
        """Test that "Video/MP4; codecs=avc1" classifies as video/mp4."""
        policy = ContentPolicy()

        assert policy.classify("Video/MP4; codecs=avc1") == policy.classify("video/mp4")

    def test_dangerous_types_are_attachments(self):
        """Test that deny-listed types are never classified inline."""
        policy = ContentPolicy()

        for media_type in DANGEROUS_TYPES:
            assert policy.should_force_download(media_type) is True

    def test_helpers(self):
        """Test the should_force_download / optimal_chunk_size shortcuts."""
        policy = ContentPolicy()

        assert policy.should_force_download("application/pdf") is False
        assert policy.optimal_chunk_size("video/mp4") == 2 * MIB

    def test_empty_media_type(self):
        """Test that an empty type falls into the default row."""
        classification = ContentPolicy().classify("")

        assert classification.force_download is True
        assert classification.chunk_size == 1 * MIB


class TestDenyList:
    """Tests for is_dangerous() and enforce()."""

    @pytest.mark.parametrize("media_type", [
        "text/html",
        "TEXT/HTML",
        "text/html; charset=utf-8",
        "text/javascript",
        "application/javascript",
        "application/x-javascript",
        "application/x-httpd-php",
    ])
    def test_dangerous(self, media_type):
        assert is_dangerous(media_type) is True

    @pytest.mark.parametrize("media_type", ["text/plain", "application/pdf", "image/svg+xml", ""])
    def test_not_dangerous(self, media_type):
        assert is_dangerous(media_type) is False

    def test_enforce_rewrites_dangerous(self):
        """Test that enforce() cannot be talked into inline HTML."""
        assert enforce("text/html", False) == ("application/octet-stream", True)

    def test_enforce_passes_safe_types(self):
        """Test that safe types keep their type and disposition."""
        assert enforce("application/pdf", False) == ("application/pdf", False)
        assert enforce("application/pdf", True) == ("application/pdf", True)
