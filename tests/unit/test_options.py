"""
Unit tests for option overrides and resolution.
"""

import pytest

from filedelivery.delivery.options import (
    DeliveryOptions,
    DeliveryOverrides,
    resolve_options,
    validate_chunk_size,
)
from filedelivery.delivery.policy import KIB, MIB


class TestDeliveryOverrides:
    """Tests for DeliveryOverrides."""

    def test_defaults_are_unset(self):
        """Test that a fresh overrides object sets nothing."""
        assert DeliveryOverrides().explicit_fields() == set()

    def test_false_counts_as_set(self):
        """Test that False is distinguishable from "not given"."""
        overrides = DeliveryOverrides(force_download=False, enable_range=False)

        assert overrides.explicit_fields() == {"force_download", "enable_range"}

    def test_empty_string_is_unset(self):
        """Test that an empty filename or media type means "derive it"."""
        overrides = DeliveryOverrides(filename="", media_type="")

        assert overrides.explicit_fields() == set()

    def test_from_mapping(self):
        overrides = DeliveryOverrides.from_mapping({"chunk_size": 4096, "filename": "a.pdf"})

        assert overrides.chunk_size == 4096
        assert overrides.filename == "a.pdf"

    def test_from_mapping_empty(self):
        assert DeliveryOverrides.from_mapping(None) == DeliveryOverrides()

    def test_from_mapping_unknown_key(self):
        """Test that typos in option names are caught."""
        with pytest.raises(ValueError, match="chunksize"):
            DeliveryOverrides.from_mapping({"chunksize": 10})

    def test_merged_later_wins(self):
        """Test that merged() keeps fields the other side leaves unset."""
        base = DeliveryOverrides(chunk_size=4096, force_download=True)
        merged = base.merged(DeliveryOverrides(force_download=False))

        assert merged.chunk_size == 4096
        assert merged.force_download is False

    def test_merged_none(self):
        base = DeliveryOverrides(chunk_size=4096)
        assert base.merged(None) is base

    @pytest.mark.parametrize("value", [0, -1, True, 1.5, "1024"])
    def test_invalid_chunk_size(self, value):
        """Test that chunk_size must be a positive int."""
        with pytest.raises(ValueError):
            DeliveryOverrides(chunk_size=value)

    def test_validate_chunk_size_returns_value(self):
        assert validate_chunk_size(64) == 64


class TestResolveOptions:
    """Tests for resolve_options()."""

    def test_everything_derived(self):
        """Test derived filename, media type, disposition and chunk size."""
        options = resolve_options("/srv/files/song.mp3")

        assert options == DeliveryOptions(
            chunk_size=1 * MIB,
            enable_range=True,
            filename="song.mp3",
            media_type="audio/mpeg",
            force_download=False,
        )

    def test_unknown_extension(self):
        """Test that unknown files become octet-stream attachments."""
        options = resolve_options("/srv/files/data.weird")

        assert options.media_type == "application/octet-stream"
        assert options.force_download is True
        assert options.chunk_size == 4 * MIB

    def test_media_type_override_drives_policy(self):
        """Test that the policy follows an overridden media type."""
        options = resolve_options(
            "/srv/files/blob", overrides=DeliveryOverrides(media_type="image/png")
        )

        assert options.media_type == "image/png"
        assert options.inline is True
        assert options.chunk_size == 512 * KIB

    def test_layering(self):
        """Test defaults < configured < per-call."""
        configured = DeliveryOverrides(chunk_size=8192, filename="configured.pdf")
        per_call = DeliveryOverrides(filename="call.pdf")

        options = resolve_options("/srv/a.pdf", configured=configured, overrides=per_call)

        assert options.chunk_size == 8192
        assert options.filename == "call.pdf"

    def test_deny_list_applied_last(self):
        """Test that no layer can make a dangerous type inline."""
        options = resolve_options(
            "/srv/index.html",
            configured=DeliveryOverrides(force_download=False),
            overrides=DeliveryOverrides(media_type="text/html"),
        )

        assert options.media_type == "application/octet-stream"
        assert options.force_download is True

    def test_custom_media_type_detector(self):
        options = resolve_options("/srv/x", detect_media_type=lambda path: "video/mp4")

        assert options.media_type == "video/mp4"
        assert options.chunk_size == 2 * MIB
