"""
=============================================================================
DELIVERY OPTIONS
=============================================================================

Every delivery runs with one fixed DeliveryOptions value. It is assembled
from four layers, field by field:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       OPTION RESOLUTION                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. built-in defaults      chunk_size=1 MiB, enable_range=True     │
    │   2. configured overrides   set once on the responder / folder      │
    │   3. per-call overrides     passed to deliver()                     │
    │   4. derived values         for every field still unset:            │
    │                               filename       ← basename(path)       │
    │                               media_type     ← extension lookup     │
    │                               force_download ← ContentPolicy        │
    │                               chunk_size     ← ContentPolicy        │
    │   5. deny-list              always last, cannot be overridden       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

"Unset" is explicit: DeliveryOverrides fields default to None, so a caller
passing force_download=False is distinguishable from a caller who did not
mention it at all. Empty strings for filename/media_type count as unset.

=============================================================================
"""

from dataclasses import dataclass, fields, replace
import os
from typing import Any, Callable, Mapping, Optional, Set

from ..http.mime_types import get_mime_type
from .policy import DEFAULT_CHUNK_SIZE, ContentPolicy, enforce


@dataclass(frozen=True)
class DeliveryOptions:
    """The resolved, immutable settings for one delivery."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    enable_range: bool = True
    filename: str = ""
    media_type: str = ""
    force_download: bool = True

    @property
    def inline(self) -> bool:
        return not self.force_download


@dataclass(frozen=True)
class DeliveryOverrides:
    """
    A partial set of options. None means "not set here".

        DeliveryOverrides(chunk_size=64 * 1024)
        DeliveryOverrides.from_mapping({"force_download": True})
    """

    chunk_size: Optional[int] = None
    enable_range: Optional[bool] = None
    filename: Optional[str] = None
    media_type: Optional[str] = None
    force_download: Optional[bool] = None

    def __post_init__(self):
        if self.chunk_size is not None:
            validate_chunk_size(self.chunk_size)

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]]) -> "DeliveryOverrides":
        """
        Build overrides from a plain dict (config files, CLI flags).

        Raises:
            ValueError: On an unknown option name.
        """
        if not values:
            return cls()

        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown delivery option(s): {', '.join(sorted(unknown))}")

        return cls(**dict(values))

    def explicit_fields(self) -> Set[str]:
        """Names of the fields that were set (not None, not empty)."""
        return {
            f.name for f in fields(self)
            if _is_set(getattr(self, f.name))
        }

    def merged(self, other: Optional["DeliveryOverrides"]) -> "DeliveryOverrides":
        """A copy where every field set in `other` wins."""
        if other is None:
            return self
        changes = {name: getattr(other, name) for name in other.explicit_fields()}
        return replace(self, **changes)


def validate_chunk_size(chunk_size: int) -> int:
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int):
        raise ValueError(f"chunk_size must be an integer, got {chunk_size!r}")
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be > 0, got {chunk_size}")
    return chunk_size


def resolve_options(
    source_path: str,
    configured: Optional[DeliveryOverrides] = None,
    overrides: Optional[DeliveryOverrides] = None,
    policy: Optional[ContentPolicy] = None,
    detect_media_type: Callable[[str], str] = get_mime_type,
    basename: Callable[[str], str] = os.path.basename,
) -> DeliveryOptions:
    """
    Merge the option layers into the DeliveryOptions for one call.

    Args:
        source_path: The file being delivered.
        configured: Instance-level overrides (responder or folder).
        overrides: Per-call overrides.
        policy: ContentPolicy for fields nobody set.
        detect_media_type: path → media type.
        basename: path → default download name.
    """
    policy = policy or ContentPolicy()
    chosen = (configured or DeliveryOverrides()).merged(overrides)
    explicit = chosen.explicit_fields()
    defaults = DeliveryOptions()

    filename = chosen.filename if "filename" in explicit else basename(source_path)
    media_type = chosen.media_type if "media_type" in explicit else detect_media_type(source_path)
    classification = policy.classify(media_type)

    if "force_download" in explicit:
        force_download = bool(chosen.force_download)
    else:
        force_download = classification.force_download

    if "chunk_size" in explicit:
        chunk_size = chosen.chunk_size
    else:
        chunk_size = classification.chunk_size

    if "enable_range" in explicit:
        enable_range = bool(chosen.enable_range)
    else:
        enable_range = defaults.enable_range

    media_type, force_download = enforce(media_type, force_download)

    return DeliveryOptions(
        chunk_size=validate_chunk_size(chunk_size),
        enable_range=enable_range,
        filename=filename,
        media_type=media_type,
        force_download=force_download,
    )


def _is_set(value: Any) -> bool:
    return value is not None and value != ""
