"""
Media asset model for the photoquest upload pipeline.

These types describe an uploaded photo and the outcome of trying to store it
remotely. None of them is persisted here; the gallery record store keeps the
canonical reference that ``MediaAsset`` hands out.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

MAX_DIMENSION = 2048
DEFAULT_UPLOAD_DIMENSION = 1200


class StorageBackendKind(Enum):
    """Where an asset ended up."""

    REMOTE = "remote"
    LOCAL_FALLBACK = "local-fallback"


def clamp_dimension(value: int, ceiling: int = MAX_DIMENSION) -> int:
    """Clamp a pixel dimension into ``1..ceiling``."""
    return max(1, min(int(value), ceiling))


@dataclass(frozen=True)
class TransformSpec:
    """
    Bounding-box transform applied to remote-stored photos.

    Width and height are clamped to the 2048px ceiling on construction, so an
    oversized request is reduced, never dropped or rejected.
    """

    max_width: int = DEFAULT_UPLOAD_DIMENSION
    max_height: int = DEFAULT_UPLOAD_DIMENSION
    crop: str = "limit"
    quality: str = "auto"

    def __post_init__(self) -> None:
        # frozen dataclass, so bypass __setattr__
        object.__setattr__(self, "max_width", clamp_dimension(self.max_width))
        object.__setattr__(self, "max_height", clamp_dimension(self.max_height))

    @property
    def bounding_box(self) -> tuple[int, int]:
        return (self.max_width, self.max_height)

    def to_transformation(self) -> list[dict[str, Any]]:
        """Render the transform as a media backend directive list."""
        return [
            {"width": self.max_width, "height": self.max_height, "crop": self.crop},
            {"quality": self.quality},
        ]


@dataclass(frozen=True)
class Stored:
    """The remote backend accepted the photo and issued a delivery URL."""

    url: str

    @property
    def backend(self) -> StorageBackendKind:
        return StorageBackendKind.REMOTE


@dataclass(frozen=True)
class Fallback:
    """The photo must be stored and served from local disk."""

    reason: str = "not_configured"

    @property
    def url(self) -> None:
        return None

    @property
    def backend(self) -> StorageBackendKind:
        return StorageBackendKind.LOCAL_FALLBACK


StoreOutcome = Stored | Fallback


@dataclass(frozen=True)
class MediaAsset:
    """
    An uploaded photo and the place it is served from.

    Immutable once created: a changed photo is a new asset under a new name,
    which is what makes year-long immutable caching safe.
    """

    source_path: Path
    stored_url: str | None = None
    backend: StorageBackendKind = StorageBackendKind.LOCAL_FALLBACK
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_outcome(cls, source_path: Path | str, outcome: StoreOutcome, **metadata: Any) -> "MediaAsset":
        """
        Create an asset from the result of ``MediaUploader.store``.

        Args:
            source_path: Local file the upload was read from
            outcome: Stored or Fallback
            **metadata: Extra caller context (original name, size, mime type)

        Returns:
            New MediaAsset instance
        """
        return cls(
            source_path=Path(source_path),
            stored_url=outcome.url,
            backend=outcome.backend,
            metadata=metadata,
        )

    @property
    def is_remote(self) -> bool:
        return self.backend is StorageBackendKind.REMOTE

    @property
    def canonical_reference(self) -> str:
        """Remote URL for remote assets, local path otherwise."""
        if self.stored_url is not None:
            return self.stored_url
        return str(self.source_path)

    def to_dict(self) -> dict[str, Any]:
        """Convert MediaAsset to a JSON-friendly dictionary."""
        return {
            "source_path": str(self.source_path),
            "stored_url": self.stored_url,
            "backend": self.backend.value,
            "canonical_reference": self.canonical_reference,
            **self.metadata,
        }
