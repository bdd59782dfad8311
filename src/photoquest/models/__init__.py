"""
Models module for the photoquest media pipeline.

- MediaAsset: an uploaded photo and where it is served from
- TransformSpec: bounding-box transform for remote storage
- Stored / Fallback: outcome of a remote storage attempt
"""

from .media import (
    DEFAULT_UPLOAD_DIMENSION,
    MAX_DIMENSION,
    Fallback,
    MediaAsset,
    StorageBackendKind,
    Stored,
    StoreOutcome,
    TransformSpec,
    clamp_dimension,
)

__all__ = [
    "DEFAULT_UPLOAD_DIMENSION",
    "MAX_DIMENSION",
    "Fallback",
    "MediaAsset",
    "StorageBackendKind",
    "Stored",
    "StoreOutcome",
    "TransformSpec",
    "clamp_dimension",
]
