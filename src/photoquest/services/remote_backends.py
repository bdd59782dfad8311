"""Remote media backends the uploader can delegate storage to."""

import uuid
from pathlib import Path
from typing import Any, Protocol

import cloudinary.uploader
from google.cloud import storage  # type: ignore[attr-defined]

from ..config import RemoteMediaSettings
from ..errors import ImageProcessingError, RemoteBackendError
from ..logging_config import get_logger
from ..models.media import TransformSpec
from .image_processor import ImageProcessor, content_type_for, get_image_processor

logger = get_logger(__name__)

IMMUTABLE_CACHE_CONTROL = "public, max-age=31536000, immutable"
BROWSER_SAFE_SUFFIXES = {".jpg", ".jpeg", ".png", ".webp", ".gif"}


class RemoteMediaBackend(Protocol):
    """A managed service that stores a photo and returns its delivery URL."""

    def upload(self, source_path: Path, *, folder: str, transform: TransformSpec) -> str:
        """Store ``source_path`` under ``folder`` and return the secure URL."""
        ...


class CloudinaryBackend:
    """Cloudinary upload with server-side bounding-box transform."""

    def __init__(self, settings: RemoteMediaSettings) -> None:
        self.settings = settings

    def _credentials(self) -> dict[str, Any]:
        credentials = {
            "cloud_name": self.settings.cloud_name,
            "api_key": self.settings.api_key,
            "api_secret": self.settings.api_secret,
        }
        return {key: value for key, value in credentials.items() if value}

    def upload(self, source_path: Path, *, folder: str, transform: TransformSpec) -> str:
        """
        Upload a file to Cloudinary.

        Returns:
            str: The ``secure_url`` from the upload response

        Raises:
            RemoteBackendError: If the response carries no secure URL
            cloudinary.exceptions.Error: On API failures
        """
        result = cloudinary.uploader.upload(
            str(source_path),
            folder=folder,
            transformation=transform.to_transformation(),
            timeout=self.settings.timeout,
            **self._credentials(),
        )

        secure_url = result.get("secure_url") if isinstance(result, dict) else None
        if not secure_url:
            raise RemoteBackendError(
                "Cloudinary response did not include a secure_url",
                code="malformed_response",
                details={"response_keys": sorted(result) if isinstance(result, dict) else None},
            )

        logger.debug("cloudinary_upload_completed", public_id=result.get("public_id"), bytes=result.get("bytes"))
        return str(secure_url)


class GCSMediaBackend:
    """
    Google Cloud Storage upload.

    GCS cannot transform on ingest, so the bounding-box resize runs locally
    before the bytes leave the process.
    """

    def __init__(
        self,
        settings: RemoteMediaSettings,
        client: storage.Client | None = None,
        image_processor: ImageProcessor | None = None,
    ) -> None:
        if not settings.bucket_name:
            raise ValueError("GCS backend requires a bucket name")
        self.settings = settings
        self.client = client or storage.Client(project=settings.project_id)
        self.bucket = self.client.bucket(settings.bucket_name)
        self.image_processor = image_processor or get_image_processor()

    def _object_name(self, folder: str, suffix: str) -> str:
        # Random names keep every object immutable under its URL
        return f"{folder}/{uuid.uuid4().hex}{suffix}"

    def upload(self, source_path: Path, *, folder: str, transform: TransformSpec) -> str:
        """
        Resize a file locally and upload it to the configured bucket.

        Returns:
            str: Public HTTPS URL of the stored object
        """
        source_path = Path(source_path)
        data = source_path.read_bytes()

        suffix = source_path.suffix.lower()
        # HEIC and friends are stored as JPEG so browsers can show them
        target = None if suffix in BROWSER_SAFE_SUFFIXES else "jpeg"
        try:
            resized = self.image_processor.fit_within(data, transform, target, log_failures=False)
        except ImageProcessingError as e:
            raise RemoteBackendError(
                f"Could not prepare '{source_path.name}' for upload: {e}",
                code="local_resize_failed",
                details={"source_path": str(source_path)},
                original_exception=e,
            ) from e
        if target is not None:
            suffix = ".jpg"

        object_name = self._object_name(folder, suffix)
        blob = self.bucket.blob(object_name)
        blob.cache_control = IMMUTABLE_CACHE_CONTROL
        blob.metadata = {"original_filename": source_path.name}
        blob.upload_from_string(
            resized,
            content_type=content_type_for(object_name),
            timeout=self.settings.timeout,
        )

        logger.debug(
            "gcs_upload_completed",
            bucket=self.settings.bucket_name,
            object_name=object_name,
            original_size=len(data),
            stored_size=len(resized),
        )
        return str(blob.public_url)


def build_remote_backend(settings: RemoteMediaSettings) -> RemoteMediaBackend:
    """
    Create the backend named by ``settings.provider``.

    Raises:
        ValueError: If the provider is unknown
    """
    if settings.provider == "cloudinary":
        return CloudinaryBackend(settings)
    if settings.provider == "gcs":
        return GCSMediaBackend(settings)
    raise ValueError(f"Unknown remote media provider: {settings.provider}")
