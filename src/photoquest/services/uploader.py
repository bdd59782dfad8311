"""
Uploader: stores photos with the remote media backend or signals local fallback.

A photo upload must never fail for a guest just because the media backend
is unreachable. ``MediaUploader.store`` therefore absorbs every remote
failure, reports it once, and answers ``Fallback`` so the caller keeps
serving the copy it already wrote to local disk.
"""

import threading
import time
from pathlib import Path

from ..config import RemoteMediaSettings
from ..logging_config import get_logger, log_performance
from ..models.media import Fallback, Stored, StoreOutcome, TransformSpec
from .remote_backends import RemoteMediaBackend, build_remote_backend

logger = get_logger(__name__)


class MediaUploader:
    """Chooses between the remote media backend and local fallback storage."""

    def __init__(
        self,
        settings: RemoteMediaSettings | None,
        backend: RemoteMediaBackend | None = None,
        transform: TransformSpec | None = None,
    ) -> None:
        """
        Initialize the uploader.

        Args:
            settings: Remote backend settings, or None when no backend is configured
            backend: Backend to use instead of the one named by ``settings``
            transform: Bounding-box transform (defaults to 1200x1200, auto quality)
        """
        self.settings = settings
        self.transform = transform or TransformSpec()
        self._backend = backend
        self._backend_lock = threading.Lock()

    @property
    def is_remote_enabled(self) -> bool:
        return self.settings is not None

    def _get_backend(self) -> RemoteMediaBackend:
        # The only state kept between calls: a client built once from immutable settings
        with self._backend_lock:
            if self._backend is None:
                assert self.settings is not None
                self._backend = build_remote_backend(self.settings)
            return self._backend

    def store(self, source_path: Path | str) -> StoreOutcome:
        """
        Store a local photo with the remote media backend.

        Args:
            source_path: Readable local file written by the caller

        Returns:
            Stored: with the backend's secure URL, unmodified
            Fallback: when no backend is configured or the remote call failed;
                the caller must serve its local copy
        """
        if self.settings is None:
            logger.debug("remote_media_disabled", source_path=str(source_path))
            return Fallback("not_configured")

        start_time = time.perf_counter()
        try:
            backend = self._get_backend()
            secure_url = backend.upload(
                Path(source_path),
                folder=self.settings.folder,
                transform=self.transform,
            )
        except Exception as e:
            logger.error(
                "remote_upload_failed",
                provider=self.settings.provider,
                source_path=str(source_path),
                error_type=type(e).__name__,
                error_message=str(e),
                fallback="local",
                exc_info=e,
            )
            return Fallback("remote_failed")

        log_performance(
            "remote_upload",
            time.perf_counter() - start_time,
            provider=self.settings.provider,
            folder=self.settings.folder,
        )
        logger.info("remote_upload_succeeded", provider=self.settings.provider, url=secure_url)
        return Stored(secure_url)


def create_uploader() -> MediaUploader:
    """Build an uploader from the remote media settings in the environment."""
    return MediaUploader(RemoteMediaSettings.from_env())
