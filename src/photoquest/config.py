"""Configuration management for the photoquest media pipeline.

Values come from environment variables (optionally loaded from a .env file by
the entry points). They are read once into explicit settings objects which are
then handed to the uploader and the app, so nothing downstream consults the
process environment on its own.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_MEDIA_FOLDER = "wedding-photos"
DEFAULT_UPLOAD_DIR = "uploads"
DEFAULT_MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB
DEFAULT_UPLOAD_TIMEOUT = 60


class Config:
    """Centralized configuration management using environment variables."""

    def __init__(self, environ: dict[str, str] | None = None):
        """Initialize configuration.

        Args:
            environ: Mapping to read from instead of ``os.environ``
        """
        self._environ = environ
        self._cache: dict[str, Any] = {}

    def _lookup(self, key: str) -> str | None:
        if self._environ is not None:
            return self._environ.get(key)
        return os.getenv(key)

    def get(self, key: str, default: Any = None, cast_type: type = str) -> Any:
        """Get configuration value from the environment.

        Args:
            key: Configuration key
            default: Default value if not found
            cast_type: Type to cast the value to (str, int, bool, float)

        Returns:
            Configuration value cast to the specified type
        """
        cache_key = f"{key}:{cast_type.__name__}"
        if cache_key in self._cache:
            return self._cache[cache_key]

        value: Any = self._lookup(key)

        # Empty strings count as unset
        if value is None or value == "":
            value = default

        if value is not None:
            try:
                if cast_type is bool:
                    if isinstance(value, str):
                        value = value.lower() in ("true", "1", "yes", "on")
                    else:
                        value = bool(value)
                elif cast_type is not str:
                    value = cast_type(value)
            except (ValueError, TypeError) as e:
                logger.warning("config_cast_failed", key=key, cast_type=cast_type.__name__, error=str(e))
                value = default

        self._cache[cache_key] = value
        return value

    def is_development(self) -> bool:
        """Check if running in development mode."""
        environment = self.get("ENVIRONMENT", "development").lower()
        return environment in ["development", "dev", "local"]

    def clear_cache(self) -> None:
        """Clear configuration cache."""
        self._cache.clear()


@dataclass(frozen=True)
class RemoteMediaSettings:
    """
    Connection settings for the remote media backend.

    An instance existing means remote mode is on; callers pass ``None`` to
    the uploader when no backend is configured.
    """

    provider: str
    folder: str = DEFAULT_MEDIA_FOLDER
    timeout: int = DEFAULT_UPLOAD_TIMEOUT
    cloud_name: str | None = None
    api_key: str | None = None
    api_secret: str | None = None
    bucket_name: str | None = None
    project_id: str | None = None

    @classmethod
    def from_env(cls, config: "Config | None" = None) -> "RemoteMediaSettings | None":
        """
        Build settings from the environment.

        CLOUDINARY_URL selects Cloudinary, GCS_PHOTOS_BUCKET selects Google
        Cloud Storage, and neither means fallback mode (``None``).
        """
        config = config or get_config()
        folder = str(config.get("MEDIA_FOLDER", DEFAULT_MEDIA_FOLDER))
        timeout = int(config.get("MEDIA_UPLOAD_TIMEOUT", DEFAULT_UPLOAD_TIMEOUT, int))

        cloudinary_url = config.get("CLOUDINARY_URL")
        if cloudinary_url:
            parsed = parse_cloudinary_url(cloudinary_url)
            return cls(
                provider="cloudinary",
                folder=folder,
                timeout=timeout,
                cloud_name=config.get("CLOUDINARY_CLOUD_NAME") or parsed.get("cloud_name"),
                api_key=config.get("CLOUDINARY_API_KEY") or parsed.get("api_key"),
                api_secret=config.get("CLOUDINARY_API_SECRET") or parsed.get("api_secret"),
            )

        bucket_name = config.get("GCS_PHOTOS_BUCKET")
        if bucket_name:
            return cls(
                provider="gcs",
                folder=folder,
                timeout=timeout,
                bucket_name=bucket_name,
                project_id=config.get("GOOGLE_CLOUD_PROJECT"),
            )

        logger.info("remote_media_not_configured", fallback="local")
        return None


@dataclass(frozen=True)
class AppSettings:
    """Settings for the HTTP surface and local fallback storage."""

    upload_dir: Path
    max_upload_size: int = DEFAULT_MAX_UPLOAD_SIZE
    remote: RemoteMediaSettings | None = None

    @classmethod
    def from_env(cls, config: "Config | None" = None) -> "AppSettings":
        config = config or get_config()
        return cls(
            upload_dir=Path(config.get("UPLOAD_DIR", DEFAULT_UPLOAD_DIR)),
            max_upload_size=int(config.get("MAX_UPLOAD_SIZE", DEFAULT_MAX_UPLOAD_SIZE, int)),
            remote=RemoteMediaSettings.from_env(config),
        )


def parse_cloudinary_url(url: str) -> dict[str, str]:
    """
    Split ``cloudinary://<api_key>:<api_secret>@<cloud_name>`` into parts.

    Missing parts are left out of the result.
    """
    parsed = urlparse(url)
    parts: dict[str, str] = {}
    if parsed.scheme != "cloudinary":
        logger.warning("cloudinary_url_unexpected_scheme", scheme=parsed.scheme)
    cloud_name = parsed.netloc.rpartition("@")[2]
    if cloud_name:
        parts["cloud_name"] = cloud_name
    if parsed.username:
        parts["api_key"] = unquote(parsed.username)
    if parsed.password:
        parts["api_secret"] = unquote(parsed.password)
    return parts


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def get_env(key: str, default: Any = None, cast_type: type = str) -> Any:
    """Get environment variable with type casting."""
    return get_config().get(key, default, cast_type)


def is_development() -> bool:
    """Check if running in development mode."""
    return get_config().is_development()
