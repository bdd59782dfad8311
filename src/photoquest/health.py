"""
Health checks for the photoquest media pipeline.

Remote backend absence is reported, not treated as unhealthy: local
fallback is a designed mode of operation.
"""

import time
from typing import Any

from photoquest.config import RemoteMediaSettings
from photoquest.logging_config import get_logger
from photoquest.services.local_storage import LocalPhotoStore

logger = get_logger(__name__)


def check_remote_media_health(settings: RemoteMediaSettings | None) -> dict[str, Any]:
    """Report which remote media backend is configured, if any."""
    if settings is None:
        return {
            "status": "healthy",
            "mode": "local-fallback",
            "message": "No remote media backend configured; photos are served from local storage",
            "timestamp": time.time(),
        }

    return {
        "status": "healthy",
        "mode": "remote",
        "provider": settings.provider,
        "folder": settings.folder,
        "timestamp": time.time(),
    }


def check_local_storage_health(store: LocalPhotoStore) -> dict[str, Any]:
    """Check that the upload directory exists and is writable."""
    if not store.upload_dir.is_dir():
        logger.error("local_storage_health_check_failed", upload_dir=str(store.upload_dir), reason="missing")
        return {
            "status": "unhealthy",
            "message": f"Upload directory missing: {store.upload_dir}",
            "timestamp": time.time(),
        }

    if not store.is_writable():
        logger.error("local_storage_health_check_failed", upload_dir=str(store.upload_dir), reason="read_only")
        return {
            "status": "unhealthy",
            "message": f"Upload directory not writable: {store.upload_dir}",
            "timestamp": time.time(),
        }

    return {"status": "healthy", "upload_dir": str(store.upload_dir), "timestamp": time.time()}


def get_health_status(settings: RemoteMediaSettings | None, store: LocalPhotoStore) -> dict[str, Any]:
    """Aggregate all checks; overall status is unhealthy if any check is."""
    checks = {
        "remote_media": check_remote_media_health(settings),
        "local_storage": check_local_storage_health(store),
    }
    healthy = all(check["status"] == "healthy" for check in checks.values())
    return {"status": "healthy" if healthy else "unhealthy", "checks": checks, "timestamp": time.time()}
