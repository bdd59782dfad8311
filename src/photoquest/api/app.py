"""HTTP surface for photo upload and delivery.

Upload writes every photo to local storage first, then asks the uploader
whether a remote copy became the canonical one. Delivery of local photos
resizes and transcodes on request so the Content-Type advertised by
ImageDeliveryMiddleware matches the bytes.
"""

import hashlib
from email.utils import formatdate
from typing import Any

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from photoquest.config import AppSettings
from photoquest.errors import (
    AccessDeniedError,
    ImageProcessingError,
    PhotoNotFoundError,
    PhotoQuestError,
    StorageError,
    ValidationError,
)
from photoquest.health import get_health_status
from photoquest.logging_config import get_logger
from photoquest.middleware.image_delivery import (
    ImageDeliveryMiddleware,
    clamp_dimensions,
    negotiate_image_format,
)
from photoquest.models.media import MAX_DIMENSION, MediaAsset, TransformSpec
from photoquest.services.image_processor import ImageProcessor, content_type_for
from photoquest.services.local_storage import LocalPhotoStore
from photoquest.services.uploader import MediaUploader

logger = get_logger(__name__)

PHOTO_ROUTE_PREFIX = "/api/photos"

_STATUS_BY_ERROR: list[tuple[type[PhotoQuestError], int]] = [
    (ValidationError, 400),
    (AccessDeniedError, 403),
    (PhotoNotFoundError, 404),
    (ImageProcessingError, 422),
    (StorageError, 500),
]

_FORMAT_CONTENT_TYPES = {
    "avif": "image/avif",
    "webp": "image/webp",
    "jpeg": "image/jpeg",
}

# Formats browsers render without conversion
_BROWSER_SAFE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}


def _status_for(error: PhotoQuestError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 500


async def photoquest_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map pipeline errors to JSON responses with the guest-facing message."""
    assert isinstance(exc, PhotoQuestError)
    return JSONResponse(
        status_code=_status_for(exc),
        content={"message": exc.user_message, "code": exc.code},
    )


def _variant_etag(data: bytes, variant: tuple[Any, ...]) -> str:
    digest = hashlib.sha256(data)
    digest.update(repr(variant).encode())
    return f'"{digest.hexdigest()[:32]}"'


def _if_none_match(request: Request, etag: str) -> bool:
    header = request.headers.get("if-none-match")
    if not header:
        return False
    candidates = {tag.strip().removeprefix("W/") for tag in header.split(",")}
    return "*" in candidates or etag in candidates


def create_app(
    settings: AppSettings | None = None,
    uploader: MediaUploader | None = None,
    store: LocalPhotoStore | None = None,
    image_processor: ImageProcessor | None = None,
) -> FastAPI:
    """
    Build the photo API.

    Args:
        settings: Application settings (read from the environment when omitted)
        uploader: Uploader to use instead of one built from ``settings.remote``
        store: Local photo store to use instead of ``settings.upload_dir``
        image_processor: Image processor to use for validation and delivery

    Returns:
        FastAPI: Application wrapped in ImageDeliveryMiddleware
    """
    settings = settings or AppSettings.from_env()
    uploader = uploader or MediaUploader(settings.remote)
    store = store or LocalPhotoStore(settings.upload_dir)
    processor = image_processor or ImageProcessor(max_file_size=settings.max_upload_size)

    app = FastAPI(title="photoquest media")
    app.state.settings = settings
    app.state.uploader = uploader
    app.state.store = store
    app.add_exception_handler(PhotoQuestError, photoquest_error_handler)
    app.add_middleware(ImageDeliveryMiddleware)

    @app.get("/health")
    async def health() -> JSONResponse:
        status = get_health_status(settings.remote, store)
        return JSONResponse(status_code=200 if status["status"] == "healthy" else 503, content=status)

    @app.post(f"{PHOTO_ROUTE_PREFIX}/upload")
    async def upload_photo(photo: UploadFile | None = File(None)) -> JSONResponse:
        if photo is None:
            return JSONResponse(status_code=400, content={"message": "No photo uploaded", "code": "missing_file"})

        original_name = photo.filename or "photo"
        data = await photo.read()
        processor.validate_upload(data, original_name, photo.content_type)

        # The local copy is written regardless of the remote outcome
        path = await run_in_threadpool(store.save, data, original_name)
        outcome = await run_in_threadpool(uploader.store, path)

        asset = MediaAsset.from_outcome(
            path,
            outcome,
            original_name=original_name,
            mime_type=photo.content_type,
            size=len(data),
        )
        logger.info(
            "photo_uploaded",
            filename=path.name,
            backend=asset.backend.value,
            reason=getattr(outcome, "reason", None),
        )

        return JSONResponse(
            content={
                "filename": path.name,
                "original_name": original_name,
                "mime_type": photo.content_type,
                "size": len(data),
                "backend": asset.backend.value,
                "stored_url": asset.stored_url,
                "url": asset.stored_url or f"{PHOTO_ROUTE_PREFIX}/{path.name}",
            }
        )

    @app.get(PHOTO_ROUTE_PREFIX + "/{filename}")
    async def serve_photo(request: Request, filename: str, w: str | None = None, h: str | None = None) -> Response:
        path = store.resolve(filename)
        data = await run_in_threadpool(path.read_bytes)

        width, height = clamp_dimensions(w, h)
        target = negotiate_image_format(request.headers.get("accept"))
        if target is not None and not processor.supports_format(target):
            # The middleware labels the body with the negotiated type, so it must be produced
            raise ImageProcessingError(
                f"No encoder available for negotiated format '{target}'",
                code="format_unavailable",
                user_message="Fotku nelze v požadovaném formátu zobrazit.",
                details={"filename": filename, "target": target},
            )

        source_type = content_type_for(filename)
        if target is None and source_type not in _BROWSER_SAFE_TYPES:
            target = "jpeg"

        etag = _variant_etag(data, (target, width, height))
        headers = {
            "ETag": etag,
            "Last-Modified": formatdate(path.stat().st_mtime, usegmt=True),
        }
        if _if_none_match(request, etag):
            return Response(status_code=304, headers=headers)

        if width is not None or height is not None:
            transform = TransformSpec(max_width=width or MAX_DIMENSION, max_height=height or MAX_DIMENSION)
            body = await run_in_threadpool(processor.fit_within, data, transform, target)
        elif target is not None:
            body = await run_in_threadpool(processor.convert_format, data, target)
        else:
            body = data

        media_type = _FORMAT_CONTENT_TYPES[target] if target else source_type
        return Response(content=body, media_type=media_type, headers=headers)

    return app
