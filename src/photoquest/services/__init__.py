"""
Services module for the photoquest media pipeline.

- MediaUploader: remote storage with local fallback signalling
- CloudinaryBackend / GCSMediaBackend: remote media backends
- LocalPhotoStore: upload directory for original photos
- ImageProcessor: validation, bounding-box resize, format conversion
"""

from .image_processor import ImageProcessor, content_type_for, get_image_processor
from .local_storage import LocalPhotoStore
from .remote_backends import CloudinaryBackend, GCSMediaBackend, RemoteMediaBackend, build_remote_backend
from .uploader import MediaUploader, create_uploader

__all__ = [
    "CloudinaryBackend",
    "GCSMediaBackend",
    "ImageProcessor",
    "LocalPhotoStore",
    "MediaUploader",
    "RemoteMediaBackend",
    "build_remote_backend",
    "content_type_for",
    "create_uploader",
    "get_image_processor",
]
