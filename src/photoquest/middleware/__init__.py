"""HTTP middleware for photo delivery.

Import and use from photoquest.api.app.
"""

from photoquest.middleware.image_delivery import (
    ImageDeliveryMiddleware,
    clamp_dimensions,
    is_image_path,
    negotiate_image_format,
    negotiated_content_type,
)

__all__ = [
    "ImageDeliveryMiddleware",
    "clamp_dimensions",
    "is_image_path",
    "negotiate_image_format",
    "negotiated_content_type",
]
