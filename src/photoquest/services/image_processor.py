"""Image processing service for the photoquest media pipeline."""

import io
from datetime import datetime
from pathlib import Path

from PIL import Image, ImageOps, features

from ..errors import ImageProcessingError, ValidationError
from ..logging_config import get_logger, log_error, log_performance
from ..models.media import TransformSpec

try:
    from pillow_heif import register_heif_opener  # type: ignore[import-untyped]

    register_heif_opener()
    HEIF_AVAILABLE = True
except ImportError:
    HEIF_AVAILABLE = False

logger = get_logger(__name__)

# Encoder quality used for the "auto" quality policy
AUTO_QUALITY = 82

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".avif": "image/avif",
}

# Pillow format name per negotiated delivery format
_ENCODERS = {
    "webp": "WEBP",
    "avif": "AVIF",
    "jpeg": "JPEG",
}


def content_type_for(filename: str) -> str:
    """
    Determine content type from filename.

    Args:
        filename: File name

    Returns:
        str: MIME content type
    """
    return CONTENT_TYPES.get(Path(filename).suffix.lower(), "application/octet-stream")


class ImageProcessor:
    """Validation, bounding-box resizing and format conversion for uploaded photos."""

    SUPPORTED_MIME_TYPES = {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/heic",
        "image/heif",
        "image/webp",
    }

    def __init__(self, max_file_size: int = 10 * 1024 * 1024, min_file_size: int = 1) -> None:
        self.max_file_size = max_file_size
        self.min_file_size = min_file_size

        if not HEIF_AVAILABLE:
            logger.warning("heif_support_unavailable", message="Install pillow-heif for HEIC support")

    def supports_format(self, target: str) -> bool:
        """Check whether Pillow can encode the given delivery format."""
        if target not in _ENCODERS:
            return False
        if target == "jpeg":
            return True
        return bool(features.check(target))

    def validate_file_size(self, data: bytes, filename: str) -> None:
        """
        Validate that the upload size is within limits.

        Raises:
            ValidationError: If file size is outside acceptable limits
        """
        file_size = len(data)

        if file_size < self.min_file_size:
            raise ValidationError(
                f"File '{filename}' is too small ({file_size} bytes)",
                code="file_too_small",
                user_message="Soubor je prázdný.",
                details={"filename": filename, "file_size": file_size, "min_size": self.min_file_size},
            )

        if file_size > self.max_file_size:
            max_size_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                f"File '{filename}' is too large ({file_size / (1024 * 1024):.1f}MB). "
                f"Maximum size: {max_size_mb:.0f}MB",
                code="file_too_large",
                user_message=f"Soubor je příliš velký. Maximální velikost je {max_size_mb:.0f} MB.",
                details={"filename": filename, "file_size": file_size, "max_size": self.max_file_size},
            )

    def validate_upload(self, data: bytes, filename: str, content_type: str | None) -> None:
        """
        Validate an uploaded photo before it is written anywhere.

        Args:
            data: Raw upload bytes
            filename: Client-supplied file name
            content_type: Client-supplied MIME type

        Raises:
            ValidationError: If the type is not accepted or the size is invalid
        """
        mime_type = (content_type or "").lower()
        if mime_type not in self.SUPPORTED_MIME_TYPES:
            raise ValidationError(
                f"Unsupported file type: {content_type}",
                code="unsupported_format",
                user_message=f"Nepodporovaný typ souboru: {content_type}. Povolené typy: JPG, PNG, HEIC, WebP",
                details={"filename": filename, "content_type": content_type},
            )

        self.validate_file_size(data, filename)
        logger.debug("upload_validated", filename=filename, content_type=mime_type, file_size=len(data))

    def _calculate_bounded_size(self, original_size: tuple[int, int], max_size: tuple[int, int]) -> tuple[int, int]:
        """
        Calculate the size that fits within max_size, preserving aspect ratio.

        Images already inside the box keep their size.
        """
        original_width, original_height = original_size
        max_width, max_height = max_size

        scale_ratio = min(max_width / original_width, max_height / original_height, 1.0)

        return (max(1, int(original_width * scale_ratio)), max(1, int(original_height * scale_ratio)))

    def fit_within(
        self, data: bytes, transform: TransformSpec, target: str | None = None, log_failures: bool = True
    ) -> bytes:
        """
        Resize an image into the transform's bounding box.

        Args:
            data: Raw image data
            transform: Bounding box and quality policy
            target: Output format (webp, avif, jpeg); defaults to the source
                format, or JPEG when the source format cannot be written
            log_failures: Set to False when the caller reports the failure itself

        Returns:
            bytes: Encoded image

        Raises:
            ImageProcessingError: If the image cannot be decoded or encoded
        """
        start_time = datetime.now()
        quality = AUTO_QUALITY if transform.quality == "auto" else int(transform.quality)

        try:
            with Image.open(io.BytesIO(data)) as image:
                source_format = image.format
                image = ImageOps.exif_transpose(image)
                original_size = image.size

                new_size = self._calculate_bounded_size(original_size, transform.bounding_box)
                if new_size != original_size:
                    image = image.resize(new_size, Image.Resampling.LANCZOS)

                output_format = self._output_format(source_format, target)
                if output_format == "JPEG" and image.mode not in ("RGB", "L"):
                    image = image.convert("RGB")

                buffer = io.BytesIO()
                image.save(buffer, format=output_format, quality=quality)
                output = buffer.getvalue()

            log_performance(
                "fit_within",
                (datetime.now() - start_time).total_seconds(),
                original_size=original_size,
                new_size=new_size,
                output_format=output_format,
                original_file_size=len(data),
                output_file_size=len(output),
            )
            return output

        except Exception as e:
            if log_failures:
                log_error(e, {"operation": "fit_within", "file_size": len(data)})
            raise ImageProcessingError(
                f"Failed to resize image: {e}",
                code="resize_failed",
                details={"file_size": len(data), "bounding_box": transform.bounding_box},
                original_exception=e,
                log=log_failures,
            ) from e

    def _output_format(self, source_format: str | None, target: str | None) -> str:
        if target is not None:
            if not self.supports_format(target):
                raise ValueError(f"No encoder available for '{target}'")
            return _ENCODERS[target]
        if source_format in ("JPEG", "PNG", "WEBP", "GIF"):
            return source_format
        return "JPEG"

    def convert_format(self, data: bytes, target: str) -> bytes:
        """
        Re-encode an image in the negotiated delivery format.

        Dimensions are kept; only the encoding changes.

        Raises:
            ImageProcessingError: If the target format cannot be produced
        """
        start_time = datetime.now()
        try:
            output_format = self._output_format(None, target)
            with Image.open(io.BytesIO(data)) as image:
                image = ImageOps.exif_transpose(image)
                if image.mode not in ("RGB", "RGBA", "L"):
                    image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
                buffer = io.BytesIO()
                image.save(buffer, format=output_format, quality=AUTO_QUALITY)
                output = buffer.getvalue()

            log_performance(
                "convert_format",
                (datetime.now() - start_time).total_seconds(),
                target=target,
                original_file_size=len(data),
                output_file_size=len(output),
            )
            return output

        except Exception as e:
            log_error(e, {"operation": "convert_format", "target": target, "file_size": len(data)})
            raise ImageProcessingError(
                f"Failed to convert image to {target}: {e}",
                code="conversion_failed",
                details={"target": target, "file_size": len(data)},
                original_exception=e,
            ) from e


# Global image processor instance
_image_processor: ImageProcessor | None = None


def get_image_processor() -> ImageProcessor:
    """Get the global image processor instance."""
    global _image_processor
    if _image_processor is None:
        _image_processor = ImageProcessor()
    return _image_processor
