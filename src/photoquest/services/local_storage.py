"""Local filesystem storage for uploaded photos."""

import re
import uuid
from pathlib import Path

from ..errors import AccessDeniedError, PhotoNotFoundError, StorageError, ValidationError
from ..logging_config import get_logger

logger = get_logger(__name__)

_SAFE_FILENAME = re.compile(r"^[\w\-.]+$")


class LocalPhotoStore:
    """
    Upload directory holding every original photo.

    Photos are always written here first; the remote backend only decides
    whether this copy is the one guests are served.
    """

    def __init__(self, upload_dir: Path | str) -> None:
        self.upload_dir = Path(upload_dir)
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"Cannot create upload directory '{self.upload_dir}': {e}",
                code="upload_dir_unavailable",
                details={"upload_dir": str(self.upload_dir)},
                original_exception=e,
            ) from e

    def _generate_filename(self, original_name: str) -> str:
        suffix = Path(original_name).suffix.lower()
        if not _SAFE_FILENAME.match(suffix or "x"):
            suffix = ""
        return f"{uuid.uuid4().hex}{suffix}"

    def save(self, data: bytes, original_name: str) -> Path:
        """
        Write an uploaded photo under a fresh random name.

        Args:
            data: Raw photo bytes
            original_name: Client-supplied file name, used for its extension only

        Returns:
            Path: Location of the written file

        Raises:
            StorageError: If the file cannot be written
        """
        path = self.upload_dir / self._generate_filename(original_name)
        try:
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(
                f"Failed to write photo '{original_name}': {e}",
                code="local_write_failed",
                details={"original_name": original_name, "path": str(path)},
                original_exception=e,
            ) from e

        logger.info("photo_saved_locally", path=str(path), original_name=original_name, file_size=len(data))
        return path

    def resolve(self, filename: str) -> Path:
        """
        Map a requested file name to a file inside the upload directory.

        Raises:
            ValidationError: If the name contains path separators or unsafe characters
            AccessDeniedError: If the resolved path leaves the upload directory
            PhotoNotFoundError: If no such photo exists
        """
        if ".." in filename or "/" in filename or "\\" in filename:
            raise ValidationError(
                f"Invalid filename: {filename!r}",
                code="invalid_filename",
                user_message="Neplatný název souboru.",
                details={"filename": filename},
            )

        if not _SAFE_FILENAME.match(filename):
            raise ValidationError(
                f"Invalid filename format: {filename!r}",
                code="invalid_filename_format",
                user_message="Neplatný formát názvu souboru.",
                details={"filename": filename},
            )

        base_dir = self.upload_dir.resolve()
        path = (self.upload_dir / filename).resolve()
        if not path.is_relative_to(base_dir):
            raise AccessDeniedError(f"Path escapes upload directory: {filename!r}", details={"filename": filename})

        if not path.is_file():
            raise PhotoNotFoundError(f"Photo not found: {filename}", details={"filename": filename})

        return path

    def is_writable(self) -> bool:
        """Check that the upload directory accepts new files."""
        probe = self.upload_dir / f".probe-{uuid.uuid4().hex}"
        try:
            probe.write_bytes(b"")
            probe.unlink()
            return True
        except OSError as e:
            logger.warning("upload_dir_not_writable", upload_dir=str(self.upload_dir), error=str(e))
            return False
