"""
Error classification for the photoquest media pipeline.

Errors carry a category, a severity, a stable code and a guest-facing message.
Most of them log themselves when created; remote backend failures are the
exception because the uploader absorbs them and reports them exactly once.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from photoquest.logging_config import get_logger, log_error

logger = get_logger(__name__)


class ErrorCategory(Enum):
    """Error categories for classification and handling."""

    UPLOAD = "upload"
    IMAGE_PROCESSING = "image_processing"
    STORAGE = "storage"
    REMOTE_BACKEND = "remote_backend"
    ACCESS = "access"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorInfo:
    """Structured error information."""

    category: ErrorCategory
    severity: ErrorSeverity
    code: str
    message: str
    user_message: str
    details: dict[str, Any]
    timestamp: datetime
    recoverable: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert error info to dictionary."""
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
        }


class PhotoQuestError(Exception):
    """Base exception class for the media pipeline."""

    # Subclasses whose failures are reported by their handler turn this off
    log_on_create = True

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
        original_exception: Exception | None = None,
        log: bool | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.severity = severity
        self.code = code or f"{category.value}_error"
        self.user_message = user_message or self._generate_user_message()
        self.details = details or {}
        self.recoverable = recoverable
        self.original_exception = original_exception
        self.timestamp = datetime.now()

        if self.log_on_create if log is None else log:
            self._log_error()

    def _generate_user_message(self) -> str:
        """Generate guest-facing error message."""
        user_messages = {
            ErrorCategory.UPLOAD: "Nahrání fotky se nezdařilo.",
            ErrorCategory.IMAGE_PROCESSING: "Při zpracování fotky došlo k chybě.",
            ErrorCategory.STORAGE: "Při ukládání fotky došlo k chybě.",
            ErrorCategory.REMOTE_BACKEND: "Služba pro ukládání fotek je nedostupná.",
            ErrorCategory.ACCESS: "Přístup odepřen.",
            ErrorCategory.NOT_FOUND: "Fotka nebyla nalezena.",
            ErrorCategory.VALIDATION: "Neplatná data.",
            ErrorCategory.UNKNOWN: "Došlo k neočekávané chybě.",
        }
        return user_messages.get(self.category, "Došlo k chybě.")

    def _log_error(self) -> None:
        """Log the error with its classification."""
        error_context = {
            "category": self.category.value,
            "severity": self.severity.value,
            "code": self.code,
            "recoverable": self.recoverable,
            **self.details,
        }

        if self.original_exception:
            error_context["original_exception"] = str(self.original_exception)

        log_error(self, error_context)

    def get_error_info(self) -> ErrorInfo:
        """Get structured error information."""
        return ErrorInfo(
            category=self.category,
            severity=self.severity,
            code=self.code,
            message=str(self),
            user_message=self.user_message,
            details=self.details,
            timestamp=self.timestamp,
            recoverable=self.recoverable,
        )


class ValidationError(PhotoQuestError):
    """Rejected upload input: unsupported type, bad size, unsafe filename."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            code=code or "validation_failed",
            user_message=user_message,
            details=details,
            recoverable=True,
            original_exception=original_exception,
        )


class ImageProcessingError(PhotoQuestError):
    """Image decoding, resizing or re-encoding failed."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
        log: bool | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.IMAGE_PROCESSING,
            severity=ErrorSeverity.MEDIUM,
            code=code or "image_processing_failed",
            user_message=user_message,
            details=details,
            recoverable=True,
            original_exception=original_exception,
            log=log,
        )


class StorageError(PhotoQuestError):
    """Local storage errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.STORAGE,
            severity=ErrorSeverity.HIGH,
            code=code or "storage_error",
            user_message=user_message,
            details=details,
            recoverable=True,
            original_exception=original_exception,
        )


class AccessDeniedError(PhotoQuestError):
    """A requested path escapes the upload directory."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            category=ErrorCategory.ACCESS,
            severity=ErrorSeverity.HIGH,
            code="access_denied",
            details=details,
            recoverable=False,
        )


class PhotoNotFoundError(PhotoQuestError):
    """A requested photo does not exist in local storage."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.LOW,
            code="photo_not_found",
            details=details,
            recoverable=False,
        )


class RemoteBackendError(PhotoQuestError):
    """The remote media backend rejected the upload or answered nonsense."""

    log_on_create = False

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.REMOTE_BACKEND,
            severity=ErrorSeverity.MEDIUM,
            code=code or "remote_backend_failed",
            details=details,
            recoverable=True,
            original_exception=original_exception,
        )
