"""
Unified exception hierarchy for eventmonitoring.

Provides typed exceptions with a category so the command entry points can
log failures consistently and decide on an exit status.
"""

import errno

# Import ErrorCategory from canonical source to avoid duplicate enum issues
# (comparing enums from different classes always returns False)
from core.types import ErrorCategory


class PipelineError(Exception):
    """
    Base exception for all eventmonitoring errors.

    Attributes:
        message: Human-readable error description
        category: Error classification
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Authentication Errors
# =============================================================================


class AuthError(PipelineError):
    """Base class for authentication errors."""

    category = ErrorCategory.AUTH


# =============================================================================
# Network/Connection Errors (Transient)
# =============================================================================


class TransientError(PipelineError):
    """Base class for transient errors."""

    category = ErrorCategory.TRANSIENT


class ThrottlingError(TransientError):
    """Rate limited (429)."""

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.retry_after = retry_after  # Seconds to wait if provided


# =============================================================================
# Permanent Errors
# =============================================================================


class PermanentError(PipelineError):
    """Base class for permanent errors."""

    category = ErrorCategory.PERMANENT


class ConfigurationError(PermanentError):
    """A required setting is missing or invalid."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        context = dict(context or {})
        if setting:
            context["setting"] = setting
        super().__init__(message, cause, context)
        self.setting = setting


class InvalidDateError(ConfigurationError):
    """A date option could not be parsed or the range is inverted."""

    pass


class UnsupportedFormatError(PermanentError):
    """Requested output format is not recognized."""

    def __init__(self, fmt: object, supported: tuple[str, ...] = ()):
        message = f"Unsupported output format: {fmt!r}"
        if supported:
            message += f" (supported: {', '.join(supported)})"
        super().__init__(message, context={"format": str(fmt)})
        self.format = fmt


class UnsupportedHandlerError(PermanentError):
    """Requested command or log type has no registered handler."""

    def __init__(self, key: object, kind: str = "handler"):
        super().__init__(
            f"{key} does not have a supported {kind}",
            context={"handler": str(key), "kind": kind},
        )
        self.key = key


# =============================================================================
# File System Errors
# =============================================================================


class FileOperationError(PipelineError):
    """
    File system read, write or delete failure.

    The category is derived from the underlying OSError errno.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        cause: OSError | None = None,
        context: dict | None = None,
    ):
        context = dict(context or {})
        if path:
            context["path"] = path
        super().__init__(message, cause, context)
        self.path = path
        if cause is not None:
            self.category = classify_os_error(cause)


class CacheFileNotFoundError(FileOperationError):
    """The file to read or delete does not exist."""

    category = ErrorCategory.PERMANENT


class OutputError(PipelineError):
    """One or more output writes failed."""

    def __init__(self, message: str, errors: list[Exception] | None = None):
        self.errors = list(errors or [])
        super().__init__(message, context={"failed_writes": len(self.errors)})


# =============================================================================
# Error Classification Utilities
# =============================================================================


def classify_http_status(status_code: int) -> ErrorCategory:
    """Classify HTTP status code into error category."""
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    if status_code == 401:
        return ErrorCategory.AUTH

    if status_code == 429:
        return ErrorCategory.TRANSIENT  # Rate limited

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT

    if status_code >= 500:
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


def classify_os_error(error: OSError) -> ErrorCategory:
    """
    Classify OSError by errno into error category.

    Conservative classification: only mark as PERMANENT if certain.
    Missing file, disk full, read-only filesystem, permission denied.
    """
    permanent_errnos = (
        errno.ENOENT,
        errno.ENOTDIR,
        errno.EISDIR,
        errno.ENOSPC,
        errno.EROFS,
        errno.EACCES,
        errno.EPERM,
    )
    return ErrorCategory.PERMANENT if error.errno in permanent_errnos else ErrorCategory.TRANSIENT


def error_for_http_status(
    status_code: int,
    message: str,
    context: dict | None = None,
    retry_after: float | None = None,
) -> PipelineError:
    """Build the typed exception matching an HTTP error status."""
    if status_code == 429:
        return ThrottlingError(message, retry_after=retry_after, context=context)

    category = classify_http_status(status_code)
    if category == ErrorCategory.AUTH:
        return AuthError(message, context=context)
    if category == ErrorCategory.TRANSIENT:
        return TransientError(message, context=context)
    if category == ErrorCategory.PERMANENT:
        return PermanentError(message, context=context)
    return PipelineError(message, context=context)


def wrap_os_error(exc: OSError, action: str, path: str) -> FileOperationError:
    """Wrap an OSError in FileOperationError, distinguishing a missing file."""
    message = f"Unable to {action} {path}: {exc.strerror or exc}"
    if isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
        return CacheFileNotFoundError(message, path=path, cause=exc)
    return FileOperationError(message, path=path, cause=exc)


def classify_exception(exc: Exception) -> ErrorCategory:
    """Classify an exception into error category."""
    if isinstance(exc, PipelineError):
        return exc.category

    if isinstance(exc, OSError):
        return classify_os_error(exc)

    exc_type = type(exc).__name__.lower()
    exc_str = str(exc).lower()

    if "timeout" in exc_type or "timeout" in exc_str:
        return ErrorCategory.TRANSIENT

    connection_markers = (
        "connectionerror",
        "connection refused",
        "connection reset",
        "name resolution",
    )
    if any(m in exc_type or m in exc_str for m in connection_markers):
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


def wrap_exception(
    exc: Exception,
    default_class: type = PipelineError,
    context: dict | None = None,
) -> PipelineError:
    """Wrap a generic exception in appropriate PipelineError subclass."""
    if isinstance(exc, PipelineError):
        if context:
            exc.context.update(context)
        return exc

    category = classify_exception(exc)
    context = context or {}

    if category == ErrorCategory.AUTH:
        return AuthError(str(exc), cause=exc, context=context)

    if category == ErrorCategory.TRANSIENT:
        return TransientError(str(exc), cause=exc, context=context)

    if category == ErrorCategory.PERMANENT:
        return PermanentError(str(exc), cause=exc, context=context)

    return default_class(str(exc), cause=exc, context=context)
