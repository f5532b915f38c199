"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- PipelineError hierarchy for typed exceptions
- Classification utilities for HTTP statuses and OS errors
"""

from core.errors.exceptions import (
    AuthError,
    CacheFileNotFoundError,
    ConfigurationError,
    # Enums
    ErrorCategory,
    FileOperationError,
    InvalidDateError,
    OutputError,
    PermanentError,
    # Base classes
    PipelineError,
    ThrottlingError,
    TransientError,
    UnsupportedFormatError,
    UnsupportedHandlerError,
    # Classification utilities
    classify_exception,
    classify_http_status,
    classify_os_error,
    error_for_http_status,
    wrap_exception,
    wrap_os_error,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "PipelineError",
    "AuthError",
    "TransientError",
    "ThrottlingError",
    "PermanentError",
    # Domain errors
    "ConfigurationError",
    "InvalidDateError",
    "UnsupportedFormatError",
    "UnsupportedHandlerError",
    "FileOperationError",
    "CacheFileNotFoundError",
    "OutputError",
    # Classification utilities
    "classify_http_status",
    "classify_os_error",
    "classify_exception",
    "error_for_http_status",
    "wrap_exception",
    "wrap_os_error",
]
