"""
Core types shared across modules.

This module provides the enums used by the error hierarchy and the
logging layer so both agree on a single canonical definition.
"""

from enum import Enum


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures that may succeed if attempted again
                   (e.g., network timeouts, 429/503 responses)
        AUTH: Authentication failures (e.g., 401, rejected credentials)
        PERMANENT: Failures that will not succeed on a second attempt
                   (e.g., 404, unsupported format, missing configuration)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


__all__ = [
    "ErrorCategory",
]
