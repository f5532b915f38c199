"""
Core library: reusable, application-agnostic components.

Modules:
    errors      - Error classification and exception hierarchy
    logging     - Structured logging with JSON and console formatters
    download    - Async HTTP download over aiohttp
    oauth2      - OAuth2 token model and Salesforce password-flow provider
    utils       - JSON serialization helpers

Design Principles:
    - No dependency on the eventmonitoring application package
    - Async-first where I/O is involved
    - Type hints throughout
"""

from .types import ErrorCategory

__version__ = "0.1.0"

__all__ = [
    "ErrorCategory",
]
