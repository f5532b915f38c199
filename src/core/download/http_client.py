"""
Core HTTP download client using aiohttp.

Provides basic async HTTP download functionality without domain-specific
coupling. Handles timeouts, connection pooling, bounded retry of transient
statuses and error classification.
"""

import asyncio
import logging
import random
from dataclasses import dataclass

import aiohttp

from core.errors.exceptions import (
    ErrorCategory,
    classify_http_status,
)

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = {429, 500, 502, 503, 504}
DEFAULT_MAX_ATTEMPTS = 3


@dataclass
class DownloadResponse:
    """Response from HTTP download operation with content and metadata."""

    content: bytes
    status_code: int
    content_length: int | None = None
    content_type: str | None = None


@dataclass
class DownloadError:
    """Error result from failed HTTP download with classification."""

    status_code: int | None
    error_message: str
    error_category: ErrorCategory


def _backoff_seconds(attempt: int) -> float:
    return min(2, 0.5 * 2**attempt) + random.random()


def _status_error(status: int) -> DownloadError:
    return DownloadError(
        status_code=status,
        error_message=f"HTTP {status}",
        error_category=classify_http_status(status),
    )


def _transport_error(exc: Exception, timeout: int) -> DownloadError:
    if isinstance(exc, aiohttp.ServerTimeoutError):
        message = f"Server timeout: {exc}"
    elif isinstance(exc, TimeoutError):
        message = f"Download timeout after {timeout}s"
    else:
        message = f"Connection error: {exc}"
    return DownloadError(status_code=None, error_message=message, error_category=ErrorCategory.TRANSIENT)


async def download_url(
    url: str,
    session: aiohttp.ClientSession,
    timeout: int = 60,
    headers: dict[str, str] | None = None,
    allow_redirects: bool = True,
    sock_read_timeout: int = 30,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> tuple[DownloadResponse | None, DownloadError | None]:
    """
    Low-level HTTP GET returning the full body.

    Statuses in RETRYABLE_STATUSES and connection/timeout failures are
    attempted up to ``max_attempts`` times with jittered backoff; any other
    non-200 status returns immediately.

    Args:
        url: URL to download
        session: aiohttp ClientSession (caller manages lifecycle)
        timeout: Total timeout in seconds
        headers: Extra request headers (e.g. Authorization)
        allow_redirects: Whether to follow redirects
        sock_read_timeout: Socket read timeout to prevent hanging on stalled connections
        max_attempts: Total attempts for transient failures

    Returns:
        Tuple of (DownloadResponse, None) on success or (None, DownloadError)
    """
    client_timeout = aiohttp.ClientTimeout(total=timeout, sock_read=sock_read_timeout)
    last_error = None

    for attempt in range(1, max_attempts + 1):
        try:
            async with session.get(
                url,
                headers=headers,
                timeout=client_timeout,
                allow_redirects=allow_redirects,
            ) as response:
                if response.status == 200:
                    return (
                        DownloadResponse(
                            content=await response.read(),
                            status_code=response.status,
                            content_length=response.content_length,
                            content_type=response.headers.get("Content-Type"),
                        ),
                        None,
                    )
                last_error = _status_error(response.status)
                if response.status not in RETRYABLE_STATUSES:
                    return None, last_error
        except (TimeoutError, aiohttp.ClientError) as e:
            last_error = _transport_error(e, timeout)

        if attempt < max_attempts:
            logger.debug(
                "Retrying request",
                extra={
                    "http_status": last_error.status_code,
                    "error_message": last_error.error_message,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                },
            )
            await asyncio.sleep(_backoff_seconds(attempt - 1))

    return None, last_error


def create_session(
    max_connections: int = 20,
    max_connections_per_host: int = 10,
    enable_ssl: bool = True,
    timeout_total: int = 300,
    timeout_connect: int = 30,
    timeout_sock_read: int = 60,
    headers: dict[str, str] | None = None,
) -> aiohttp.ClientSession:
    """
    Create aiohttp ClientSession with connection pooling and timeouts.

    Args:
        max_connections: Total connection pool size (default: 20)
        max_connections_per_host: Per-host connection limit (default: 10)
        enable_ssl: Enable SSL verification (default: True)
        timeout_total: Total timeout in seconds (default: 300)
        timeout_connect: Connection timeout in seconds (default: 30)
        timeout_sock_read: Socket read timeout in seconds (default: 60)
        headers: Default headers sent with every request

    Returns:
        Configured aiohttp.ClientSession

    Note:
        Caller is responsible for session lifecycle management:

        async with create_session() as session:
            response, error = await download_url(url, session)
    """
    connector = aiohttp.TCPConnector(
        limit=max_connections,
        limit_per_host=max_connections_per_host,
        ssl=enable_ssl,
        ttl_dns_cache=300,
    )

    timeout = aiohttp.ClientTimeout(
        total=timeout_total,
        connect=timeout_connect,
        sock_read=timeout_sock_read,
    )

    return aiohttp.ClientSession(connector=connector, timeout=timeout, headers=headers)


__all__ = [
    "DownloadResponse",
    "DownloadError",
    "download_url",
    "create_session",
]
