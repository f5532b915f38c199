"""
Async HTTP download helpers.

Provides:
    - create_session: aiohttp session factory with pooling and timeouts
    - download_url: GET returning the body, with bounded retry of
      transient statuses and error classification

Example usage:
    from core.download import create_session, download_url

    async with create_session() as session:
        response, error = await download_url(url, session)
        if error:
            print(f"Failed: {error.error_message}")
"""

from core.download.http_client import DownloadError, DownloadResponse, create_session, download_url

__all__ = [
    "download_url",
    "create_session",
    "DownloadResponse",
    "DownloadError",
]
