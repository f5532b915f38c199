"""
Download-and-convert of EventLogFile bodies into records.

Each log file is fetched independently with bounded concurrency. A body is
taken from the cache when a copy exists there, otherwise it is downloaded
and cached. Per-file failures are logged and collected, never raised.
"""

import asyncio
import csv
import io
import logging
from typing import List, Optional, Sequence

from core.errors.exceptions import (
    FileOperationError,
    PermanentError,
    PipelineError,
    wrap_exception,
)
from core.logging.utilities import log_exception
from eventmonitoring.cache import CacheStore
from eventmonitoring.models import DownloadResult, LogFile, Record

logger = logging.getLogger(__name__)


def parse_csv(content: bytes) -> List[Record]:
    """Parse a log body (CSV with a header row) into records.

    Raises:
        PermanentError: If the body is not UTF-8 or not valid CSV
    """
    try:
        text = content.decode("utf-8-sig")
        return [dict(row) for row in csv.DictReader(io.StringIO(text, newline=""))]
    except (UnicodeDecodeError, csv.Error) as e:
        raise PermanentError(f"Unable to parse log file as CSV: {e}", cause=e) from e


async def _load_body(client, log_file: LogFile, cache: Optional[CacheStore]) -> bytes:
    if cache is not None:
        cached = await cache.find(log_file.cache_suffix)
        if cached:
            logger.debug(
                "Using cached log file",
                extra={"log_file_id": log_file.id, "file": cached, "cached": True},
            )
            return await cache.read(cached)

    content = await client.fetch_log_file(log_file)

    if cache is not None:
        try:
            await cache.write(log_file.cache_suffix, content)
        except FileOperationError as e:
            log_exception(
                logger,
                e,
                "Unable to cache log file",
                level=logging.WARNING,
                log_file_id=log_file.id,
            )
    return content


async def _convert_one(
    client,
    log_file: LogFile,
    cache: Optional[CacheStore],
    semaphore: asyncio.Semaphore,
) -> List[Record]:
    async with semaphore:
        content = await _load_body(client, log_file, cache)
    try:
        return parse_csv(content)
    except PipelineError as e:
        e.context["log_file_id"] = log_file.id
        raise


async def fetch_and_convert(
    client,
    log_files: Sequence[LogFile],
    cache: Optional[CacheStore] = None,
    max_concurrent: int = 5,
) -> DownloadResult:
    """
    Fetch every log file and convert its rows into records.

    Args:
        client: Object with ``async fetch_log_file(LogFile) -> bytes``
        log_files: Log files to fetch
        cache: Cache of raw bodies to read from and write to
        max_concurrent: Log files fetched at once

    Returns:
        DownloadResult with the records of every log file that succeeded,
        in input order, and one error per log file that failed
    """
    semaphore = asyncio.Semaphore(max(max_concurrent, 1))
    outcomes = await asyncio.gather(
        *(_convert_one(client, lf, cache, semaphore) for lf in log_files),
        return_exceptions=True,
    )

    result = DownloadResult(log_files=len(log_files))
    for log_file, outcome in zip(log_files, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            error = wrap_exception(outcome, context={"log_file_id": log_file.id})
            result.errors.append(error)
            log_exception(
                logger,
                error,
                "Unable to download log file",
                log_file_id=log_file.id,
                log_type=log_file.event_type,
            )
        else:
            result.records.extend(outcome)

    logger.info(
        "Downloaded log files",
        extra={
            "log_files": len(log_files),
            "records": len(result.records),
            "error_count": len(result.errors),
        },
    )
    return result


__all__ = ["parse_csv", "fetch_and_convert"]
