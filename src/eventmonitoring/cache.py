"""
Local cache of raw downloaded log files.

Cached files are named ``<epoch_millis>_<suffix>``; the integer before the
first underscore is the time the file was cached and is what range
filtering uses. Blocking file system calls run in worker threads.
"""

import asyncio
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterable, List, Optional

from config.config import EventMonitoringConfig
from config.config_validator import require_cache_dir
from core.errors.exceptions import (
    ConfigurationError,
    FileOperationError,
    PipelineError,
    wrap_os_error,
)
from core.logging.context_managers import log_phase
from core.logging.utilities import log_exception
from eventmonitoring.dates import (
    from_epoch_millis,
    has_date_filter,
    resolve_date_range,
    to_epoch_millis,
)
from eventmonitoring.models import DateRange, DeleteResult
from eventmonitoring.statics import ExitCode

logger = logging.getLogger(__name__)


def parse_timestamp(name: str) -> Optional[datetime]:
    """Return the UTC time encoded before the first ``_`` of a cached file name.

    Names without a non-negative ASCII integer prefix return None.
    """
    prefix = name.split("_", 1)[0]
    if not (prefix.isascii() and prefix.isdigit()):
        return None
    try:
        return from_epoch_millis(int(prefix))
    except OverflowError:
        return None


def cache_file_name(suffix: str, now: Optional[datetime] = None) -> str:
    return f"{to_epoch_millis(now or datetime.now(UTC))}_{suffix}"


class CacheStore:
    """List, read, write and delete files in the cache directory."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory).expanduser()

    def _path(self, name: str) -> Path:
        return self.directory / name

    def _listdir(self) -> List[str]:
        try:
            return sorted(os.listdir(self.directory))
        except OSError as e:
            raise wrap_os_error(e, "read cache directory", str(self.directory)) from e

    async def list_all(self) -> List[str]:
        """Every file name in the cache directory.

        Raises:
            FileOperationError: If the directory cannot be read
        """
        logger.debug(
            "Fetching all files from cache dir",
            extra={"cache_dir": str(self.directory)},
        )
        return await asyncio.to_thread(self._listdir)

    async def list_in_range(self, date_range: DateRange) -> List[str]:
        """File names whose embedded timestamp lies in [start, end].

        Names without a timestamp prefix never match.

        Raises:
            FileOperationError: If the directory cannot be read
        """
        names = await asyncio.to_thread(self._listdir)
        selected = []
        for name in names:
            stamp = parse_timestamp(name)
            if stamp is None:
                logger.debug("Skipping cache file without timestamp", extra={"file": name})
                continue
            if date_range.contains(stamp):
                selected.append(name)

        logger.debug(
            "Selected cache files in range",
            extra={
                "cache_dir": str(self.directory),
                "start": date_range.start.isoformat(),
                "end": date_range.end.isoformat(),
                "files": len(selected),
            },
        )
        return selected

    def _unlink(self, name: str) -> None:
        path = self._path(name)
        try:
            path.unlink()
        except OSError as e:
            raise wrap_os_error(e, "remove", str(path)) from e

    async def delete_one(self, name: str) -> None:
        """Remove one cached file.

        Raises:
            CacheFileNotFoundError: If the file does not exist
            FileOperationError: For any other OS error
        """
        logger.debug("Removing cache file", extra={"file": str(self._path(name))})
        await asyncio.to_thread(self._unlink, name)

    async def delete_many(self, names: Iterable[str]) -> DeleteResult:
        """Delete every file independently and collect the failures.

        Never raises; the returned DeleteResult lists what was deleted and
        the error for each file that was not.
        """
        names = list(names)
        logger.debug("Deleting files from cache", extra={"files": len(names)})

        outcomes = await asyncio.gather(
            *(self.delete_one(name) for name in names),
            return_exceptions=True,
        )

        result = DeleteResult()
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, FileOperationError):
                result.errors.append(outcome)
            elif isinstance(outcome, BaseException):
                result.errors.append(
                    FileOperationError(
                        f"Unable to remove {self._path(name)}: {outcome}",
                        path=str(self._path(name)),
                    )
                )
            else:
                result.deleted.append(name)
        return result

    def _find(self, suffix: str) -> Optional[str]:
        if not self.directory.is_dir():
            return None
        matches = [
            name
            for name in self._listdir()
            if name.endswith(f"_{suffix}") and parse_timestamp(name) is not None
        ]
        # Newest wins
        return max(matches, key=lambda n: int(n.split("_", 1)[0])) if matches else None

    async def find(self, suffix: str) -> Optional[str]:
        """Newest cached file named ``<millis>_<suffix>``, if any."""
        return await asyncio.to_thread(self._find, suffix)

    def _read(self, name: str) -> bytes:
        path = self._path(name)
        try:
            return path.read_bytes()
        except OSError as e:
            raise wrap_os_error(e, "read", str(path)) from e

    async def read(self, name: str) -> bytes:
        return await asyncio.to_thread(self._read, name)

    def _write(self, name: str, content: bytes) -> None:
        path = self._path(name)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            raise wrap_os_error(e, "write", str(path)) from e

    async def write(self, suffix: str, content: bytes, now: Optional[datetime] = None) -> str:
        """Store ``content`` as ``<epoch_millis>_<suffix>`` and return the name."""
        name = cache_file_name(suffix, now)
        await asyncio.to_thread(self._write, name, content)
        logger.debug("Cached file", extra={"file": name, "bytes_downloaded": len(content)})
        return name


async def clear_cache(config: EventMonitoringConfig) -> bool:
    """Delete cached files in the configured date window, or all of them.

    Returns True when every step succeeded. Failures are logged, not raised.
    """
    store = CacheStore(config.cache_dir)

    try:
        with log_phase(logger, "list"):
            if has_date_filter(config.start, config.end, config.date):
                date_range = resolve_date_range(config.start, config.end, config.date)
                names = await store.list_in_range(date_range)
            else:
                names = await store.list_all()
    except PipelineError as e:
        log_exception(logger, e, "Unable to list cache files", cache_dir=str(store.directory))
        return False

    with log_phase(logger, "delete"):
        result = await store.delete_many(names)

    for error in result.errors:
        log_exception(logger, error, "Unable to delete cache file", file=error.path)

    logger.info(
        "Cache clear complete",
        extra={
            "cache_dir": str(store.directory),
            "files_deleted": len(result.deleted),
            "error_count": len(result.errors),
        },
    )
    return result.ok


def run_clear(config: EventMonitoringConfig) -> int:
    """Entry point of ``cache clear``; returns the process exit status."""
    try:
        require_cache_dir(config)
    except ConfigurationError as e:
        log_exception(logger, e, "Cache options are not valid without cache folder being set")
        return ExitCode.NO_CACHE_DIR

    succeeded = asyncio.run(clear_cache(config))
    if not succeeded and config.fail_on_error:
        return ExitCode.PIPELINE_FAILED
    return ExitCode.OK


__all__ = [
    "CacheStore",
    "parse_timestamp",
    "cache_file_name",
    "clear_cache",
    "run_clear",
]
