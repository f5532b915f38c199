"""
The dump command: login -> query -> download -> output.

Stages run in order and any failure aborts the ones after it. Errors are
raised by the stages and logged once, in dump().
"""

import asyncio
import logging
from typing import Callable, List

from config.config import EventMonitoringConfig
from core.errors.exceptions import PipelineError, wrap_exception
from core.logging.context_managers import LogContext, log_phase
from core.logging.utilities import log_exception
from eventmonitoring import queries
from eventmonitoring.cache import CacheStore
from eventmonitoring.converter import fetch_and_convert
from eventmonitoring.models import LogFile, Record
from eventmonitoring.sfdc import SalesforceClient
from eventmonitoring.statics import ExitCode
from eventmonitoring.writers import FormatWriter

logger = logging.getLogger(__name__)


class DumpPipeline:
    """
    Dump stages bound to one configuration and one Salesforce client.

    The output format is validated on construction, so an unsupported
    format fails before any network call.

    Raises:
        UnsupportedFormatError: On construction, for an unknown format
    """

    def __init__(self, config: EventMonitoringConfig, client, stream=None):
        self.config = config
        self.client = client
        self.writer = FormatWriter(config.format, stream=stream)
        self.cache = CacheStore(config.cache_dir) if config.cache_dir else None

    async def login(self) -> None:
        await self.client.login()

    async def query_logs(self) -> List[LogFile]:
        soql = queries.get_all_logs(self.config.type)
        records = await self.client.query(soql)
        log_files = [LogFile.from_record(record) for record in records]
        logger.info(
            "Found event log files",
            extra={"log_files": len(log_files), "query": soql},
        )
        return log_files

    async def download_logs(self, log_files: List[LogFile]) -> List[Record]:
        """
        Download every log file; individual failures are tolerated.

        Raises:
            PipelineError: If every log file failed
        """
        result = await fetch_and_convert(
            self.client,
            log_files,
            cache=self.cache,
            max_concurrent=self.config.max_concurrent_downloads,
        )
        if result.all_failed:
            first = result.errors[0]
            raise PipelineError(
                f"All {result.log_files} log file downloads failed",
                cause=first,
                context={"error_count": len(result.errors)},
            )
        return result.records

    async def output_logs(self, records: List[Record]) -> None:
        await self.writer.output(records, file=self.config.file, split=self.config.split)

    async def run(self) -> None:
        with log_phase(logger, "login"):
            await self.login()
        with log_phase(logger, "query"):
            log_files = await self.query_logs()
        with log_phase(logger, "download"):
            records = await self.download_logs(log_files)
        with log_phase(logger, "output"):
            await self.output_logs(records)


async def dump(
    config: EventMonitoringConfig,
    client_factory: Callable = SalesforceClient,
    stream=None,
) -> bool:
    """Run the dump pipeline; returns False after logging a failure."""
    try:
        with LogContext(log_type=config.type):
            pipeline_client = client_factory(config)
            pipeline = DumpPipeline(config, pipeline_client, stream=stream)
            async with pipeline_client:
                await pipeline.run()
    except PipelineError as e:
        log_exception(logger, e, "Dump failed")
        return False
    except Exception as e:
        log_exception(logger, wrap_exception(e), "Dump failed", include_traceback=True)
        return False

    logger.info("Dump complete", extra={"file": config.file, "format": config.format})
    return True


def run_dump(
    config: EventMonitoringConfig,
    client_factory: Callable = SalesforceClient,
    stream=None,
) -> int:
    """Entry point of ``dump``; returns the process exit status."""
    succeeded = asyncio.run(dump(config, client_factory=client_factory, stream=stream))
    if not succeeded and config.fail_on_error:
        return ExitCode.PIPELINE_FAILED
    return ExitCode.OK


__all__ = ["DumpPipeline", "dump", "run_dump"]
