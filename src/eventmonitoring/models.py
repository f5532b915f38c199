"""
Data models for the eventmonitoring commands.

- LogFile: one EventLogFile row returned by the query step
- DateRange: closed UTC interval used to select cached files
- DeleteResult: outcome of a bulk cache deletion, with partial errors
- DownloadResult: records from every log file that downloaded, with partial errors
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

from core.errors.exceptions import FileOperationError, PipelineError

Record = Dict[str, Any]


def _parse_log_date(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = date_parser.isoparse(str(value))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


@dataclass(frozen=True)
class LogFile:
    """
    Reference to one downloadable event log.

    Attributes:
        id: EventLogFile record Id
        event_type: Log type (e.g. "API", "Login")
        log_file: REST path of the log body
            (/services/data/vXX.X/sobjects/EventLogFile/<Id>/LogFile)
        log_date: Day the log covers, UTC
        log_file_length: Size of the body in bytes, when reported
    """

    id: str
    event_type: str
    log_file: str
    log_date: Optional[datetime] = None
    log_file_length: Optional[int] = None

    @classmethod
    def from_record(cls, record: Record) -> "LogFile":
        """Build from a SOQL query record."""
        length = record.get("LogFileLength")
        return cls(
            id=record["Id"],
            event_type=record.get("EventType") or "",
            log_file=record["LogFile"],
            log_date=_parse_log_date(record.get("LogDate")),
            log_file_length=int(length) if length is not None else None,
        )

    @property
    def cache_suffix(self) -> str:
        """Name of the cached body after the timestamp prefix."""
        return f"{self.id}.csv"


@dataclass(frozen=True)
class DateRange:
    """Closed interval [start, end] of aware UTC datetimes."""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


@dataclass
class DeleteResult:
    """
    Result of deleting several cached files.

    Success and failure are reported per file; the bulk operation itself
    never raises.
    """

    deleted: List[str] = field(default_factory=list)
    errors: List[FileOperationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class DownloadResult:
    """Records converted from the log files that downloaded, plus per-file errors."""

    records: List[Record] = field(default_factory=list)
    errors: List[PipelineError] = field(default_factory=list)
    log_files: int = 0

    @property
    def all_failed(self) -> bool:
        return self.log_files > 0 and len(self.errors) == self.log_files


__all__ = ["Record", "LogFile", "DateRange", "DeleteResult", "DownloadResult"]
