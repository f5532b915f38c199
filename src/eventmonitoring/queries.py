"""SOQL used by the dump command."""

from typing import Optional

EVENT_LOG_FILE_FIELDS = ("Id", "EventType", "LogFile", "LogDate", "LogFileLength")


def escape_soql(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def get_all_logs(log_type: Optional[str] = None) -> str:
    """EventLogFile rows, oldest first, optionally limited to one log type."""
    soql = f"SELECT {', '.join(EVENT_LOG_FILE_FIELDS)} FROM EventLogFile"
    if log_type:
        soql += f" WHERE EventType = '{escape_soql(log_type)}'"
    return soql + " ORDER BY LogDate"


__all__ = ["EVENT_LOG_FILE_FIELDS", "escape_soql", "get_all_logs"]
