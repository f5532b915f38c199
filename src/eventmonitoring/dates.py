"""Resolution of --start/--end/--date options into a concrete UTC range."""

from datetime import UTC, datetime, time, timedelta
from typing import Optional

from dateutil import parser as date_parser

from core.errors.exceptions import InvalidDateError
from eventmonitoring.models import DateRange

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# Millisecond resolution, matching the cached file timestamps
_END_OF_DAY = time(23, 59, 59, 999000)


def parse_instant(value: str, option: str) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Naive values are taken as UTC.

    Raises:
        InvalidDateError: If the value is not ISO-8601
    """
    try:
        parsed = date_parser.isoparse(value.strip())
    except (ValueError, OverflowError) as e:
        raise InvalidDateError(
            f"Invalid --{option} value {value!r}: expected an ISO-8601 date or time",
            setting=option,
            cause=e,
        ) from e
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def start_of_day(instant: datetime) -> datetime:
    return datetime.combine(instant.date(), time.min, tzinfo=UTC)


def end_of_day(instant: datetime) -> datetime:
    return datetime.combine(instant.date(), _END_OF_DAY, tzinfo=UTC)


def has_date_filter(
    start: Optional[str] = None,
    end: Optional[str] = None,
    date: Optional[str] = None,
) -> bool:
    """True when any of the date options was given."""
    return start is not None or end is not None or date is not None


def resolve_date_range(
    start: Optional[str] = None,
    end: Optional[str] = None,
    date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> DateRange:
    """Resolve the date options into a closed UTC interval.

    ``date`` selects that whole UTC day and overrides ``start``/``end``.
    Otherwise a missing ``start`` means the Unix epoch and a missing ``end``
    means now.

    Raises:
        InvalidDateError: If a value cannot be parsed or start is after end
    """
    if date is not None:
        day = parse_instant(date, "date")
        return DateRange(start=start_of_day(day), end=end_of_day(day))

    resolved_start = parse_instant(start, "start") if start is not None else EPOCH
    if end is not None:
        resolved_end = parse_instant(end, "end")
    else:
        resolved_end = now or datetime.now(UTC)

    if resolved_start > resolved_end:
        raise InvalidDateError(
            f"Start {resolved_start.isoformat()} is after end {resolved_end.isoformat()}",
            setting="start",
        )

    return DateRange(start=resolved_start, end=resolved_end)


def to_epoch_millis(instant: datetime) -> int:
    return int((instant - EPOCH) / timedelta(milliseconds=1))


def from_epoch_millis(millis: int) -> datetime:
    return EPOCH + timedelta(milliseconds=millis)


__all__ = [
    "EPOCH",
    "parse_instant",
    "has_date_filter",
    "resolve_date_range",
    "to_epoch_millis",
    "from_epoch_millis",
]
