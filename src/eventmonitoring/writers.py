"""
Rendering of records as JSON or CSV and routing to console or files.

Output routing:
    no file        -> one document on the console stream
    file, no split -> one document in the file
    file, split    -> one document per EVENT_TYPE value, <base>_<type><ext>
"""

import asyncio
import csv
import io
import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TextIO

from core.errors.exceptions import (
    FileOperationError,
    OutputError,
    UnsupportedFormatError,
    wrap_os_error,
)
from core.utils import json_serializer
from eventmonitoring.models import Record
from eventmonitoring.splitter import split_by_field
from eventmonitoring.statics import SPLIT_FIELD

logger = logging.getLogger(__name__)

# File suffix used for records without a split field value
UNKNOWN_GROUP = "UNKNOWN"


class OutputFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


SUPPORTED_FORMATS = tuple(f.value for f in OutputFormat)


def parse_format(value: Any) -> OutputFormat:
    """Map a format name to OutputFormat.

    Raises:
        UnsupportedFormatError: For anything other than json or csv
    """
    if isinstance(value, OutputFormat):
        return value
    try:
        return OutputFormat(str(value).strip().lower())
    except ValueError:
        raise UnsupportedFormatError(value, supported=SUPPORTED_FORMATS) from None


def _render_json(records: Sequence[Record]) -> str:
    return json.dumps(list(records), indent=2, default=json_serializer)


def _render_csv(records: Sequence[Record]) -> str:
    if not records:
        return ""
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=list(records[0].keys()),
        extrasaction="ignore",
        restval="",
        lineterminator="\n",
    )
    writer.writeheader()
    writer.writerows(records)
    return buffer.getvalue()


def render(records: Sequence[Record], fmt: OutputFormat | str) -> str:
    """Serialize records in the given format.

    CSV columns come from the first record; fields missing from later
    records are left blank and extra fields are dropped.
    """
    fmt = parse_format(fmt)
    if fmt is OutputFormat.JSON:
        return _render_json(records)
    return _render_csv(records)


def generate_filename(path: Path | str, key: Any) -> Path:
    """``reports/out.csv`` + ``API`` -> ``reports/out_API.csv``."""
    path = Path(path)
    label = UNKNOWN_GROUP if key is None else str(key)
    return path.with_name(f"{path.stem}_{label}{path.suffix}")


class FormatWriter:
    """
    Writes records in one output format.

    Args:
        fmt: "json"/"csv" or an OutputFormat
        stream: Console destination, stdout by default

    Raises:
        UnsupportedFormatError: On construction, for an unknown format
    """

    def __init__(self, fmt: OutputFormat | str, stream: Optional[TextIO] = None):
        self.format = parse_format(fmt)
        self.stream = stream

    def write_console(self, records: Sequence[Record]) -> None:
        stream = self.stream or sys.stdout
        text = render(records, self.format)
        stream.write(text)
        if text and not text.endswith("\n"):
            stream.write("\n")
        stream.flush()

    def _write_text(self, text: str, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8", newline="")
        except OSError as e:
            raise wrap_os_error(e, "write", str(path)) from e

    async def write_file(self, records: Sequence[Record], path: Path | str) -> Path:
        """Write all records to ``path``, creating parent directories.

        Raises:
            FileOperationError: If the file cannot be written
        """
        path = Path(path)
        text = render(records, self.format)
        await asyncio.to_thread(self._write_text, text, path)
        logger.info(
            "Wrote output file",
            extra={"file": str(path), "records": len(records), "format": self.format.value},
        )
        return path

    async def write_split(
        self,
        records: Sequence[Record],
        path: Path | str,
        field: str = SPLIT_FIELD,
    ) -> List[Path]:
        """Write one file per distinct ``field`` value.

        Groups whose keys map to the same file name (``None`` and
        ``"UNKNOWN"``, ``1`` and ``"1"``) share that file. Every write is
        attempted before any failure is reported.

        Raises:
            OutputError: Listing each write that failed
        """
        by_target: Dict[Path, List[Record]] = {}
        for key, group in split_by_field(records, field).items():
            target = generate_filename(path, key)
            if target in by_target:
                logger.warning(
                    "Merging split groups that share a file name",
                    extra={"file": str(target), "records": len(group)},
                )
            by_target.setdefault(target, []).extend(group)
        targets = list(by_target)

        logger.debug(
            "Writing split output",
            extra={"groups": len(targets), "file": str(path), "format": self.format.value},
        )

        outcomes = await asyncio.gather(
            *(self.write_file(group, target) for target, group in by_target.items()),
            return_exceptions=True,
        )

        written: List[Path] = []
        errors: List[Exception] = []
        for target, outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                errors.append(outcome)
            else:
                written.append(target)

        if errors:
            failed = ", ".join(
                e.path if isinstance(e, FileOperationError) and e.path else str(e)
                for e in errors
            )
            raise OutputError(
                f"Failed to write {len(errors)} of {len(targets)} output files: {failed}",
                errors=errors,
            )
        return written

    async def output(
        self,
        records: Sequence[Record],
        file: Optional[Path | str] = None,
        split: bool = False,
    ) -> None:
        """Route records to the console, one file or split files."""
        if not file:
            self.write_console(records)
        elif split:
            await self.write_split(records, file)
        else:
            await self.write_file(records, file)


__all__ = [
    "OutputFormat",
    "SUPPORTED_FORMATS",
    "parse_format",
    "render",
    "generate_filename",
    "FormatWriter",
]
