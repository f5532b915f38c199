"""Logging setup and configuration."""

import logging
import sys
from pathlib import Path
from typing import TextIO

from core.logging.context import set_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter

DEFAULT_LEVEL = logging.INFO
DEBUG_LEVEL = logging.DEBUG

LOG_FORMATS = ("console", "json")

# Noisy loggers to suppress
NOISY_LOGGERS = [
    "aiohttp",
    "asyncio",
    "urllib3",
]


def _build_formatter(log_format: str, stream: TextIO | None = None) -> logging.Formatter:
    if log_format == "json":
        return JSONFormatter()
    return ConsoleFormatter(stream=stream)


def setup_logging(
    name: str = "eventmonitoring",
    log_format: str = "console",
    debug: bool = False,
    log_file: Path | str | None = None,
    run_id: str | None = None,
    command: str | None = None,
    stream: TextIO | None = None,
    suppress_noisy: bool = True,
) -> logging.Logger:
    """
    Configure the root logger for one CLI invocation.

    Log lines go to stderr by default so that records printed to stdout by
    the dump command stay machine readable. When ``log_file`` is given the
    same lines are also appended to that file.

    Args:
        name: Logger name returned to the caller
        log_format: "console" for human-readable lines, "json" for one JSON
            object per line
        debug: Lower the level to DEBUG (default: INFO)
        log_file: Optional path of a file receiving every log line
        run_id: Identifier injected into every log line
        command: Command name injected into every log line
        stream: Console stream (default: sys.stderr)
        suppress_noisy: Quiet down HTTP client loggers

    Returns:
        Configured logger instance
    """
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format {log_format!r}; expected one of {LOG_FORMATS}")

    if run_id:
        set_log_context(run_id=run_id)
    if command:
        set_log_context(command=command)

    level = DEBUG_LEVEL if debug else DEFAULT_LEVEL
    stream = stream or sys.stderr

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(level)
    console_handler.setFormatter(_build_formatter(log_format, stream))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(_build_formatter(log_format))
        root_logger.addHandler(file_handler)

    if suppress_noisy:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger(name)
    logger.debug(
        "Logging initialized",
        extra={"format": log_format, "file": str(log_file) if log_file else None},
    )
    return logger
