"""Context managers for structured logging."""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

from core.logging.context import get_log_context, set_log_context
from core.logging.utilities import log_with_context


class LogContext:
    """
    Context manager for temporary log context.

    Usage:
        with LogContext(stage="download", log_type="API"):
            # All logs in this block will have stage and log_type
            do_work()
    """

    def __init__(
        self,
        run_id: Optional[str] = None,
        command: Optional[str] = None,
        stage: Optional[str] = None,
        log_type: Optional[str] = None,
    ):
        self.new_context = {
            "run_id": run_id,
            "command": command,
            "stage": stage,
            "log_type": log_type,
        }
        self.old_context: Dict[str, str] = {}

    def __enter__(self) -> "LogContext":
        self.old_context = get_log_context()
        for key, value in self.new_context.items():
            if value is not None:
                set_log_context(**{key: value})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        set_log_context(
            run_id=self.old_context.get("run_id", ""),
            command=self.old_context.get("command", ""),
            stage=self.old_context.get("stage", ""),
            log_type=self.old_context.get("log_type", ""),
        )
        return False


@contextmanager
def log_phase(
    logger: logging.Logger,
    phase: str,
    level: int = logging.DEBUG,
    **context: Any,
):
    """
    Context manager for timing one pipeline stage.

    Sets the ``stage`` log context for the duration of the block and logs
    the elapsed time on exit, whether or not the block raised.

    Args:
        logger: Logger instance
        phase: Phase name
        level: Log level for completion message
        **context: Additional context fields

    Example:
        with log_phase(logger, "query"):
            refs = await pipeline.query_logs()
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    start = time.perf_counter()
    with LogContext(stage=phase):
        try:
            yield
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            log_with_context(
                logger,
                level,
                f"Phase complete: {phase}",
                phase=phase,
                duration_ms=round(duration_ms, 2),
                **context,
            )
