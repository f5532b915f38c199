"""Command registry mapping CLI command keys to runner functions.

Each entry specifies:
- runner: Function taking the EventMonitoringConfig and returning an exit status
"""

import logging
from typing import Any, Callable, Dict, Optional

from config.config import EventMonitoringConfig
from core.errors.exceptions import UnsupportedHandlerError
from core.logging.utilities import log_exception
from eventmonitoring.cache import run_clear
from eventmonitoring.dump import run_dump
from eventmonitoring.statics import LOG_TYPES, ExitCode

logger = logging.getLogger(__name__)

COMMANDS: Dict[str, Dict[str, Any]] = {
    "dump": {
        "runner": run_dump,
    },
    "cache-clear": {
        "runner": run_clear,
    },
}


def resolve_handler(key: str) -> Callable[[EventMonitoringConfig], int]:
    """Return the runner registered for ``key``.

    Raises:
        UnsupportedHandlerError: If no command is registered under ``key``
    """
    command = COMMANDS.get(key)
    if command is None:
        raise UnsupportedHandlerError(key, kind="handler")
    return command["runner"]


def check_log_type(name: Optional[str]) -> None:
    """Validate a requested log type; None means every type.

    Raises:
        UnsupportedHandlerError: If ``name`` is not a known EventLogFile type
    """
    if name is not None and name not in LOG_TYPES:
        raise UnsupportedHandlerError(name, kind="log type")


def run_command(key: str, config: EventMonitoringConfig) -> int:
    """Validate and run one command.

    Unknown commands and log types are logged and reported as
    UNSUPPORTED_HANDLER before any network or file operation.
    """
    try:
        runner = resolve_handler(key)
        if key == "dump":
            check_log_type(config.type)
    except UnsupportedHandlerError as e:
        log_exception(logger, e, "Unsupported command")
        return ExitCode.UNSUPPORTED_HANDLER

    logger.debug("Running command", extra={"operation": key})
    return runner(config)


__all__ = ["COMMANDS", "resolve_handler", "check_log_type", "run_command"]
