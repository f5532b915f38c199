"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_run_id: ContextVar[str] = ContextVar("run_id", default="")
_command: ContextVar[str] = ContextVar("command", default="")
_stage_name: ContextVar[str] = ContextVar("stage_name", default="")
_log_type: ContextVar[str] = ContextVar("log_type", default="")


def set_log_context(
    run_id: Optional[str] = None,
    command: Optional[str] = None,
    stage: Optional[str] = None,
    log_type: Optional[str] = None,
) -> None:
    if run_id is not None:
        _run_id.set(run_id)
    if command is not None:
        _command.set(command)
    if stage is not None:
        _stage_name.set(stage)
    if log_type is not None:
        _log_type.set(log_type)


def get_log_context() -> Dict[str, str]:
    return {
        "run_id": _run_id.get(),
        "command": _command.get(),
        "stage": _stage_name.get(),
        "log_type": _log_type.get(),
    }


def clear_log_context() -> None:
    _run_id.set("")
    _command.set("")
    _stage_name.set("")
    _log_type.set("")
