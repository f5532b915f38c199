"""
pytest configuration for eventmonitoring tests.

Adds src directory to Python path for imports and isolates tests from the
user's real environment and home directory.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from config.config import ENV_VARS  # noqa: E402
from core.logging.context import clear_log_context  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep SFDC_* variables and ~/.eventmonitoring of the developer out of tests."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture(autouse=True)
def reset_root_logger():
    """Restore root logger handlers changed by setup_logging()."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
