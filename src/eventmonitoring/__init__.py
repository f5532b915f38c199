"""
Salesforce event monitoring log tool.

Commands:
    dump         Download EventLogFile logs and write them as JSON or CSV
    cache clear  Remove cached raw log files, optionally by date range

Run ``python -m eventmonitoring --help`` for usage.
"""

from core import __version__

__all__ = ["__version__"]
