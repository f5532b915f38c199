"""Salesforce event monitoring CLI. Use --help for usage."""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from config import load_config
from core.errors.exceptions import ConfigurationError
from core.logging.setup import LOG_FORMATS, setup_logging
from core.logging.utilities import log_exception
from core.utils import generate_run_id
from eventmonitoring.handlers import run_command
from eventmonitoring.statics import ExitCode

# Placeholder logger until setup_logging() is called in main()
logger = logging.getLogger(__name__)

# Parsed argument -> config field, for arguments that override the config
CONFIG_ARGS = (
    "cache",
    "debug",
    "logformat",
    "logfile",
    "fail_on_error",
    "type",
    "file",
    "format",
    "split",
    "start",
    "end",
    "date",
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eventmonitoring",
        description="Dump Salesforce event monitoring logs and manage the local log cache",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Dump every API log to the console as JSON
    eventmonitoring --env prod dump --type API

    # Dump all logs to one CSV per event type (logs_API.csv, logs_Login.csv, ...)
    eventmonitoring dump --format csv --file logs.csv --split

    # Remove cached files from one day
    eventmonitoring --cache ~/.eventmonitoring-cache cache clear --date 2024-03-01
        """,
    )

    # Flags default to None so that unset flags do not override the config file
    parser.add_argument("--config", default=None, help="Config file (default: ~/.eventmonitoring)")
    parser.add_argument(
        "--env",
        default=None,
        help="Solenopsis environment whose credentials to use "
        "(~/.solenopsis/credentials/<env>.properties)",
    )
    parser.add_argument("--cache", default=None, help="Directory of cached raw log files")
    parser.add_argument("--debug", action="store_true", default=None, help="Log at DEBUG level")
    parser.add_argument(
        "--logformat",
        choices=LOG_FORMATS,
        default=None,
        help="Log line format (default: console)",
    )
    parser.add_argument("--logfile", default=None, help="Also write log lines to this file")
    parser.add_argument(
        "--fail-on-error",
        dest="fail_on_error",
        action="store_true",
        default=None,
        help="Exit with a non-zero status when the command logged a failure",
    )

    commands = parser.add_subparsers(dest="command", metavar="{dump,cache}")
    commands.required = True

    dump_parser = commands.add_parser("dump", help="Download event logs and write them out")
    dump_parser.add_argument("--type", default=None, help="The log type to dump (default: all)")
    dump_parser.add_argument("--file", default=None, help="Output file (default: stdout)")
    dump_parser.add_argument("--format", default=None, help="Output format: json or csv (default: json)")
    dump_parser.add_argument(
        "--split",
        action="store_true",
        default=None,
        help="Write one file per event type, named <base>_<type><ext>",
    )

    cache_parser = commands.add_parser("cache", help="Manage the local log cache")
    cache_commands = cache_parser.add_subparsers(dest="cache_command", metavar="{clear}")
    cache_commands.required = True

    clear_parser = cache_commands.add_parser("clear", help="Remove cached log files")
    clear_parser.add_argument("--start", default=None, help="Earliest cache time to remove (ISO-8601)")
    clear_parser.add_argument("--end", default=None, help="Latest cache time to remove (ISO-8601)")
    clear_parser.add_argument(
        "--date",
        default=None,
        help="Remove files cached on this UTC day (ISO-8601); overrides --start/--end",
    )

    return parser


def command_key(args: argparse.Namespace) -> str:
    if args.command == "cache":
        return f"cache-{args.cache_command}"
    return args.command


def config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Arguments that were given on the command line, keyed by config field."""
    return {
        name: getattr(args, name)
        for name in CONFIG_ARGS
        if getattr(args, name, None) is not None
    }


def main(argv: Optional[List[str]] = None) -> int:
    global logger

    load_dotenv()
    args = build_parser().parse_args(argv)
    key = command_key(args)
    run_id = generate_run_id(args.command)

    try:
        config = load_config(
            config_path=args.config,
            args=config_overrides(args),
            env_name=args.env,
        )
    except ConfigurationError as e:
        setup_logging(debug=bool(args.debug), run_id=run_id, command=key)
        logger = logging.getLogger(__name__)
        log_exception(logger, e, "Unable to load configuration")
        return ExitCode.CONFIG_ERROR

    try:
        setup_logging(
            log_format=config.logformat,
            debug=config.debug,
            log_file=config.logfile,
            run_id=run_id,
            command=key,
        )
    except (ValueError, OSError) as e:
        setup_logging(debug=config.debug, run_id=run_id, command=key)
        logger = logging.getLogger(__name__)
        error = ConfigurationError(f"Invalid logging settings: {e}", setting="logformat", cause=e)
        log_exception(logger, error, "Unable to configure logging")
        return ExitCode.CONFIG_ERROR
    logger = logging.getLogger(__name__)

    try:
        return run_command(key, config)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return ExitCode.PIPELINE_FAILED


if __name__ == "__main__":
    sys.exit(main())
