"""Tests for JSON and console log formatters."""

import io
import json
import logging
import sys

import pytest

from core.logging.context import clear_log_context, set_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter


def _make_record(
    msg="test message",
    level=logging.INFO,
    name="test.logger",
    exc_info=None,
    **extras,
):
    record = logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extras.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    @pytest.fixture(autouse=True)
    def clear_context(self):
        clear_log_context()
        yield
        clear_log_context()

    def test_formats_basic_json_with_required_fields(self):
        formatter = JSONFormatter()
        output = json.loads(formatter.format(_make_record()))

        assert output["level"] == "INFO"
        assert output["logger"] == "test.logger"
        assert output["message"] == "test message"
        assert output["ts"].endswith("Z")

    def test_includes_command_and_stage_from_context(self):
        set_log_context(command="dump", stage="download")
        output = json.loads(JSONFormatter().format(_make_record()))

        assert output["command"] == "dump"
        assert output["stage"] == "download"

    def test_includes_run_id_from_context(self):
        set_log_context(run_id="dump-golden-tiger")
        output = json.loads(JSONFormatter().format(_make_record()))

        assert output["run_id"] == "dump-golden-tiger"

    def test_omits_empty_context(self):
        output = json.loads(JSONFormatter().format(_make_record()))

        assert "run_id" not in output
        assert "stage" not in output

    def test_extra_fields_are_included(self):
        record = _make_record(log_file_id="0AT000000000001", records=12, cache_dir="/tmp/c")
        output = json.loads(JSONFormatter().format(record))

        assert output["log_file_id"] == "0AT000000000001"
        assert output["records"] == 12
        assert output["cache_dir"] == "/tmp/c"

    def test_unknown_extra_fields_are_dropped(self):
        output = json.loads(JSONFormatter().format(_make_record(password="hunter2")))

        assert "password" not in output

    def test_numeric_fields_are_coerced(self):
        output = json.loads(JSONFormatter().format(_make_record(http_status="404", duration_ms="1.5")))

        assert output["http_status"] == 404
        assert output["duration_ms"] == 1.5

    def test_invalid_numeric_field_becomes_null(self):
        output = json.loads(JSONFormatter().format(_make_record(records="many")))

        assert output["records"] is None

    def test_url_secrets_are_redacted(self):
        record = _make_record(http_url="https://x.my.salesforce.com/file?sig=abc&name=a")
        output = json.loads(JSONFormatter().format(record))

        assert output["http_url"] == "https://x.my.salesforce.com/file?sig=[REDACTED]&name=a"

    def test_source_location_on_error(self):
        output = json.loads(JSONFormatter().format(_make_record(level=logging.ERROR)))

        assert output["file_location"] == "test.py:42"

    def test_no_source_location_on_info(self):
        output = json.loads(JSONFormatter().format(_make_record()))

        assert "file_location" not in output

    def test_exception_details(self):
        try:
            raise ValueError("boom")
        except ValueError:
            exc_info = sys.exc_info()

        output = json.loads(JSONFormatter().format(_make_record(exc_info=exc_info)))

        assert output["exception"]["type"] == "ValueError"
        assert output["exception"]["message"] == "boom"
        assert "Traceback" in output["exception"]["stacktrace"]


class TestConsoleFormatter:

    @pytest.fixture(autouse=True)
    def clear_context(self):
        clear_log_context()
        yield
        clear_log_context()

    def test_no_colors_for_non_tty(self):
        formatter = ConsoleFormatter(stream=io.StringIO())
        output = formatter.format(_make_record(level=logging.ERROR))

        assert "\033[" not in output
        assert " - ERROR - test message" in output

    def test_command_and_stage_prefix(self):
        set_log_context(command="cache-clear", stage="delete")
        output = ConsoleFormatter(stream=io.StringIO()).format(_make_record())

        assert "[cache-clear] - [delete] - test message" in output

    def test_log_type_and_id_tags(self):
        record = _make_record(log_type="API", log_file_id="0AT1")
        output = ConsoleFormatter(stream=io.StringIO()).format(record)

        assert "[type:API] [id:0AT1] test message" in output

    def test_log_type_from_context(self):
        set_log_context(log_type="Login")
        output = ConsoleFormatter(stream=io.StringIO()).format(_make_record())

        assert "[type:Login]" in output

    def test_appends_traceback(self):
        try:
            raise RuntimeError("kaput")
        except RuntimeError:
            exc_info = sys.exc_info()

        output = ConsoleFormatter(stream=io.StringIO()).format(_make_record(exc_info=exc_info))

        assert "RuntimeError: kaput" in output
