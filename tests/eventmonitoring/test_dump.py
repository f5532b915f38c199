"""Tests for the dump pipeline."""

import io
import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from config.config import EventMonitoringConfig
from core.errors.exceptions import PermanentError, TransientError
from core.oauth2 import TokenAcquisitionError
from eventmonitoring.dump import DumpPipeline, dump, run_dump
from eventmonitoring.models import LogFile
from eventmonitoring.sfdc import SalesforceClient
from eventmonitoring.statics import ExitCode

QUERY_RECORDS = [
    {
        "Id": "0AT1",
        "EventType": "API",
        "LogFile": "/services/data/v58.0/sobjects/EventLogFile/0AT1/LogFile",
        "LogDate": "2024-03-01T00:00:00.000+0000",
        "LogFileLength": 120,
    },
    {
        "Id": "0AT2",
        "EventType": "Login",
        "LogFile": "/services/data/v58.0/sobjects/EventLogFile/0AT2/LogFile",
        "LogDate": "2024-03-01T00:00:00.000+0000",
        "LogFileLength": 64,
    },
]

BODIES = {
    "0AT1": b"EVENT_TYPE,USER_ID\nAPI,005A\nAPI,005B\n",
    "0AT2": b"EVENT_TYPE,USER_ID\nLogin,005C\n",
}


class FakeClient:
    """Stands in for SalesforceClient; records which calls were made."""

    def __init__(self, config=None, bodies=None, query_records=None, login_error=None):
        self.config = config
        self.bodies = BODIES if bodies is None else bodies
        self.query_records = QUERY_RECORDS if query_records is None else query_records
        self.login_error = login_error
        self.calls = []
        self.entered = False
        self.exited = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exited = True

    async def login(self):
        self.calls.append("login")
        if self.login_error:
            raise self.login_error

    async def query(self, soql):
        self.calls.append(("query", soql))
        return self.query_records

    async def fetch_log_file(self, log_file: LogFile):
        self.calls.append(("fetch", log_file.id))
        body = self.bodies[log_file.id]
        if isinstance(body, Exception):
            raise body
        return body


def _factory(client):
    return MagicMock(return_value=client)


def _errors(caplog):
    return [r for r in caplog.records if r.levelno >= logging.ERROR]


class TestDumpPipelineStages:

    @pytest.mark.asyncio
    async def test_query_logs_builds_log_files(self):
        client = FakeClient()
        pipeline = DumpPipeline(EventMonitoringConfig(type="API"), client)

        log_files = await pipeline.query_logs()

        assert [lf.id for lf in log_files] == ["0AT1", "0AT2"]
        assert log_files[0].log_file_length == 120
        soql = client.calls[0][1]
        assert "WHERE EventType = 'API'" in soql

    @pytest.mark.asyncio
    async def test_download_logs_all_failed_raises(self):
        client = FakeClient(bodies={"0AT1": TransientError("503"), "0AT2": TransientError("503")})
        pipeline = DumpPipeline(EventMonitoringConfig(), client)
        log_files = [LogFile.from_record(r) for r in QUERY_RECORDS]

        with pytest.raises(Exception, match="All 2 log file downloads failed"):
            await pipeline.download_logs(log_files)

    @pytest.mark.asyncio
    async def test_download_logs_tolerates_partial_failure(self):
        client = FakeClient(bodies={"0AT1": BODIES["0AT1"], "0AT2": PermanentError("404")})
        pipeline = DumpPipeline(EventMonitoringConfig(), client)
        log_files = [LogFile.from_record(r) for r in QUERY_RECORDS]

        records = await pipeline.download_logs(log_files)

        assert [r["USER_ID"] for r in records] == ["005A", "005B"]

    @pytest.mark.asyncio
    async def test_uses_cache_when_configured(self, tmp_path):
        pipeline = DumpPipeline(EventMonitoringConfig(cache=str(tmp_path)), FakeClient())

        assert pipeline.cache is not None
        assert pipeline.cache.directory == tmp_path


class TestDump:

    @pytest.mark.asyncio
    async def test_json_to_console(self):
        stream = io.StringIO()
        client = FakeClient()

        ok = await dump(EventMonitoringConfig(), client_factory=_factory(client), stream=stream)

        assert ok is True
        records = json.loads(stream.getvalue())
        assert [r["USER_ID"] for r in records] == ["005A", "005B", "005C"]
        assert client.calls[0] == "login"
        assert client.entered and client.exited

    @pytest.mark.asyncio
    async def test_csv_split_files(self, tmp_path):
        config = EventMonitoringConfig(format="csv", file=str(tmp_path / "logs.csv"), split=True)

        ok = await dump(config, client_factory=_factory(FakeClient()))

        assert ok is True
        assert sorted(p.name for p in tmp_path.iterdir()) == ["logs_API.csv", "logs_Login.csv"]
        assert (tmp_path / "logs_Login.csv").read_text() == "EVENT_TYPE,USER_ID\nLogin,005C\n"

    @pytest.mark.asyncio
    async def test_unsupported_format_logs_one_error_and_writes_nothing(self, tmp_path, caplog):
        client = FakeClient()
        factory = _factory(client)
        config = EventMonitoringConfig(format="xml", file=str(tmp_path / "out.xml"))

        with caplog.at_level(logging.DEBUG):
            ok = await dump(config, client_factory=factory)

        assert ok is False
        assert client.calls == []
        assert client.entered is False
        assert list(tmp_path.iterdir()) == []
        errors = _errors(caplog)
        assert len(errors) == 1
        assert errors[0].error_type == "UnsupportedFormatError"
        assert errors[0].error_category == "permanent"

    @pytest.mark.asyncio
    async def test_login_failure_aborts_remaining_stages(self, tmp_path, caplog):
        client = FakeClient(login_error=TokenAcquisitionError("Login rejected: HTTP 400"))
        config = EventMonitoringConfig(file=str(tmp_path / "out.json"))

        with caplog.at_level(logging.INFO):
            ok = await dump(config, client_factory=_factory(client))

        assert ok is False
        assert client.calls == ["login"]
        assert client.exited is True
        assert list(tmp_path.iterdir()) == []
        errors = _errors(caplog)
        assert len(errors) == 1
        assert errors[0].error_category == "auth"

    @pytest.mark.asyncio
    async def test_all_downloads_failing_aborts_output(self, tmp_path, caplog):
        client = FakeClient(bodies={"0AT1": TransientError("503"), "0AT2": TransientError("503")})
        config = EventMonitoringConfig(file=str(tmp_path / "out.json"))

        with caplog.at_level(logging.ERROR):
            ok = await dump(config, client_factory=_factory(client))

        assert ok is False
        assert not (tmp_path / "out.json").exists()
        # One per failed log file, then one for the aborted dump
        assert len(_errors(caplog)) == 3
        assert _errors(caplog)[-1].getMessage() == "Dump failed"

    @pytest.mark.asyncio
    async def test_output_failure_is_logged(self, tmp_path, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        config = EventMonitoringConfig(file=str(blocker / "out.json"))

        with caplog.at_level(logging.ERROR):
            ok = await dump(config, client_factory=_factory(FakeClient()))

        assert ok is False
        assert len(_errors(caplog)) == 1

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_logged_not_raised(self, caplog):
        client = FakeClient(login_error=RuntimeError("kaput"))

        with caplog.at_level(logging.ERROR):
            ok = await dump(EventMonitoringConfig(), client_factory=_factory(client), stream=io.StringIO())

        assert ok is False
        assert len(_errors(caplog)) == 1


class TestRunDump:

    def test_success_exit_code(self):
        code = run_dump(
            EventMonitoringConfig(),
            client_factory=_factory(FakeClient()),
            stream=io.StringIO(),
        )

        assert code == ExitCode.OK

    def test_failure_is_ok_by_default(self):
        code = run_dump(EventMonitoringConfig(format="xml"), client_factory=_factory(FakeClient()))

        assert code == ExitCode.OK

    def test_failure_with_fail_on_error(self):
        config = EventMonitoringConfig(format="xml", fail_on_error=True)

        assert run_dump(config, client_factory=_factory(FakeClient())) == ExitCode.PIPELINE_FAILED

    def test_default_factory_is_salesforce_client(self):
        with patch("eventmonitoring.dump.dump", new=AsyncMock(return_value=True)) as dump_mock:
            code = run_dump(EventMonitoringConfig())

        assert code == ExitCode.OK
        assert dump_mock.await_args.kwargs["client_factory"] is SalesforceClient
