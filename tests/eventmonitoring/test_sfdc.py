"""Tests for the Salesforce REST client."""

import json
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from config.config import EventMonitoringConfig
from core.download import DownloadError, DownloadResponse
from core.errors.exceptions import (
    AuthError,
    ConfigurationError,
    PermanentError,
    ThrottlingError,
    TransientError,
)
from core.oauth2 import OAuth2Token
from core.types import ErrorCategory
from eventmonitoring.models import LogFile
from eventmonitoring.sfdc import SalesforceClient

INSTANCE = "https://acme.my.salesforce.com"

CONFIG = EventMonitoringConfig(
    username="admin@example.com",
    password="hunter2",
    token="TOKEN",
    client_id="client-id",
    client_secret="client-secret",
    api_version="58.0",
)


def _token():
    return OAuth2Token(
        access_token="00D!abc",
        token_type="Bearer",
        expires_at=datetime.now(UTC) + timedelta(hours=2),
        instance_url=INSTANCE,
    )


def _ok(body):
    content = body if isinstance(body, bytes) else json.dumps(body).encode()
    return DownloadResponse(content=content, status_code=200), None


def _failed(status, category=ErrorCategory.PERMANENT):
    return None, DownloadError(status_code=status, error_message=f"HTTP {status}", error_category=category)


def _logged_in_client():
    client = SalesforceClient(CONFIG, session=MagicMock())
    client.token = _token()
    client.instance_url = INSTANCE
    return client


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_uses_password_grant_with_token_appended(self):
        session = MagicMock()
        client = SalesforceClient(CONFIG, session=session)

        with patch("eventmonitoring.sfdc.PasswordOAuth2Provider") as provider_cls:
            provider_cls.return_value.acquire_token = AsyncMock(return_value=_token())
            token = await client.login()

        oauth_config = provider_cls.call_args[0][0]
        assert oauth_config.password == "hunter2TOKEN"
        assert oauth_config.token_url == "https://login.salesforce.com/services/oauth2/token"
        assert oauth_config.client_id == "client-id"
        provider_cls.return_value.acquire_token.assert_awaited_once_with(session)
        assert token.access_token == "00D!abc"
        assert client.instance_url == INSTANCE

    @pytest.mark.asyncio
    async def test_login_falls_back_to_login_url(self):
        client = SalesforceClient(CONFIG, session=MagicMock())
        token = _token()
        token.instance_url = None

        with patch("eventmonitoring.sfdc.PasswordOAuth2Provider") as provider_cls:
            provider_cls.return_value.acquire_token = AsyncMock(return_value=token)
            await client.login()

        assert client.instance_url == CONFIG.url

    @pytest.mark.asyncio
    async def test_login_without_credentials(self):
        client = SalesforceClient(EventMonitoringConfig(), session=MagicMock())

        with pytest.raises(ConfigurationError):
            await client.login()


class TestQuery:

    @pytest.mark.asyncio
    async def test_single_page(self):
        client = _logged_in_client()
        body = {"done": True, "totalSize": 1, "records": [{"Id": "0AT1"}]}

        with patch("eventmonitoring.sfdc.download_url", new=AsyncMock(return_value=_ok(body))) as get:
            records = await client.query("SELECT Id FROM EventLogFile")

        assert records == [{"Id": "0AT1"}]
        url = get.call_args[0][0]
        assert url.startswith(f"{INSTANCE}/services/data/v58.0/query?q=SELECT+Id+FROM+EventLogFile")
        assert get.call_args[1]["headers"] == {"Authorization": "Bearer 00D!abc"}

    @pytest.mark.asyncio
    async def test_follows_next_records_url(self):
        client = _logged_in_client()
        pages = [
            _ok({"done": False, "records": [{"Id": "1"}], "nextRecordsUrl": "/services/data/v58.0/query/01g-2000"}),
            _ok({"done": True, "records": [{"Id": "2"}]}),
        ]

        with patch("eventmonitoring.sfdc.download_url", new=AsyncMock(side_effect=pages)) as get:
            records = await client.query("SELECT Id FROM EventLogFile")

        assert records == [{"Id": "1"}, {"Id": "2"}]
        assert get.call_args_list[1][0][0] == f"{INSTANCE}/services/data/v58.0/query/01g-2000"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,error_type",
        [(401, AuthError), (400, PermanentError), (503, TransientError), (429, ThrottlingError)],
    )
    async def test_http_errors_are_categorized(self, status, error_type):
        client = _logged_in_client()

        with patch("eventmonitoring.sfdc.download_url", new=AsyncMock(return_value=_failed(status))):
            with pytest.raises(error_type) as exc_info:
                await client.query("SELECT Id FROM EventLogFile")

        assert exc_info.value.context["http_status"] == status

    @pytest.mark.asyncio
    async def test_connection_failure_is_transient(self):
        client = _logged_in_client()
        failure = (None, DownloadError(None, "Connection error: refused", ErrorCategory.TRANSIENT))

        with patch("eventmonitoring.sfdc.download_url", new=AsyncMock(return_value=failure)):
            with pytest.raises(TransientError, match="refused"):
                await client.query("SELECT Id FROM EventLogFile")

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = _logged_in_client()

        with patch("eventmonitoring.sfdc.download_url", new=AsyncMock(return_value=_ok(b"<html>"))):
            with pytest.raises(PermanentError, match="invalid JSON"):
                await client.query("SELECT Id FROM EventLogFile")

    @pytest.mark.asyncio
    async def test_query_before_login(self):
        client = SalesforceClient(CONFIG, session=MagicMock())
        client.instance_url = INSTANCE

        with pytest.raises(AuthError, match="Not logged in"):
            await client.query("SELECT Id FROM EventLogFile")


class TestFetchLogFile:

    @pytest.mark.asyncio
    async def test_fetches_relative_path_from_instance(self):
        client = _logged_in_client()
        log_file = LogFile(
            id="0AT1",
            event_type="API",
            log_file="/services/data/v58.0/sobjects/EventLogFile/0AT1/LogFile",
        )

        with patch(
            "eventmonitoring.sfdc.download_url",
            new=AsyncMock(return_value=_ok(b"EVENT_TYPE\nAPI\n")),
        ) as get:
            content = await client.fetch_log_file(log_file)

        assert content == b"EVENT_TYPE\nAPI\n"
        assert get.call_args[0][0] == f"{INSTANCE}/services/data/v58.0/sobjects/EventLogFile/0AT1/LogFile"

    @pytest.mark.asyncio
    async def test_not_found(self):
        client = _logged_in_client()
        log_file = LogFile(id="0AT9", event_type="API", log_file="/x")

        with patch("eventmonitoring.sfdc.download_url", new=AsyncMock(return_value=_failed(404))):
            with pytest.raises(PermanentError, match="0AT9"):
                await client.fetch_log_file(log_file)


class TestSessionLifecycle:

    @pytest.mark.asyncio
    async def test_owns_and_closes_session(self):
        with patch("eventmonitoring.sfdc.create_session") as create:
            create.return_value.close = AsyncMock()
            async with SalesforceClient(CONFIG) as client:
                assert client.session is create.return_value

        create.return_value.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_external_session_not_closed(self):
        session = MagicMock()
        session.close = AsyncMock()

        async with SalesforceClient(CONFIG, session=session):
            pass

        session.close.assert_not_called()

    def test_session_outside_context(self):
        with pytest.raises(RuntimeError):
            SalesforceClient(CONFIG).session
