"""
Salesforce REST API client.

Thin async wrapper over one aiohttp session: OAuth2 password login, SOQL
query with pagination, and download of EventLogFile bodies. HTTP failures
are raised as categorized PipelineError subclasses.

Usage:
    async with SalesforceClient(config) as client:
        await client.login()
        records = await client.query(queries.get_all_logs("API"))
"""

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import aiohttp

from config.config import EventMonitoringConfig
from config.config_validator import require_credentials
from core.download import DownloadError, create_session, download_url
from core.errors.exceptions import (
    AuthError,
    PermanentError,
    PipelineError,
    TransientError,
    error_for_http_status,
)
from core.oauth2 import OAuth2Config, OAuth2Token, PasswordOAuth2Provider
from core.types import ErrorCategory
from eventmonitoring.models import LogFile, Record

logger = logging.getLogger(__name__)


def _raise_download_error(error: DownloadError, action: str, url: str) -> None:
    context = {"http_url": url}
    message = f"{action} failed: {error.error_message}"
    if error.status_code is not None:
        context["http_status"] = error.status_code
        raise error_for_http_status(error.status_code, message, context=context)
    if error.error_category == ErrorCategory.TRANSIENT:
        raise TransientError(message, context=context)
    raise PipelineError(message, context=context)


class SalesforceClient:
    """
    Salesforce REST client bound to one configuration.

    Args:
        config: Invocation settings (credentials, API version, timeouts)
        session: Existing session to use; when None the client creates and
            closes its own
    """

    def __init__(
        self,
        config: EventMonitoringConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config
        self._session = session
        self._owns_session = session is None
        self.token: Optional[OAuth2Token] = None
        self.instance_url: Optional[str] = None

    async def __aenter__(self) -> "SalesforceClient":
        if self._session is None:
            self._session = create_session(
                max_connections=max(self.config.max_concurrent_downloads, 1) * 2,
                timeout_total=self.config.timeout_seconds,
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("SalesforceClient used outside 'async with'")
        return self._session

    def _auth_headers(self) -> Dict[str, str]:
        if self.token is None:
            raise AuthError("Not logged in to Salesforce")
        return {"Authorization": self.token.authorization_header}

    def _absolute(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.instance_url.rstrip('/')}/{path.lstrip('/')}"

    async def login(self) -> OAuth2Token:
        """
        Log in with the OAuth2 username-password flow.

        Raises:
            ConfigurationError: If a login setting is missing
            TokenAcquisitionError: If Salesforce rejects the login
        """
        require_credentials(self.config)

        provider = PasswordOAuth2Provider(
            OAuth2Config(
                provider_name=self.config.username,
                client_id=self.config.client_id,
                client_secret=self.config.client_secret,
                token_url=self.config.token_url,
                username=self.config.username,
                password=self.config.login_password,
            )
        )
        self.token = await provider.acquire_token(self.session)
        self.instance_url = self.token.instance_url or self.config.url

        logger.info(
            "Logged in to Salesforce",
            extra={"instance_url": self.instance_url},
        )
        return self.token

    async def _get_json(self, url: str, action: str) -> Dict[str, Any]:
        response, error = await download_url(
            url,
            self.session,
            timeout=self.config.timeout_seconds,
            headers=self._auth_headers(),
        )
        if error is not None:
            _raise_download_error(error, action, url)

        try:
            return json.loads(response.content)
        except ValueError as e:
            raise PermanentError(
                f"{action} returned invalid JSON: {e}",
                cause=e,
                context={"http_url": url},
            ) from e

    async def query(self, soql: str) -> List[Record]:
        """
        Run a SOQL query and return every record across all result pages.

        Raises:
            PipelineError: Categorized HTTP or response error
        """
        url = self._absolute(
            f"/services/data/v{self.config.api_version}/query?{urlencode({'q': soql})}"
        )
        records: List[Record] = []
        page = 0

        while url:
            page += 1
            body = await self._get_json(url, "Query")
            records.extend(body.get("records", []))

            next_url = body.get("nextRecordsUrl")
            url = self._absolute(next_url) if not body.get("done", True) and next_url else None

        logger.debug(
            "Query complete",
            extra={"query": soql, "records": len(records), "api_endpoint": f"pages={page}"},
        )
        return records

    async def fetch_log_file(self, log_file: LogFile) -> bytes:
        """
        Download the raw CSV body of one EventLogFile.

        Raises:
            PipelineError: Categorized HTTP error
        """
        url = self._absolute(log_file.log_file)
        response, error = await download_url(
            url,
            self.session,
            timeout=self.config.timeout_seconds,
            headers=self._auth_headers(),
        )
        if error is not None:
            _raise_download_error(error, f"Download of log file {log_file.id}", url)

        logger.debug(
            "Downloaded log file",
            extra={
                "log_file_id": log_file.id,
                "bytes_downloaded": len(response.content),
            },
        )
        return response.content


__all__ = ["SalesforceClient"]
