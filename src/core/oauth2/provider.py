"""OAuth2 provider for the username-password grant."""

import logging

import aiohttp

from core.oauth2.exceptions import (
    InvalidConfigurationError,
    TokenAcquisitionError,
)
from core.oauth2.models import OAuth2Config, OAuth2Token

logger = logging.getLogger(__name__)


class PasswordOAuth2Provider:
    """
    OAuth2 provider using the resource owner password grant.

    This is the flow Salesforce exposes for scripted logins: the connected
    app credentials plus the user's password with the security token
    appended.
    """

    def __init__(self, config: OAuth2Config):
        self.provider_name = config.provider_name

        missing = [
            name
            for name in ("client_id", "client_secret", "token_url", "username", "password")
            if not getattr(config, name)
        ]
        if missing:
            raise InvalidConfigurationError(
                f"OAuth2 settings missing: {', '.join(missing)}",
                setting=missing[0],
            )

        self.config = config

        logger.debug(
            f"Initialized password OAuth2 provider '{config.provider_name}'",
            extra={"http_url": config.token_url},
        )

    async def acquire_token(self, session: aiohttp.ClientSession) -> OAuth2Token:
        """
        Acquire token using the password grant.

        Args:
            session: Session used for the token request (caller owns it)

        Returns:
            OAuth2Token with access token and instance URL

        Raises:
            TokenAcquisitionError: If token acquisition fails
        """
        request_data = {
            "grant_type": "password",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "username": self.config.username,
            "password": self.config.password,
        }

        if self.config.additional_params:
            request_data.update(self.config.additional_params)

        try:
            async with session.post(
                self.config.token_url,
                data=request_data,
                timeout=aiohttp.ClientTimeout(total=30),
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    logger.debug(
                        f"Token acquisition failed for '{self.provider_name}': "
                        f"HTTP {response.status}",
                        extra={"http_status": response.status},
                    )
                    raise TokenAcquisitionError(
                        f"Login rejected for '{self.provider_name}': "
                        f"HTTP {response.status}: {error_text[:200]}",
                        context={"http_status": response.status},
                    )

                response_data = await response.json()

        except aiohttp.ClientError as e:
            raise TokenAcquisitionError(
                f"HTTP error during token acquisition for '{self.provider_name}': {e}",
                cause=e,
            ) from e

        if "access_token" not in response_data:
            raise TokenAcquisitionError(
                f"Token response for '{self.provider_name}' has no access_token"
            )

        logger.debug(
            f"Acquired token for '{self.provider_name}'",
            extra={"instance_url": response_data.get("instance_url")},
        )
        return OAuth2Token.from_response(response_data)


__all__ = ["PasswordOAuth2Provider"]
