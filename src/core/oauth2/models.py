"""OAuth2 data models and configuration."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

# Salesforce does not return expires_in; sessions default to two hours
DEFAULT_EXPIRES_IN_SECONDS = 7200


@dataclass
class OAuth2Token:
    """
    OAuth2 access token with expiration tracking.

    Attributes:
        access_token: The access token string
        token_type: Token type (typically "Bearer")
        expires_at: UTC timestamp when token expires
        instance_url: Base URL of the org that issued the token
        scope: Space-separated scopes granted
        refresh_token: Optional refresh token for token renewal
    """

    access_token: str
    token_type: str
    expires_at: datetime
    instance_url: str | None = None
    scope: str | None = None
    refresh_token: str | None = None

    @classmethod
    def from_response(cls, response: dict, expires_in: int | None = None) -> "OAuth2Token":
        """
        Create token from OAuth2 token response.

        Args:
            response: OAuth2 token response dict
            expires_in: Optional override for expires_in (seconds)

        Returns:
            OAuth2Token instance
        """
        expires_in = expires_in or int(response.get("expires_in", DEFAULT_EXPIRES_IN_SECONDS))
        expires_at = datetime.now(UTC) + timedelta(seconds=expires_in)

        return cls(
            access_token=response["access_token"],
            token_type=response.get("token_type", "Bearer"),
            expires_at=expires_at,
            instance_url=response.get("instance_url"),
            scope=response.get("scope"),
            refresh_token=response.get("refresh_token"),
        )

    @property
    def authorization_header(self) -> str:
        return f"{self.token_type or 'Bearer'} {self.access_token}"


@dataclass
class OAuth2Config:
    """
    Username-password OAuth2 configuration.

    Attributes:
        provider_name: Identifier used in log messages
        client_id: Connected app consumer key
        client_secret: Connected app consumer secret
        token_url: Token endpoint URL
        username: Login username
        password: Login password, with the security token already appended
        additional_params: Additional parameters for token request
    """

    provider_name: str
    client_id: str
    client_secret: str
    token_url: str
    username: str
    password: str
    additional_params: dict[str, str] | None = None


__all__ = ["OAuth2Token", "OAuth2Config", "DEFAULT_EXPIRES_IN_SECONDS"]
