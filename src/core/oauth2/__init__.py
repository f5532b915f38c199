"""
OAuth2 token acquisition.

Usage:
    from core.oauth2 import OAuth2Config, PasswordOAuth2Provider

    provider = PasswordOAuth2Provider(
        OAuth2Config(
            provider_name="salesforce",
            client_id=os.getenv("SFDC_CLIENT_ID"),
            client_secret=os.getenv("SFDC_CLIENT_SECRET"),
            token_url="https://login.salesforce.com/services/oauth2/token",
            username=username,
            password=password + security_token,
        )
    )
    token = await provider.acquire_token(session)
    headers = {"Authorization": token.authorization_header}
"""

from core.oauth2.exceptions import (
    InvalidConfigurationError,
    OAuth2Error,
    TokenAcquisitionError,
)
from core.oauth2.models import OAuth2Config, OAuth2Token
from core.oauth2.provider import PasswordOAuth2Provider

__all__ = [
    # Providers
    "PasswordOAuth2Provider",
    # Models
    "OAuth2Token",
    "OAuth2Config",
    # Exceptions
    "OAuth2Error",
    "TokenAcquisitionError",
    "InvalidConfigurationError",
]
