"""Configuration validation.

Checks that the settings a command needs are present before any network or
file system work starts, and flags secrets stored in plain text in the
user config file.
"""

import re
from typing import Any, Dict, List

from core.errors.exceptions import ConfigurationError

# Patterns that indicate a field contains secret data
SECRET_PATTERNS: List[str] = [
    r"token",
    r"password",
    r"secret",
]

# ${VAR} or ${VAR:-default} placeholder
_ENV_PLACEHOLDER = re.compile(r"^\$\{[^}]+\}$")

_SECRET_RES = [re.compile(pattern, re.IGNORECASE) for pattern in SECRET_PATTERNS]

REQUIRED_CREDENTIALS = ("username", "password", "client_id", "client_secret", "url")


def find_plaintext_secrets(data: Dict[str, Any]) -> List[str]:
    """Return the keys of ``data`` that look like secrets stored literally.

    Must be called on the raw file content, before ${VAR} expansion; a
    value is accepted only when it is empty or a ${VAR} placeholder.
    """
    flagged = []
    for key, value in data.items():
        if not isinstance(value, str) or not value:
            continue
        if not any(pattern.search(key) for pattern in _SECRET_RES):
            continue
        if _ENV_PLACEHOLDER.match(value):
            continue
        flagged.append(key)
    return sorted(flagged)


def require_cache_dir(config) -> None:
    """Raise ConfigurationError if no cache directory is configured."""
    if not config.cache:
        raise ConfigurationError(
            "Cache options are not valid without cache folder being set",
            setting="cache",
        )


def require_credentials(config) -> None:
    """Raise ConfigurationError naming every missing login setting."""
    missing = [name for name in REQUIRED_CREDENTIALS if not getattr(config, name)]
    if missing:
        raise ConfigurationError(
            f"Missing Salesforce login settings: {', '.join(missing)}",
            setting=missing[0],
        )


__all__ = [
    "find_plaintext_secrets",
    "require_cache_dir",
    "require_credentials",
    "REQUIRED_CREDENTIALS",
]
