"""eventmonitoring configuration.

Settings are merged from, lowest to highest priority:

1. Dataclass defaults
2. The user config file (``~/.eventmonitoring`` or ``--config``), YAML or JSON
3. Solenopsis credentials (``~/.solenopsis/credentials/<env>.properties``)
4. Environment variables (SFDC_USERNAME, SFDC_PASSWORD, ...)
5. CLI arguments that were explicitly provided

Environment variables ARE supported using ${VAR_NAME} syntax in the config file.
The result is a frozen EventMonitoringConfig, built once per process and
passed explicitly to every command.
"""

import configparser
import logging
import os
import re
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union, get_args, get_origin, get_type_hints

import yaml

from config.config_validator import find_plaintext_secrets
from core.errors.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".eventmonitoring"
SOLENOPSIS_CREDENTIALS_DIR = Path(".solenopsis") / "credentials"
SOLENOPSIS_FIELDS = ("username", "password", "token", "url")

DEFAULT_LOGIN_URL = "https://login.salesforce.com"
DEFAULT_API_VERSION = "58.0"

TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})
FALSE_STRINGS = frozenset({"false", "no", "off", "0"})

# Environment variable -> config field
ENV_VARS: Dict[str, str] = {
    "SFDC_USERNAME": "username",
    "SFDC_PASSWORD": "password",
    "SFDC_TOKEN": "token",
    "SFDC_URL": "url",
    "SFDC_CLIENT_ID": "client_id",
    "SFDC_CLIENT_SECRET": "client_secret",
    "SFDC_API_VERSION": "api_version",
    "EVENTMONITORING_CACHE": "cache",
}


def get_user_home() -> Path:
    return Path.home()


def get_config_path() -> Path:
    """Default location of the user config file."""
    return get_user_home() / CONFIG_FILE_NAME


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML (or JSON) file and return dict; a missing file yields {}."""
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Unable to parse config file {path}: {e}", cause=e) from e
    except OSError as e:
        raise ConfigurationError(f"Unable to read config file {path}: {e}", cause=e) from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        # Support both ${VAR} and ${VAR:-default} syntax
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


@dataclass(frozen=True)
class EventMonitoringConfig:
    """Settings for one eventmonitoring invocation.

    Credentials:
        username, password, token: Salesforce login; the security token is
            appended to the password for the OAuth2 password grant
        url: Login host (default: https://login.salesforce.com)
        client_id, client_secret: Connected app used for the OAuth2 login
        api_version: REST API version used for queries

    Logging:
        logformat: "console" or "json"
        debug: Log at DEBUG level
        logfile: Optional file receiving a copy of every log line

    Cache:
        cache: Directory of cached raw log files; required by cache commands

    Dump:
        type: EventLogFile event type to dump (None = every type)
        format: "json" or "csv"
        file: Output path; None writes to stdout
        split: Write one file per event type

    Cache purge window:
        start, end, date: ISO-8601 strings resolved by eventmonitoring.dates

    Behaviour:
        fail_on_error: Exit non-zero when a command logged a failure
        timeout_seconds: Per-request HTTP timeout
        max_concurrent_downloads: Log files fetched at once
    """

    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None
    url: str = DEFAULT_LOGIN_URL
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    api_version: str = DEFAULT_API_VERSION

    logformat: str = "console"
    debug: bool = False
    logfile: Optional[str] = None

    cache: Optional[str] = None

    type: Optional[str] = None
    format: str = "json"
    file: Optional[str] = None
    split: bool = False

    start: Optional[str] = None
    end: Optional[str] = None
    date: Optional[str] = None

    fail_on_error: bool = False
    timeout_seconds: int = 120
    max_concurrent_downloads: int = 5

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    @property
    def cache_dir(self) -> Optional[Path]:
        if not self.cache:
            return None
        return Path(self.cache).expanduser()

    @property
    def login_password(self) -> str:
        """Password with the security token appended, as the password grant expects."""
        return f"{self.password or ''}{self.token or ''}"

    @property
    def token_url(self) -> str:
        return f"{self.url.rstrip('/')}/services/oauth2/token"

    def merged(self, overrides: Mapping[str, Any]) -> "EventMonitoringConfig":
        """Return a copy with the non-None known keys of ``overrides`` applied."""
        known = self.field_names()
        values = {k: v for k, v in overrides.items() if k in known and v is not None}
        return replace(self, **values) if values else self


def load_solenopsis_credentials(env: str, home: Optional[Path] = None) -> Dict[str, str]:
    """Read username/password/token/url from a Solenopsis properties file.

    Raises:
        ConfigurationError: If the credentials file cannot be read
    """
    path = (home or get_user_home()) / SOLENOPSIS_CREDENTIALS_DIR / f"{env}.properties"
    parser = configparser.ConfigParser(interpolation=None, delimiters=("=",))
    try:
        text = path.read_text(encoding="utf-8")
        parser.read_string(f"[solenopsis]\n{text}", source=str(path))
    except OSError as e:
        raise ConfigurationError(
            f"Unable to read Solenopsis credentials for '{env}': {e}",
            setting="env",
            cause=e,
        ) from e
    except configparser.Error as e:
        raise ConfigurationError(
            f"Malformed Solenopsis credentials file {path}: {e}",
            setting="env",
            cause=e,
        ) from e

    section = parser["solenopsis"]
    return {key: section[key].strip() for key in SOLENOPSIS_FIELDS if key in section}


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, str]:
    return {field: environ[var] for var, field in ENV_VARS.items() if environ.get(var)}


def _field_type(annotation: Any) -> Any:
    """``Optional[X]`` -> ``X``; other annotations unchanged."""
    if get_origin(annotation) is Union:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _coerce_value(name: str, value: Any, expected: Any) -> Any:
    """Convert a config file value to the field's type.

    Raises:
        ConfigurationError: If the value cannot represent that type
    """
    if value is None:
        return None

    if expected is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            text = value.strip().lower()
            if text in TRUE_STRINGS:
                return True
            if text in FALSE_STRINGS:
                return False
        raise ConfigurationError(
            f"Config key '{name}' must be true or false, got {value!r}", setting=name
        )

    if expected is int:
        if isinstance(value, bool) or isinstance(value, (dict, list)):
            raise ConfigurationError(
                f"Config key '{name}' must be an integer, got {value!r}", setting=name
            )
        try:
            return int(str(value).strip())
        except ValueError:
            raise ConfigurationError(
                f"Config key '{name}' must be an integer, got {value!r}", setting=name
            ) from None

    if expected is str:
        if isinstance(value, (dict, list)):
            raise ConfigurationError(
                f"Config key '{name}' must be a string, got {type(value).__name__}",
                setting=name,
            )
        return str(value)

    return value


def _coerce_values(values: Mapping[str, Any]) -> Dict[str, Any]:
    hints = get_type_hints(EventMonitoringConfig)
    return {k: _coerce_value(k, v, _field_type(hints[k])) for k, v in values.items()}


def _file_overrides(path: Path) -> Dict[str, Any]:
    raw = load_yaml(path)
    if not raw:
        return {}

    known = EventMonitoringConfig.field_names()
    unknown = sorted(set(raw) - known)
    if unknown:
        logger.warning(
            "Ignoring unknown config keys",
            extra={"file": str(path), "error_message": ", ".join(unknown)},
        )

    plaintext = find_plaintext_secrets(raw)
    if plaintext:
        logger.warning(
            "Config file stores secrets in plain text; prefer ${VAR} placeholders",
            extra={"file": str(path), "error_message": ", ".join(plaintext)},
        )

    data = _expand_env_vars(raw)
    return _coerce_values({k: v for k, v in data.items() if k in known})


def load_config(
    config_path: Optional[Path] = None,
    args: Optional[Mapping[str, Any]] = None,
    env_name: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> EventMonitoringConfig:
    """Build the configuration for one invocation.

    Args:
        config_path: Config file; defaults to ~/.eventmonitoring (missing is fine)
        args: Parsed CLI arguments; None values are treated as "not given"
        env_name: Solenopsis environment whose credentials should be loaded
        environ: Environment mapping (default: os.environ)
        home: Home directory override (default: Path.home())

    Raises:
        ConfigurationError: If a source exists but cannot be read or parsed
    """
    environ = os.environ if environ is None else environ
    home = home or get_user_home()
    path = Path(config_path).expanduser() if config_path else home / CONFIG_FILE_NAME

    config = EventMonitoringConfig()

    file_values = _file_overrides(path)
    if file_values:
        logger.debug("Loaded config file", extra={"file": str(path)})
    config = config.merged(file_values)

    if env_name:
        config = config.merged(load_solenopsis_credentials(env_name, home=home))

    config = config.merged(_env_overrides(environ))

    if args:
        config = config.merged(args)

    return config


__all__ = [
    "EventMonitoringConfig",
    "load_config",
    "load_solenopsis_credentials",
    "load_yaml",
    "get_config_path",
    "CONFIG_FILE_NAME",
    "ENV_VARS",
]
