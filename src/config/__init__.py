"""Configuration loading for eventmonitoring.

Main Functions
--------------

    - load_config(): Merge defaults, config file, Solenopsis credentials,
      environment variables and CLI arguments into an EventMonitoringConfig
    - load_solenopsis_credentials(): Read a Solenopsis properties file
    - require_cache_dir() / require_credentials(): Eager validation

Usage Examples
--------------

    >>> from config import load_config
    >>>
    >>> config = load_config(args={"format": "csv", "file": "out.csv"})
    >>> config.format
    'csv'

Configuration Priority
----------------------

Settings are merged in the following priority (highest to lowest):

1. CLI arguments that were explicitly provided
2. Environment variables (SFDC_USERNAME, SFDC_PASSWORD, SFDC_TOKEN, ...)
3. Solenopsis credentials when an environment name is given
4. ~/.eventmonitoring (YAML or JSON)
5. Dataclass defaults

The result is frozen; commands receive it as an argument.
"""

from config.config import (
    CONFIG_FILE_NAME,
    ENV_VARS,
    EventMonitoringConfig,
    get_config_path,
    load_config,
    load_solenopsis_credentials,
)
from config.config_validator import (
    find_plaintext_secrets,
    require_cache_dir,
    require_credentials,
)

__all__ = [
    "EventMonitoringConfig",
    "load_config",
    "load_solenopsis_credentials",
    "get_config_path",
    "CONFIG_FILE_NAME",
    "ENV_VARS",
    "find_plaintext_secrets",
    "require_cache_dir",
    "require_credentials",
]
