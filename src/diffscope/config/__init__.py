"""diffscope configuration.

Layered TOML and environment configuration with typed, frozen access.

Example:
    >>> from diffscope.config import Config
    >>> config = Config.from_dict({})
    >>> config.detection.preferred_target
    <DiffTarget.AUTO: 'auto'>
"""

from diffscope.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG
from ._discovery import (
    PROJECT_CONFIG_NAME,
    discover_sources,
    get_project_config_path,
    get_user_config_path,
)
from ._load import STRICT_ENV_VAR, safe_load_config
from ._loader import deep_merge, parse_env_vars, parse_string_value, read_toml_file, set_nested_key
from ._models import (
    CacheConfig,
    Config,
    ConfigSource,
    ConfigSourceName,
    DetectionConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    TimeoutsConfig,
)

__all__ = [
    "DEFAULT_CONFIG",
    "PROJECT_CONFIG_NAME",
    "STRICT_ENV_VAR",
    "CacheConfig",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigSource",
    "ConfigSourceName",
    "ConfigValidationError",
    "DetectionConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "TimeoutsConfig",
    "deep_merge",
    "discover_sources",
    "get_project_config_path",
    "get_user_config_path",
    "parse_env_vars",
    "parse_string_value",
    "read_toml_file",
    "safe_load_config",
    "set_nested_key",
]
