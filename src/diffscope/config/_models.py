# pyright: reportExplicitAny=false, reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Configuration models with typed access.

This module provides the frozen Pydantic section models and the main
:class:`Config` container.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from diffscope.enums import DiffTarget
from diffscope.exceptions import ConfigValidationError

from ._defaults import DEFAULT_CONFIG
from ._loader import deep_merge, parse_env_vars, read_toml_file

if TYPE_CHECKING:
    from pathlib import Path
    from typing import Self


class LogLevel(StrEnum):
    """Log level threshold values."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class ConfigSourceName(StrEnum):
    """Configuration source names in precedence order.

    Values are ordered from highest precedence (CLI) to lowest (DEFAULT).
    """

    CLI = "cli"
    ENV = "env"
    PROJECT = "project"
    USER = "user"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """Represents a configuration source.

    Attributes:
        name: The source type identifier.
        path: Path to the config file, or None for non-file sources.
        exists: Whether the source exists (file exists, or values are present).
        values: Configuration values from this source.
    """

    name: ConfigSourceName
    path: Path | None
    exists: bool
    values: dict[str, Any]


class DetectionConfig(BaseModel):
    """Diff scope selection settings.

    Attributes:
        auto_detect_staged: Choose the diff target from the staging area.
        fallback_to_all: Widen to ALL when nothing is staged.
        preferred_target: Target used when auto-detection is disabled.
        suppress_notifications: Skip non-critical selection notices.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    auto_detect_staged: bool = True
    fallback_to_all: bool = True
    preferred_target: DiffTarget = DiffTarget.AUTO
    suppress_notifications: bool = False


class TimeoutsConfig(BaseModel):
    """Timeout bounds for external calls, in milliseconds."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    provider_probe_ms: int = Field(default=5000, gt=0)
    staged_detection_ms: int = Field(default=10000, gt=0)
    command_ms: int = Field(default=10000, gt=0)


class CacheConfig(BaseModel):
    """Cache lifetimes, in milliseconds. Zero disables a cache."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    repository_ttl_ms: int = Field(default=30000, ge=0)
    staged_ttl_ms: int = Field(default=5000, ge=0)


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.WARNING
    format: LogFormat = LogFormat.JSON
    file: str = ""


def _validation_error(error: ValidationError, source: str | None) -> ConfigValidationError:
    details = error.errors()[0]
    key = ".".join(str(part) for part in details.get("loc", ()))
    ctx = details.get("ctx") or {}
    expected = str(ctx["expected"]) if "expected" in ctx else str(details.get("msg", ""))
    msg = f"Invalid configuration value for '{key}'"
    return ConfigValidationError(
        msg,
        key=key,
        value=details.get("input"),
        expected=expected,
        source=source,
    )


class Config(BaseModel):
    """Configuration container with typed access.

    Use the factory methods rather than the constructor so defaults are
    merged and source tracking is populated.

    Example:
        >>> config = Config.from_dict({"detection": {"fallback_to_all": False}})
        >>> config.detection.fallback_to_all
        False
        >>> config.cache.staged_ttl_ms
        5000
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    detection: DetectionConfig = DetectionConfig()
    timeouts: TimeoutsConfig = TimeoutsConfig()
    cache: CacheConfig = CacheConfig()
    logging: LoggingConfig = LoggingConfig()

    _sources: tuple[ConfigSource, ...] = PrivateAttr(default=())

    @property
    def sources(self) -> list[ConfigSource]:
        """Return the sources that contributed to this configuration.

        Returns:
            List of ConfigSource objects, highest precedence first.
        """
        return list(self._sources)

    @classmethod
    def _build(
        cls,
        merged: dict[str, Any],
        *,
        sources: tuple[ConfigSource, ...] = (),
        source_label: str | None = None,
    ) -> Self:
        try:
            config = cls.model_validate(merged)
        except ValidationError as e:
            raise _validation_error(e, source_label) from e
        config._sources = sources
        return config

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Raises:
            ConfigValidationError: If a value fails validation.
        """
        return cls._build(deep_merge(DEFAULT_CONFIG, data))

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a specific file merged over the defaults.

        Args:
            path: Path to the TOML config file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        data = read_toml_file(path)
        source = ConfigSource(name=ConfigSourceName.PROJECT, path=path, exists=True, values=data)
        return cls._build(
            deep_merge(DEFAULT_CONFIG, data),
            sources=(source,),
            source_label=str(path),
        )

    @classmethod
    def load(
        cls,
        *,
        project_root: Path | None = None,
        include_env: bool = True,
        cli_overrides: dict[str, Any] | None = None,
    ) -> Self:
        """Load merged configuration from all sources.

        Merges in precedence order: defaults, user file, project file,
        environment, CLI overrides.

        Args:
            project_root: Directory holding ``.diffscope.toml``. Project
                config is skipped when None.
            include_env: Include ``DIFFSCOPE_SECTION__KEY`` variables.
            cli_overrides: Nested dict of CLI argument overrides.

        Returns:
            Merged configuration object.

        Raises:
            ConfigLoadError: If config files cannot be parsed.
            ConfigValidationError: If merged config fails validation.
        """
        from ._discovery import discover_sources  # noqa: PLC0415

        sources = discover_sources(
            project_root=project_root,
            include_env=include_env,
            cli_overrides=cli_overrides,
        )

        merged: dict[str, Any] = {}
        loaded: list[ConfigSource] = []
        # Discovered highest-to-lowest, merged lowest-to-highest
        for source in reversed(sources):
            values: dict[str, Any] = source.values
            if source.name == ConfigSourceName.ENV:
                values = parse_env_vars()
            elif source.path is not None and source.exists:
                values = read_toml_file(source.path)

            loaded.append(
                ConfigSource(name=source.name, path=source.path, exists=source.exists, values=values)
            )
            if values:
                merged = deep_merge(merged, values)

        return cls._build(merged, sources=tuple(reversed(loaded)))

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-notation key.

        Examples:
            >>> Config.from_dict({}).get("timeouts.provider_probe_ms")
            5000
            >>> Config.from_dict({}).get("missing.key", "fallback")
            'fallback'
        """
        current: Any = self.model_dump(mode="json")
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current
