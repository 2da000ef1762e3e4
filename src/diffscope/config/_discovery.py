"""Configuration source discovery.

This module locates the user and project configuration files and lists every
source in precedence order.
"""

from pathlib import Path
from typing import Any

import platformdirs

from ._defaults import DEFAULT_CONFIG
from ._models import ConfigSource, ConfigSourceName

PROJECT_CONFIG_NAME = ".diffscope.toml"


def get_user_config_path() -> Path:
    r"""Get platform-specific user config file path.

    - Linux: ``$XDG_CONFIG_HOME/diffscope/config.toml`` (``~/.config`` by default)
    - macOS: ``~/Library/Application Support/diffscope/config.toml``
    - Windows: ``%APPDATA%\diffscope\config.toml``

    The path is returned regardless of whether the file exists.
    """
    return platformdirs.user_config_path("diffscope") / "config.toml"


def get_project_config_path(project_root: Path) -> Path:
    """Get the project config file path for a workspace root."""
    return project_root / PROJECT_CONFIG_NAME


def _file_exists(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


def discover_sources(
    project_root: Path | None = None,
    *,
    include_env: bool = True,
    cli_overrides: dict[str, Any] | None = None,  # pyright: ignore[reportExplicitAny]
) -> list[ConfigSource]:
    """Discover all configuration sources.

    Args:
        project_root: Workspace root holding ``.diffscope.toml``; the project
            source is omitted when None.
        include_env: Include environment variables as a source.
        cli_overrides: CLI argument overrides; the CLI source is omitted when
            None.

    Returns:
        List of ConfigSource objects in precedence order (highest first).
        File sources that don't exist are still included with exists=False.
    """
    sources: list[ConfigSource] = []

    if cli_overrides is not None:
        sources.append(
            ConfigSource(
                name=ConfigSourceName.CLI,
                path=None,
                exists=bool(cli_overrides),
                values=cli_overrides,
            )
        )

    if include_env:
        sources.append(
            ConfigSource(
                name=ConfigSourceName.ENV,
                path=None,
                exists=True,  # Actual values parsed during loading phase
                values={},
            )
        )

    if project_root is not None:
        project_path = get_project_config_path(project_root)
        sources.append(
            ConfigSource(
                name=ConfigSourceName.PROJECT,
                path=project_path,
                exists=_file_exists(project_path),
                values={},
            )
        )

    user_path = get_user_config_path()
    sources.append(
        ConfigSource(
            name=ConfigSourceName.USER,
            path=user_path,
            exists=_file_exists(user_path),
            values={},
        )
    )

    sources.append(
        ConfigSource(
            name=ConfigSourceName.DEFAULT,
            path=None,
            exists=True,
            values=DEFAULT_CONFIG,
        )
    )

    return sources
