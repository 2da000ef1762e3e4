import os
import sys
from typing import TYPE_CHECKING

from diffscope.exceptions import ConfigError

from ._models import Config

if TYPE_CHECKING:
    from pathlib import Path

STRICT_ENV_VAR = "DIFFSCOPE_STRICT_CONFIG"


def safe_load_config(
    *,
    config_path: Path | None = None,
    project_root: Path | None = None,
    cli_overrides: dict[str, object] | None = None,
) -> tuple[Config, str | None]:
    """Load configuration with error handling.

    Handles errors based on the DIFFSCOPE_STRICT_CONFIG environment variable:
    - If unset or "0": warn to stderr and return the default config
    - If "1": re-raise the error

    An explicit ``config_path`` must exist; a missing file always raises.

    Args:
        config_path: Explicit path to config file (--config flag).
        project_root: Workspace root holding ``.diffscope.toml``.
        cli_overrides: CLI argument overrides to pass to Config.load().

    Returns:
        Tuple of (Config, error_message). On success, error_message is None.
        On failure (non-strict mode), returns default Config with error message.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ConfigError: In strict mode, if loading fails.
        OSError: In strict mode, if a config file cannot be read.
    """
    strict_mode = os.environ.get(STRICT_ENV_VAR, "0") == "1"

    if config_path is not None and not config_path.exists():
        msg = f"Config file not found: {config_path}"
        raise FileNotFoundError(msg)

    try:
        if config_path is not None:
            return Config.from_file(config_path), None
        config = Config.load(project_root=project_root, cli_overrides=cli_overrides)
    except (ConfigError, OSError) as e:
        if strict_mode:
            raise
        error_msg = str(e)
        print(f"Warning: Failed to load config: {error_msg}", file=sys.stderr)  # noqa: T201
        return Config.from_dict({}), error_msg
    else:
        return config, None
