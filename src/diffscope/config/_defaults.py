"""Default configuration values.

This module defines the built-in default configuration values that are used
when no other configuration sources provide values.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "detection": {
        "auto_detect_staged": True,
        "fallback_to_all": True,
        "preferred_target": "auto",
        "suppress_notifications": False,
    },
    "timeouts": {
        "provider_probe_ms": 5000,
        "staged_detection_ms": 10000,
        "command_ms": 10000,
    },
    "cache": {
        "repository_ttl_ms": 30000,
        "staged_ttl_ms": 5000,
    },
    "logging": {
        "level": "warning",
        "format": "json",
        "file": "",
    },
}
