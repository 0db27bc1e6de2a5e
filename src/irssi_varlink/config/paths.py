"""Centralized path management for irssi-varlink.

Everything lives under the host's data directory. The base directory can be
overridden with the IRSSI_VARLINK_HOME environment variable.

Default locations:
- ~/.irssi/varlink.sock   listening socket
- ~/.irssi/varlink.toml   optional configuration
- ~/.irssi/logs/          JSONL logs (serve --log-file)
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "IRSSI_VARLINK_HOME"
SOCKET_ENV_VAR = "IRSSI_VARLINK_SOCKET"


@lru_cache(maxsize=1)
def get_home() -> Path:
    """Get the base directory for irssi-varlink data.

    Resolution order:
    1. IRSSI_VARLINK_HOME environment variable (if set)
    2. The irssi home directory (~/.irssi)
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()

    return Path.home() / ".irssi"


def get_socket_path() -> Path:
    """Get the varlink socket path.

    IRSSI_VARLINK_SOCKET takes precedence over the home directory default.
    """
    if env_socket := os.environ.get(SOCKET_ENV_VAR):
        return Path(env_socket).expanduser()
    return get_home() / "varlink.sock"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_home() / "varlink.toml"


def get_logs_path() -> Path:
    """Get the default logs directory path."""
    return get_home() / "logs"


def get_all_paths() -> dict[str, Path]:
    """Get all standard paths for display."""
    return {
        "home": get_home(),
        "socket": get_socket_path(),
        "config": get_config_path(),
        "logs": get_logs_path(),
    }
