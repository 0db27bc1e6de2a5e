"""Configuration module."""

from irssi_varlink.config.loader import find_config_path, load_config
from irssi_varlink.config.models import ServerEntry, VarlinkConfig
from irssi_varlink.config.paths import (
    get_config_path,
    get_home,
    get_logs_path,
    get_socket_path,
)

__all__ = [
    "ServerEntry",
    "VarlinkConfig",
    "find_config_path",
    "get_config_path",
    "get_home",
    "get_logs_path",
    "get_socket_path",
    "load_config",
]
