"""Configuration loading from TOML files and environment variables."""

import os
import tomllib
from pathlib import Path
from typing import Any

from irssi_varlink.config.models import VarlinkConfig
from irssi_varlink.config.paths import SOCKET_ENV_VAR, get_config_path


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("varlink.toml"),  # Current directory
        get_config_path(),  # ~/.irssi/varlink.toml (or IRSSI_VARLINK_HOME)
        Path("/etc/irssi-varlink/varlink.toml"),  # System-wide
    ]


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Environment settings win over the file."""
    if socket_path := os.environ.get(SOCKET_ENV_VAR):
        config["socket_path"] = socket_path
    return config


def find_config_path(path: Path | None = None) -> Path | None:
    """Locate the config file to load.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
    """
    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return config_path

    for default_path in _get_default_config_paths():
        expanded = default_path.expanduser()
        if expanded.exists():
            return expanded
    return None


def load_config(path: Path | None = None) -> VarlinkConfig:
    """Load configuration from a TOML file.

    Every setting has a default, so a missing config file is not an error
    unless an explicit path was given.

    Args:
        path: Explicit path to config file. If None, searches default locations.

    Returns:
        Validated VarlinkConfig instance.

    Raises:
        FileNotFoundError: If an explicit config path does not exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
        pydantic.ValidationError: If a value is invalid.
    """
    config_path = find_config_path(path)

    raw_config: dict[str, Any] = {}
    if config_path is not None:
        with config_path.open("rb") as f:
            raw_config = tomllib.load(f)

    raw_config = _apply_env_overrides(raw_config)

    return VarlinkConfig.model_validate(raw_config)
