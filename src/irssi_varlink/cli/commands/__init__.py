"""CLI command modules."""

from irssi_varlink.cli.commands import client, config, serve

__all__ = [
    "client",
    "config",
    "serve",
]
