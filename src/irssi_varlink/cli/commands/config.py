"""Configuration management commands."""

from pathlib import Path
from typing import Annotated

import click
import typer

from irssi_varlink.cli.console import console, error, success


def register(app: typer.Typer) -> None:
    """Register the config command."""

    @app.command()
    def config(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: show, validate, paths"),
        ] = None,
        path: Annotated[
            Path | None,
            typer.Option(
                "--path",
                "-p",
                help="Path to config file (default: $IRSSI_VARLINK_HOME/varlink.toml)",
            ),
        ] = None,
    ) -> None:
        """Manage configuration."""
        if action is None:
            ctx = click.get_current_context()
            click.echo(ctx.get_help())
            raise typer.Exit(0)

        import tomllib

        from pydantic import ValidationError
        from rich.syntax import Syntax
        from rich.table import Table

        from irssi_varlink.config import load_config
        from irssi_varlink.config.paths import get_all_paths, get_config_path

        expanded_path = path.expanduser() if path else get_config_path()

        if action == "show":
            if not expanded_path.exists():
                error(f"Config file not found: {expanded_path}")
                raise typer.Exit(1)

            content = expanded_path.read_text()
            syntax = Syntax(content, "toml", theme="monokai", line_numbers=True)
            console.print(f"[bold]Config file: {expanded_path}[/bold]\n")
            console.print(syntax)

        elif action == "validate":
            if not expanded_path.exists():
                error(f"Config file not found: {expanded_path}")
                raise typer.Exit(1)

            try:
                config_obj = load_config(expanded_path)
            except tomllib.TOMLDecodeError as e:
                error(f"Invalid TOML: {e}")
                raise typer.Exit(1) from None
            except ValidationError as e:
                error(f"Configuration validation failed:\n{e}")
                raise typer.Exit(1) from None

            table = Table(title="Configuration Summary")
            table.add_column("Setting", style="cyan")
            table.add_column("Value", style="green")
            table.add_row("Socket", str(config_obj.socket_path))
            table.add_row("Socket mode", oct(config_obj.socket_mode))
            table.add_row("Write timeout", str(config_obj.write_timeout))
            for tag, nick in config_obj.server_nicks().items():
                table.add_row(f"Server '{tag}'", nick)
            console.print(table)
            success("Configuration is valid")

        elif action == "paths":
            table = Table(title="Paths")
            table.add_column("Name", style="cyan")
            table.add_column("Path", style="green")
            for name, value in get_all_paths().items():
                table.add_row(name, str(value))
            console.print(table)

        else:
            error(f"Unknown action: {action}")
            raise typer.Exit(1)
