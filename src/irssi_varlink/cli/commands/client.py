"""Client commands talking to a running varlink service."""

import json
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer

from irssi_varlink.cli.console import console, dim, error, print_json, success

SocketOption = Annotated[
    Path | None,
    typer.Option(
        "--socket",
        "-s",
        help="Socket path (default: $IRSSI_VARLINK_HOME/varlink.sock)",
    ),
]


def _parse_parameters(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        parameters = json.loads(raw)
    except json.JSONDecodeError as e:
        error(f"Invalid parameters JSON: {e}")
        raise typer.Exit(1) from None
    if not isinstance(parameters, dict):
        error("Parameters must be a JSON object")
        raise typer.Exit(1)
    return parameters


def _format_event(event: dict[str, Any]) -> str:
    from rich.markup import escape

    when = datetime.fromtimestamp(event.get("timestamp") or 0).strftime("%H:%M:%S")
    server, target, nick, message = (
        escape(str(event.get(key) or ""))
        for key in ("server", "target", "nick", "message")
    )
    return (
        f"[dim]{when}[/dim] [cyan]{server}[/cyan] {target} "
        f"[bold]<{nick}>[/bold] {message}"
    )


def register(app: typer.Typer) -> None:
    """Register the client commands."""

    @app.command()
    def call(
        method: Annotated[str, typer.Argument(help="Fully qualified method name")],
        parameters: Annotated[
            str | None,
            typer.Argument(help="Parameters as a JSON object"),
        ] = None,
        more: Annotated[
            bool,
            typer.Option(
                "--more", "-m", help="Keep reading replies while they continue"
            ),
        ] = False,
        socket_path: SocketOption = None,
    ) -> None:
        """Call a method and print the replies as JSON."""
        from irssi_varlink.client import VarlinkClient, VarlinkProtocolError

        params = _parse_parameters(parameters)
        failed = False
        try:
            with VarlinkClient(socket_path) as client:
                client.send(method, params, more=more)
                for reply in client.replies():
                    print_json(reply.to_dict())
                    if reply.error is not None:
                        failed = True
                        break
                    if not (more and reply.continues):
                        break
        except KeyboardInterrupt:
            pass
        except VarlinkProtocolError as e:
            error(str(e))
            raise typer.Exit(1) from None
        except OSError as e:
            error(f"Cannot reach varlink service: {e}")
            raise typer.Exit(1) from None

        if failed:
            raise typer.Exit(1)

    @app.command()
    def info(socket_path: SocketOption = None) -> None:
        """Show service information."""
        from rich.table import Table

        params = _call_or_exit("org.varlink.service.GetInfo", {}, socket_path)

        table = Table(title="Varlink Service")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        for key in ("vendor", "product", "version", "url"):
            table.add_row(key, str(params.get(key, "")))
        table.add_row("interfaces", ", ".join(params.get("interfaces", [])))
        console.print(table)

    @app.command()
    def send(
        target: Annotated[str, typer.Argument(help="Channel or nick")],
        message: Annotated[str, typer.Argument(help="Message text")],
        server: Annotated[
            str, typer.Option("--server", "-S", help="Server tag")
        ],
        socket_path: SocketOption = None,
    ) -> None:
        """Send a message through a server connection."""
        _call_or_exit(
            "org.irssi.varlink.SendMessage",
            {"target": target, "message": message, "server": server},
            socket_path,
        )
        success(f"Sent to {target} on {server}")

    @app.command()
    def watch(socket_path: SocketOption = None) -> None:
        """Print message events as they arrive."""
        from irssi_varlink.client import (
            VarlinkCallError,
            VarlinkClient,
            VarlinkProtocolError,
        )
        from irssi_varlink.protocol import ErrorName

        try:
            with VarlinkClient(socket_path) as client:
                for params in client.stream("org.irssi.varlink.WaitForEvent"):
                    event = params.get("event", {})
                    console.print(_format_event(event), highlight=False)
        except KeyboardInterrupt:
            pass
        except VarlinkCallError as e:
            if e.error == ErrorName.SERVICE_SHUTDOWN:
                dim("Service is shutting down")
                return
            error(str(e))
            raise typer.Exit(1) from None
        except VarlinkProtocolError as e:
            error(str(e))
            raise typer.Exit(1) from None
        except OSError as e:
            error(f"Cannot reach varlink service: {e}")
            raise typer.Exit(1) from None


def _call_or_exit(
    method: str, parameters: dict[str, Any], socket_path: Path | None
) -> dict[str, Any]:
    from irssi_varlink.client import (
        VarlinkCallError,
        VarlinkProtocolError,
        varlink_call,
    )

    try:
        return varlink_call(method, parameters, socket_path=socket_path)
    except (VarlinkCallError, VarlinkProtocolError) as e:
        error(str(e))
        raise typer.Exit(1) from None
    except OSError as e:
        error(f"Cannot reach varlink service: {e}")
        raise typer.Exit(1) from None
