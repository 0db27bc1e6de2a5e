"""Server command for running a standalone varlink service."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer

logger = logging.getLogger(__name__)


def register(app: typer.Typer) -> None:
    """Register the serve command."""

    @app.command()
    def serve(
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
        socket_path: Annotated[
            Path | None,
            typer.Option(
                "--socket",
                "-s",
                help="Socket path (default: $IRSSI_VARLINK_HOME/varlink.sock)",
            ),
        ] = None,
        log_file: Annotated[
            bool,
            typer.Option(
                "--log-file",
                help="Also write JSONL logs to $IRSSI_VARLINK_HOME/logs",
            ),
        ] = False,
    ) -> None:
        """Run the varlink service with servers from the config file.

        Outgoing messages are logged instead of sent; events can be injected
        with the TestEvent method.
        """
        from irssi_varlink.cli.console import error
        from irssi_varlink.server import VarlinkStartupError

        try:
            asyncio.run(_run_server(config, socket_path, log_file))
        except VarlinkStartupError as e:
            error(str(e))
            raise typer.Exit(1) from None
        except FileNotFoundError as e:
            error(str(e))
            raise typer.Exit(1) from None
        except KeyboardInterrupt:
            # Use print here since logging may not be configured yet
            print("\nServer stopped")


async def _run_server(
    config_path: Path | None = None,
    socket_path: Path | None = None,
    log_file: bool = False,
) -> None:
    """Run the service until SIGINT/SIGTERM."""
    import signal as signal_module

    from irssi_varlink.logging import configure_logging

    configure_logging(use_rich=True, log_to_file=log_file)

    from irssi_varlink.bridge import VarlinkBridge
    from irssi_varlink.config import load_config
    from irssi_varlink.host import StaticServerRegistry
    from irssi_varlink.reactor import AsyncioReactor

    logger.info("Loading configuration")
    varlink_config = load_config(config_path)

    registry = StaticServerRegistry.from_nicks(varlink_config.server_nicks())
    if registry.tags:
        logger.info(f"Servers: {', '.join(registry.tags)}")

    loop = asyncio.get_running_loop()
    bridge = VarlinkBridge(
        registry,
        AsyncioReactor(loop),
        config=varlink_config,
        socket_path=socket_path,
    )
    bridge.start()

    stop_requested = asyncio.Event()
    for sig in (signal_module.SIGTERM, signal_module.SIGINT):
        loop.add_signal_handler(sig, stop_requested.set)

    try:
        await stop_requested.wait()
    finally:
        for sig in (signal_module.SIGTERM, signal_module.SIGINT):
            loop.remove_signal_handler(sig)
        bridge.stop()
