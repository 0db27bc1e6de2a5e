"""Host-facing entry points.

A host embeds the varlink service through VarlinkBridge:

    bridge = VarlinkBridge(registry, reactor, socket_path=path)
    bridge.start()                      # on load
    bridge.message_public(...)          # from the host's message hooks
    bridge.message_private(...)
    bridge.stop()                       # on unload/reload

Hooks must be called on the reactor's thread.
"""

import logging
from pathlib import Path

from irssi_varlink.config.models import VarlinkConfig
from irssi_varlink.events import Event, message_event
from irssi_varlink.host import ServerConnection, ServerRegistry
from irssi_varlink.methods import register_irssi_methods, register_service_methods
from irssi_varlink.reactor import Reactor
from irssi_varlink.server import VarlinkServer, VarlinkStartupError

logger = logging.getLogger(__name__)


class VarlinkBridge:
    """Wires a VarlinkServer to the host's servers and message events."""

    def __init__(
        self,
        registry: ServerRegistry,
        reactor: Reactor,
        config: VarlinkConfig | None = None,
        socket_path: Path | None = None,
    ):
        """Initialize the bridge.

        Args:
            registry: Host lookup for server connections by tag.
            reactor: Readiness registration shared with the host loop.
            config: Service settings (defaults if None).
            socket_path: Overrides config.socket_path.
        """
        self._config = config or VarlinkConfig()
        self._server = VarlinkServer(
            socket_path or self._config.socket_path,
            reactor,
            socket_mode=self._config.socket_mode,
            read_size=self._config.read_size,
            max_message_size=self._config.max_message_size,
            write_timeout=self._config.write_timeout,
            backlog=self._config.backlog,
        )
        register_service_methods(self._server)
        register_irssi_methods(self._server, registry)

    def start(self) -> None:
        """Create the listening socket.

        Raises:
            VarlinkStartupError: If the socket cannot be created.
        """
        try:
            self._server.start()
        except VarlinkStartupError as e:
            logger.error(str(e))
            raise
        logger.info("Varlink interface loaded")

    def stop(self) -> None:
        """Send ServiceShutdown to every client and release the socket."""
        self._server.stop()

    def publish(self, event: Event) -> int:
        return self._server.publish(event)

    def message_public(
        self,
        server: ServerConnection | None,
        message: str | bytes,
        nick: str | bytes,
        address: str | bytes | None,
        target: str | bytes,
    ) -> int:
        """Hook for a channel message seen by the host."""
        return self.publish(
            message_event(
                "public", _tag(server), message, nick, address, target=target
            )
        )

    def message_private(
        self,
        server: ServerConnection | None,
        message: str | bytes,
        nick: str | bytes,
        address: str | bytes | None,
    ) -> int:
        """Hook for a private message seen by the host."""
        return self.publish(
            message_event("private", _tag(server), message, nick, address)
        )

    @property
    def server(self) -> VarlinkServer:
        return self._server

    @property
    def is_running(self) -> bool:
        return self._server.is_running


def _tag(server: ServerConnection | None) -> str | None:
    return server.tag if server is not None else None
