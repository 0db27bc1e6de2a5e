"""org.irssi.varlink methods."""

import logging
from typing import TYPE_CHECKING, Any

from irssi_varlink.events import make_test_event
from irssi_varlink.host import ServerConnection, ServerRegistry
from irssi_varlink.protocol import Call, ErrorName, Reply, VarlinkError
from irssi_varlink.session import Session, WaitMode

if TYPE_CHECKING:
    from irssi_varlink.server import VarlinkServer

logger = logging.getLogger(__name__)


def _find_server(registry: ServerRegistry, tag: str) -> ServerConnection:
    """Resolve a server tag or fail with ServerNotFound."""
    connection = registry.find_by_tag(tag)
    if connection is None:
        raise VarlinkError(
            ErrorName.SERVER_NOT_FOUND,
            "Server not found or not connected",
            server=tag,
        )
    return connection


def _require_strings(params: dict[str, Any], *names: str) -> None:
    for name in names:
        if not isinstance(params[name], str):
            raise VarlinkError(
                ErrorName.INVALID_PARAMETER,
                f"Parameter '{name}' must be a string",
                parameter=name,
            )


def register_irssi_methods(server: "VarlinkServer", registry: ServerRegistry) -> None:
    """Register the org.irssi.varlink methods.

    Args:
        server: Server to register on; TestEvent publishes through it.
        registry: Host lookup for server connections by tag.
    """

    def wait_for_event(call: Call, session: Session) -> None:
        # The reply comes later, from VarlinkServer.publish()
        session.wait_mode = WaitMode.STREAMING if call.more else WaitMode.SINGLE
        return None

    def send_message(call: Call, session: Session) -> Reply:
        params = call.parameters
        target = params.get("target")
        message = params.get("message")
        server_tag = params.get("server")

        if not target or message is None or not server_tag:
            raise VarlinkError(
                ErrorName.INVALID_PARAMETER,
                "Missing required parameters: target, message, server",
            )
        _require_strings(params, "target", "message", "server")

        connection = _find_server(registry, server_tag)
        connection.send_message(target, message)
        logger.debug(f"Sent message to {target} on {server_tag}")

        return Reply.success({"success": True})

    def get_server_nick(call: Call, session: Session) -> Reply:
        server_tag = call.parameters.get("server")
        if not server_tag:
            raise VarlinkError(
                ErrorName.INVALID_PARAMETER,
                "Missing required parameter: server",
                parameter="server",
            )
        _require_strings(call.parameters, "server")

        connection = _find_server(registry, server_tag)
        return Reply.success({"nick": connection.nick})

    def test_event(call: Call, session: Session) -> Reply:
        message = call.parameters.get("message")
        if message is not None and not isinstance(message, str):
            raise VarlinkError(
                ErrorName.INVALID_PARAMETER,
                "Parameter 'message' must be a string",
                parameter="message",
            )
        server.publish(make_test_event(message))
        return Reply.success({"success": True})

    server.register("org.irssi.varlink.WaitForEvent", wait_for_event)
    server.register("org.irssi.varlink.SendMessage", send_message)
    server.register("org.irssi.varlink.GetServerNick", get_server_nick)
    server.register("org.irssi.varlink.TestEvent", test_event)
