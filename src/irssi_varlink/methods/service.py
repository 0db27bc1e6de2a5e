"""org.varlink.service methods."""

from typing import TYPE_CHECKING

from irssi_varlink.interface import INTERFACE_DESCRIPTION, INTERFACE_NAME, service_info
from irssi_varlink.protocol import Call, ErrorName, Reply, VarlinkError
from irssi_varlink.session import Session

if TYPE_CHECKING:
    from irssi_varlink.server import VarlinkServer


def register_service_methods(server: "VarlinkServer") -> None:
    """Register the org.varlink.service introspection methods."""

    def get_info(call: Call, session: Session) -> Reply:
        return Reply.success(service_info())

    def get_interface_description(call: Call, session: Session) -> Reply:
        interface = call.parameters.get("interface")
        if interface != INTERFACE_NAME:
            name = "" if interface is None else str(interface)
            raise VarlinkError(
                ErrorName.INTERFACE_NOT_FOUND,
                f"Interface '{name}' not found",
                interface=name,
            )
        return Reply.success({"description": INTERFACE_DESCRIPTION})

    server.register("org.varlink.service.GetInfo", get_info)
    server.register(
        "org.varlink.service.GetInterfaceDescription", get_interface_description
    )
