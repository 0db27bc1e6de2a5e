"""Static service metadata and the org.irssi.varlink interface description."""

from typing import Any

from irssi_varlink import __version__

INTERFACE_NAME = "org.irssi.varlink"

VENDOR = "irssi-varlink"
PRODUCT = "Irssi Varlink Interface"
URL = "https://github.com/pasky/irssi-varlink"

INTERFACE_DESCRIPTION = """\
interface org.irssi.varlink

method WaitForEvent() -> (event: Event)

method SendMessage(target: string, message: string, server: string) -> (success: bool)

method GetServerNick(server: string) -> (nick: string)

method TestEvent(message: ?string) -> (success: bool)

type Event (
    type: string,
    subtype: string,
    server: string,
    target: string,
    nick: string,
    address: ?string,
    message: string,
    timestamp: int
)

error ServerNotFound (server: string)"""


def service_info() -> dict[str, Any]:
    """Parameters of the org.varlink.service.GetInfo reply."""
    return {
        "vendor": VENDOR,
        "product": PRODUCT,
        "version": __version__,
        "url": URL,
        "interfaces": [INTERFACE_NAME],
    }
