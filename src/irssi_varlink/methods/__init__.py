"""Varlink method handlers.

Each module registers the methods of one interface on a VarlinkServer:
- org.varlink.service: GetInfo, GetInterfaceDescription
- org.irssi.varlink: WaitForEvent, SendMessage, GetServerNick, TestEvent
"""

from irssi_varlink.methods.irssi import register_irssi_methods
from irssi_varlink.methods.service import register_service_methods

__all__ = [
    "register_irssi_methods",
    "register_service_methods",
]
