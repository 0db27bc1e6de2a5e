"""Varlink interface for irssi.

Exposes the host's message events and a small set of actions to local
processes over a UNIX domain socket speaking the varlink protocol
(NUL-terminated JSON frames).

Public API:
- VarlinkBridge: host-facing load/unload entry points and event ingestion
- VarlinkServer: listener, dispatcher, broadcaster and shutdown handshake
- VarlinkClient, varlink_call: synchronous client helpers
"""

__version__ = "1.0.0"

from irssi_varlink.bridge import VarlinkBridge
from irssi_varlink.client import (
    VarlinkCallError,
    VarlinkClient,
    VarlinkProtocolError,
    varlink_call,
)
from irssi_varlink.events import Event
from irssi_varlink.protocol import Call, ErrorName, Reply, VarlinkError
from irssi_varlink.server import VarlinkServer, VarlinkStartupError

__all__ = [
    "__version__",
    "Call",
    "ErrorName",
    "Event",
    "Reply",
    "VarlinkBridge",
    "VarlinkCallError",
    "VarlinkClient",
    "VarlinkError",
    "VarlinkProtocolError",
    "VarlinkServer",
    "VarlinkStartupError",
    "varlink_call",
]
