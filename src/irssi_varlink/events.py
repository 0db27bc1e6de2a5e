"""Domain events broadcast to waiting clients."""

import time
from dataclasses import asdict, dataclass
from typing import Any, Literal

MessageSubtype = Literal["public", "private"]

# Origin tag used when an event has no owning server connection
TEST_SERVER_TAG = "test"


def _text(value: str | bytes | None) -> str | None:
    """Accept host text as str or raw bytes.

    Invalid UTF-8 in host bytes becomes U+FFFD so events always encode as
    UTF-8 on the wire.
    """
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    return value


@dataclass(frozen=True)
class Event:
    """A message seen by the host, as delivered in a WaitForEvent reply."""

    type: str
    subtype: str
    server: str
    target: str | None
    nick: str | None
    address: str | None
    message: str
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def message_event(
    subtype: MessageSubtype,
    server_tag: str | None,
    message: str | bytes,
    nick: str | bytes | None,
    address: str | bytes | None = None,
    target: str | bytes | None = None,
    timestamp: int | None = None,
) -> Event:
    """Build an event for a public or private message.

    Public messages target their channel; private messages target the
    sender's nick.
    """
    nick = _text(nick)
    return Event(
        type="message",
        subtype=subtype,
        server=server_tag or TEST_SERVER_TAG,
        target=_text(target) if subtype == "public" else nick,
        nick=nick,
        address=_text(address),
        message=_text(message) or "",
        timestamp=int(time.time()) if timestamp is None else timestamp,
    )


def make_test_event(message: str | None = None) -> Event:
    """Synthetic public message used by the TestEvent method."""
    return message_event(
        "public",
        TEST_SERVER_TAG,
        message or "test message",
        nick="testnick",
        address="test@host.com",
        target="#testchan",
    )
