"""Boundary to the host application's server connections.

The varlink service does not talk to IRC itself. SendMessage and
GetServerNick go through a ServerRegistry supplied by the host; the
StaticServerRegistry here backs the standalone `serve` command and tests.
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)


class ServerConnection(Protocol):
    """A connected chat server, as exposed by the host."""

    tag: str

    @property
    def nick(self) -> str: ...

    def send_message(self, target: str, message: str) -> None: ...


class ServerRegistry(Protocol):
    """Looks up connections by their tag."""

    def find_by_tag(self, tag: str) -> ServerConnection | None: ...


@dataclass
class SentMessage:
    target: str
    message: str


@dataclass
class StaticServer:
    """A server entry that records outgoing messages instead of sending."""

    tag: str
    nick: str
    sent: list[SentMessage] = field(default_factory=list)

    def send_message(self, target: str, message: str) -> None:
        logger.info(f"[{self.tag}] -> {target}: {message}")
        self.sent.append(SentMessage(target=target, message=message))


class StaticServerRegistry:
    """In-memory registry of StaticServer entries."""

    def __init__(self, servers: dict[str, StaticServer] | None = None):
        self._servers: dict[str, StaticServer] = dict(servers or {})

    @classmethod
    def from_nicks(cls, nicks: dict[str, str]) -> "StaticServerRegistry":
        """Create a registry from a tag -> nick mapping."""
        return cls(
            {tag: StaticServer(tag=tag, nick=nick) for tag, nick in nicks.items()}
        )

    def add(self, server: StaticServer) -> None:
        self._servers[server.tag] = server

    def remove(self, tag: str) -> None:
        self._servers.pop(tag, None)

    def find_by_tag(self, tag: str) -> StaticServer | None:
        return self._servers.get(tag)

    @property
    def tags(self) -> list[str]:
        return sorted(self._servers)
