"""Configuration models using Pydantic."""

from pathlib import Path

from pydantic import BaseModel, Field, PositiveFloat, PositiveInt

from irssi_varlink.config.paths import get_socket_path
from irssi_varlink.protocol import DEFAULT_MAX_MESSAGE_SIZE


class ServerEntry(BaseModel):
    """A server connection known to the standalone host."""

    nick: str


class VarlinkConfig(BaseModel):
    """Root configuration model."""

    socket_path: Path = Field(default_factory=get_socket_path)
    # Permissions for the socket file; owner only by default
    socket_mode: int = Field(default=0o600, ge=0, le=0o777)
    read_size: PositiveInt = 4096
    max_message_size: PositiveInt = DEFAULT_MAX_MESSAGE_SIZE
    # Seconds a single write may block the service loop
    write_timeout: PositiveFloat | None = 1.0
    backlog: PositiveInt = 5
    # Servers for `irssi-varlink serve`, keyed by tag
    servers: dict[str, ServerEntry] = Field(default_factory=dict)

    def server_nicks(self) -> dict[str, str]:
        """Map of server tag to nick."""
        return {tag: entry.nick for tag, entry in self.servers.items()}
