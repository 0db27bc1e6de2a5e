"""Per-connection state owned by the reactor."""

import socket
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from irssi_varlink.protocol import DEFAULT_MAX_MESSAGE_SIZE, FrameBuffer


class WaitMode(Enum):
    """How a session is subscribed to broadcast events."""

    NONE = "none"
    SINGLE = "single"  # next event only, then back to NONE
    STREAMING = "streaming"  # every event until disconnect


@dataclass(eq=False)
class Session:
    """One accepted client connection."""

    sock: socket.socket
    buffer: FrameBuffer = field(
        default_factory=lambda: FrameBuffer(DEFAULT_MAX_MESSAGE_SIZE)
    )
    wait_mode: WaitMode = WaitMode.NONE

    def __post_init__(self) -> None:
        # fileno() turns to -1 once the socket is closed; keep the original.
        self.id = self.sock.fileno()

    @property
    def is_waiting(self) -> bool:
        return self.wait_mode is not WaitMode.NONE


class SessionRegistry:
    """Every live session, keyed by its socket's file descriptor.

    Iteration follows accept order, so snapshots are deterministic.
    """

    def __init__(self) -> None:
        self._sessions: dict[int, Session] = {}

    def add(self, session: Session) -> None:
        self._sessions[session.id] = session

    def remove(self, session: Session) -> bool:
        """Forget a session. Returns False if it was already gone."""
        return self._sessions.pop(session.id, None) is not None

    def get(self, session_id: int) -> Session | None:
        return self._sessions.get(session_id)

    def waiting(self) -> list[Session]:
        """Stable snapshot of sessions subscribed to events."""
        return [s for s in self._sessions.values() if s.is_waiting]

    def snapshot(self) -> list[Session]:
        return list(self._sessions.values())

    def clear(self) -> None:
        self._sessions.clear()

    def __contains__(self, session: object) -> bool:
        return (
            isinstance(session, Session)
            and self._sessions.get(session.id) is session
        )

    def __iter__(self) -> Iterator[Session]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._sessions)
