"""Synchronous varlink client for talking to a running service."""

import json
import socket
from collections.abc import Iterator
from pathlib import Path
from types import TracebackType
from typing import Any

from irssi_varlink.config.paths import get_socket_path
from irssi_varlink.protocol import Call, FrameBuffer, Reply

DEFAULT_READ_SIZE = 4096


class VarlinkCallError(Exception):
    """The service answered a call with an error reply."""

    def __init__(self, error: str, parameters: dict[str, Any] | None = None):
        self.error = error
        self.parameters = parameters or {}
        description = self.parameters.get("description")
        super().__init__(f"{error}: {description}" if description else error)


class VarlinkProtocolError(ConnectionError):
    """The service sent a frame that is not a valid JSON reply."""


class VarlinkClient:
    """A single connection to a varlink service.

    Usage:
        with VarlinkClient(path) as client:
            info = client.call("org.varlink.service.GetInfo")
            for params in client.stream("org.irssi.varlink.WaitForEvent"):
                ...
    """

    def __init__(
        self,
        socket_path: Path | str | None = None,
        timeout: float | None = None,
    ):
        self._socket_path = Path(socket_path) if socket_path else get_socket_path()
        self._timeout = timeout
        self._sock: socket.socket | None = None
        self._buffer = FrameBuffer()
        self._frames: list[bytes] = []

    def connect(self) -> None:
        if self._sock is not None:
            return
        if not self._socket_path.exists():
            raise ConnectionError(f"Varlink socket not found: {self._socket_path}")
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(self._timeout)
        try:
            sock.connect(str(self._socket_path))
        except OSError:
            sock.close()
            raise
        self._sock = sock

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self) -> "VarlinkClient":
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def send(
        self,
        method: str,
        parameters: dict[str, Any] | None = None,
        more: bool = False,
        oneway: bool = False,
    ) -> None:
        """Write one call frame without waiting for a reply."""
        self.connect()
        assert self._sock is not None
        call = Call(
            method=method, parameters=parameters or {}, more=more, oneway=oneway
        )
        self._sock.sendall(call.to_bytes())

    def read_reply(self) -> Reply | None:
        """Read the next reply frame. Returns None at end of stream.

        Raises:
            VarlinkProtocolError: If the frame is not a JSON object.
        """
        self.connect()
        assert self._sock is not None
        while not self._frames:
            data = self._sock.recv(DEFAULT_READ_SIZE)
            if not data:
                return None
            self._frames.extend(self._buffer.feed(data))
        try:
            payload = json.loads(self._frames.pop(0))
        except ValueError as e:
            # Covers JSONDecodeError and UnicodeDecodeError
            raise VarlinkProtocolError(f"Invalid reply from service: {e}") from None
        if not isinstance(payload, dict):
            raise VarlinkProtocolError("Invalid reply from service: not an object")
        return Reply.from_dict(payload)

    def replies(self) -> Iterator[Reply]:
        """Yield replies until the service closes the stream."""
        while (reply := self.read_reply()) is not None:
            yield reply

    def call(
        self, method: str, parameters: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Make a call and return the reply parameters.

        Raises:
            VarlinkCallError: If the service returns an error reply.
            ConnectionError: If the stream ends before a reply arrives.
        """
        self.send(method, parameters)
        reply = self.read_reply()
        if reply is None:
            raise ConnectionError("Connection closed by service")
        if reply.error is not None:
            raise VarlinkCallError(reply.error, reply.parameters)
        return reply.parameters

    def stream(
        self, method: str, parameters: dict[str, Any] | None = None
    ) -> Iterator[dict[str, Any]]:
        """Make a ``more`` call and yield each reply's parameters.

        Stops after a reply without ``continues`` or at end of stream.

        Raises:
            VarlinkCallError: If the service returns an error reply, including
                ServiceShutdown when the service goes away.
        """
        self.send(method, parameters, more=True)
        for reply in self.replies():
            if reply.error is not None:
                raise VarlinkCallError(reply.error, reply.parameters)
            yield reply.parameters
            if not reply.continues:
                return


def varlink_call(
    method: str,
    parameters: dict[str, Any] | None = None,
    socket_path: Path | str | None = None,
    timeout: float | None = 5.0,
) -> dict[str, Any]:
    """Make a single call on a fresh connection.

    Args:
        method: Fully qualified method name.
        parameters: Method parameters.
        socket_path: Service socket (default: standard socket path).
        timeout: Socket timeout in seconds.

    Returns:
        The reply parameters.
    """
    with VarlinkClient(socket_path, timeout=timeout) as client:
        return client.call(method, parameters)
