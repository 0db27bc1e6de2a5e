"""Shared test fixtures and helpers."""

import json
import logging
import select
import shutil
import socket
import tempfile
import threading
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from irssi_varlink.bridge import VarlinkBridge
from irssi_varlink.config.paths import get_home
from irssi_varlink.host import StaticServerRegistry
from irssi_varlink.protocol import Call, FrameBuffer
from irssi_varlink.reactor import SelectorReactor

# =============================================================================
# Helpers
# =============================================================================


def pump(reactor: SelectorReactor, rounds: int = 10) -> None:
    """Dispatch ready callbacks until the reactor goes idle."""
    for _ in range(rounds):
        if not reactor.run_once(0.01):
            break


class Peer:
    """Raw varlink client driven in lockstep with a SelectorReactor."""

    def __init__(self, path: Path, reactor: SelectorReactor):
        self.sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self.sock.connect(str(path))
        self.sock.settimeout(2.0)
        self._reactor = reactor
        self._buffer = FrameBuffer()
        self._frames: list[bytes] = []
        pump(reactor)

    def send_raw(self, data: bytes) -> None:
        self.sock.sendall(data)
        pump(self._reactor)

    def call(
        self,
        method: str,
        parameters: dict[str, Any] | None = None,
        more: bool = False,
    ) -> None:
        self.send_raw(Call(method, parameters or {}, more=more).to_bytes())

    def read_frame(self) -> bytes:
        while not self._frames:
            pump(self._reactor)
            data = self.sock.recv(4096)
            if not data:
                raise EOFError("Connection closed by service")
            self._frames.extend(self._buffer.feed(data))
        return self._frames.pop(0)

    def read(self) -> dict[str, Any]:
        return json.loads(self.read_frame())

    def request(
        self, method: str, parameters: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        self.call(method, parameters)
        return self.read()

    def has_pending(self, timeout: float = 0.05) -> bool:
        if self._frames:
            return True
        pump(self._reactor)
        readable, _, _ = select.select([self.sock], [], [], timeout)
        return bool(readable)

    def at_eof(self) -> bool:
        return self.sock.recv(4096) == b""

    def close(self) -> None:
        self.sock.close()


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_home_cache() -> Iterator[None]:
    yield
    get_home.cache_clear()


@pytest.fixture
def socket_path() -> Iterator[Path]:
    """Socket path short enough for AF_UNIX."""
    directory = Path(tempfile.mkdtemp(prefix="varlink-"))
    yield directory / "varlink.sock"
    shutil.rmtree(directory, ignore_errors=True)


@pytest.fixture
def registry() -> StaticServerRegistry:
    return StaticServerRegistry.from_nicks({"libera": "mynick", "oftc": "othernick"})


@pytest.fixture
def reactor() -> Iterator[SelectorReactor]:
    reactor = SelectorReactor()
    yield reactor
    reactor.close()


@pytest.fixture
def bridge(
    registry: StaticServerRegistry, reactor: SelectorReactor, socket_path: Path
) -> Iterator[VarlinkBridge]:
    """A started bridge served by the test thread."""
    bridge = VarlinkBridge(registry, reactor, socket_path=socket_path)
    bridge.start()
    yield bridge
    bridge.stop()


@pytest.fixture
def connect(
    bridge: VarlinkBridge, reactor: SelectorReactor, socket_path: Path
) -> Iterator[Callable[[], Peer]]:
    """Factory for clients connected to the bridge."""
    peers: list[Peer] = []

    def _connect() -> Peer:
        peer = Peer(socket_path, reactor)
        peers.append(peer)
        return peer

    yield _connect
    for peer in peers:
        peer.close()


@pytest.fixture
def running_bridge(
    registry: StaticServerRegistry, socket_path: Path
) -> Iterator[VarlinkBridge]:
    """A bridge served from a background reactor thread.

    For blocking clients. Nothing but the reactor thread touches the bridge
    until the thread has been joined.
    """
    reactor = SelectorReactor()
    bridge = VarlinkBridge(registry, reactor, socket_path=socket_path)
    bridge.start()
    thread = threading.Thread(
        target=reactor.run_forever, kwargs={"poll_interval": 0.02}, daemon=True
    )
    thread.start()
    yield bridge
    reactor.stop()
    thread.join(timeout=5)
    bridge.stop()
    reactor.close()


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})


@pytest.fixture
def varlink_home(monkeypatch, tmp_path: Path) -> Path:
    """Point IRSSI_VARLINK_HOME at a temporary directory."""
    from irssi_varlink.config.paths import ENV_VAR, SOCKET_ENV_VAR

    home = tmp_path / "home"
    monkeypatch.setenv(ENV_VAR, str(home))
    monkeypatch.delenv(SOCKET_ENV_VAR, raising=False)
    get_home.cache_clear()
    return home


@pytest.fixture
def restore_root_logger() -> Iterator[logging.Logger]:
    """Undo configure_logging() changes to the root logger."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
