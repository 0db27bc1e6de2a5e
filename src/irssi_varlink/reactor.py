"""Readiness registration for the single-threaded server loop.

The server never blocks waiting for input. It registers each socket with a
reactor and gets called back once the socket is readable. Two reactors are
provided:

- AsyncioReactor: rides on a running asyncio event loop (``add_reader``).
- SelectorReactor: a self-contained ``selectors`` loop for hosts without
  asyncio, driven with run_once()/run_forever().
"""

import asyncio
import selectors
import socket
from collections.abc import Callable
from typing import Protocol

ReadableCallback = Callable[[], None]


class Reactor(Protocol):
    """Readiness-registration interface used by VarlinkServer."""

    def register(self, handle: socket.socket, on_readable: ReadableCallback) -> None:
        ...

    def unregister(self, handle: socket.socket) -> None:
        ...


class AsyncioReactor:
    """Reactor backed by an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop or asyncio.get_running_loop()
        # Closed sockets report fileno() == -1, so remember the original fd.
        self._fds: dict[socket.socket, int] = {}

    def register(self, handle: socket.socket, on_readable: ReadableCallback) -> None:
        fd = handle.fileno()
        self._fds[handle] = fd
        self._loop.add_reader(fd, on_readable)

    def unregister(self, handle: socket.socket) -> None:
        fd = self._fds.pop(handle, None)
        if fd is not None:
            self._loop.remove_reader(fd)

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop


class SelectorReactor:
    """Reactor backed by ``selectors.DefaultSelector``."""

    def __init__(self) -> None:
        self._selector = selectors.DefaultSelector()
        self._running = False

    def register(self, handle: socket.socket, on_readable: ReadableCallback) -> None:
        self._selector.register(handle, selectors.EVENT_READ, data=on_readable)

    def unregister(self, handle: socket.socket) -> None:
        try:
            self._selector.unregister(handle)
        except (KeyError, ValueError):
            pass  # Not registered

    def is_registered(self, handle: socket.socket) -> bool:
        try:
            self._selector.get_key(handle)
        except (KeyError, ValueError):
            return False
        return True

    def run_once(self, timeout: float | None = 0) -> int:
        """Wait for readiness and dispatch callbacks.

        Args:
            timeout: Seconds to wait; 0 polls, None blocks.

        Returns:
            Number of callbacks invoked.
        """
        if not self._selector.get_map():
            return 0
        dispatched = 0
        for key, _mask in self._selector.select(timeout):
            # An earlier callback in this batch may have unregistered it
            current = self._selector.get_map().get(key.fd)
            if current is None or current.data is not key.data:
                continue
            key.data()
            dispatched += 1
        return dispatched

    def run_forever(self, poll_interval: float = 0.5) -> None:
        self._running = True
        while self._running:
            self.run_once(poll_interval)

    def stop(self) -> None:
        """Make run_forever() return after the current iteration."""
        self._running = False

    def close(self) -> None:
        self._selector.close()
