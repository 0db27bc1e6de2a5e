"""Unix domain socket varlink server.

Everything here runs on one thread, driven by a Reactor: the listener and
each client socket are registered for read-readiness, and every callback
runs to completion before the next one starts. Events published by the host
are delivered from the same thread, so session state needs no locking.
"""

import functools
import logging
import socket
from collections.abc import Callable
from pathlib import Path

from irssi_varlink.events import Event
from irssi_varlink.protocol import (
    DEFAULT_MAX_MESSAGE_SIZE,
    Call,
    ErrorName,
    FrameBuffer,
    FrameTooLarge,
    Reply,
    VarlinkError,
    parse_call,
)
from irssi_varlink.reactor import Reactor
from irssi_varlink.session import Session, SessionRegistry, WaitMode

logger = logging.getLogger(__name__)

# Type for varlink method handlers. Returning None means "no reply now".
MethodHandler = Callable[[Call, Session], Reply | None]

SHUTDOWN_DESCRIPTION = "Service is shutting down"


class VarlinkStartupError(Exception):
    """The listening socket could not be created."""


class VarlinkServer:
    """Varlink service on a Unix domain socket."""

    def __init__(
        self,
        socket_path: Path,
        reactor: Reactor,
        *,
        socket_mode: int = 0o600,
        read_size: int = 4096,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
        write_timeout: float | None = 1.0,
        backlog: int = 5,
    ):
        """Initialize the server.

        Args:
            socket_path: Path to the Unix domain socket.
            reactor: Readiness registration for the listener and sessions.
            socket_mode: Permissions applied to the socket file after bind.
            read_size: Maximum bytes read per readiness notification.
            max_message_size: Limit for a single unterminated inbound frame.
            write_timeout: Seconds a write may block before the session is
                dropped. None blocks indefinitely.
            backlog: Listen backlog.
        """
        self._socket_path = socket_path
        self._reactor = reactor
        self._socket_mode = socket_mode
        self._read_size = read_size
        self._max_message_size = max_message_size
        self._write_timeout = write_timeout
        self._backlog = backlog
        self._listener: socket.socket | None = None
        self._methods: dict[str, MethodHandler] = {}
        self._sessions = SessionRegistry()

    def register(self, method: str, handler: MethodHandler) -> None:
        """Register a method handler.

        Args:
            method: Fully qualified method name (e.g., "org.varlink.service.GetInfo").
            handler: Function taking the call and the calling session.
        """
        self._methods[method] = handler

    def start(self) -> None:
        """Bind the socket and start accepting clients.

        Raises:
            VarlinkStartupError: If the socket cannot be bound.
        """
        if self._listener is not None:
            return

        path = self._socket_path
        listener = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Remove stale socket
            path.unlink(missing_ok=True)
            listener.bind(str(path))
            path.chmod(self._socket_mode)
            listener.listen(self._backlog)
            listener.setblocking(False)
        except OSError as e:
            listener.close()
            raise VarlinkStartupError(
                f"Failed to create UNIX socket {path}: {e}"
            ) from e

        self._listener = listener
        self._reactor.register(listener, self._accept)
        logger.info(f"Varlink server listening on {path}")

    def stop(self) -> None:
        """Notify every client of the shutdown, disconnect them, and close.

        Each client receives a ServiceShutdown error followed by end of
        stream. Safe to call more than once.
        """
        frame = Reply.error_reply(
            ErrorName.SERVICE_SHUTDOWN, SHUTDOWN_DESCRIPTION
        ).to_bytes()

        for session in self._sessions.snapshot():
            self._send_frame(session, frame)
            try:
                session.sock.shutdown(socket.SHUT_WR)
            except OSError:
                pass  # Peer already gone
            self._reactor.unregister(session.sock)
            # close() with unread input resets the connection and can
            # discard the shutdown reply before the peer reads it.
            self._discard_input(session)
            session.sock.close()
            session.wait_mode = WaitMode.NONE
            session.buffer.clear()
        self._sessions.clear()

        if self._listener is not None:
            self._reactor.unregister(self._listener)
            self._listener.close()
            self._listener = None
            self._socket_path.unlink(missing_ok=True)
            logger.info("Varlink interface stopped")

    # Alias matching the shutdown handshake terminology
    shutdown = stop

    def publish(self, event: Event) -> int:
        """Deliver an event to every waiting session.

        Single-mode sessions stop waiting after this delivery; streaming
        sessions receive it with ``continues`` set and stay subscribed.

        Returns:
            Number of sessions the event was written to.
        """
        waiting = self._sessions.waiting()
        if not waiting:
            return 0

        parameters = {"event": event.to_dict()}
        single_frame = Reply.success(parameters).to_bytes()
        streaming_frame = Reply(parameters=parameters, continues=True).to_bytes()

        delivered = 0
        for session in waiting:
            if session.wait_mode is WaitMode.STREAMING:
                frame = streaming_frame
            else:
                frame = single_frame
                session.wait_mode = WaitMode.NONE
            if self._send_frame(session, frame):
                delivered += 1
            else:
                # A partial or stalled write leaves the stream unusable
                self._close_session(session)

        logger.debug(f"Event delivered to {delivered}/{len(waiting)} clients")
        return delivered

    def _accept(self) -> None:
        """Accept one pending connection from the listener."""
        if self._listener is None:
            return
        try:
            conn, _ = self._listener.accept()
        except (BlockingIOError, InterruptedError):
            return
        except OSError as e:
            logger.warning(f"Failed to accept varlink client: {e}")
            return

        conn.settimeout(self._write_timeout)
        session = Session(conn, buffer=FrameBuffer(self._max_message_size))
        self._sessions.add(session)
        self._reactor.register(
            conn, functools.partial(self._handle_readable, session)
        )
        logger.info("Varlink client connected")

    def _handle_readable(self, session: Session) -> None:
        """Read available bytes and process every complete call."""
        if session not in self._sessions:
            return

        try:
            data = session.sock.recv(self._read_size)
        except (BlockingIOError, InterruptedError, TimeoutError):
            return
        except OSError:
            data = b""

        if not data:
            self._close_session(session)
            return

        try:
            frames = session.buffer.feed(data)
        except FrameTooLarge as e:
            logger.warning(f"Closing varlink client: {e}")
            self._close_session(session)
            return

        for frame in frames:
            reply = self._process_call(frame, session)
            if reply is not None and not self._send_frame(session, reply.to_bytes()):
                self._close_session(session)
            if session not in self._sessions:
                # A handler stopped the service
                break

    def _process_call(self, data: bytes, session: Session) -> Reply | None:
        """Process a single call frame."""
        try:
            call = parse_call(data)
        except VarlinkError as e:
            return Reply.from_error(e)

        handler = self._methods.get(call.method)
        if handler is None:
            return Reply.error_reply(
                ErrorName.METHOD_NOT_FOUND,
                f"Method '{call.method}' not found",
                method=call.method,
            )

        try:
            return handler(call, session)
        except VarlinkError as e:
            return Reply.from_error(e)
        except Exception as e:
            logger.exception("Varlink method error", extra={"method": call.method})
            return Reply.error_reply(ErrorName.INTERNAL_ERROR, str(e))

    def _send_frame(self, session: Session, frame: bytes) -> bool:
        """Write a frame to one session; failures only affect that session."""
        try:
            session.sock.sendall(frame)
        except OSError as e:
            logger.debug(f"Write to varlink client failed: {e}")
            return False
        return True

    def _discard_input(self, session: Session) -> None:
        remaining = self._max_message_size
        try:
            session.sock.setblocking(False)
            while remaining > 0:
                chunk = session.sock.recv(self._read_size)
                if not chunk:
                    break
                remaining -= len(chunk)
        except OSError:
            pass  # Drained (BlockingIOError) or peer gone

    def _close_session(self, session: Session) -> None:
        """Tear down a session whose peer went away."""
        if not self._sessions.remove(session):
            return
        self._reactor.unregister(session.sock)
        session.buffer.clear()
        session.wait_mode = WaitMode.NONE
        session.sock.close()
        logger.info("Varlink client disconnected")

    @property
    def socket_path(self) -> Path:
        """Get the socket path."""
        return self._socket_path

    @property
    def is_running(self) -> bool:
        """Check if server is running."""
        return self._listener is not None

    @property
    def sessions(self) -> SessionRegistry:
        return self._sessions

    @property
    def methods(self) -> list[str]:
        return sorted(self._methods)
