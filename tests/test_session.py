"""Tests for session state and the session registry."""

import socket

import pytest

from irssi_varlink.session import Session, SessionRegistry, WaitMode


@pytest.fixture
def sessions():
    pairs = [socket.socketpair() for _ in range(3)]
    yield [Session(server_side) for server_side, _ in pairs]
    for a, b in pairs:
        a.close()
        b.close()


class TestSession:
    def test_starts_idle(self, sessions):
        session = sessions[0]
        assert session.wait_mode is WaitMode.NONE
        assert not session.is_waiting
        assert len(session.buffer) == 0

    def test_id_survives_close(self, sessions):
        session = sessions[0]
        fd = session.sock.fileno()
        session.sock.close()
        assert session.id == fd

    def test_waiting_modes(self, sessions):
        session = sessions[0]
        session.wait_mode = WaitMode.SINGLE
        assert session.is_waiting
        session.wait_mode = WaitMode.STREAMING
        assert session.is_waiting


class TestSessionRegistry:
    def test_add_and_remove(self, sessions):
        registry = SessionRegistry()
        registry.add(sessions[0])
        assert sessions[0] in registry
        assert len(registry) == 1

        assert registry.remove(sessions[0]) is True
        assert sessions[0] not in registry
        assert registry.remove(sessions[0]) is False

    def test_get(self, sessions):
        registry = SessionRegistry()
        registry.add(sessions[1])
        assert registry.get(sessions[1].id) is sessions[1]
        assert registry.get(-1) is None

    def test_waiting_snapshot_follows_accept_order(self, sessions):
        registry = SessionRegistry()
        for session in sessions:
            registry.add(session)
        sessions[2].wait_mode = WaitMode.STREAMING
        sessions[0].wait_mode = WaitMode.SINGLE

        waiting = registry.waiting()
        assert waiting == [sessions[0], sessions[2]]

        # Mutating the registry does not change an existing snapshot
        registry.remove(sessions[0])
        assert waiting == [sessions[0], sessions[2]]
        assert registry.waiting() == [sessions[2]]

    def test_iteration_is_a_snapshot(self, sessions):
        registry = SessionRegistry()
        for session in sessions:
            registry.add(session)

        for session in registry:
            registry.remove(session)

        assert len(registry) == 0

    def test_contains_checks_identity(self, sessions):
        registry = SessionRegistry()
        registry.add(sessions[0])
        assert "not a session" not in registry

    def test_clear(self, sessions):
        registry = SessionRegistry()
        for session in sessions:
            registry.add(session)
        registry.clear()
        assert registry.snapshot() == []
