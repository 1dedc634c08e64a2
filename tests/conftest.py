"""Shared fixtures for relay tests"""

import os
import socket
from unittest.mock import patch

import pytest

from fiforelay.config import RelayConfig
from fiforelay.session import IRCSession

class FakeClock:
    """Manually advanced replacement for time.time"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += seconds

@pytest.fixture
def make_config(tmp_path):
    """Build a RelayConfig isolated from the real environment and .env"""
    def factory(**overrides):
        overrides.setdefault('NICK', 'relaybot')
        overrides.setdefault('CHANNEL', '#test')
        overrides.setdefault('SERVER', 'irc.example.com')
        overrides.setdefault('PIPE_PATH', str(tmp_path / 'irc-pipe'))
        with patch.dict(os.environ, {'HOME': str(tmp_path)}, clear=True):
            return RelayConfig(overrides, env_file=str(tmp_path / 'missing.env'))
    return factory

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def session_pair(make_config, clock):
    """An IRCSession wired to one end of a socketpair; the other end plays the server"""
    session = IRCSession(make_config(), clock=clock)
    ours, peer = socket.socketpair()
    session.sock = ours
    peer.settimeout(2)
    yield session, peer
    session.close()
    peer.close()

def recv_lines(peer: socket.socket, count: int) -> list:
    """Read exactly ``count`` CRLF-terminated lines from ``peer``"""
    data = b''
    while data.count(b'\r\n') < count:
        chunk = peer.recv(4096)
        if not chunk:
            break
        data += chunk
    return [line + b'\r\n' for line in data.split(b'\r\n')[:count]]

def assert_nothing_sent(peer: socket.socket):
    peer.setblocking(False)
    try:
        with pytest.raises(BlockingIOError):
            peer.recv(4096)
    finally:
        peer.settimeout(2)
