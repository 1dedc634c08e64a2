"""Tests for byte-at-a-time line reading"""

import os
import socket

import pytest

from fiforelay.exceptions import Hangup
from fiforelay.linereader import read_line

@pytest.fixture
def pipe():
    r, w = os.pipe()
    yield r, w
    for fd in (r, w):
        try:
            os.close(fd)
        except OSError:
            pass

class TestReadLine:
    """Test line reading semantics"""

    def test_partial_line_before_end_is_returned(self, pipe):
        """A line cut short by end of stream is still a line; only then Hangup"""
        r, w = pipe
        os.write(w, b"hello\nworld")
        os.close(w)

        assert read_line(r, 1024) == b"hello\n"
        assert read_line(r, 1024) == b"world"
        with pytest.raises(Hangup):
            read_line(r, 1024)

    def test_line_is_bounded(self, pipe):
        r, w = pipe
        os.write(w, b"a" * 20 + b"\n")

        line = read_line(r, 8)
        assert line == b"a" * 7
        # The remainder stays in the stream for the next read
        assert read_line(r, 8) == b"a" * 7
        assert read_line(r, 8) == b"a" * 6 + b"\n"

    def test_never_exceeds_bound(self, pipe):
        r, w = pipe
        os.write(w, bytes(range(1, 200)))
        os.close(w)
        for max_len in (2, 3, 17, 64):
            try:
                assert len(read_line(r, max_len)) <= max_len - 1
            except Hangup:
                break

    def test_empty_nonblocking_stream_is_hangup(self, pipe):
        """Nothing available on a non-blocking descriptor counts as hangup"""
        r, w = pipe
        os.set_blocking(r, False)
        with pytest.raises(Hangup):
            read_line(r, 64)

    def test_stops_at_newline(self, pipe):
        r, w = pipe
        os.write(w, b"one\ntwo\n")
        assert read_line(r, 64) == b"one\n"
        assert read_line(r, 64) == b"two\n"

    def test_accepts_objects_with_fileno(self):
        a, b = socket.socketpair()
        try:
            b.sendall(b"PING :x\r\n")
            assert read_line(a, 1024) == b"PING :x\r\n"
        finally:
            a.close()
            b.close()

    def test_rejects_tiny_bound(self, pipe):
        r, _ = pipe
        with pytest.raises(ValueError):
            read_line(r, 1)
