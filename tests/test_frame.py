"""Tests for bounded outbound frames"""

import pytest

from fiforelay.exceptions import FrameOverflowError
from fiforelay.frame import FRAME_CAPACITY, WIRE_LIMIT, OutboundFrame

class TestOutboundFrame:
    """Test frame construction and truncation"""

    def test_privmsg_header(self):
        frame = OutboundFrame.privmsg("#test")
        frame.append(b"hi there")
        assert frame.to_bytes() == b"PRIVMSG #test :hi there"

    def test_payload_truncated_to_capacity(self):
        frame = OutboundFrame.privmsg("#test", capacity=32)
        kept = frame.append(b"x" * 100)

        assert len(frame) == 31
        assert kept == 31 - len(b"PRIVMSG #test :")

    def test_remaining_counts_terminator(self):
        frame = OutboundFrame(b"HEAD", capacity=10)
        assert frame.remaining == 6
        frame.append(b"abcdefgh")
        assert frame.to_bytes() == b"HEADabcde"
        assert frame.append(b"z") == 0

    def test_longest_channel_fits_wire_limit(self):
        frame = OutboundFrame.privmsg("#" + "c" * 199)
        frame.append(b"y" * 1000)
        assert len(frame.to_bytes()) + 2 <= WIRE_LIMIT
        assert len(frame) == FRAME_CAPACITY - 1

    def test_header_too_large(self):
        with pytest.raises(FrameOverflowError):
            OutboundFrame(b"x" * 20, capacity=21)
