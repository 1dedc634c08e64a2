"""Bounded construction of outbound channel messages"""

from .exceptions import FrameOverflowError

# Room for the server-prepended ":nick!user@host " on relayed copies
# keeps the line within the 512-byte wire limit.
FRAME_CAPACITY = 450
WIRE_LIMIT = 512

class OutboundFrame:
    """A fixed-capacity byte buffer: header first, payload truncated to fit.

    Capacity counts one reserved terminator byte, so at most
    ``capacity - 1`` bytes of text are ever held.
    """

    def __init__(self, header: bytes, capacity: int = FRAME_CAPACITY):
        if len(header) > capacity - 2:
            raise FrameOverflowError(
                f"frame header of {len(header)} bytes leaves no room in {capacity} bytes"
            )
        self.capacity = capacity
        self._buf = bytearray(header)

    @classmethod
    def privmsg(cls, target: str, capacity: int = FRAME_CAPACITY) -> "OutboundFrame":
        return cls(f"PRIVMSG {target} :".encode('utf-8'), capacity)

    @property
    def remaining(self) -> int:
        """Space left for payload, including the reserved terminator byte"""
        return self.capacity - len(self._buf)

    def append(self, data: bytes) -> int:
        """Append as much of ``data`` as fits; return the number of bytes kept"""
        room = self.remaining - 1
        kept = data[:room]
        self._buf += kept
        return len(kept)

    def to_bytes(self) -> bytes:
        return bytes(self._buf)

    def __len__(self):
        return len(self._buf)
