"""Byte-at-a-time line reading over raw file descriptors"""

import os
from typing import Union
from .exceptions import Hangup

NEWLINE = b'\n'

def _fd(stream) -> int:
    return stream if isinstance(stream, int) else stream.fileno()

def read_line(stream: Union[int, object], max_len: int) -> bytes:
    """Read one line of at most ``max_len - 1`` bytes from ``stream``.

    Reading stops after a newline (kept in the result), once ``max_len - 1``
    bytes have been read, or when the stream ends or would block. Only a
    first read that delivers nothing counts as a hangup; a partial line that
    runs into the end of the stream is returned as it is.
    """
    if max_len < 2:
        raise ValueError(f"max_len must be at least 2, got {max_len}")

    fd = _fd(stream)
    line = bytearray()
    while len(line) < max_len - 1:
        try:
            byte = os.read(fd, 1)
        except (BlockingIOError, ConnectionResetError):
            byte = b''
        if not byte:
            break
        line += byte
        if byte == NEWLINE:
            break

    if not line:
        raise Hangup(f"no data on descriptor {fd}")
    return bytes(line)
