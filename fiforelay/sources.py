"""
Relay sources: byte streams that produce outbound chat lines and may hang up
"""

import logging
import os
import shlex
import stat
import subprocess
from typing import List, Optional

import psutil

from .exceptions import Hangup, SourceError
from .frame import OutboundFrame
from .linereader import read_line

logger = logging.getLogger(__name__)

PIPE = 'pipe'
SUBPROCESS = 'subprocess'

class RelaySource:
    """A readable stream that is recreated after it hangs up"""

    kind: str = None

    def fileno(self) -> int:
        raise NotImplementedError

    def read_line(self, max_len: int) -> bytes:
        return read_line(self.fileno(), max_len)

    def recreate(self):
        raise NotImplementedError

    def close(self):
        raise NotImplementedError

class PipeSource(RelaySource):
    """Named pipe opened for non-blocking reads, created on demand"""

    kind = PIPE

    def __init__(self, path: str, mode: int = 0o700):
        self.path = str(path)
        self.mode = mode
        self.fd: Optional[int] = None

    def fileno(self) -> int:
        return self.fd

    def _ensure_fifo(self):
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            try:
                os.mkfifo(self.path, self.mode)
            except OSError as e:
                raise SourceError(f"mkfifo {self.path}: {e.strerror}", kind=self.kind)
            logger.debug(f"Created fifo {self.path} with mode {oct(self.mode)}")
            return
        except OSError as e:
            raise SourceError(f"stat {self.path}: {e.strerror}", kind=self.kind)

        if not stat.S_ISFIFO(st.st_mode):
            raise SourceError(f"{self.path}: exists and is not a fifo", kind=self.kind)

    def open(self):
        self.close()
        self._ensure_fifo()
        try:
            self.fd = os.open(self.path, os.O_RDONLY | os.O_NONBLOCK)
        except OSError as e:
            raise SourceError(f"open {self.path}: {e.strerror}", kind=self.kind)
        return self

    def recreate(self):
        """Reopen after the writer side closed"""
        logger.debug(f"Reopening fifo {self.path}")
        self.open()

    def close(self):
        if self.fd is not None:
            os.close(self.fd)
            self.fd = None

class SubprocessSource(RelaySource):
    """Child process whose stdout feeds the channel and whose stdin
    receives inbound message bodies"""

    kind = SUBPROCESS

    def __init__(self, command: str, terminate_timeout: float = 3.0):
        self.command = command
        self.argv: List[str] = shlex.split(command)
        self.terminate_timeout = terminate_timeout
        self.process: Optional[subprocess.Popen] = None

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process else None

    def fileno(self) -> int:
        return self.process.stdout.fileno()

    def spawn(self):
        if not self.argv:
            raise SourceError("empty subprocess command", kind=self.kind)
        try:
            self.process = subprocess.Popen(
                self.argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                bufsize=0,
            )
        except OSError as e:
            self.process = None
            raise SourceError(f"spawn {self.command}: {e}", kind=self.kind)
        os.set_blocking(self.process.stdout.fileno(), False)
        logger.info(f"spawned {self.argv[0]} (pid {self.process.pid})")
        return self

    def write(self, data: bytes):
        """Send bytes to the child's stdin"""
        if self.process is None or self.process.stdin.closed:
            return
        try:
            self.process.stdin.write(data)
        except (BrokenPipeError, ValueError) as e:
            # The stdout hangup drives the respawn
            logger.warning(f"subprocess {self.pid} not accepting input: {e}")

    def _terminate(self):
        try:
            parent = psutil.Process(self.process.pid)
            procs = parent.children(recursive=True) + [parent]
        except psutil.NoSuchProcess:
            procs = []

        for proc in procs:
            try:
                proc.terminate()
            except psutil.NoSuchProcess:
                pass
        gone, alive = psutil.wait_procs(procs, timeout=self.terminate_timeout)
        for proc in alive:
            logger.warning(f"subprocess {proc.pid} ignored SIGTERM, killing")
            try:
                proc.kill()
            except psutil.NoSuchProcess:
                pass
        # Reap the direct child
        self.process.wait()

    def close(self):
        if self.process is None:
            return
        for stream in (self.process.stdin, self.process.stdout):
            try:
                stream.close()
            except OSError:
                pass
        self._terminate()
        logger.debug(f"subprocess {self.process.pid} exited with {self.process.returncode}")
        self.process = None

    def recreate(self):
        """Replace the child with a fresh one"""
        self.close()
        self.spawn()

def handle_text(session, source: RelaySource):
    """Relay one line from ``source`` to the channel as a PRIVMSG"""
    frame = OutboundFrame.privmsg(session.config.CHANNEL)
    try:
        line = source.read_line(frame.remaining)
    except Hangup:
        return False
    except OSError as e:
        raise SourceError(f"read from {source.kind} source: {e}", kind=source.kind)

    newline = line.find(b'\n')
    if newline != -1:
        line = line[:newline]
    frame.append(line)
    session.send(frame.to_bytes())
    return True
