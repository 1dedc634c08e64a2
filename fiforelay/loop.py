"""
Single-threaded event loop multiplexing the relay sources and the IRC socket
"""

import logging
import os
import select
from typing import Callable, List, Optional

from .exceptions import LoopAborted, SourceError
from .session import IRCSession
from .sources import RelaySource, handle_text

POLL_TIMEOUT = 600  # seconds
IDLE_TIMEOUT = 600  # seconds without inbound data before the link is dead

READABLE = select.POLLIN | select.POLLPRI
HANGUP = select.POLLHUP | select.POLLERR | select.POLLNVAL

class EventLoop:
    """Waits on every stream at once and routes events to their handlers"""

    def __init__(self, session: IRCSession, sources: List[RelaySource],
                 wakeup_fd: Optional[int] = None,
                 should_stop: Callable[[], bool] = lambda: False,
                 poll_timeout: float = POLL_TIMEOUT,
                 idle_timeout: float = IDLE_TIMEOUT) -> None:
        self.session = session
        self.sources = list(sources)
        self.wakeup_fd = wakeup_fd
        self.should_stop = should_stop
        self.poll_timeout = poll_timeout
        self.idle_timeout = idle_timeout
        self.logger: logging.Logger = logging.getLogger("fiforelay.loop")

    def _build_poller(self):
        poller = select.poll()
        for source in self.sources:
            poller.register(source.fileno(), select.POLLIN)
        poller.register(self.session.fileno(), select.POLLIN)
        if self.wakeup_fd is not None:
            poller.register(self.wakeup_fd, select.POLLIN)
        return poller

    def _drain_wakeup(self):
        try:
            while os.read(self.wakeup_fd, 512):
                pass
        except BlockingIOError:
            pass

    def on_timeout(self):
        """Keepalive: declare the link dead or check it with a PING"""
        idle = self.session.idle_for()
        if idle > self.idle_timeout:
            self.logger.error(f"ping timeout: {int(idle)} seconds")
            self.session.disconnect_and_retry()
        else:
            self._guarded(self.session.send_ping)

    def _guarded(self, action, *args):
        """Run a session write; a dead socket counts as a disconnection"""
        try:
            return action(*args)
        except OSError as e:
            self.logger.warning(f"write to {self.session.config.SERVER} failed: {e}")
            self.session.disconnect_and_retry()
        return None

    def _relay(self, source: RelaySource, drain: bool = False) -> bool:
        """Relay one line, or every complete line left once the writer is gone.

        Returns True when a read error forced the source to be recreated.
        """
        try:
            while self._guarded(handle_text, self.session, source) and drain:
                pass
        except SourceError as e:
            # A broken source is treated like a hangup of that source only
            self.logger.warning(str(e))
            self._recreate(source)
            return True
        return False

    def _recreate(self, source: RelaySource):
        try:
            source.recreate()
        except SourceError as e:
            self.logger.error(str(e))
            raise LoopAborted(f"cannot recreate {source.kind} source: {e}")
        self.logger.info(f"{source.kind} source recreated")

    def dispatch(self, events):
        sources = {source.fileno(): source for source in self.sources}
        irc_sock = self.session.sock
        irc_fd = irc_sock.fileno()

        for fd, mask in events:
            if fd == self.wakeup_fd:
                self._drain_wakeup()
                continue

            source = sources.get(fd)
            if source is not None:
                recreated = False
                if mask & READABLE:
                    recreated = self._relay(source, drain=bool(mask & HANGUP))
                if mask & HANGUP and not recreated:
                    self._recreate(source)
            elif fd == irc_fd and self.session.sock is irc_sock:
                if mask & READABLE:
                    self._guarded(self.session.handle_inbound)
                    if self.session.sock is not irc_sock:
                        # Already reconnected while reading
                        continue
                if mask & HANGUP:
                    self.session.disconnect_and_retry()

    def run_once(self):
        """Wait for one batch of events and handle it"""
        poller = self._build_poller()
        try:
            events = poller.poll(int(self.poll_timeout * 1000))
        except OSError as e:
            self.logger.error(f"poll: {e}")
            raise LoopAborted(f"poll failed: {e}")

        if not events:
            self.on_timeout()
        else:
            self.dispatch(events)

    def run(self):
        """Loop until a stop is requested; errors propagate as RelayError"""
        while not self.should_stop():
            self.run_once()
