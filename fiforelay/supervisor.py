"""
Top-level lifecycle: startup, signal-triggered shutdown, exit status
"""

import logging
import os
import signal
from typing import Dict, List, Optional

from .config import RelayConfig
from .exceptions import DisconnectedError, LoopAborted, RelayError
from .loop import EventLoop
from .session import IRCSession
from .sources import PipeSource, RelaySource, SubprocessSource

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)

class Supervisor:
    """Owns the session, the sources and the event loop"""

    def __init__(self, config: RelayConfig, session: Optional[IRCSession] = None) -> None:
        self.config = config
        self.session = session or IRCSession(config)
        self.logger: logging.Logger = logging.getLogger("fiforelay.supervisor")

        self.pipe: Optional[PipeSource] = None
        self.child: Optional[SubprocessSource] = None
        self.loop: Optional[EventLoop] = None

        self.stop_requested: bool = False
        self._wakeup_r: Optional[int] = None
        self._wakeup_w: Optional[int] = None
        self._saved_handlers: Dict[int, object] = {}
        self._saved_wakeup_fd: int = -1

    @property
    def sources(self) -> List[RelaySource]:
        return [source for source in (self.pipe, self.child) if source is not None]

    def signal_handler(self, signum, frame):
        """Handle shutdown signals by flagging the loop"""
        self.stop_requested = True

    def install_signal_handlers(self):
        self._wakeup_r, self._wakeup_w = os.pipe()
        os.set_blocking(self._wakeup_r, False)
        os.set_blocking(self._wakeup_w, False)
        self._saved_wakeup_fd = signal.set_wakeup_fd(self._wakeup_w)
        for signum in SHUTDOWN_SIGNALS:
            self._saved_handlers[signum] = signal.signal(signum, self.signal_handler)

    def restore_signal_handlers(self):
        for signum, handler in self._saved_handlers.items():
            signal.signal(signum, handler)
        self._saved_handlers.clear()
        if self._wakeup_w is not None:
            signal.set_wakeup_fd(self._saved_wakeup_fd)
            os.close(self._wakeup_r)
            os.close(self._wakeup_w)
            self._wakeup_r = self._wakeup_w = None

    def start(self):
        """Open the sources and connect; any failure here is fatal"""
        self.pipe = PipeSource(self.config.PIPE_PATH, self.config.PIPE_MODE).open()
        self.logger.info(f"fifo at {self.config.PIPE_PATH}")

        if self.config.COMMAND:
            self.child = SubprocessSource(self.config.COMMAND).spawn()
            self.session.sink = self.child

        self.session.connect()

        self.loop = EventLoop(
            self.session,
            self.sources,
            wakeup_fd=self._wakeup_r,
            should_stop=lambda: self.stop_requested,
        )

    def shutdown(self):
        """Close every source"""
        for source in self.sources:
            try:
                source.close()
            except OSError as e:
                self.logger.warning(f"closing {source.kind} source: {e}")

    def run(self) -> int:
        """Run the relay to completion and return the process exit status"""
        self.install_signal_handlers()
        try:
            self.start()
            self.loop.run()
            self.logger.info("Shutdown requested, quitting")
            self.session.quit()
            return 0
        except LoopAborted as e:
            self.logger.error(f"event loop aborted: {e}")
            self.session.quit()
            return 1
        except DisconnectedError as e:
            self.logger.error(f"giving up on {e.server}: reconnect is disabled")
            return 1
        except RelayError as e:
            self.logger.error(str(e))
            return 1
        finally:
            self.shutdown()
            self.restore_signal_handlers()
