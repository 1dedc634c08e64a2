"""
IRC session: connection lifecycle and the minimal line protocol
"""

import logging
import socket
import time
from typing import Callable, Optional, Union

from . import CLIENT_NAME
from .config import RelayConfig
from .exceptions import DisconnectedError, Hangup, IRCConnectionError
from .linereader import read_line
from .logging_config import trace

INBOUND_LINE_MAX = 1024
CTCP_VERSION = b'\x01VERSION\x01'

class SessionState:
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    REGISTERED = 'registered'

def sender_nick(line: bytes) -> Optional[bytes]:
    """Extract the nick from a ':nick!user@host ...' prefix"""
    if not line.startswith(b':'):
        return None
    prefix = line[1:].split(b' ', 1)[0]
    return prefix.split(b'!', 1)[0]

def privmsg_payload(line: bytes) -> Optional[bytes]:
    """Return the trailing parameter of a PRIVMSG line, or None"""
    marker = line.find(b' PRIVMSG ')
    if marker == -1:
        return None
    rest = line[marker + len(b' PRIVMSG '):]
    colon = rest.find(b' :')
    if colon != -1:
        return rest[colon + 2:]
    # No trailing parameter: take the last middle parameter
    params = rest.split(b' ')
    return params[-1] if len(params) > 1 else b''

class IRCSession:
    """Owns the single IRC connection of the relay"""

    def __init__(self, config: RelayConfig, clock: Callable[[], float] = time.time,
                 client_name: str = CLIENT_NAME) -> None:
        self.config = config
        self.clock = clock
        self.client_name = client_name
        self.logger: logging.Logger = logging.getLogger("fiforelay.session")

        self.sock: Optional[socket.socket] = None
        self.state: str = SessionState.DISCONNECTED
        self.last_receive: float = clock()

        # Subprocess input receiving inbound PRIVMSG bodies, if configured
        self.sink = None

    def fileno(self) -> int:
        return self.sock.fileno()

    def _open_socket(self) -> socket.socket:
        host, port = self.config.SERVER, self.config.PORT
        try:
            address = socket.gethostbyname(host)
        except (socket.gaierror, UnicodeError) as e:
            raise IRCConnectionError(f"gethostbyname {host}: failed ({e})")

        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            raise IRCConnectionError(f"socket: {e}")
        try:
            sock.connect((address, port))
        except OSError as e:
            sock.close()
            raise IRCConnectionError(f"connect {host}:{port}: {e}")

        self.logger.info(f"connected to {host}:{port}")
        return sock

    def connect(self):
        """Open the connection and send the registration burst"""
        self.state = SessionState.CONNECTING
        try:
            self.sock = self._open_socket()
        except IRCConnectionError:
            self.state = SessionState.DISCONNECTED
            raise

        nick = self.config.NICK
        try:
            self.send(f"NICK {nick}")
            self.send(f"USER {nick} localhost {self.config.SERVER} :{self.config.FULLNAME}")
            if self.config.NICKSERV_PASSWORD:
                self.send(f"PRIVMSG NickServ :identify {nick} {self.config.NICKSERV_PASSWORD}")
            self.send(f"JOIN {self.config.CHANNEL}")
        except OSError as e:
            self.close()
            raise IRCConnectionError(f"registration with {self.config.SERVER} failed: {e}")

        self.state = SessionState.REGISTERED
        self.last_receive = self.clock()

    def close(self):
        if self.sock is not None:
            try:
                self.sock.close()
            finally:
                self.sock = None
        self.state = SessionState.DISCONNECTED

    def disconnect_and_retry(self):
        """Drop the connection, then reconnect or give up per configuration"""
        self.close()
        self.logger.error(f"disconnection from {self.config.SERVER}")

        if not self.config.RECONNECT:
            raise DisconnectedError(f"disconnected from {self.config.SERVER}", server=self.config.SERVER)
        self.connect()

    def send(self, text: Union[str, bytes]):
        """Write one protocol line; the caller keeps it within 510 bytes"""
        if isinstance(text, str):
            text = text.encode('utf-8')
        trace('>', text)
        self.sock.sendall(text + b'\r\n')

    def send_ping(self):
        self.send(f"PING :{self.config.SERVER}")

    def idle_for(self, now: Optional[float] = None) -> float:
        """Seconds since the last inbound line"""
        if now is None:
            now = self.clock()
        return now - self.last_receive

    def handle_inbound(self):
        """Read and act on one line from the server"""
        try:
            line = read_line(self.sock, INBOUND_LINE_MAX)
        except Hangup:
            self.disconnect_and_retry()
            return

        for terminator in (b'\r', b'\n'):
            cut = line.find(terminator)
            if cut != -1:
                line = line[:cut]

        trace('<', line)
        self.last_receive = self.clock()

        if line.startswith(b'PING '):
            self.send(b'PONG ' + line[5:])
            return

        payload = privmsg_payload(line)
        if payload is None:
            return

        if self.sink is not None:
            self.sink.write(payload + b'\n')

        if payload == CTCP_VERSION:
            nick = sender_nick(line)
            if nick:
                self.send(b'NOTICE ' + nick + b' :\x01VERSION ' + self.client_name.encode('utf-8') + b'\x01')

    def quit(self):
        """Best-effort QUIT, then close the connection"""
        if self.sock is not None:
            try:
                self.send("QUIT")
            except OSError as e:
                self.logger.warning(f"QUIT not delivered: {e}")
        self.close()
