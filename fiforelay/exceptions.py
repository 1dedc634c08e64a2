"""Custom exceptions for the relay"""

class RelayError(Exception):
    """Base exception for relay-related errors"""
    pass

class ConfigError(RelayError):
    """Raised when configuration is invalid or missing"""
    pass

class IRCConnectionError(RelayError):
    """Raised when the IRC server cannot be resolved or reached"""
    pass

class DisconnectedError(IRCConnectionError):
    """Raised when the connection is lost and reconnect is disabled"""
    def __init__(self, message: str, server: str = None):
        super().__init__(message)
        self.server = server

class SourceError(RelayError):
    """Raised when a pipe or subprocess source cannot be (re)created"""
    def __init__(self, message: str, kind: str = None):
        super().__init__(message)
        self.kind = kind

class Hangup(RelayError):
    """Raised when a stream delivers nothing on the first read of a line"""
    pass

class FrameOverflowError(RelayError):
    """Raised when a frame header does not fit the frame capacity"""
    pass

class LoopAborted(RelayError):
    """Raised when the event loop cannot continue"""
    pass
