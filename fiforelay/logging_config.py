import logging
import logging.handlers
import sys
from typing import Optional, Union
from .paths import ensure_parent_dir

# Verbosity levels accepted on the command line
QUIET = 0
LIFECYCLE = 1
PROTOCOL = 2

LEVELS = {
    QUIET: logging.WARNING,
    LIFECYCLE: logging.INFO,
    PROTOCOL: logging.DEBUG,
}

WIRE_LOGGER = 'fiforelay.wire'

def escape_nonprintable(text: Union[bytes, str]) -> str:
    """Render a protocol line with non-printable bytes as \\xNN escapes"""
    if isinstance(text, str):
        text = text.encode('utf-8', errors='replace')
    return ''.join(chr(b) if 0x20 <= b < 0x7f else f"\\x{b:02x}" for b in text)

class RelayLogger:
    """Centralized logging configuration for the relay"""

    def __init__(self, verbosity: int = QUIET, log_file: Optional[str] = None):
        self.verbosity = verbosity
        self.log_level = LEVELS.get(min(verbosity, PROTOCOL), logging.WARNING)
        self.log_file = log_file
        self.setup_logging()

    def setup_logging(self):
        """Configure console logging on stderr and an optional rotating file"""
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG if self.log_file else self.log_level)

        # Clear any existing handlers
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(logging.Formatter('fiforelay: %(message)s'))
        root_logger.addHandler(console_handler)

        if self.log_file:
            ensure_parent_dir(self.log_file)
            file_handler = logging.handlers.RotatingFileHandler(
                self.log_file,
                maxBytes=10*1024*1024,  # 10MB
                backupCount=5
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            root_logger.addHandler(file_handler)

def setup_logging(verbosity: int = QUIET, log_file: Optional[str] = None):
    """Setup logging for the relay"""
    return RelayLogger(verbosity, log_file)

def trace(direction: str, line: Union[bytes, str]):
    """Log a raw protocol line; '>' for outbound, '<' for inbound"""
    logger = logging.getLogger(WIRE_LOGGER)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"{direction} {escape_nonprintable(line)}")
