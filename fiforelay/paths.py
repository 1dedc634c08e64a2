"""
Path configuration for fiforelay.
Centralizes default file locations with environment variable support.
"""

import os
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

# Base paths from environment with sensible defaults
BASE_DIR = Path(os.getenv('FIFORELAY_BASE_DIR', Path(__file__).parent.parent))
CONFIG_DIR = Path(os.getenv('FIFORELAY_CONFIG_DIR', BASE_DIR))

PIPE_NAME = 'irc-pipe'

def get_home_dir() -> Path:
    """Get the home directory, falling back to /tmp when HOME is unset."""
    return Path(os.environ.get('HOME') or '/tmp')

def get_default_pipe_path() -> Path:
    """Get the default FIFO location under the home directory."""
    return get_home_dir() / PIPE_NAME

def get_config_path(filename: str) -> Path:
    """Get absolute path for config file."""
    return CONFIG_DIR / filename

def ensure_parent_dir(path: Path):
    """Create the parent directory of a file path if it doesn't exist."""
    parent = Path(path).parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Ensured directory exists: {parent}")
    except PermissionError:
        logger.error(f"Permission denied creating directory: {parent}")
        raise
