import os
from typing import Any, Dict, Optional
from dotenv import load_dotenv
from .exceptions import ConfigError
from .paths import get_config_path, get_default_pipe_path

ENV_PREFIX = 'FIFORELAY_'
MAX_CHANNEL_LENGTH = 200

DEFAULTS = {
    'SERVER': 'irc.libera.chat',
    'PORT': 6667,
    'CHANNEL': '#fiforelay',
    'RECONNECT': False,
    'PIPE_MODE': 0o700,
    'VERBOSE': 0,
}

class RelayConfig:
    """Relay configuration loaded from .env, environment and CLI overrides"""

    def __init__(self, overrides: Optional[Dict[str, Any]] = None, env_file: Optional[str] = None):
        load_dotenv(env_file or get_config_path('.env'))
        self._load_config()
        if overrides:
            self._apply_overrides(overrides)
        if not self.FULLNAME:
            self.FULLNAME = self.NICK
        self.validate()

    def _env(self, name: str, default=None):
        value = os.getenv(ENV_PREFIX + name)
        if value is None or value == '':
            return default
        return value

    def _env_int(self, name: str, default: int, base: int = 10) -> int:
        value = self._env(name)
        if value is None:
            return default
        try:
            return int(value, base)
        except ValueError:
            raise ConfigError(f"Invalid value for {ENV_PREFIX}{name}: {value!r}")

    def _load_config(self):
        """Load configuration from FIFORELAY_* environment variables"""
        self.SERVER = self._env('SERVER', DEFAULTS['SERVER'])
        self.PORT = self._env_int('PORT', DEFAULTS['PORT'])
        self.CHANNEL = self._env('CHANNEL', DEFAULTS['CHANNEL'])
        self.NICK = self._env('NICK')
        self.FULLNAME = self._env('FULLNAME')
        self.RECONNECT = self._env('RECONNECT', 'false').lower() in ('1', 'true', 'yes')

        # Remove the secret from the environment so spawned children never see it
        self.NICKSERV_PASSWORD = self._env('NICKSERV_PASSWORD')
        os.environ.pop(ENV_PREFIX + 'NICKSERV_PASSWORD', None)

        self.PIPE_PATH = self._env('PIPE', str(get_default_pipe_path()))
        self.PIPE_MODE = self._env_int('PIPE_MODE', DEFAULTS['PIPE_MODE'], base=8)
        self.COMMAND = self._env('COMMAND')
        self.VERBOSE = self._env_int('VERBOSE', DEFAULTS['VERBOSE'])
        self.LOG_FILE = self._env('LOG_FILE')

    def _apply_overrides(self, overrides: Dict[str, Any]):
        for name, value in overrides.items():
            if value is None:
                continue
            if not hasattr(self, name):
                raise ConfigError(f"Unknown configuration option: {name}")
            setattr(self, name, value)

    def validate(self):
        """Validate configuration is complete and valid"""
        if not self.NICK:
            raise ConfigError("no nickname specified")
        # Counted in bytes: the channel goes into a fixed-size frame header
        if len(self.CHANNEL.encode('utf-8')) > MAX_CHANNEL_LENGTH:
            raise ConfigError(f"{self.CHANNEL}: channels must be at most {MAX_CHANNEL_LENGTH} bytes.")
        if not 0 < self.PORT < 65536:
            raise ConfigError(f"Invalid port: {self.PORT}")
        if self.VERBOSE < 0:
            raise ConfigError(f"Invalid verbosity: {self.VERBOSE}")
        self.VERBOSE = min(self.VERBOSE, 2)
        if not 0 <= self.PIPE_MODE <= 0o7777:
            raise ConfigError(f"Invalid pipe mode: {oct(self.PIPE_MODE)}")
        return True

    def __repr__(self):
        secret = '***' if self.NICKSERV_PASSWORD else None
        return (f"RelayConfig(server={self.SERVER!r}, port={self.PORT}, channel={self.CHANNEL!r}, "
                f"nick={self.NICK!r}, nickserv_password={secret!r}, reconnect={self.RECONNECT}, "
                f"pipe={self.PIPE_PATH!r}, command={self.COMMAND!r})")
