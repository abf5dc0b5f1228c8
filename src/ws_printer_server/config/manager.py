from copy import deepcopy
from pathlib import Path
import toml
import json

from ws_printer_server.errors import ConfigError


HOME_CONFIG = Path.home() / '.ws_printer_server' / 'config.toml'
LOCAL_CONFIG = Path('config.toml')

# Built-in values used when a key is missing from the config file.
DEFAULTS = {
    'server': {
        'host': 'localhost',
        'port': 8080,
        'max_message_size': 4 * 1024 * 1024,
    },
    'printer': {
        'selected': '',
        'page_width_inches': 3.0,
        'dpi': 203,
    },
    'pdf': {
        'tool': 'SumatraPDF.exe',
        'download_timeout': 60,
        'tool_timeout': 120,
    },
    'spooler': {
        'command': 'lp',
        'timeout': 60,
    },
    'logging': {
        'level': 'INFO',
        'file': 'logs.txt',
    },
}


def find_config_file():
    """Return the first existing config file in lookup order, or None."""
    if HOME_CONFIG.exists():
        return HOME_CONFIG
    if LOCAL_CONFIG.exists():
        return LOCAL_CONFIG
    return None


def default_config_path() -> Path:
    """Config file to write to when none exists yet."""
    return find_config_file() or HOME_CONFIG


def parse_port(value) -> int:
    """Validate a TCP port number given as int or string."""
    try:
        port = int(str(value).strip())
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid port number: {value!r}")
    if not 0 < port < 65536:
        raise ConfigError(f"Port out of range: {port}")
    return port


class ConfigManager:
    """Manages configuration loading and access."""

    def __init__(self, config_file: str = None):
        """
        Initialize ConfigManager.

        Args:
            config_file: Path to config file. If None, uses default locations.
        """
        if config_file is None:
            config_file = find_config_file()

        self.config_file = Path(config_file) if config_file else None
        self.config = {}
        if self.config_file:
            self.load_config()

    def exists(self):
        """Check if config file exists."""
        return bool(self.config_file and self.config_file.exists())

    def load_config(self):
        """Load configuration from file."""
        if not self.config_file or not self.config_file.exists():
            return

        try:
            if self.config_file.suffix == '.json':
                with open(self.config_file, 'r') as f:
                    self.config = json.load(f)
            else:
                self.config = toml.load(self.config_file)
        except (toml.TomlDecodeError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot parse {self.config_file}: {e}")

    def save_config(self):
        """Save configuration to file."""
        if not self.config_file:
            raise ConfigError("No config file specified")

        self.config_file.parent.mkdir(parents=True, exist_ok=True)

        if self.config_file.suffix == '.json':
            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=4)
        else:
            with open(self.config_file, 'w') as f:
                toml.dump(self.config, f)

    def write_defaults(self):
        """Populate the file with the built-in defaults and save it."""
        self.config = deepcopy(DEFAULTS)
        self.save_config()

    def get(self, key: str, default=None):
        """
        Get configuration value using dot notation.

        Falls back to the built-in DEFAULTS, then to ``default``.

        Args:
            key: Configuration key (e.g., 'server.port')
            default: Default value if key not found anywhere

        Returns:
            Configuration value or default
        """
        value = _lookup(self.config, key)
        if value is None:
            value = _lookup(DEFAULTS, key)
        return default if value is None else value

    def set(self, key: str, value, save: bool = True):
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'printer.selected')
            value: Value to set
            save: Persist to the config file when one is configured
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value
        if save and self.config_file:
            self.save_config()

    def update(self, updates: dict):
        """Update multiple dot-notation keys and save once."""
        for key, value in updates.items():
            self.set(key, value, save=False)
        if self.config_file:
            self.save_config()


def _lookup(tree: dict, key: str):
    value = tree
    for k in key.split('.'):
        if not isinstance(value, dict):
            return None
        value = value.get(k)
        if value is None:
            return None
    return value
