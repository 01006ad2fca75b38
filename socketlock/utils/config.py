"""
Configuration utility for the instance lock
"""
import copy
import json
import logging
import os

DEFAULT_CONFIG = {
    "host": "127.0.0.1",
    "port_range": {
        "start": 6942,
        "count": 50,
        "forbidden": [6953, 6969, 6970],
    },
    "timeouts": {
        "probe": 0.3,
        "serve": 0.8,
        "accept_poll": 0.5,
    },
    "max_command_length": 8192,
    "log_level": "INFO",
}

logger = logging.getLogger(__name__)


def _merge(base, overrides):
    """Recursively merge overrides into a copy of base"""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """
    Lock settings, optionally backed by a JSON file.

    Without a path the configuration lives in memory only.
    """
    def __init__(self, config_path=None):
        self.config_path = config_path
        self.config = self._load_config()

    def _load_config(self):
        """Load the configuration file or create a default one if it doesn't exist"""
        if self.config_path is None:
            return copy.deepcopy(DEFAULT_CONFIG)

        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    return _merge(DEFAULT_CONFIG, json.load(f))
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Error reading config file {self.config_path}: {e}, using defaults")
                return copy.deepcopy(DEFAULT_CONFIG)
        return self._create_default_config()

    def _create_default_config(self):
        default_config = copy.deepcopy(DEFAULT_CONFIG)
        self._save_config(default_config)
        return default_config

    def _save_config(self, config=None):
        """Save configuration to file"""
        if self.config_path is None:
            return
        if config is None:
            config = self.config

        directory = os.path.dirname(os.path.abspath(self.config_path))
        os.makedirs(directory, exist_ok=True)

        try:
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(config, f, indent=4)
        except OSError as e:
            logger.error(f"Error saving config: {e}")

    def update(self, **kwargs):
        """Update configuration values, merging nested sections"""
        self.config = _merge(self.config, kwargs)
        self._save_config()

    def get(self, key, default=None):
        """Get a configuration value"""
        # Support nested keys with dot notation (e.g., "timeouts.probe")
        if '.' in key:
            value = self.config
            for part in key.split('.'):
                if isinstance(value, dict):
                    value = value.get(part)
                else:
                    return default
            return value if value is not None else default
        return self.config.get(key, default)
