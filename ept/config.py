"""
load the config from config.yaml and environment variables
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any

DEFAULT_CONFIG_PATH = Path("config.yaml")


class Config:
    """Configuration loader that reads from config.yaml and environment variables."""

    # Environment variable -> (nested config key, value type)
    ENV_MAPPINGS = {
        'EPT_BASE_URL': (('repository', 'base_url'), str),
        'EPT_OUTPUT_DIR': (('download', 'output_dir'), str),
        'EPT_CHUNK_SIZE': (('download', 'chunk_size'), int),
        'LOG_LEVEL': (('logging', 'level'), str),
    }

    def __init__(self, config_path: str = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to a YAML file. If None, config.yaml in the
                        working directory is used when it exists.
        """
        self._explicit = config_path is not None
        self.config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file and override with environment variables."""
        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        except FileNotFoundError:
            if self._explicit:
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
            config = {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not isinstance(config, dict):
            raise ValueError(f"Configuration file must contain a mapping: {self.config_path}")

        return self._apply_env_overrides(config)

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        for env_var, (config_path, value_type) in self.ENV_MAPPINGS.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                current = config
                for key in config_path[:-1]:
                    if not isinstance(current.get(key), dict):
                        current[key] = {}
                    current = current[key]

                try:
                    current[config_path[-1]] = value_type(env_value)
                except ValueError:
                    raise ValueError(f"{env_var} must be {value_type.__name__}, got {env_value!r}")

        return config

    def get(self, *keys, default=None):
        """Get configuration value by nested keys.

        Args:
            *keys: Configuration keys (e.g., 'repository', 'base_url')
            default: Default value if key not found
        """
        current = self._config
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    @property
    def repository(self) -> Dict[str, Any]:
        """Get package repository configuration."""
        return self.get('repository') or {}

    @property
    def download(self) -> Dict[str, Any]:
        """Get download configuration."""
        return self.get('download') or {}

    @property
    def logging(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.get('logging') or {}
