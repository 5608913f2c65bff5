"""
Configuration Loader

Handles loading, parsing, and merging configuration from YAML files and
environment variables.

Author: nsync Project
License: MIT
"""

import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dotenv import load_dotenv
from pydantic import ValidationError

from .schema import Config

# Environment variable -> (section, key, converter)
ENV_OVERRIDES = {
    "NSYNC_LOG_LEVEL": ("logging", "level", str),
    "NSYNC_LOG_TO_FILE": ("logging", "to_file", lambda v: v.lower() == "true"),
    "NSYNC_LOG_FILE": ("logging", "file_path", str),
    "NSYNC_LOG_JSON": ("logging", "json_format", lambda v: v.lower() == "true"),
    "NSYNC_COMPARE_METHOD": ("sync", "compare_method", str),
    "NSYNC_HASH_ALGORITHM": ("sync", "hash_algorithm", str),
    "NSYNC_VERIFY": ("sync", "verify_destination", lambda v: v.lower() == "true"),
    "NSYNC_MOVE": ("sync", "move", lambda v: v.lower() == "true"),
    "NSYNC_MOVE_DELETE_POLICY": ("sync", "move_delete_policy", str),
    "NSYNC_RECURSIVE": ("sync", "recursive", lambda v: v.lower() == "true"),
    "NSYNC_STORE_FAILURE_THRESHOLD": ("sync", "store_failure_threshold", int),
    "NSYNC_ABORT_ON_STORE_FAILURE": ("sync", "abort_on_store_failure", lambda v: v.lower() == "true"),
    "NSYNC_MTIME_TOLERANCE": ("sync", "mtime_tolerance", float),
    "NSYNC_CHUNK_SIZE": ("sync", "chunk_size", int),
}


class ConfigLoader:
    """
    Configuration loader and manager.

    Loads configuration from a YAML file, merges environment variables,
    and validates the structure.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration loader.

        Args:
            config_path: Path to the configuration file. If None, uses
                ``NSYNC_CONFIG`` or ``nsync.yaml`` in the working directory.
        """
        # Load environment variables from .env if present
        load_dotenv()

        self.config_path = config_path or os.getenv("NSYNC_CONFIG", "nsync.yaml")
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """
        Load and validate configuration.

        Returns:
            Validated Config object

        Raises:
            ValueError: If YAML parsing or validation fails
        """
        config_data = self._load_yaml()
        config_data = self._merge_env_vars(config_data)

        try:
            self._config = Config(**config_data)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e

        return self._config

    def _load_yaml(self) -> Dict[str, Any]:
        """
        Load YAML configuration file.

        Returns:
            Dictionary with configuration data (empty if the file is missing)
        """
        config_file = Path(self.config_path)

        if not config_file.exists():
            return {}

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML config: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping: {config_file}")
        return data

    def _merge_env_vars(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge environment variables into configuration.

        Environment variables override config file values.
        Naming convention: NSYNC_<KEY> (e.g., NSYNC_COMPARE_METHOD)

        Args:
            config_data: Configuration dictionary from file

        Returns:
            Merged configuration dictionary
        """
        for env_name, (section, key, convert) in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value is None or value == "":
                continue
            try:
                config_data.setdefault(section, {})[key] = convert(value)
            except ValueError as e:
                raise ValueError(f"Invalid value for {env_name}: {value!r}") from e

        return config_data

    def save(self, config: Config, path: Optional[str] = None) -> None:
        """
        Save configuration to YAML file.

        Args:
            config: Config object to save
            path: Path to save to (uses default if None)
        """
        save_path = Path(path or self.config_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = config.model_dump(mode="json")

        with open(save_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)

    def reload(self) -> Config:
        """
        Reload configuration from file.

        Returns:
            Reloaded Config object
        """
        return self.load()

    @property
    def config(self) -> Optional[Config]:
        """Get the current configuration object."""
        return self._config


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Convenience function to load configuration.

    Args:
        config_path: Optional path to config file

    Returns:
        Loaded and validated Config object
    """
    loader = ConfigLoader(config_path)
    return loader.load()
