"""
nsync Configuration Module

Handles configuration loading and validation for sync defaults and
logging. Supports YAML-based configuration with environment variable
overrides.

Author: nsync Project
License: MIT
"""

from .schema import Config, LoggingConfig, LogLevel, SyncSettings
from .config_loader import ConfigLoader, load_config

__all__ = ['Config', 'LoggingConfig', 'LogLevel', 'SyncSettings', 'ConfigLoader', 'load_config']
