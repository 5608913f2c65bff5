"""
Configuration Schema and Models

Defines Pydantic models for the sync configuration, providing validation,
default values, and type checking for all options.

Author: nsync Project
License: MIT
"""

from enum import Enum
from typing import Optional
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.models import CompareMethod, HashAlgorithm, MoveDeletePolicy
from ..core.store_monitor import DEFAULT_THRESHOLD

MIN_CHUNK_SIZE = 64 * 1024          # 64 KiB
MAX_CHUNK_SIZE = 16 * 1024 * 1024   # 16 MiB


class LogLevel(str, Enum):
    """Logging level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level"
    )
    to_file: bool = Field(
        default=False,
        description="Enable logging to file"
    )
    file_path: Optional[str] = Field(
        default=None,
        description="Log file path (required when to_file is enabled)"
    )
    rotation_size: int = Field(
        default=10485760,  # 10MB
        description="Log file size before rotation (bytes)"
    )
    retention_count: int = Field(
        default=5,
        description="Number of rotated log files to keep"
    )
    json_format: bool = Field(
        default=False,
        description="Emit JSON log lines"
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        """Accept lowercase level names."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("file_path")
    @classmethod
    def validate_file_path(cls, v):
        """Ensure log path is absolute."""
        if v is not None and not Path(v).is_absolute():
            raise ValueError(f"Log file_path must be absolute: {v}")
        return v


class SyncSettings(BaseModel):
    """Defaults applied to every sync run."""

    compare_method: CompareMethod = Field(
        default=CompareMethod.SIZE_MTIME,
        description="How existing destinations are judged equivalent"
    )
    hash_algorithm: HashAlgorithm = Field(
        default=HashAlgorithm.XXH3,
        description="Digest algorithm for hash comparison and verification"
    )
    verify_destination: bool = Field(
        default=False,
        description="Re-hash destinations after copy"
    )
    move: bool = Field(
        default=False,
        description="Delete sources once every destination succeeded"
    )
    move_delete_policy: MoveDeletePolicy = Field(
        default=MoveDeletePolicy.BATCH,
        description="Delete sources at the end of the run (batch) or after each item"
    )
    recursive: bool = Field(
        default=True,
        description="Allow directory sources (copied as whole trees)"
    )
    store_failure_threshold: int = Field(
        default=DEFAULT_THRESHOLD,
        ge=1,
        description="Consecutive store-level errors before a destination is abandoned"
    )
    abort_on_store_failure: bool = Field(
        default=False,
        description="Stop the whole run once any destination is unavailable"
    )
    mtime_tolerance: float = Field(
        default=1.0,
        ge=0.0,
        description="Allowed modification time difference in seconds"
    )
    chunk_size: int = Field(
        default=1024 * 1024,
        ge=MIN_CHUNK_SIZE,
        le=MAX_CHUNK_SIZE,
        description="Read/write chunk size for copy and hashing (bytes)"
    )

    @field_validator("compare_method", "hash_algorithm", "move_delete_policy", mode="before")
    @classmethod
    def normalize_choice(cls, v):
        """Accept mixed-case enum values."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


class Config(BaseModel):
    """
    Root configuration model for nsync.

    Loaded from a YAML file and overridable by environment variables.
    """

    model_config = ConfigDict(validate_assignment=True)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    sync: SyncSettings = Field(default_factory=SyncSettings)
