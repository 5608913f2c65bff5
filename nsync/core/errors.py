"""
Sync Errors

Exception types raised or captured by the sync engine.

Author: nsync Project
License: MIT
"""

from typing import Optional


class SyncError(Exception):
    """Base class for all sync engine errors."""


class InvalidSyncRequest(SyncError, ValueError):
    """The sync request itself is malformed (empty lists, relative paths)."""


class SourceError(SyncError):
    """A source item could not be read or described."""

    def __init__(self, source_path: str, message: str):
        super().__init__(f"{message}: {source_path}")
        self.source_path = source_path


class StoreUnavailableError(SyncError):
    """A destination root has been marked unavailable for this run."""

    def __init__(self, destination: str, reason: Optional[str] = None):
        message = f"Destination store unavailable: {destination}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.destination = destination


class VerificationError(SyncError):
    """Post-copy digest of a destination did not match the source digest."""

    def __init__(self, dest_path: str, expected: str, actual: Optional[str]):
        super().__init__(f"Verification failed: hash mismatch for {dest_path}")
        self.dest_path = dest_path
        self.expected = expected
        self.actual = actual


class SyncCancelled(SyncError):
    """The run was cancelled before this destination was attempted."""

    def __init__(self, message: str = "Cancelled"):
        super().__init__(message)
