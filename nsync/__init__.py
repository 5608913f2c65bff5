"""
nsync

Multi-destination file synchronization engine: copies or moves files to
several destination directories in parallel, verifies the copies, and only
removes sources once every destination has confirmed success.

Author: nsync Project
License: MIT
"""

from .core import (
    CallbackObserver,
    CompareMethod,
    DestinationResult,
    ErrorClass,
    HashAlgorithm,
    ItemInfo,
    ItemResult,
    MoveDeletePolicy,
    NOOP_OBSERVER,
    StoreMonitor,
    SyncEngine,
    SyncObserver,
    SyncOptions,
    SyncPlan,
    SyncResult,
    SyncStats,
)
from .core.errors import (
    InvalidSyncRequest,
    SourceError,
    StoreUnavailableError,
    SyncCancelled,
    SyncError,
    VerificationError,
)

__version__ = "0.1.0"
__all__ = [
    'SyncEngine', 'SyncOptions', 'SyncObserver', 'CallbackObserver', 'NOOP_OBSERVER',
    'StoreMonitor', 'SyncPlan', 'ItemInfo', 'DestinationResult', 'ItemResult',
    'SyncStats', 'SyncResult', 'CompareMethod', 'HashAlgorithm', 'ErrorClass',
    'MoveDeletePolicy', 'SyncError', 'InvalidSyncRequest', 'SourceError',
    'StoreUnavailableError', 'VerificationError', 'SyncCancelled',
]
