"""
nsync Core Module

Sync engine orchestration, data model, observer interface, and store
failure monitoring.

Author: nsync Project
License: MIT
"""

from .models import (
    CompareMethod,
    DestinationResult,
    ErrorClass,
    FileStat,
    HashAlgorithm,
    ItemInfo,
    ItemResult,
    MoveDeletePolicy,
    SyncPlan,
    SyncResult,
    SyncStats,
)
from .observer import CallbackObserver, NOOP_OBSERVER, SyncObserver
from .store_monitor import StoreMonitor
from .sync_engine import SyncEngine, SyncOptions

__all__ = [
    'SyncEngine', 'SyncOptions', 'SyncObserver', 'CallbackObserver', 'NOOP_OBSERVER',
    'StoreMonitor', 'CompareMethod', 'DestinationResult', 'ErrorClass', 'FileStat',
    'HashAlgorithm', 'ItemInfo', 'ItemResult', 'MoveDeletePolicy', 'SyncPlan',
    'SyncResult', 'SyncStats',
]
