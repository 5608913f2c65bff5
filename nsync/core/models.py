"""
Sync Data Model

Plans, per-item and per-destination results, and the final run result
produced by the sync engine. Everything here lives for the duration of a
single ``SyncEngine.sync()`` call.

Author: nsync Project
License: MIT
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


class CompareMethod(str, Enum):
    """Strategy used to decide whether an existing destination can be skipped."""
    NONE = "none"
    SIZE = "size"
    MTIME = "mtime"
    SIZE_MTIME = "size-mtime"
    HASH = "hash"


class HashAlgorithm(str, Enum):
    """Supported content digest algorithms."""
    XXH3 = "xxh3"
    XXH64 = "xxh64"
    SHA256 = "sha256"
    BLAKE2B = "blake2b"


class ErrorClass(str, Enum):
    """Classification of a destination failure."""
    STORE_UNAVAILABLE = "store_unavailable"
    FILE_SPECIFIC = "file_specific"
    VERIFY_FAILED = "verify_failed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class MoveDeletePolicy(str, Enum):
    """When sources are removed in move mode."""
    BATCH = "batch"
    PER_ITEM = "per_item"


@dataclass(frozen=True)
class FileStat:
    """Result of stat-ing one path."""
    path: str
    size: int
    mtime: float
    is_dir: bool = False


@dataclass(frozen=True)
class SyncPlan:
    """Totals computed before any work starts; used for percentage progress."""
    total_items: int
    total_bytes: int
    total_destinations: int
    sources: List[str] = field(default_factory=list)
    destinations: List[str] = field(default_factory=list)


@dataclass
class ItemInfo:
    """One source item being synchronized."""
    source_path: str
    size: int = 0
    is_dir: bool = False
    mtime: float = 0.0
    digest: Optional[str] = None

    @property
    def name(self) -> str:
        """Basename used to build destination paths."""
        return Path(self.source_path).name


@dataclass
class DestinationResult:
    """Outcome of syncing one item to one destination."""
    destination: str
    dest_path: str
    skipped: bool = False
    error: Optional[Exception] = None
    error_class: Optional[ErrorClass] = None
    verified: bool = False
    bytes_written: int = 0
    attempted: bool = True
    in_place: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def copied(self) -> bool:
        return self.error is None and not self.skipped


@dataclass
class ItemResult:
    """All destination outcomes for one item."""
    item: ItemInfo
    destination_results: List[DestinationResult] = field(default_factory=list)
    source_error: Optional[Exception] = None

    @property
    def all_succeeded(self) -> bool:
        """Every destination either copied or was already equivalent."""
        if self.source_error is not None or not self.destination_results:
            return False
        return all(r.succeeded for r in self.destination_results)

    @property
    def any_failed(self) -> bool:
        return not self.all_succeeded

    @property
    def all_skipped(self) -> bool:
        return self.all_succeeded and all(r.skipped for r in self.destination_results)

    @property
    def bytes_written(self) -> int:
        return sum(r.bytes_written for r in self.destination_results)

    @property
    def error(self) -> Optional[Exception]:
        """Summary error for the item, or None when every destination succeeded."""
        if self.source_error is not None:
            return self.source_error
        failed = [r for r in self.destination_results if r.error is not None]
        if not failed:
            return None
        if len(failed) == 1:
            return failed[0].error
        return RuntimeError(f"{len(failed)} of {len(self.destination_results)} destinations failed")


@dataclass
class SyncStats:
    """Cumulative counters passed to ``on_progress``."""
    bytes_copied: int = 0
    items_completed: int = 0
    items_failed: int = 0
    items_skipped: int = 0

    @property
    def items_processed(self) -> int:
        return self.items_completed + self.items_failed + self.items_skipped


@dataclass
class SyncErrorRecord:
    """One reported failure."""
    item: str
    message: str
    error_class: ErrorClass
    destination: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'item': self.item,
            'destination': self.destination,
            'error': self.message,
            'error_class': self.error_class.value,
        }


@dataclass
class DestinationStats:
    """Per destination root tallies."""
    copied: int = 0
    skipped: int = 0
    failed: int = 0


@dataclass
class SyncResult:
    """Final result of a sync run, built incrementally while it runs."""
    items_completed: int = 0
    items_failed: int = 0
    items_skipped: int = 0
    bytes_copied: int = 0
    errors: List[SyncErrorRecord] = field(default_factory=list)
    cancelled: bool = False
    store_failure_abort: bool = False
    unavailable_destinations: List[str] = field(default_factory=list)
    sources_deleted: List[str] = field(default_factory=list)
    destination_stats: Dict[str, DestinationStats] = field(default_factory=dict)
    duration_seconds: float = 0.0

    def stats(self) -> SyncStats:
        """Snapshot of the cumulative counters."""
        return SyncStats(
            bytes_copied=self.bytes_copied,
            items_completed=self.items_completed,
            items_failed=self.items_failed,
            items_skipped=self.items_skipped
        )

    @property
    def success(self) -> bool:
        return not self.errors and not self.cancelled and not self.store_failure_abort

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'items_completed': self.items_completed,
            'items_failed': self.items_failed,
            'items_skipped': self.items_skipped,
            'bytes_copied': self.bytes_copied,
            'errors': [e.to_dict() for e in self.errors],
            'cancelled': self.cancelled,
            'store_failure_abort': self.store_failure_abort,
            'unavailable_destinations': list(self.unavailable_destinations),
            'sources_deleted': list(self.sources_deleted),
            'destination_stats': {
                root: {'copied': s.copied, 'skipped': s.skipped, 'failed': s.failed}
                for root, s in self.destination_stats.items()
            },
            'duration_seconds': self.duration_seconds,
        }

    def __repr__(self) -> str:
        return (
            f"SyncResult(completed={self.items_completed}, failed={self.items_failed}, "
            f"skipped={self.items_skipped}, bytes={self.bytes_copied}, cancelled={self.cancelled})"
        )
