"""
Sync Engine

Core synchronization logic: copies or moves a list of sources to several
destination directories at once, verifies the copies, and removes sources
only after every destination has confirmed success.

Items are processed one after another; the destinations of a single item
are written concurrently.

Author: nsync Project
License: MIT
"""

import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from .errors import InvalidSyncRequest, SourceError, StoreUnavailableError
from .models import (
    CompareMethod,
    DestinationResult,
    DestinationStats,
    ErrorClass,
    HashAlgorithm,
    ItemInfo,
    ItemResult,
    MoveDeletePolicy,
    SyncErrorRecord,
    SyncPlan,
    SyncResult,
)
from .observer import NOOP_OBSERVER, SyncObserver
from .store_monitor import StoreMonitor
from ..config.schema import SyncSettings
from ..sync_engine.comparator import Comparator
from ..sync_engine.hasher import Hasher
from ..sync_engine.verifier import check_destination
from ..utils.file_ops import FileOperations
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SyncOptions:
    """Per-run options for ``SyncEngine.sync()``."""
    move: bool = False
    compare_method: CompareMethod = CompareMethod.SIZE_MTIME
    verify_destination: bool = False
    hash_algorithm: HashAlgorithm = HashAlgorithm.XXH3
    cancel_event: Optional[threading.Event] = None
    observer: Optional[SyncObserver] = None
    recursive: bool = True
    abort_on_store_failure: bool = False
    move_delete_policy: MoveDeletePolicy = MoveDeletePolicy.BATCH

    def __post_init__(self):
        self.compare_method = CompareMethod(self.compare_method)
        self.hash_algorithm = HashAlgorithm(self.hash_algorithm)
        self.move_delete_policy = MoveDeletePolicy(self.move_delete_policy)

    @classmethod
    def from_settings(cls, settings: SyncSettings, **overrides) -> 'SyncOptions':
        """
        Build options from configured defaults.

        Args:
            settings: Configured sync defaults
            **overrides: Any SyncOptions field (observer, cancel_event, move, ...)
        """
        options = cls(
            move=settings.move,
            compare_method=settings.compare_method,
            verify_destination=settings.verify_destination,
            hash_algorithm=settings.hash_algorithm,
            recursive=settings.recursive,
            abort_on_store_failure=settings.abort_on_store_failure,
            move_delete_policy=settings.move_delete_policy
        )
        return replace(options, **overrides) if overrides else options

    @property
    def needs_digest(self) -> bool:
        return self.compare_method == CompareMethod.HASH or self.verify_destination

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


def _same_path(a: str, b: str) -> bool:
    """True if two paths name the same filesystem entry."""
    if os.path.normcase(os.path.normpath(a)) == os.path.normcase(os.path.normpath(b)):
        return True
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


class SyncEngine:
    """
    Multi-destination synchronization engine.

    The engine keeps no state between runs; every ``sync()`` call gets its
    own store monitor, counters and pending-delete list. Collaborators can
    be injected for testing.
    """

    def __init__(
        self,
        settings: Optional[SyncSettings] = None,
        file_ops: Optional[FileOperations] = None,
        hasher: Optional[Hasher] = None,
        observer: Optional[SyncObserver] = None
    ):
        """
        Initialize sync engine.

        Args:
            settings: Configured defaults (store threshold, chunk size, ...)
            file_ops: File operation primitives
            hasher: Digest calculator
            observer: Default observer, used when options carry none
        """
        self.settings = settings or SyncSettings()
        self.file_ops = file_ops or FileOperations(chunk_size=self.settings.chunk_size)
        self.hasher = hasher or Hasher(chunk_size=self.settings.chunk_size)
        self.comparator = Comparator(self.hasher, mtime_tolerance=self.settings.mtime_tolerance)
        self.observer = observer or NOOP_OBSERVER

        logger.debug("SyncEngine initialized")

    def sync(
        self,
        sources: Sequence[str],
        destinations: Sequence[str],
        options: Optional[SyncOptions] = None
    ) -> SyncResult:
        """
        Sync sources to every destination.

        Args:
            sources: Absolute source paths (files, or directories when recursive)
            destinations: Absolute destination directories
            options: Run options (configured defaults if None)

        Returns:
            SyncResult with counters and per-item errors

        Raises:
            InvalidSyncRequest: If the source or destination list is malformed
        """
        sources, destinations = self._validate_request(sources, destinations)
        options = options or SyncOptions.from_settings(self.settings)
        run = _SyncRun(self, sources, destinations, options)
        return run.execute()

    @staticmethod
    def _validate_request(sources, destinations):
        """Reject programmer errors before any work starts."""
        if not sources:
            raise InvalidSyncRequest("At least one source path is required")
        if not destinations:
            raise InvalidSyncRequest("At least one destination path is required")
        if isinstance(sources, (str, bytes)) or isinstance(destinations, (str, bytes)):
            raise InvalidSyncRequest("Sources and destinations must be lists of paths")

        sources = [os.fspath(s) for s in sources]
        destinations = [os.fspath(d) for d in destinations]

        for path in sources + destinations:
            if not os.path.isabs(path):
                raise InvalidSyncRequest(f"Path must be absolute: {path}")

        normalized = {os.path.normcase(os.path.normpath(d)) for d in destinations}
        if len(normalized) != len(destinations):
            raise InvalidSyncRequest("Duplicate destination paths detected")

        return sources, destinations


class _SyncRun:
    """State for a single ``sync()`` call."""

    def __init__(
        self,
        engine: SyncEngine,
        sources: List[str],
        destinations: List[str],
        options: SyncOptions
    ):
        self.engine = engine
        self.file_ops = engine.file_ops
        self.hasher = engine.hasher
        self.comparator = engine.comparator
        self.sources = sources
        self.destinations = destinations
        self.options = options
        self.observer = options.observer or engine.observer

        self.monitor = StoreMonitor(threshold=engine.settings.store_failure_threshold)
        self.result = SyncResult(
            destination_stats={root: DestinationStats() for root in destinations}
        )
        # Only touched by the item loop
        self.pending_deletes: List[str] = []

        self._observer_lock = threading.Lock()

    def execute(self) -> SyncResult:
        """Run the full sync and return the result."""
        start_time = time.monotonic()
        options = self.options

        logger.info(
            f"Starting sync: {len(self.sources)} sources to {len(self.destinations)} destinations "
            f"(move={options.move}, compare={options.compare_method.value}, "
            f"verify={options.verify_destination})"
        )

        plan = self._build_plan()
        self._notify("on_start", plan)

        with ThreadPoolExecutor(
            max_workers=len(self.destinations),
            thread_name_prefix="nsync-dest"
        ) as executor:
            for source in self.sources:
                if options.cancelled:
                    logger.info("Sync cancelled by user")
                    self.result.cancelled = True
                    break

                if options.abort_on_store_failure and self.monitor.has_unavailable_store():
                    logger.error("Store failure detected, aborting sync")
                    self.result.store_failure_abort = True
                    break

                item_result = self._sync_item(source, executor)
                self._record_item(item_result)
                self._notify("on_progress", self.result.stats())

                if options.move and self._can_delete(item_result):
                    if options.move_delete_policy == MoveDeletePolicy.PER_ITEM:
                        self._delete_source(source)
                    elif source not in self.pending_deletes:
                        self.pending_deletes.append(source)

        for source in self.pending_deletes:
            self._delete_source(source)

        self.result.unavailable_destinations = self.monitor.unavailable_stores()
        self.result.duration_seconds = time.monotonic() - start_time

        self._notify("on_finish", self.result)

        logger.info(
            f"Sync completed: {self.result.items_completed} completed, "
            f"{self.result.items_failed} failed, {self.result.items_skipped} skipped, "
            f"{self.result.bytes_copied} bytes in {self.result.duration_seconds:.2f}s"
        )
        return self.result

    def _build_plan(self) -> SyncPlan:
        """Compute byte totals for progress reporting."""
        total_bytes = 0
        for source in self.sources:
            try:
                total_bytes += self.file_ops.stat(source).size
            except OSError as e:
                logger.warning(f"Could not stat source while planning {source}: {e}")

        return SyncPlan(
            total_items=len(self.sources),
            total_bytes=total_bytes,
            total_destinations=len(self.destinations),
            sources=list(self.sources),
            destinations=list(self.destinations)
        )

    def _sync_item(self, source: str, executor: ThreadPoolExecutor) -> ItemResult:
        """Sync one source to all destinations and report it."""
        options = self.options
        item = ItemInfo(source_path=source)

        try:
            stat = self.file_ops.stat(source)
            item = ItemInfo(
                source_path=source,
                size=stat.size,
                is_dir=stat.is_dir,
                mtime=stat.mtime
            )
        except OSError as e:
            logger.error(f"Source not readable: {source}: {e}")
            return self._finish_item(item, ItemResult(
                item=item,
                source_error=SourceError(source, f"Source not readable ({e})")
            ))

        self._notify("on_item_start", item)

        if item.is_dir and not options.recursive:
            return self._finish_item(item, ItemResult(
                item=item,
                source_error=SourceError(source, "Directory sources require recursive mode")
            ))

        # Computed once and shared by every destination
        if options.needs_digest:
            try:
                item.digest = self.hasher.digest_path(source, options.hash_algorithm)
                logger.debug(f"Source hash: {item.digest}")
            except OSError as e:
                logger.error(f"Failed to compute source hash for {source}: {e}")
                return self._finish_item(item, ItemResult(
                    item=item,
                    source_error=SourceError(source, f"Source hash failed ({e})")
                ))

        progress = _ItemProgress(self, item)
        futures = [
            executor.submit(self._sync_to_destination, item, root, progress)
            for root in self.destinations
        ]
        destination_results = [future.result() for future in futures]

        return self._finish_item(item, ItemResult(item=item, destination_results=destination_results))

    def _finish_item(self, item: ItemInfo, item_result: ItemResult) -> ItemResult:
        self._notify("on_item_complete", item, item_result)
        return item_result

    def _sync_to_destination(
        self,
        item: ItemInfo,
        dest_root: str,
        progress: '_ItemProgress'
    ) -> DestinationResult:
        """Sync one item to one destination. Never raises."""
        options = self.options
        dest_path = os.path.join(dest_root, item.name)
        result = DestinationResult(destination=dest_root, dest_path=dest_path)

        if self.monitor.is_unavailable(dest_root):
            logger.debug(f"Skipping unavailable destination {dest_root} for {item.source_path}")
            result.error = StoreUnavailableError(dest_root, "too many consecutive errors")
            result.error_class = ErrorClass.STORE_UNAVAILABLE
            result.attempted = False
            return result

        if _same_path(item.source_path, dest_path):
            logger.warning(f"Destination is the source itself, leaving in place: {dest_path}")
            result.skipped = True
            result.in_place = True
            return result

        try:
            dest_stat = self._stat_destination(dest_path)

            if self.comparator.should_skip(item, dest_stat, options.compare_method, options.hash_algorithm):
                logger.debug(f"Skipping (files equivalent): {dest_path}")
                result.skipped = True
                result.verified = options.compare_method == CompareMethod.HASH
            else:
                if item.is_dir:
                    result.bytes_written = self.file_ops.copy_tree(item.source_path, dest_path, progress)
                else:
                    result.bytes_written = self.file_ops.copy(item.source_path, dest_path, progress)

                if options.verify_destination:
                    check_destination(
                        item.digest, dest_path, options.hash_algorithm, self.hasher,
                        source_path=item.source_path
                    )
                    result.verified = True
                    logger.debug(f"Destination verified: {dest_path}")

        except Exception as e:
            result.error = e
            result.error_class = self.monitor.record(dest_root, e)
            logger.error(
                f"Sync failed: {dest_path}: {e} "
                f"(class={result.error_class.value}, "
                f"store_unavailable={self.monitor.is_unavailable(dest_root)})"
            )
            return result

        self.monitor.record_success(dest_root)
        logger.debug(f"Synced successfully: {dest_path}")
        return result

    def _stat_destination(self, dest_path: str):
        """Stat a candidate destination; None when it does not exist yet."""
        try:
            return self.file_ops.stat(dest_path)
        except FileNotFoundError:
            return None

    def _record_item(self, item_result: ItemResult) -> None:
        """Fold one item into the cumulative result."""
        result = self.result
        source = item_result.item.source_path

        if item_result.source_error is not None:
            result.items_failed += 1
            result.errors.append(SyncErrorRecord(
                item=source,
                message=str(item_result.source_error),
                error_class=ErrorClass.FILE_SPECIFIC
            ))
            for stats in result.destination_stats.values():
                stats.failed += 1
            return

        for dest_result in item_result.destination_results:
            stats = result.destination_stats[dest_result.destination]
            result.bytes_copied += dest_result.bytes_written

            if dest_result.error is not None:
                stats.failed += 1
                result.errors.append(SyncErrorRecord(
                    item=source,
                    destination=dest_result.destination,
                    message=str(dest_result.error),
                    error_class=dest_result.error_class or ErrorClass.UNKNOWN
                ))
            elif dest_result.skipped:
                stats.skipped += 1
            else:
                stats.copied += 1

        if item_result.all_skipped:
            result.items_skipped += 1
        elif item_result.all_succeeded:
            result.items_completed += 1
        else:
            result.items_failed += 1

    @staticmethod
    def _can_delete(item_result: ItemResult) -> bool:
        """A source may go only if every destination holds an independent copy."""
        if not item_result.all_succeeded:
            return False
        return not any(r.in_place for r in item_result.destination_results)

    def _delete_source(self, source: str) -> None:
        try:
            self.file_ops.delete(source)
        except OSError as e:
            logger.error(f"Failed to delete source: {source}: {e}")
            self.result.errors.append(SyncErrorRecord(
                item=source,
                message=f"Failed to delete source: {e}",
                error_class=ErrorClass.FILE_SPECIFIC
            ))
            return

        self.result.sources_deleted.append(source)
        logger.info(f"Deleted source after successful move: {source}")

    def _notify(self, hook: str, *args) -> None:
        """Call an observer hook; observer failures never break the run."""
        with self._observer_lock:
            try:
                getattr(self.observer, hook)(*args)
            except Exception as e:
                logger.error(f"Observer {hook} failed: {e}")


class _ItemProgress:
    """Aggregates bytes written for one item across its destinations."""

    def __init__(self, run: _SyncRun, item: ItemInfo):
        self.run = run
        self.item = item
        self.bytes_so_far = 0
        self._lock = threading.Lock()

    def __call__(self, chunk_bytes: int) -> None:
        with self._lock:
            self.bytes_so_far += chunk_bytes
            self.run._notify("on_item_progress", self.item, self.bytes_so_far)
