"""
Sync Observer

Progress callback interface driven by the sync engine. Subclass
``SyncObserver`` and override only the hooks you need; every hook is a
no-op by default.

Author: nsync Project
License: MIT
"""

from typing import Callable, Optional

from .models import ItemInfo, ItemResult, SyncPlan, SyncResult, SyncStats


class SyncObserver:
    """
    Callback sink for sync progress.

    The engine calls these hooks one at a time, never concurrently.
    ``on_item_progress`` may come from a destination worker thread; all
    other hooks come from the thread that called ``SyncEngine.sync()``.
    """

    def on_start(self, plan: SyncPlan) -> None:
        """Called once before any item is processed."""

    def on_item_start(self, item: ItemInfo) -> None:
        """Called when an item begins."""

    def on_item_progress(self, item: ItemInfo, bytes_so_far: int) -> None:
        """Called as bytes are written; ``bytes_so_far`` spans all destinations of the item."""

    def on_item_complete(self, item: ItemInfo, result: ItemResult) -> None:
        """Called once every destination of the item has resolved."""

    def on_progress(self, stats: SyncStats) -> None:
        """Called after each item with cumulative counters."""

    def on_finish(self, result: SyncResult) -> None:
        """Called once with the final result."""


class CallbackObserver(SyncObserver):
    """
    Observer built from plain callables.

    Handy for callers that only care about one or two events::

        CallbackObserver(on_progress=lambda stats: print(stats.bytes_copied))
    """

    def __init__(
        self,
        on_start: Optional[Callable[[SyncPlan], None]] = None,
        on_item_start: Optional[Callable[[ItemInfo], None]] = None,
        on_item_progress: Optional[Callable[[ItemInfo, int], None]] = None,
        on_item_complete: Optional[Callable[[ItemInfo, ItemResult], None]] = None,
        on_progress: Optional[Callable[[SyncStats], None]] = None,
        on_finish: Optional[Callable[[SyncResult], None]] = None
    ):
        self._on_start = on_start
        self._on_item_start = on_item_start
        self._on_item_progress = on_item_progress
        self._on_item_complete = on_item_complete
        self._on_progress = on_progress
        self._on_finish = on_finish

    def on_start(self, plan):
        if self._on_start:
            self._on_start(plan)

    def on_item_start(self, item):
        if self._on_item_start:
            self._on_item_start(item)

    def on_item_progress(self, item, bytes_so_far):
        if self._on_item_progress:
            self._on_item_progress(item, bytes_so_far)

    def on_item_complete(self, item, result):
        if self._on_item_complete:
            self._on_item_complete(item, result)

    def on_progress(self, stats):
        if self._on_progress:
            self._on_progress(stats)

    def on_finish(self, result):
        if self._on_finish:
            self._on_finish(result)


NOOP_OBSERVER = SyncObserver()
