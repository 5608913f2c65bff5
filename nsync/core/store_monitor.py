"""
Store Monitor

Tracks consecutive store-level failures per destination root so that a
detached drive or dead mount is detected quickly and not hammered for the
rest of a run.

Author: nsync Project
License: MIT
"""

import errno
import os
import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import StoreUnavailableError, SyncCancelled, VerificationError
from .models import ErrorClass
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 3

# errno values that indicate the destination as a whole is broken
STORE_ERRNOS = frozenset(
    code for code in (
        errno.ENOTDIR,
        errno.EROFS,
        errno.EIO,
        errno.EBUSY,
        errno.EAGAIN,
        errno.ENOSPC,
        errno.ENODEV,
        errno.ENXIO,
        getattr(errno, "ESTALE", None),
    )
    if code is not None
)

# errno values scoped to a single file
FILE_ERRNOS = frozenset((errno.EACCES, errno.EPERM))


@dataclass
class StoreState:
    """Failure tracking for one destination root."""
    error_streak: int = 0
    unavailable: bool = False
    last_error: Optional[float] = None


def _is_within(path: str, root: str) -> bool:
    """True if ``path`` is ``root`` or lies below it."""
    try:
        path = os.path.abspath(path)
        root = os.path.abspath(root)
        return os.path.commonpath([path, root]) == root
    except ValueError:
        return False


class StoreMonitor:
    """
    Per-run store failure detector.

    Only store-level errors count toward a destination's streak; a success
    on that destination resets it. Once the streak reaches ``threshold`` the
    destination stays unavailable for the remainder of the run.

    A new monitor is created for every sync run, so unrelated runs never
    share failure streaks.
    """

    def __init__(self, threshold: int = DEFAULT_THRESHOLD):
        """
        Initialize store monitor.

        Args:
            threshold: Consecutive store-level errors before marking unavailable
        """
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        self.threshold = threshold
        self._stores: Dict[str, StoreState] = {}
        self._lock = threading.Lock()

        logger.debug(f"StoreMonitor created with threshold {threshold}")

    def record(self, dest_root: str, error: Optional[BaseException]) -> Optional[ErrorClass]:
        """
        Record the outcome of one operation against a destination.

        Args:
            dest_root: Destination root directory
            error: Exception raised by the operation, or None on success

        Returns:
            Classification of the error, or None on success
        """
        if error is None:
            self.record_success(dest_root)
            return None
        error_class = self.classify_error(error, dest_root)
        self.record_error(dest_root, error_class)
        return error_class

    def record_success(self, dest_root: str) -> None:
        """Reset the error streak for a destination."""
        with self._lock:
            state = self._stores.get(dest_root)
            if state is not None and state.error_streak:
                logger.debug(f"Success recorded for {dest_root}, streak reset")
                state.error_streak = 0

    def record_error(self, dest_root: str, error_class: ErrorClass) -> bool:
        """
        Record a classified error for a destination.

        Args:
            dest_root: Destination root directory
            error_class: Classification from ``classify_error``

        Returns:
            True if the destination is (now) unavailable
        """
        with self._lock:
            state = self._stores.setdefault(dest_root, StoreState())

            if error_class != ErrorClass.STORE_UNAVAILABLE:
                return state.unavailable

            state.error_streak += 1
            state.last_error = time.time()
            logger.warning(
                f"Store error streak {state.error_streak}/{self.threshold} for {dest_root}"
            )

            if state.error_streak >= self.threshold and not state.unavailable:
                state.unavailable = True
                logger.error(
                    f"Store marked unavailable: {dest_root} "
                    f"({state.error_streak} sequential errors)"
                )

            return state.unavailable

    def is_unavailable(self, dest_root: str) -> bool:
        with self._lock:
            state = self._stores.get(dest_root)
            return state is not None and state.unavailable

    def has_unavailable_store(self) -> bool:
        with self._lock:
            return any(state.unavailable for state in self._stores.values())

    def unavailable_stores(self) -> List[str]:
        """Destination roots marked unavailable, in first-seen order."""
        with self._lock:
            return [root for root, state in self._stores.items() if state.unavailable]

    def error_streak(self, dest_root: str) -> int:
        with self._lock:
            state = self._stores.get(dest_root)
            return state.error_streak if state else 0

    @staticmethod
    def classify_error(error: BaseException, dest_root: Optional[str] = None) -> ErrorClass:
        """
        Classify an error as store-level or file-level.

        Args:
            error: The exception to classify
            dest_root: Destination root the operation targeted, if known.
                Used to tell a missing file from a missing destination and
                to recognize source-side failures.

        Returns:
            ErrorClass for the error
        """
        if isinstance(error, VerificationError):
            return ErrorClass.VERIFY_FAILED
        if isinstance(error, SyncCancelled):
            return ErrorClass.CANCELLED
        if isinstance(error, StoreUnavailableError):
            return ErrorClass.STORE_UNAVAILABLE
        if not isinstance(error, OSError):
            return ErrorClass.UNKNOWN

        code = error.errno
        if code in FILE_ERRNOS:
            return ErrorClass.FILE_SPECIFIC

        # Errors raised while reading the source say nothing about the destination
        filename = error.filename
        if dest_root and isinstance(filename, (str, bytes, os.PathLike)) and not _is_within(os.fsdecode(filename), dest_root):
            return ErrorClass.FILE_SPECIFIC

        if code == errno.ENOENT:
            if dest_root and os.path.isdir(dest_root):
                return ErrorClass.FILE_SPECIFIC
            return ErrorClass.STORE_UNAVAILABLE

        if code in STORE_ERRNOS:
            return ErrorClass.STORE_UNAVAILABLE

        return ErrorClass.FILE_SPECIFIC
