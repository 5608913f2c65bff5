"""
Comparator

Decides whether an existing destination is equivalent to its source so the
copy can be skipped.

Author: nsync Project
License: MIT
"""

from typing import Optional, Union

from ..core.models import CompareMethod, FileStat, HashAlgorithm, ItemInfo
from ..utils.logger import get_logger
from .hasher import Hasher, digests_match

logger = get_logger(__name__)

DEFAULT_MTIME_TOLERANCE = 1.0  # seconds; absorbs filesystem timestamp truncation


class Comparator:
    """
    Skip decision for one source/destination pair.

    Methods:
    - none: always copy
    - size: equal byte size
    - mtime: modification times within tolerance
    - size-mtime: both of the above (default)
    - hash: precomputed source digest equals the destination digest
    """

    def __init__(self, hasher: Optional[Hasher] = None, mtime_tolerance: float = DEFAULT_MTIME_TOLERANCE):
        """
        Initialize comparator.

        Args:
            hasher: Hasher used for destination digests
            mtime_tolerance: Allowed mtime difference in seconds
        """
        self.hasher = hasher or Hasher()
        self.mtime_tolerance = mtime_tolerance

    def should_skip(
        self,
        source: ItemInfo,
        dest_stat: Optional[FileStat],
        method: Union[CompareMethod, str],
        algorithm: Union[HashAlgorithm, str] = HashAlgorithm.XXH3
    ) -> bool:
        """
        Check whether the destination is already equivalent to the source.

        Args:
            source: Source item (its ``digest`` must be set for the hash method)
            dest_stat: Stat of the candidate destination path, None if missing
            method: Comparison method
            algorithm: Hash algorithm for the hash method

        Returns:
            True if the copy can be skipped
        """
        method = CompareMethod(method)

        if dest_stat is None:
            return False

        if dest_stat.is_dir != source.is_dir:
            logger.debug(f"Kind mismatch at {dest_stat.path}, not equivalent")
            return False

        if method == CompareMethod.NONE:
            return False

        if method == CompareMethod.HASH:
            return self._compare_hash(source, dest_stat, algorithm)

        # Directory mtimes track entry changes, not content
        if source.is_dir:
            return False

        if method == CompareMethod.SIZE:
            return self._compare_size(source, dest_stat)
        if method == CompareMethod.MTIME:
            return self._compare_mtime(source, dest_stat)
        return self._compare_size(source, dest_stat) and self._compare_mtime(source, dest_stat)

    def _compare_size(self, source: ItemInfo, dest_stat: FileStat) -> bool:
        match = source.size == dest_stat.size
        logger.debug(f"Size comparison: {match} (src: {source.size}, dest: {dest_stat.size})")
        return match

    def _compare_mtime(self, source: ItemInfo, dest_stat: FileStat) -> bool:
        diff = abs(source.mtime - dest_stat.mtime)
        match = diff <= self.mtime_tolerance
        logger.debug(f"Mtime comparison: {match} (diff: {diff:.3f}s)")
        return match

    def _compare_hash(self, source: ItemInfo, dest_stat: FileStat, algorithm) -> bool:
        if source.digest is None:
            logger.warning(f"No source digest for {source.source_path}, cannot compare by hash")
            return False

        # Cheap reject before reading the destination
        if not source.is_dir and source.size != dest_stat.size:
            return False

        try:
            # Files only present at the destination do not count against it
            dest_digest = self.hasher.digest_path(dest_stat.path, algorithm, reference=source.source_path)
        except OSError as e:
            logger.warning(f"Could not hash destination {dest_stat.path}: {e}")
            return False

        match = digests_match(dest_digest, source.digest)
        logger.debug(f"Hash comparison for {dest_stat.path}: {match}")
        return match
