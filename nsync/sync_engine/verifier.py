"""
Destination Verifier

Re-hashes copied destinations and compares them with the source digest.

Author: nsync Project
License: MIT
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Union

from ..core.errors import VerificationError
from ..core.models import HashAlgorithm
from ..utils.logger import get_logger
from .hasher import Hasher, digests_match

logger = get_logger(__name__)


def check_destination(
    source_digest: str,
    dest_path: str,
    algorithm: Union[HashAlgorithm, str],
    hasher: Optional[Hasher] = None,
    source_path: Optional[str] = None
) -> str:
    """
    Hash a destination and require it to match the source digest.

    For directories, pass ``source_path`` so only the files the source
    holds are digested; extra files at the destination are ignored.

    Returns:
        The destination digest

    Raises:
        VerificationError: If the digests differ
        OSError: If the destination cannot be read
    """
    hasher = hasher or Hasher()
    dest_digest = hasher.digest_path(dest_path, algorithm, reference=source_path)
    if not digests_match(dest_digest, source_digest):
        raise VerificationError(dest_path, expected=source_digest, actual=dest_digest)
    return dest_digest


def verify_destination(
    source_digest: str,
    dest_path: str,
    algorithm: Union[HashAlgorithm, str],
    hasher: Optional[Hasher] = None,
    source_path: Optional[str] = None
) -> bool:
    """
    Verify a destination matches the source digest.

    Args:
        source_digest: Digest computed from the source
        dest_path: Destination file or directory
        algorithm: Algorithm the source digest was computed with
        hasher: Hasher to use (a default one if None)
        source_path: Source directory whose file list is verified

    Returns:
        True if the destination digest matches; False on mismatch or when
        the destination cannot be read
    """
    logger.debug(f"Verifying destination {dest_path}")

    try:
        check_destination(source_digest, dest_path, algorithm, hasher, source_path)
    except VerificationError as e:
        logger.warning(f"{e} (source: {e.expected}, dest: {e.actual})")
        return False
    except OSError as e:
        logger.error(f"Failed to verify {dest_path}: {e}")
        return False

    logger.debug(f"Destination verified: {dest_path}")
    return True


def verify_multiple_destinations(
    source_digest: str,
    dest_paths: List[str],
    algorithm: Union[HashAlgorithm, str],
    hasher: Optional[Hasher] = None,
    source_path: Optional[str] = None
) -> List[bool]:
    """
    Verify several destinations in parallel.

    Returns:
        One boolean per entry of ``dest_paths``, in the same order
    """
    if not dest_paths:
        return []

    hasher = hasher or Hasher()
    with ThreadPoolExecutor(max_workers=len(dest_paths)) as executor:
        results = list(executor.map(
            lambda path: verify_destination(source_digest, path, algorithm, hasher, source_path),
            dest_paths
        ))

    logger.info(f"Verified {sum(results)}/{len(dest_paths)} destinations")
    return results
