"""
Hasher

Streaming content digests for files and directory trees. Supports fast
non-cryptographic xxHash variants for routine compare/verify and
cryptographic digests for integrity-sensitive runs.

Author: nsync Project
License: MIT
"""

import hashlib
from pathlib import Path
from typing import List, Optional, Union

import xxhash

from ..core.models import HashAlgorithm
from ..utils.file_ops import walk_tree
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MiB


def _new_hasher(algorithm: HashAlgorithm):
    """Create an incremental hash object for the given algorithm."""
    if algorithm == HashAlgorithm.XXH3:
        return xxhash.xxh3_64()
    if algorithm == HashAlgorithm.XXH64:
        return xxhash.xxh64()
    if algorithm == HashAlgorithm.SHA256:
        return hashlib.sha256()
    if algorithm == HashAlgorithm.BLAKE2B:
        return hashlib.blake2b()
    raise ValueError(f"Unsupported hash algorithm: {algorithm}")


class Hasher:
    """
    File digest calculator.

    Files are read in fixed-size chunks and fed to the algorithm's
    incremental API, so memory use is bounded by ``chunk_size`` regardless
    of file size.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialize hasher.

        Args:
            chunk_size: Bytes read per iteration
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size

    def digest(self, path: Union[str, Path], algorithm: Union[HashAlgorithm, str] = HashAlgorithm.XXH3) -> str:
        """
        Calculate the hex digest of a file.

        Args:
            path: Path to the file
            algorithm: Hash algorithm to use

        Returns:
            Lowercase hexadecimal digest

        Raises:
            OSError: If the file cannot be opened or read
            IsADirectoryError: If ``path`` is a directory
            ValueError: If the algorithm is unsupported
        """
        algorithm = HashAlgorithm(algorithm)
        hasher = _new_hasher(algorithm)
        logger.debug(f"Computing {algorithm.value} hash for {path}")

        try:
            with open(path, 'rb') as f:
                while chunk := f.read(self.chunk_size):
                    hasher.update(chunk)
        except OSError as e:
            logger.error(f"Failed to compute hash for {path}: {e}")
            raise

        return hasher.hexdigest()

    def digest_bytes(self, data: bytes, algorithm: Union[HashAlgorithm, str] = HashAlgorithm.XXH3) -> str:
        """Hex digest of an in-memory buffer."""
        hasher = _new_hasher(HashAlgorithm(algorithm))
        hasher.update(data)
        return hasher.hexdigest()

    def digest_tree(
        self,
        directory: Union[str, Path],
        algorithm: Union[HashAlgorithm, str] = HashAlgorithm.XXH3,
        reference: Optional[Union[str, Path]] = None
    ) -> str:
        """
        Calculate a stable digest for a directory tree.

        The digest covers every regular file's path relative to ``directory``
        and its content digest, visited in sorted order, so two trees with
        the same layout and contents produce the same value.

        Args:
            directory: Root of the tree
            algorithm: Hash algorithm to use
            reference: Tree whose file list is digested instead of
                ``directory``'s own. Files only present under ``directory``
                are ignored; a file missing from it raises.

        Returns:
            Lowercase hexadecimal digest

        Raises:
            OSError: If a listed file cannot be read or the tree has a symlink loop
        """
        algorithm = HashAlgorithm(algorithm)
        root = Path(directory)
        if not root.is_dir():
            raise NotADirectoryError(f"Not a directory: {directory}")

        tree_hasher = _new_hasher(algorithm)
        for relative in self._tree_files(Path(reference) if reference is not None else root):
            tree_hasher.update(relative.encode('utf-8'))
            tree_hasher.update(b'\0')
            tree_hasher.update(self.digest(root / relative, algorithm).encode('ascii'))
            tree_hasher.update(b'\n')

        return tree_hasher.hexdigest()

    @staticmethod
    def _tree_files(root: Path) -> List[str]:
        """Relative POSIX paths of regular files below ``root``, sorted."""
        files = []
        for dirpath, _, filenames in walk_tree(root):
            for filename in filenames:
                file_path = Path(dirpath) / filename
                if file_path.is_file():
                    files.append(file_path.relative_to(root).as_posix())
        return files

    def digest_path(
        self,
        path: Union[str, Path],
        algorithm: Union[HashAlgorithm, str] = HashAlgorithm.XXH3,
        reference: Optional[Union[str, Path]] = None
    ) -> str:
        """
        Digest a file, or a directory tree when ``path`` is a directory.

        ``reference`` only applies to directories; see ``digest_tree``.
        """
        if Path(path).is_dir():
            return self.digest_tree(path, algorithm, reference)
        return self.digest(path, algorithm)


def digests_match(actual: str, expected: str) -> bool:
    """Case-insensitive digest comparison."""
    return actual.lower() == expected.lower()
