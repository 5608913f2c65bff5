"""
File Operation Utilities

Primitive single-path actions the sync engine composes: atomic copy,
delete, and stat. Nothing here is concurrent; the engine runs these from
its worker threads.

Author: nsync Project
License: MIT
"""

import errno
import os
import shutil
import uuid
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple

from ..core.models import FileStat
from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MiB
TEMP_PREFIX = ".nsync-"
TEMP_SUFFIX = ".partial"

ProgressCallback = Callable[[int], None]


def temp_name_for(dest_path: Path) -> Path:
    """Temporary sibling path used while a copy is in flight."""
    return dest_path.parent / f"{TEMP_PREFIX}{dest_path.name}.{uuid.uuid4().hex[:8]}{TEMP_SUFFIX}"


def is_temp_file(path: str) -> bool:
    """True for in-flight copy names produced by ``temp_name_for``."""
    name = Path(path).name
    return name.startswith(TEMP_PREFIX) and name.endswith(TEMP_SUFFIX)


def _raise_walk_error(error: OSError) -> None:
    raise error


def walk_tree(root) -> Iterator[Tuple[str, List[str], List[str]]]:
    """
    Walk a directory tree in sorted order, following symlinked directories.

    Unreadable subdirectories raise instead of being skipped.

    Raises:
        OSError: ELOOP if a directory is reached twice through symlinks
    """
    seen = set()
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error, followlinks=True):
        real = os.path.realpath(dirpath)
        if real in seen:
            raise OSError(errno.ELOOP, "Directory reached twice through symlinks", dirpath)
        seen.add(real)
        dirnames.sort()
        filenames.sort()
        yield dirpath, dirnames, filenames


class FileOperations:
    """
    Primitive file actions.

    ``copy`` never leaves a partially written file under the final name:
    data goes to a temporary sibling, is flushed to disk, and is renamed
    into place only once complete.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialize file operations.

        Args:
            chunk_size: Bytes copied per read/write iteration
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size

    def copy(self, src: str, dst: str, progress: Optional[ProgressCallback] = None) -> int:
        """
        Copy one file atomically.

        The parent directory of ``dst`` must already exist; a missing
        destination root is reported as an error rather than created.

        Args:
            src: Source file path
            dst: Final destination file path
            progress: Called with the number of bytes written per chunk

        Returns:
            Number of bytes written

        Raises:
            OSError: On any read, write, or rename failure
        """
        source_path = Path(src)
        dest_path = Path(dst)
        temp_path = temp_name_for(dest_path)
        logger.debug(f"Copying {source_path} to {dest_path}")

        written = 0
        try:
            with open(source_path, 'rb') as fsrc, open(temp_path, 'xb') as fdst:
                for chunk in self._read_chunks(fsrc, source_path):
                    fdst.write(chunk)
                    written += len(chunk)
                    if progress is not None:
                        progress(len(chunk))
                fdst.flush()
                os.fsync(fdst.fileno())

            # Preserve mtime so size-mtime comparison recognizes the copy next run
            shutil.copystat(source_path, temp_path)
            os.replace(temp_path, dest_path)
        except BaseException:
            self._discard(temp_path)
            raise

        logger.debug(f"Copy completed: {dest_path} ({written} bytes)")
        return written

    def copy_tree(self, src: str, dst: str, progress: Optional[ProgressCallback] = None) -> int:
        """
        Copy a directory tree, each file atomically.

        ``dst`` itself is created if missing, but its parent must exist.
        Existing files under ``dst`` are overwritten; extra files are left alone.
        Symlinked subdirectories are followed and copied as real directories.

        Returns:
            Total number of bytes written
        """
        source_root = Path(src)
        dest_root = Path(dst)
        if not source_root.is_dir():
            raise NotADirectoryError(f"Not a directory: {src}")

        written = 0
        dest_root.mkdir(exist_ok=True)
        for dirpath, dirnames, filenames in walk_tree(source_root):
            relative = Path(dirpath).relative_to(source_root)
            target_dir = dest_root / relative
            for dirname in dirnames:
                (target_dir / dirname).mkdir(exist_ok=True)
            for filename in filenames:
                written += self.copy(
                    str(Path(dirpath) / filename),
                    str(target_dir / filename),
                    progress
                )
        shutil.copystat(source_root, dest_root)
        return written

    def delete(self, path: str) -> None:
        """
        Delete a file, or a directory tree.

        Raises:
            OSError: If the path cannot be removed
        """
        target = Path(path)
        logger.debug(f"Deleting {target}")
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()

    def stat(self, path: str) -> FileStat:
        """
        Stat one path.

        Raises:
            FileNotFoundError: If the path does not exist
            OSError: For any other failure
        """
        st = os.stat(path)
        is_dir = Path(path).is_dir()
        size = self.tree_size(path) if is_dir else st.st_size
        return FileStat(path=str(path), size=size, mtime=st.st_mtime, is_dir=is_dir)

    def exists(self, path: str) -> bool:
        """Check if a path exists."""
        return os.path.exists(path)

    @staticmethod
    def tree_size(directory: str) -> int:
        """Sum of regular file sizes below a directory."""
        total = 0
        for dirpath, _, filenames in walk_tree(directory):
            for filename in filenames:
                file_path = os.path.join(dirpath, filename)
                if os.path.isfile(file_path):
                    total += os.path.getsize(file_path)
        return total

    def _read_chunks(self, fsrc, source_path: Path) -> Iterator[bytes]:
        """Yield source chunks; read errors name the source file."""
        while True:
            try:
                chunk = fsrc.read(self.chunk_size)
            except OSError as e:
                if e.filename is not None:
                    raise
                raise OSError(e.errno, e.strerror or str(e), str(source_path)) from e
            if not chunk:
                return
            yield chunk

    @staticmethod
    def _discard(temp_path: Path) -> None:
        """Remove a temporary file after a failed copy."""
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temporary file {temp_path}: {e}")
