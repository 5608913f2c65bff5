"""
Unit Tests for Comparator and Verifier

Author: nsync Project
License: MIT
"""

import os
import pytest

from nsync.core.errors import VerificationError
from nsync.core.models import CompareMethod, FileStat, HashAlgorithm, ItemInfo
from nsync.sync_engine.comparator import Comparator
from nsync.sync_engine.hasher import Hasher
from nsync.sync_engine.verifier import (
    check_destination,
    verify_destination,
    verify_multiple_destinations,
)


def make_item(path, digest=None):
    st = os.stat(path)
    return ItemInfo(source_path=str(path), size=st.st_size, mtime=st.st_mtime, digest=digest)


def make_stat(path):
    st = os.stat(path)
    return FileStat(path=str(path), size=st.st_size, mtime=st.st_mtime, is_dir=os.path.isdir(path))


@pytest.fixture
def pair(tmp_path):
    """Source and destination with identical content and mtime."""
    source = tmp_path / "src.txt"
    dest = tmp_path / "dst.txt"
    source.write_bytes(b"0123456789")
    dest.write_bytes(b"0123456789")
    os.utime(source, (1_700_000_000, 1_700_000_000))
    os.utime(dest, (1_700_000_000, 1_700_000_000))
    return source, dest


class TestComparator:
    """Test suite for skip decisions."""

    def test_missing_destination_never_skips(self, pair):
        source, _ = pair
        comparator = Comparator()

        for method in CompareMethod:
            assert comparator.should_skip(make_item(source), None, method) is False

    def test_none_always_copies(self, pair):
        source, dest = pair
        assert Comparator().should_skip(make_item(source), make_stat(dest), "none") is False

    def test_size_mtime_equal(self, pair):
        source, dest = pair
        assert Comparator().should_skip(make_item(source), make_stat(dest), CompareMethod.SIZE_MTIME) is True

    def test_mtime_within_tolerance(self, pair):
        """Test sub-second differences are tolerated."""
        source, dest = pair
        os.utime(dest, (1_700_000_000.6, 1_700_000_000.6))

        assert Comparator().should_skip(make_item(source), make_stat(dest), CompareMethod.MTIME) is True

    def test_mtime_outside_tolerance(self, pair):
        source, dest = pair
        os.utime(dest, (1_700_000_005, 1_700_000_005))
        comparator = Comparator()

        assert comparator.should_skip(make_item(source), make_stat(dest), CompareMethod.SIZE_MTIME) is False
        assert comparator.should_skip(make_item(source), make_stat(dest), CompareMethod.SIZE) is True

    def test_size_differs(self, pair):
        source, dest = pair
        dest.write_bytes(b"short")
        os.utime(dest, (1_700_000_000, 1_700_000_000))

        assert Comparator().should_skip(make_item(source), make_stat(dest), CompareMethod.SIZE_MTIME) is False
        assert Comparator().should_skip(make_item(source), make_stat(dest), CompareMethod.MTIME) is True

    def test_hash_ignores_mtime(self, pair):
        """Test hash comparison skips equal content with different mtimes."""
        source, dest = pair
        os.utime(dest, (1_600_000_000, 1_600_000_000))
        digest = Hasher().digest(source)

        assert Comparator().should_skip(make_item(source, digest), make_stat(dest), CompareMethod.HASH) is True

    def test_hash_detects_same_size_change(self, pair):
        source, dest = pair
        dest.write_bytes(b"9876543210")
        digest = Hasher().digest(source, HashAlgorithm.SHA256)

        assert Comparator().should_skip(
            make_item(source, digest), make_stat(dest), CompareMethod.HASH, HashAlgorithm.SHA256
        ) is False

    def test_hash_without_digest_copies(self, pair):
        source, dest = pair
        assert Comparator().should_skip(make_item(source), make_stat(dest), CompareMethod.HASH) is False

    def test_kind_mismatch(self, pair, tmp_path):
        """Test a directory never matches a file of the same name."""
        source, _ = pair
        folder = tmp_path / "folder"
        folder.mkdir()

        assert Comparator().should_skip(make_item(source), make_stat(folder), CompareMethod.SIZE) is False


class TestVerifier:
    """Test suite for destination verification."""

    def test_verify_match(self, pair):
        source, dest = pair
        digest = Hasher().digest(source)

        assert verify_destination(digest, str(dest), HashAlgorithm.XXH3) is True
        assert check_destination(digest, str(dest), HashAlgorithm.XXH3) == digest

    def test_verify_mismatch(self, pair):
        source, dest = pair
        digest = Hasher().digest(source)
        dest.write_bytes(b"corrupted!")

        assert verify_destination(digest, str(dest), HashAlgorithm.XXH3) is False
        with pytest.raises(VerificationError) as exc_info:
            check_destination(digest, str(dest), HashAlgorithm.XXH3)
        assert exc_info.value.expected == digest

    def test_verify_missing_destination(self, pair, tmp_path):
        source, _ = pair
        digest = Hasher().digest(source)

        assert verify_destination(digest, str(tmp_path / "nope"), HashAlgorithm.XXH3) is False
        with pytest.raises(FileNotFoundError):
            check_destination(digest, str(tmp_path / "nope"), HashAlgorithm.XXH3)

    def test_verify_multiple_destinations(self, pair, tmp_path):
        """Test results come back in input order."""
        source, dest = pair
        digest = Hasher().digest(source, HashAlgorithm.BLAKE2B)
        bad = tmp_path / "bad.txt"
        bad.write_bytes(b"other")

        results = verify_multiple_destinations(
            digest, [str(dest), str(bad), str(tmp_path / "missing")], HashAlgorithm.BLAKE2B
        )

        assert results == [True, False, False]
        assert verify_multiple_destinations(digest, [], HashAlgorithm.BLAKE2B) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
