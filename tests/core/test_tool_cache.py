"""
Unit tests for the tool cache.
"""

import threading

import pytest
from filelock import FileLock

from spacekit.core.tool_cache import CacheLockTimeout, ToolCache


@pytest.fixture
def extracted(tmp_path):
    """Directory standing in for an extracted release archive."""
    source = tmp_path / "extracted"
    source.mkdir()
    (source / "spacectl").write_text("binary")
    return source


class TestToolCacheLookup:
    """Tests for ToolCache.find()."""

    def test_empty_cache_misses(self, tmp_path):
        """Test lookup in an empty cache."""
        cache = ToolCache(tmp_path / "cache")
        assert cache.find("spacectl", "1.2.3", "amd64") is None

    def test_empty_version_misses(self, tmp_path):
        """Test empty version never matches."""
        cache = ToolCache(tmp_path / "cache")
        assert cache.find("spacectl", "", "amd64") is None
        assert cache.find("spacectl", "  ", "amd64") is None

    def test_incomplete_entry_is_invisible(self, tmp_path):
        """Test an entry without a completion marker is not returned."""
        cache = ToolCache(tmp_path / "cache")
        (tmp_path / "cache" / "spacectl" / "1.2.3" / "amd64").mkdir(parents=True)

        assert cache.find("spacectl", "1.2.3", "amd64") is None

    def test_found_after_caching(self, tmp_path, extracted):
        """Test a cached entry is found for the same key."""
        cache = ToolCache(tmp_path / "cache")
        entry = cache.cache_dir(extracted, "spacectl", "1.2.3", "amd64")

        assert cache.find("spacectl", "1.2.3", "amd64") == entry

    def test_key_includes_arch(self, tmp_path, extracted):
        """Test entries for one arch do not satisfy another."""
        cache = ToolCache(tmp_path / "cache")
        cache.cache_dir(extracted, "spacectl", "1.2.3", "amd64")

        assert cache.find("spacectl", "1.2.3", "arm64") is None
        assert cache.find("spacectl", "1.2.4", "amd64") is None


class TestToolCacheStore:
    """Tests for ToolCache.cache_dir()."""

    def test_layout(self, tmp_path, extracted):
        """Test entry and marker layout under the root."""
        root = tmp_path / "cache"
        cache = ToolCache(root)

        entry = cache.cache_dir(extracted, "spacectl", "1.2.3", "amd64")

        assert entry == root / "spacectl" / "1.2.3" / "amd64"
        assert (entry / "spacectl").read_text() == "binary"
        assert (root / "spacectl" / "1.2.3" / "amd64.complete").exists()

    def test_no_staging_leftovers(self, tmp_path, extracted):
        """Test the staging directory is removed."""
        root = tmp_path / "cache"
        ToolCache(root).cache_dir(extracted, "spacectl", "1.2.3", "amd64")

        names = sorted(p.name for p in (root / "spacectl" / "1.2.3").iterdir())
        assert names == ["amd64", "amd64.complete"]

    def test_existing_entry_returned_untouched(self, tmp_path, extracted):
        """Test caching twice keeps the first copy."""
        cache = ToolCache(tmp_path / "cache")
        first = cache.cache_dir(extracted, "spacectl", "1.2.3", "amd64")
        (extracted / "spacectl").write_text("changed")

        second = cache.cache_dir(extracted, "spacectl", "1.2.3", "amd64")

        assert second == first
        assert (second / "spacectl").read_text() == "binary"

    def test_incomplete_entry_replaced(self, tmp_path, extracted):
        """Test a stale entry without marker is rebuilt."""
        root = tmp_path / "cache"
        stale = root / "spacectl" / "1.2.3" / "amd64"
        stale.mkdir(parents=True)
        (stale / "garbage").write_text("partial")

        entry = ToolCache(root).cache_dir(extracted, "spacectl", "1.2.3", "amd64")

        assert not (entry / "garbage").exists()
        assert (entry / "spacectl").exists()

    def test_lock_timeout(self, tmp_path, extracted):
        """Test a held entry lock times out."""
        root = tmp_path / "cache"
        cache = ToolCache(root, lock_timeout=0.1)
        (root / "lock").mkdir(parents=True)
        held = FileLock(root / "lock" / "spacectl-1.2.3-amd64.lock")

        with held:
            with pytest.raises(CacheLockTimeout, match="Could not acquire cache lock"):
                cache.cache_dir(extracted, "spacectl", "1.2.3", "amd64")

    def test_concurrent_writers(self, tmp_path, extracted):
        """Test concurrent writers of one key produce a single complete entry."""
        cache = ToolCache(tmp_path / "cache")
        results = []
        errors = []

        def worker():
            try:
                results.append(cache.cache_dir(extracted, "spacectl", "1.2.3", "amd64"))
            except Exception as e:  # collected for assertion
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(set(results)) == 1
        assert cache.find("spacectl", "1.2.3", "amd64") == results[0]
