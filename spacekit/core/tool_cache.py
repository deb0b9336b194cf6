"""
Version and architecture keyed cache of extracted release archives.

Layout under the cache root:

    <root>/<tool>/<version>/<arch>/          extracted archive contents
    <root>/<tool>/<version>/<arch>.complete  completion marker
    <root>/lock/<tool>-<version>-<arch>.lock per-entry lock file

An entry is visible to lookups only once its marker exists. Writers build the
entry in a private staging directory and rename it into place before writing
the marker, so a crashed or concurrent writer never leaves a half-written
entry behind a marker.
"""

import logging
import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from filelock import FileLock, Timeout

from spacekit.core.directory import ensure_cache_structure, get_global_cache_dir
from spacekit.core.filesystem import atomic_write, recursive_copy, safe_rmtree

logger = logging.getLogger(__name__)

COMPLETE_SUFFIX = ".complete"


class ToolCacheError(Exception):
    """Base exception for tool cache errors."""

    pass


class CacheLockTimeout(ToolCacheError):
    """Raised when a cache entry lock cannot be acquired within timeout."""

    pass


class ToolCache:
    """
    Stores extracted tool releases keyed by (tool, version, arch).

    Platform is not part of the key: a cache root is only ever populated by
    one host platform.

    Example:
        >>> cache = ToolCache(Path("/home/user/.spacekit/tools"))
        >>> cached = cache.cache_dir(Path("/tmp/extracted"), "spacectl", "1.2.3", "amd64")
        >>> cache.find("spacectl", "1.2.3", "amd64") == cached
        True
    """

    def __init__(self, root: Optional[Union[str, Path]] = None, lock_timeout: int = 300):
        """
        Initialize tool cache.

        Args:
            root: Cache root directory (default: ``<global cache>/tools``)
            lock_timeout: Timeout in seconds for acquiring an entry lock
        """
        if root is None:
            root = get_global_cache_dir() / "tools"

        self.root = Path(root)
        self.lock_timeout = lock_timeout

        logger.debug(f"Initialized tool cache at {self.root}")

    def _entry_dir(self, tool: str, version: str, arch: str) -> Path:
        return self.root / tool / version.strip() / str(arch)

    def _marker(self, entry: Path) -> Path:
        return entry.parent / f"{entry.name}{COMPLETE_SUFFIX}"

    @contextmanager
    def _lock(self, tool: str, version: str, arch: str):
        """
        Acquire the exclusive lock for one cache entry.

        Raises:
            CacheLockTimeout: If lock cannot be acquired within timeout
        """
        ensure_cache_structure(self.root)
        lock_path = self.root / "lock" / f"{tool}-{version.strip()}-{arch}.lock"
        lock = FileLock(lock_path, timeout=self.lock_timeout)

        try:
            with lock:
                logger.debug(f"Acquired cache lock {lock_path.name}")
                yield
        except Timeout as e:
            raise CacheLockTimeout(
                f"Could not acquire cache lock for {tool} {version} ({arch}) "
                f"within {self.lock_timeout} seconds"
            ) from e

    def find(self, tool: str, version: str, arch: str) -> Optional[Path]:
        """
        Look up a completed cache entry.

        Args:
            tool: Tool name
            version: Concrete version (no ``v`` prefix)
            arch: Architecture identifier

        Returns:
            Entry directory if present and complete, None otherwise
        """
        if not tool or not version or not version.strip():
            return None

        entry = self._entry_dir(tool, version, str(arch))
        if entry.is_dir() and self._marker(entry).exists():
            logger.debug(f"Found {tool} {version} ({arch}) in cache: {entry}")
            return entry

        logger.debug(f"{tool} {version} ({arch}) not found in cache")
        return None

    def cache_dir(
        self, source: Union[str, Path], tool: str, version: str, arch: str
    ) -> Path:
        """
        Copy an extracted release into the cache.

        An already complete entry is returned untouched.

        Args:
            source: Directory holding the extracted archive
            tool: Tool name
            version: Concrete version (no ``v`` prefix)
            arch: Architecture identifier

        Returns:
            Path to the cache entry directory

        Raises:
            CacheLockTimeout: If another writer holds the entry for too long
            FilesystemError: If copying fails
        """
        arch = str(arch)
        entry = self._entry_dir(tool, version, arch)

        with self._lock(tool, version, arch):
            if entry.is_dir() and self._marker(entry).exists():
                logger.info(f"{tool} {version} ({arch}) already cached at {entry}")
                return entry

            entry.parent.mkdir(parents=True, exist_ok=True)
            if entry.exists():
                logger.warning(f"Removing incomplete cache entry {entry}")
                safe_rmtree(entry, require_prefix=self.root)

            staging = Path(tempfile.mkdtemp(dir=entry.parent, prefix=f".{arch}."))
            try:
                payload = recursive_copy(source, staging / "payload")
                payload.rename(entry)
            finally:
                safe_rmtree(staging, require_prefix=self.root)

            atomic_write(self._marker(entry), datetime.now().isoformat())

        logger.debug(f"Cached {tool} {version} ({arch}) at {entry}")
        return entry
