"""
Directory management for spacekit.

Directory Structure:
    Global Cache (~/.spacekit/ or %LOCALAPPDATA%\\spacekit\\):
        - tools/      : Extracted release archives, keyed by tool/version/arch
        - lock/       : Per-entry lock files for concurrent installs
"""

import os
import tempfile
from pathlib import Path


class DirectoryError(Exception):
    """Base exception for directory-related errors."""

    pass


def get_global_cache_dir() -> Path:
    """
    Get the platform-specific global cache directory path.

    Returns:
        Path: The global cache directory path.
            - Windows: ~\\AppData\\Local\\spacekit
            - Linux/macOS: ~/.spacekit/
    """
    if os.name == "nt":
        return Path.home() / "AppData" / "Local" / "spacekit"
    return Path.home() / ".spacekit"


def verify_directory_writable(path: Path) -> bool:
    """
    Verify that a directory is writable by creating a probe file.

    Args:
        path: Directory to check

    Returns:
        True if a file could be created and removed, False otherwise
    """
    # Probe name is unique per call; concurrent writers share the directory
    try:
        fd, probe = tempfile.mkstemp(dir=path, prefix=".spacekit_write_test.")
        os.close(fd)
        os.unlink(probe)
        return True
    except OSError:
        return False


def ensure_cache_structure(root: Path) -> Path:
    """
    Create the cache directory layout under ``root`` if missing.

    Args:
        root: Cache root directory

    Returns:
        The cache root

    Raises:
        DirectoryError: If the directory cannot be created or is not writable
    """
    root = Path(root)
    try:
        (root / "lock").mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryError(f"Failed to create cache directory {root}: {e}") from e

    if not verify_directory_writable(root):
        raise DirectoryError(f"Cache directory is not writable: {root}")

    return root
