"""
Core functionality for spacekit.

This package contains the foundational modules that other components depend on.
"""

from .directory import (
    get_global_cache_dir,
    ensure_cache_structure,
    verify_directory_writable,
    DirectoryError,
)

from .platform import (
    Platform,
    Arch,
    get_platform,
    get_arch,
    get_binary_name,
)

from .tool_cache import (
    ToolCache,
    ToolCacheError,
    CacheLockTimeout,
)

from .exceptions import (
    SpacekitError,
    PlatformError,
    UnsupportedPlatformError,
    UnsupportedArchError,
    ReleaseError,
    RegistryError,
    NoDevReleaseError,
    VersionResolutionError,
    ExecError,
    VersionReportError,
    InstallErrorCode,
    InstallError,
)

__all__ = [
    "get_global_cache_dir",
    "ensure_cache_structure",
    "verify_directory_writable",
    "DirectoryError",
    "Platform",
    "Arch",
    "get_platform",
    "get_arch",
    "get_binary_name",
    "ToolCache",
    "ToolCacheError",
    "CacheLockTimeout",
    "SpacekitError",
    "PlatformError",
    "UnsupportedPlatformError",
    "UnsupportedArchError",
    "ReleaseError",
    "RegistryError",
    "NoDevReleaseError",
    "VersionResolutionError",
    "ExecError",
    "VersionReportError",
    "InstallErrorCode",
    "InstallError",
]
