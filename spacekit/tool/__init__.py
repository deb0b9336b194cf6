"""
Locating, installing and running the tool binary.
"""

from .executor import (
    OUTPUT_FLAG,
    BinaryHandle,
    CommandExecutor,
    ExecMode,
    ExecResult,
    get_binary_version,
    inspect_binary,
    run,
)
from .installer import InstallResult, Installer, get_download_url, install
from .locator import DEFAULT_INSTALL_DIRS, BinaryLocator

__all__ = [
    "OUTPUT_FLAG",
    "BinaryHandle",
    "CommandExecutor",
    "ExecMode",
    "ExecResult",
    "get_binary_version",
    "inspect_binary",
    "run",
    "InstallResult",
    "Installer",
    "get_download_url",
    "install",
    "DEFAULT_INSTALL_DIRS",
    "BinaryLocator",
]
