"""
Platform detection for spacekit.

Maps the running operating system and CPU architecture to the identifiers
used in published release archive names (e.g. ``linux``/``amd64``).

Unlike a general purpose detector, only the combinations that have published
binaries are accepted. Unknown values are errors rather than defaults, so a
32-bit host never ends up downloading a 64-bit archive.

Usage:
    from spacekit.core.platform import get_platform, get_arch, get_binary_name

    print(f"{get_platform().value}/{get_arch().value}")
    print(get_binary_name("spacectl"))
"""

import platform as _platform
from enum import Enum
from typing import Optional

from spacekit.core.exceptions import UnsupportedArchError, UnsupportedPlatformError

DEFAULT_TOOL_NAME = "spacectl"


class Platform(str, Enum):
    """Operating systems with published binaries."""

    DARWIN = "darwin"
    LINUX = "linux"
    WINDOWS = "windows"


class Arch(str, Enum):
    """CPU architectures with published binaries."""

    AMD64 = "amd64"
    ARM64 = "arm64"


_PLATFORM_MAP = {
    "darwin": Platform.DARWIN,
    "linux": Platform.LINUX,
    "windows": Platform.WINDOWS,
    "win32": Platform.WINDOWS,
}

_ARCH_MAP = {
    "x86_64": Arch.AMD64,
    "amd64": Arch.AMD64,
    "x64": Arch.AMD64,
    "aarch64": Arch.ARM64,
    "arm64": Arch.ARM64,
}


def get_platform(system: Optional[str] = None) -> Platform:
    """
    Get the platform identifier for the host operating system.

    Args:
        system: OS name to map (default: ``platform.system()``)

    Returns:
        Platform enum member

    Raises:
        UnsupportedPlatformError: If the OS has no published binary

    Example:
        >>> get_platform("Linux")
        <Platform.LINUX: 'linux'>
    """
    if system is None:
        system = _platform.system()

    try:
        return _PLATFORM_MAP[system.strip().lower()]
    except KeyError:
        raise UnsupportedPlatformError(system) from None


def get_arch(machine: Optional[str] = None) -> Arch:
    """
    Get the architecture identifier for the host CPU.

    Args:
        machine: Machine name to map (default: ``platform.machine()``)

    Returns:
        Arch enum member

    Raises:
        UnsupportedArchError: For any architecture without a published binary,
            including 32-bit x86 and ARM
    """
    if machine is None:
        machine = _platform.machine()

    try:
        return _ARCH_MAP[machine.strip().lower()]
    except KeyError:
        raise UnsupportedArchError(machine) from None


def get_binary_name(
    tool: str = DEFAULT_TOOL_NAME, platform: Optional[Platform] = None
) -> str:
    """
    Get the executable file name of a tool for a platform.

    Args:
        tool: Tool base name
        platform: Target platform (default: host platform)

    Returns:
        ``tool`` with ``.exe`` appended on Windows
    """
    if platform is None:
        platform = get_platform()

    if platform == Platform.WINDOWS:
        return f"{tool}.exe"
    return tool


__all__ = [
    "DEFAULT_TOOL_NAME",
    "Platform",
    "Arch",
    "get_platform",
    "get_arch",
    "get_binary_name",
]
