"""
Centralized exception hierarchy for spacekit.

This module defines the custom exceptions shared across the codebase so that
callers can catch a single base class and still branch on precise failure
kinds.
"""

from enum import Enum
from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class SpacekitError(Exception):
    """Base exception for all spacekit errors."""

    pass


# ============================================================================
# Platform Exceptions
# ============================================================================


class PlatformError(SpacekitError):
    """Base exception for host platform detection errors."""

    pass


class UnsupportedPlatformError(PlatformError):
    """Raised when the host operating system has no published binary."""

    def __init__(self, system: str):
        self.system = system
        super().__init__(f"Unsupported platform: {system}")


class UnsupportedArchError(PlatformError):
    """Raised when the host CPU architecture has no published binary."""

    def __init__(self, machine: str):
        self.machine = machine
        super().__init__(f"Unsupported architecture: {machine}")


# ============================================================================
# Release Registry Exceptions
# ============================================================================


class ReleaseError(SpacekitError):
    """Base exception for release registry errors."""

    pass


class RegistryError(ReleaseError):
    """Raised when a release registry request fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NoDevReleaseError(ReleaseError):
    """Raised when no release on the dev channel exists."""

    pass


class VersionResolutionError(ReleaseError):
    """Raised when a version spec cannot be resolved to a concrete version."""

    pass


# ============================================================================
# Execution Exceptions
# ============================================================================


class ExecError(SpacekitError):
    """
    Raised when the tool exits with a non-zero exit code.

    Attributes:
        exit_code: Exit code of the child process
        stdout: Everything the child wrote to stdout
        stderr: Everything the child wrote to stderr
        command: Command line that was executed
    """

    def __init__(
        self,
        message: str,
        exit_code: int,
        stdout: str,
        stderr: str,
        command: str,
    ):
        self.message = message
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.command = command
        super().__init__(message)


class VersionReportError(SpacekitError):
    """Raised when a binary's version report cannot be parsed."""

    pass


# ============================================================================
# Installer Exceptions
# ============================================================================


class InstallErrorCode(str, Enum):
    """Closed set of reasons an install can fail."""

    UNSUPPORTED_PLATFORM = "UNSUPPORTED_PLATFORM"
    UNSUPPORTED_ARCH = "UNSUPPORTED_ARCH"
    SYSTEM_BINARY_NOT_FOUND = "SYSTEM_BINARY_NOT_FOUND"
    RESOLVE_VERSION_FAILED = "RESOLVE_VERSION_FAILED"
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
    EXEC_FAILED = "EXEC_FAILED"


class InstallError(SpacekitError):
    """
    Raised when the installer cannot produce a usable binary.

    Attributes:
        code: Failure classification
        cause: Underlying exception, if any (also set as ``__cause__``)
    """

    def __init__(
        self,
        message: str,
        code: InstallErrorCode,
        cause: Optional[BaseException] = None,
    ):
        self.code = InstallErrorCode(code)
        self.cause = cause
        super().__init__(message)
