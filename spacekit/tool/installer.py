"""
Installation of the tool binary.

The installer decides which binary to use and makes it available:

    probe system -> resolve version -> probe cache -> download -> validate

- A binary already on the machine is used when no version is requested
  (policy ``prefer``) or always (policy ``require``).
- Otherwise the version spec is resolved against GitHub releases, and the
  release is taken from the tool cache or downloaded into it.
- Downloaded binaries are run once (``version``) to catch corrupt archives.

Every failure is reported as ``InstallError`` with one of the
``InstallErrorCode`` values and the underlying exception chained.

Usage:
    from spacekit.tool.installer import install

    result = install(version="latest")
    print(result.bin_path, result.version, result.downloaded)
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from spacekit.ci.host import ActionsHost
from spacekit.config.settings import InstallConfig, SystemBinaryPolicy
from spacekit.core.directory import DirectoryError
from spacekit.core.download import DownloadError, download_file
from spacekit.core.exceptions import (
    ExecError,
    InstallError,
    InstallErrorCode,
    SpacekitError,
    UnsupportedArchError,
    UnsupportedPlatformError,
    VersionReportError,
)
from spacekit.core.filesystem import (
    FilesystemError,
    extract_archive,
    temporary_directory,
)
from spacekit.core.platform import Arch, Platform, get_arch, get_binary_name, get_platform
from spacekit.core.tool_cache import ToolCache, ToolCacheError
from spacekit.release.github import GitHubReleases
from spacekit.release.version import normalize_version, resolve_version
from spacekit.tool.executor import BinaryHandle, CommandExecutor, inspect_binary
from spacekit.tool.locator import BinaryLocator

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Binary chosen by the installer."""

    bin_path: Path
    version: str
    downloaded: bool


def get_download_url(
    version: str,
    platform: Platform,
    arch: Arch,
    tool: str = "spacectl",
    owner: str = "namespacelabs",
    repo: str = "spacectl",
    host: str = "github.com",
) -> str:
    """
    Get the release archive URL for a version and platform.

    Example:
        >>> get_download_url("1.2.3", Platform.LINUX, Arch.AMD64)
        'https://github.com/namespacelabs/spacectl/releases/download/v1.2.3/spacectl_1.2.3_linux_amd64.tar.gz'
    """
    platform = Platform(platform)
    arch = Arch(arch)
    filename = f"{tool}_{version}_{platform.value}_{arch.value}.tar.gz"
    return f"https://{host}/{owner}/{repo}/releases/download/v{version}/{filename}"


class Installer:
    """
    Drives one install to completion or failure.

    Collaborators default to the real implementations and can be injected for
    testing.
    """

    def __init__(
        self,
        config: Optional[InstallConfig] = None,
        executor: Optional[CommandExecutor] = None,
        cache: Optional[ToolCache] = None,
        releases: Optional[GitHubReleases] = None,
        host: Optional[ActionsHost] = None,
    ):
        """
        Initialize installer.

        Args:
            config: Install options (default: read from environment)
            executor: Executor used to query binary versions
            cache: Tool cache (default: at ``config.cache_dir``)
            releases: Releases client (default: for ``config.tool``)
            host: CI host used to extend PATH
        """
        self.config = config or InstallConfig.from_env()
        self.tool = self.config.tool
        self.executor = executor or CommandExecutor()
        self.cache = cache or ToolCache(self.config.cache_dir)
        self.releases = releases or GitHubReleases(
            self.tool.owner,
            self.tool.repo,
            token=self.config.token,
            api_url=self.tool.api_url,
        )
        self.host = host or ActionsHost()

    def install(self) -> InstallResult:
        """
        Locate, resolve, fetch and validate the tool binary.

        Returns:
            InstallResult describing the binary to use

        Raises:
            InstallError: If no usable binary could be produced
        """
        platform = self._resolve_platform()
        arch = self._resolve_arch()
        binary_name = get_binary_name(self.tool.name, platform)

        if self._should_probe_system():
            existing = self._use_system_binary(platform, binary_name)
            if existing is not None:
                return existing

        version = self._resolve_version()

        cached_dir = self.cache.find(self.tool.name, version, arch.value)
        if cached_dir is not None:
            logger.info(f"Using cached {self.tool.name} {version} at {cached_dir}")
            self._add_to_path(cached_dir)
            return InstallResult(
                bin_path=cached_dir / binary_name, version=version, downloaded=False
            )

        cached_dir = self._download_and_cache(version, platform, arch, binary_name)
        bin_path = cached_dir / binary_name

        self._add_to_path(cached_dir)
        return InstallResult(bin_path=bin_path, version=version, downloaded=True)

    def _resolve_platform(self) -> Platform:
        try:
            return get_platform()
        except UnsupportedPlatformError as e:
            raise InstallError(str(e), InstallErrorCode.UNSUPPORTED_PLATFORM, e) from e

    def _resolve_arch(self) -> Arch:
        try:
            return get_arch()
        except UnsupportedArchError as e:
            raise InstallError(str(e), InstallErrorCode.UNSUPPORTED_ARCH, e) from e

    def _should_probe_system(self) -> bool:
        policy = self.config.system_binary
        if policy == SystemBinaryPolicy.REQUIRE:
            return True
        # An explicit version pins the release even if another one is installed
        return policy == SystemBinaryPolicy.PREFER and self.config.version == ""

    def _use_system_binary(
        self, platform: Platform, binary_name: str
    ) -> Optional[InstallResult]:
        locator = BinaryLocator.for_platform(
            binary_name,
            platform,
            override_dir=self.config.override_dir,
            default_dirs=self.tool.default_dirs,
        )
        existing = locator.find()

        if existing is None:
            if self.config.system_binary == SystemBinaryPolicy.REQUIRE:
                raise InstallError(
                    f"{self.tool.name} is required on the system but was not found",
                    InstallErrorCode.SYSTEM_BINARY_NOT_FOUND,
                )
            logger.info(f"No existing {self.tool.name} found, downloading latest version")
            return None

        version = self._inspect(existing).version
        if self.config.version and version != normalize_version(self.config.version):
            logger.warning(
                f"System {self.tool.name} is version {version}, "
                f"requested {self.config.version}"
            )

        logger.info(f"Using existing {self.tool.name} {version} at {existing}")
        self._add_to_path(existing.parent)
        return InstallResult(bin_path=existing, version=version, downloaded=False)

    def _resolve_version(self) -> str:
        spec = self.config.version or "latest"
        try:
            return resolve_version(
                spec, releases=self.releases, dev_marker=self.tool.dev_marker
            )
        except SpacekitError as e:
            raise InstallError(
                f'Failed to resolve version "{spec}"',
                InstallErrorCode.RESOLVE_VERSION_FAILED,
                e,
            ) from e

    def _inspect(self, bin_path: Path) -> BinaryHandle:
        try:
            return inspect_binary(bin_path, self.executor)
        except (ExecError, VersionReportError) as e:
            raise InstallError(
                f"Failed to validate binary at {bin_path}",
                InstallErrorCode.EXEC_FAILED,
                e,
            ) from e

    def _validate_download(self, bin_path: Path, version: str) -> None:
        reported = self._inspect(bin_path).version
        if reported != version:
            logger.warning(f"{bin_path} reports version {reported}, expected {version}")

    def _download_and_cache(
        self, version: str, platform: Platform, arch: Arch, binary_name: str
    ) -> Path:
        """
        Download, validate and cache one release.

        The binary is validated in the download directory, so a release that
        fails to run never becomes a complete cache entry.
        """
        url = get_download_url(
            version,
            platform,
            arch,
            tool=self.tool.name,
            owner=self.tool.owner,
            repo=self.tool.repo,
            host=self.tool.download_host,
        )
        target = f"{self.tool.name} {version} for {platform.value}/{arch.value}"
        logger.info(f"Downloading {self.tool.name} {version} from {url}")

        headers = {}
        if self.config.token:
            headers["Authorization"] = f"token {self.config.token}"

        try:
            with temporary_directory(prefix="spacekit_download_") as work_dir:
                archive_path = work_dir / url.rsplit("/", 1)[-1]
                download_file(url, archive_path, headers=headers)

                extracted = extract_archive(archive_path, work_dir / "extracted")
                self._validate_download(extracted / binary_name, version)

                cached_dir = self.cache.cache_dir(
                    extracted, self.tool.name, version, arch.value
                )
        except (
            DownloadError,
            FilesystemError,
            ToolCacheError,
            DirectoryError,
            OSError,
        ) as e:
            raise InstallError(
                f"Failed to download {target}", InstallErrorCode.DOWNLOAD_FAILED, e
            ) from e

        logger.info(f"Cached {self.tool.name} {version} to {cached_dir}")
        return cached_dir

    def _add_to_path(self, directory: Path) -> None:
        if self.config.add_to_path:
            self.host.add_path(directory)


def install(config: Optional[InstallConfig] = None, **overrides: Any) -> InstallResult:
    """
    Install the tool with the given configuration.

    Args:
        config: Install options (default: read from environment)
        **overrides: Option values applied on top of ``config``
            (e.g. ``version="dev"``, ``system_binary="ignore"``)

    Returns:
        InstallResult describing the binary to use

    Raises:
        InstallError: If no usable binary could be produced
    """
    if config is None:
        config = InstallConfig.from_env(**overrides)
    elif overrides:
        config = config.with_overrides(**overrides)
    return Installer(config).install()
