"""
Version spec resolution.

A version spec is what a caller asks for; a resolved version is the concrete
release to install:

    ""        -> latest published release
    "latest"  -> latest published release
    "dev"     -> newest release whose tag carries the dev marker
    "v1.2.3"  -> "1.2.3" (no network access)
"""

import logging
from typing import Any, Optional

from spacekit.config.settings import InstallConfig
from spacekit.core.exceptions import (
    NoDevReleaseError,
    RegistryError,
    ReleaseError,
    VersionResolutionError,
)
from spacekit.release.github import GitHubReleases

logger = logging.getLogger(__name__)

DEFAULT_DEV_MARKER = "-dev"

_TOKEN_HINT = (
    "If hitting rate limits, provide a GitHub token via the token option "
    "or the GITHUB_TOKEN environment variable."
)


def normalize_version(version: str) -> str:
    """
    Normalize a version tag.

    Strips surrounding whitespace and a single leading ``v``/``V``.

    Example:
        >>> normalize_version(" v1.2.3 ")
        '1.2.3'
        >>> normalize_version("V1.2.3-dev")
        '1.2.3-dev'
    """
    version = version.strip()
    if version[:1] in ("v", "V"):
        return version[1:]
    return version


def _tag_name(release: Any) -> str:
    """Get the tag of a release object, rejecting malformed payloads."""
    if not isinstance(release, dict):
        raise RegistryError(f"Malformed release object: {release!r}")

    tag = release.get("tag_name")
    if not isinstance(tag, str) or not tag.strip():
        raise RegistryError(f"Release has no usable tag_name: {tag!r}")
    return tag


def get_latest_version(releases: GitHubReleases) -> str:
    """
    Get the normalized tag of the latest published release.

    Raises:
        VersionResolutionError: If the registry query fails or returns a
            malformed release
    """
    try:
        return normalize_version(_tag_name(releases.get_latest_release()))
    except ReleaseError as e:
        logger.debug(f"Failed to get latest release: {e}")
        raise VersionResolutionError(
            f"Failed to resolve latest version. {_TOKEN_HINT}"
        ) from e


def get_latest_dev_version(
    releases: GitHubReleases, dev_marker: str = DEFAULT_DEV_MARKER
) -> str:
    """
    Get the normalized tag of the newest dev channel release.

    Releases are scanned newest first and the scan stops at the first tag
    containing ``dev_marker``.

    Raises:
        VersionResolutionError: If the registry query fails, the listing is
            malformed or no release on the dev channel exists
    """
    try:
        for release in releases.iter_releases():
            tag = _tag_name(release)
            if dev_marker in tag:
                return normalize_version(tag)
        raise NoDevReleaseError("No dev release found")
    except ReleaseError as e:
        logger.debug(f"Failed to get dev release: {e}")
        raise VersionResolutionError(
            f"Failed to resolve dev version. {_TOKEN_HINT}"
        ) from e


def resolve_version(
    spec: str,
    token: Optional[str] = None,
    releases: Optional[GitHubReleases] = None,
    dev_marker: str = DEFAULT_DEV_MARKER,
) -> str:
    """
    Resolve a version spec to a concrete version.

    Args:
        spec: Version spec ("", "latest", "dev" or an explicit tag)
        token: GitHub token, used only when ``releases`` is not given
            (default: ``GITHUB_TOKEN`` via ``InstallConfig.from_env``)
        releases: Releases client (default: client for the default tool
            identity)
        dev_marker: Substring identifying dev channel tags

    Returns:
        Normalized version string

    Raises:
        VersionResolutionError: If an abstract spec cannot be resolved
    """
    keyword = (spec or "").strip().lower()

    if keyword not in ("", "latest", "dev"):
        return normalize_version(spec)

    if releases is None:
        config = InstallConfig.from_env(token=token)
        releases = GitHubReleases(
            config.tool.owner,
            config.tool.repo,
            token=config.token,
            api_url=config.tool.api_url,
        )

    if not releases.authenticated:
        logger.debug("No GitHub token configured, querying releases anonymously")

    if keyword == "dev":
        version = get_latest_dev_version(releases, dev_marker)
    else:
        version = get_latest_version(releases)

    logger.debug(f"Resolved version spec '{spec}' to {version}")
    return version
