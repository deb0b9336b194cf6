"""
Release registry access and version resolution.
"""

from .github import GitHubReleases
from .version import (
    normalize_version,
    resolve_version,
    get_latest_version,
    get_latest_dev_version,
)

__all__ = [
    "GitHubReleases",
    "normalize_version",
    "resolve_version",
    "get_latest_version",
    "get_latest_dev_version",
]
