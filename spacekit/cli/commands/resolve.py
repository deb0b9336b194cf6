"""
Resolve command implementation.
"""

from spacekit.config.settings import InstallConfig
from spacekit.release.github import GitHubReleases
from spacekit.release.version import resolve_version


def run(args) -> int:
    """
    Run the resolve command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    config = InstallConfig.from_env(token=args.token)
    releases = GitHubReleases(
        config.tool.owner,
        config.tool.repo,
        token=config.token,
        api_url=config.tool.api_url,
    )

    print(resolve_version(args.spec, releases=releases, dev_marker=config.tool.dev_marker))
    return 0
