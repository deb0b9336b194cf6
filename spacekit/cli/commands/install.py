"""
Install command implementation.

Installs spacectl and publishes the result as step outputs
(``bin-path``, ``version``, ``downloaded``).
"""

import logging
from pathlib import Path

from spacekit.config.settings import InstallConfig, load_config
from spacekit.tool.installer import Installer

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "spacekit.yaml"


def _load_config(args) -> InstallConfig:
    """Load configuration from --config, ./spacekit.yaml or the environment."""
    config_file = args.config
    if config_file is None and Path(DEFAULT_CONFIG_FILE).exists():
        config_file = Path(DEFAULT_CONFIG_FILE)

    if config_file is not None:
        logger.debug(f"Loading configuration from {config_file}")
        config = load_config(config_file)
    else:
        config = InstallConfig.from_env()

    return config.with_overrides(
        version=args.tool_version,
        token=args.token,
        system_binary=args.system_binary,
        add_to_path=args.add_to_path,
        cache_dir=args.cache_dir,
    )


def run(args) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    installer = Installer(_load_config(args))
    result = installer.install()

    installer.host.set_output("bin-path", str(result.bin_path))
    installer.host.set_output("version", result.version)
    installer.host.set_output("downloaded", "true" if result.downloaded else "false")

    source = "Downloaded" if result.downloaded else "Using"
    logger.info(f"{source} {installer.tool.name} {result.version}")
    print(result.bin_path)
    return 0
