"""
Automation host integration.

Implements the GitHub Actions file commands used by the installer:
- ``GITHUB_PATH``: directories prepended to PATH for later steps
- ``GITHUB_OUTPUT``: step outputs

Outside a runner (variables unset) only the current process is affected.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import MutableMapping, Optional, Union

logger = logging.getLogger(__name__)


class ActionsHost:
    """
    Host interface for a GitHub Actions runner.

    Args:
        environ: Environment to read and update (default: ``os.environ``)
    """

    def __init__(self, environ: Optional[MutableMapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ

    def add_path(self, directory: Union[str, Path]) -> None:
        """
        Prepend a directory to PATH for this process and later steps.

        Args:
            directory: Directory containing executables
        """
        directory = str(directory)
        current = self.environ.get("PATH", "")
        self.environ["PATH"] = (
            f"{directory}{os.pathsep}{current}" if current else directory
        )

        path_file = self.environ.get("GITHUB_PATH")
        if path_file:
            _append_line(Path(path_file), directory)
        logger.debug(f"Added {directory} to PATH")

    def set_output(self, name: str, value: str) -> None:
        """
        Set a step output.

        Multi-line values use the heredoc form with a random delimiter.

        Args:
            name: Output name
            value: Output value
        """
        output_file = self.environ.get("GITHUB_OUTPUT")
        if not output_file:
            logger.debug(f"GITHUB_OUTPUT not set, skipping output {name}")
            return

        value = str(value)
        if "\n" in value:
            delimiter = f"ghadelimiter_{uuid.uuid4()}"
            _append_line(Path(output_file), f"{name}<<{delimiter}\n{value}\n{delimiter}")
        else:
            _append_line(Path(output_file), f"{name}={value}")


def _append_line(file_path: Path, line: str) -> None:
    with open(file_path, "a", encoding="utf-8") as f:
        f.write(f"{line}\n")
