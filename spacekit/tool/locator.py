"""
Discovery of a tool binary already installed on the machine.

Candidates are produced by an ordered list of lookup steps and the first
executable match wins:

1. ``<override dir>/<binary>`` (e.g. ``$NSC_POWERTOYS_DIR/spacectl``)
2. ``<default install dir>/<binary>`` for the host platform
3. ``<binary>`` resolved via PATH
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional, Sequence, Tuple, Union

from spacekit.core.filesystem import find_executable, is_executable_file
from spacekit.core.platform import Platform

logger = logging.getLogger(__name__)

DEFAULT_INSTALL_DIRS: Dict[Platform, Tuple[Path, ...]] = {
    Platform.LINUX: (Path("/opt/namespace/bin"),),
    Platform.DARWIN: (Path("/usr/local/namespace/bin"),),
    Platform.WINDOWS: (Path("C:/Program Files/Namespace/bin"),),
}


class BinaryLocator:
    """
    Finds an installed binary by evaluating candidate locations in order.

    Example:
        >>> locator = BinaryLocator("spacectl", override_dir=Path("/powertoys"))
        >>> locator.find()
        PosixPath('/powertoys/spacectl')
    """

    def __init__(
        self,
        binary_name: str,
        override_dir: Optional[Union[str, Path]] = None,
        default_dirs: Sequence[Union[str, Path]] = (),
        which: Callable[[str], Optional[Path]] = find_executable,
    ):
        """
        Initialize locator.

        Args:
            binary_name: Executable file name (with ``.exe`` on Windows)
            override_dir: Directory checked before anything else
            default_dirs: Fixed installation directories for the platform
            which: PATH lookup function
        """
        self.binary_name = binary_name
        self.override_dir = Path(override_dir) if override_dir else None
        self.default_dirs = tuple(Path(d) for d in default_dirs)
        self.which = which

    @classmethod
    def for_platform(
        cls,
        binary_name: str,
        platform: Platform,
        override_dir: Optional[Union[str, Path]] = None,
        default_dirs: Optional[Sequence[Union[str, Path]]] = None,
    ) -> "BinaryLocator":
        """
        Create a locator for a host platform.

        ``default_dirs`` replaces the platform's entry in
        ``DEFAULT_INSTALL_DIRS`` when given.
        """
        if default_dirs is None:
            default_dirs = DEFAULT_INSTALL_DIRS.get(platform, ())
        return cls(binary_name, override_dir=override_dir, default_dirs=default_dirs)

    def _override_candidates(self) -> Iterator[Path]:
        if self.override_dir is not None:
            yield self.override_dir / self.binary_name

    def _default_dir_candidates(self) -> Iterator[Path]:
        for directory in self.default_dirs:
            yield directory / self.binary_name

    def _path_candidates(self) -> Iterator[Path]:
        found = self.which(self.binary_name)
        if found is not None:
            yield Path(found)

    def candidates(self) -> Iterator[Path]:
        """
        Yield candidate paths in priority order.

        Steps are evaluated lazily, so the PATH lookup only runs when no
        earlier candidate was accepted.
        """
        steps = (
            self._override_candidates,
            self._default_dir_candidates,
            self._path_candidates,
        )
        for step in steps:
            yield from step()

    def find(self) -> Optional[Path]:
        """
        Find the first executable candidate.

        Returns:
            Path to the binary, or None if no candidate is executable
        """
        for candidate in self.candidates():
            if is_executable_file(candidate):
                logger.debug(f"Found existing binary: {candidate}")
                return candidate
            logger.debug(f"Binary not found at {candidate}")

        logger.debug(f"{self.binary_name} not found on PATH")
        return None
