"""Installer configuration for spacekit.

All environment lookups happen here; the installer and its collaborators only
ever see an ``InstallConfig`` value.

Example spacekit.yaml:

    version: latest
    system_binary: prefer
    add_to_path: true
    cache_dir: ~/.cache/spacekit
    tool:
      name: spacectl
      owner: namespacelabs
      repo: spacectl
      default_dirs:
        - /opt/namespace/bin
"""

import os
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from spacekit.core.exceptions import SpacekitError

TOKEN_ENV = "GITHUB_TOKEN"
CACHE_DIR_ENV = "SPACEKIT_CACHE_DIR"
RUNNER_TOOL_CACHE_ENV = "RUNNER_TOOL_CACHE"


class ConfigError(SpacekitError):
    """Configuration parsing or validation error."""

    pass


class SystemBinaryPolicy(str, Enum):
    """Whether a binary already installed on the machine may be used."""

    PREFER = "prefer"  # Use it when no version is requested
    REQUIRE = "require"  # Use it or fail
    IGNORE = "ignore"  # Always resolve, cache or download


@dataclass
class ToolIdentity:
    """Which tool is installed and where its releases are published."""

    name: str = "spacectl"
    owner: str = "namespacelabs"
    repo: str = "spacectl"
    download_host: str = "github.com"
    api_url: str = "https://api.github.com"
    dev_marker: str = "-dev"
    override_dir_env: str = "NSC_POWERTOYS_DIR"
    # None means the built-in install directories for the host platform
    default_dirs: Optional[Tuple[str, ...]] = None


@dataclass
class InstallConfig:
    """Caller-facing installer options."""

    version: str = ""
    token: Optional[str] = None
    system_binary: SystemBinaryPolicy = SystemBinaryPolicy.PREFER
    add_to_path: bool = True
    cache_dir: Optional[Path] = None
    override_dir: Optional[Path] = None
    tool: ToolIdentity = field(default_factory=ToolIdentity)

    def __post_init__(self):
        self.version = (self.version or "").strip()
        self.system_binary = _parse_policy(self.system_binary)
        if self.cache_dir is not None:
            self.cache_dir = Path(self.cache_dir).expanduser()
        if self.override_dir is not None:
            self.override_dir = Path(self.override_dir).expanduser()

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any
    ) -> "InstallConfig":
        """
        Build a configuration from environment variables plus overrides.

        Args:
            environ: Environment to read (default: ``os.environ``)
            **overrides: Field values taking precedence over the environment;
                None values are ignored

        Returns:
            InstallConfig instance

        Raises:
            ConfigError: If an override is not a known field or is invalid
        """
        if environ is None:
            environ = os.environ

        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigError(f"Unknown configuration option(s): {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = {k: v for k, v in overrides.items() if v is not None}
        tool = values.get("tool") or ToolIdentity()

        values.setdefault("token", environ.get(TOKEN_ENV) or None)
        values.setdefault("override_dir", environ.get(tool.override_dir_env) or None)
        values.setdefault(
            "cache_dir",
            environ.get(CACHE_DIR_ENV) or environ.get(RUNNER_TOOL_CACHE_ENV) or None,
        )
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "InstallConfig":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _parse_policy(value: Any) -> SystemBinaryPolicy:
    """Convert a policy name to ``SystemBinaryPolicy``."""
    if isinstance(value, SystemBinaryPolicy):
        return value
    try:
        return SystemBinaryPolicy(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(p.value for p in SystemBinaryPolicy)
        raise ConfigError(
            f"Invalid system_binary policy '{value}'. Must be one of: {choices}"
        ) from None


def _parse_tool(data: Any) -> ToolIdentity:
    """Parse the ``tool`` section."""
    if data is None:
        return ToolIdentity()
    if not isinstance(data, dict):
        raise ConfigError("'tool' must be a mapping")

    known = {f.name for f in fields(ToolIdentity)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown tool option(s): {', '.join(sorted(unknown))}")

    data = dict(data)
    default_dirs = data.pop("default_dirs", None)

    for key, value in data.items():
        if not isinstance(value, str) or not value:
            raise ConfigError(f"tool.{key} must be a non-empty string")

    if default_dirs is not None:
        data["default_dirs"] = _parse_dirs(default_dirs)

    return ToolIdentity(**data)


def _parse_dirs(value: Any) -> Tuple[str, ...]:
    """Parse ``tool.default_dirs``, a list of directory paths."""
    if not isinstance(value, list) or not all(isinstance(d, str) and d for d in value):
        raise ConfigError("tool.default_dirs must be a list of non-empty strings")
    return tuple(value)


def load_config(
    config_file: Path, environ: Optional[Mapping[str, str]] = None
) -> InstallConfig:
    """
    Load installer configuration from a YAML file.

    Values in the file take precedence over the environment.

    Args:
        config_file: Path to spacekit.yaml
        environ: Environment to read (default: ``os.environ``)

    Returns:
        InstallConfig instance

    Raises:
        ConfigError: If file is missing, malformed or has invalid values
    """
    config_file = Path(config_file)
    if not config_file.exists():
        raise ConfigError(f"Configuration file not found: {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {config_file}")

    data = dict(data)
    data["tool"] = _parse_tool(data.get("tool"))

    version = data.get("version")
    if version is not None:
        data["version"] = str(version)

    add_to_path = data.get("add_to_path")
    if add_to_path is not None and not isinstance(add_to_path, bool):
        raise ConfigError("'add_to_path' must be true or false")

    return InstallConfig.from_env(environ, **data)
