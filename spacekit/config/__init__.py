"""Configuration for spacekit."""

from .settings import (
    ConfigError,
    InstallConfig,
    SystemBinaryPolicy,
    ToolIdentity,
    load_config,
)

__all__ = [
    "ConfigError",
    "InstallConfig",
    "SystemBinaryPolicy",
    "ToolIdentity",
    "load_config",
]
