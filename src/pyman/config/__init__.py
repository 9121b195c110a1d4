"""Configuration management for pyman."""

from .parser import (
    DiscoveryConfig,
    PolicyConfig,
    PymanConfig,
    SymlinkConfig,
    find_config_file,
    load_config,
)

__all__ = [
    "DiscoveryConfig",
    "PolicyConfig",
    "PymanConfig",
    "SymlinkConfig",
    "find_config_file",
    "load_config",
]
