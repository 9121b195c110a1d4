"""Configuration file parser for pyman."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Fallback for Python 3.10

from ..runtime.specs import (
    DEFAULT_SEARCH_PATHS,
    DEFAULT_SYMLINK_NAMES,
    DEFAULT_USER_LOCAL_DIR,
    PolicyVariables,
)

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PYMAN_CONFIG"
DEFAULT_CONFIG_PATH = "~/.config/pyman/config.toml"


@dataclass
class DiscoveryConfig:
    """Where to look for interpreters."""

    search_paths: List[str] = field(default_factory=lambda: list(DEFAULT_SEARCH_PATHS))
    extra_search_paths: List[str] = field(default_factory=list)
    user_local_dir: str = DEFAULT_USER_LOCAL_DIR
    probe_timeout: Optional[float] = None  # seconds; None waits forever

    @property
    def effective_search_paths(self) -> List[str]:
        return [*self.search_paths, *self.extra_search_paths]


@dataclass
class SymlinkConfig:
    """Subprocess-visible symlinks for the selected interpreter."""

    enabled: bool = True
    directory: str = DEFAULT_USER_LOCAL_DIR
    names: List[str] = field(default_factory=lambda: list(DEFAULT_SYMLINK_NAMES))


@dataclass
class PolicyConfig:
    """Variables that steer the policy engine."""

    bypass_vars: List[str] = field(default_factory=lambda: list(PolicyVariables().bypass))
    automation_vars: List[str] = field(
        default_factory=lambda: list(PolicyVariables().automation)
    )
    sandbox_vars: List[str] = field(default_factory=lambda: list(PolicyVariables().sandbox))
    allow_system_var: str = PolicyVariables().allow_system
    interactive: Optional[bool] = None  # None = auto-detect from the terminal

    def variables(self) -> PolicyVariables:
        return PolicyVariables(
            bypass=list(self.bypass_vars),
            automation=list(self.automation_vars),
            sandbox=list(self.sandbox_vars),
            allow_system=self.allow_system_var,
        )


@dataclass
class PymanConfig:
    """Complete pyman configuration."""

    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    symlinks: SymlinkConfig = field(default_factory=SymlinkConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)

    # File the values came from (None for defaults)
    source: Optional[Path] = None


def find_config_file(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    """Locate the config file.

    ``$PYMAN_CONFIG`` wins when set; otherwise ``~/.config/pyman/config.toml``.

    Returns:
        Path to the config file if it exists, None otherwise
    """
    environ = os.environ if environ is None else environ
    explicit = environ.get(CONFIG_ENV_VAR)
    candidate = Path(os.path.expanduser(explicit or DEFAULT_CONFIG_PATH))
    if candidate.is_file():
        return candidate
    return None


def _string_list(data: Dict[str, Any], key: str, default: List[str]) -> List[str]:
    value = data.get(key, default)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        logger.warning("config: %s must be a list of strings; using default", key)
        return list(default)
    return list(value)


def load_config(
    path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None
) -> PymanConfig:
    """Load configuration from a TOML file or use defaults.

    Args:
        path: Explicit config file; located with :func:`find_config_file`
            when omitted
        environ: Environment used to locate the file

    Returns:
        PymanConfig with loaded or default configuration
    """
    config = PymanConfig()

    config_file = path or find_config_file(environ)
    if not config_file:
        return config

    try:
        with open(config_file, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        # If TOML parsing fails, return defaults
        logger.warning("Ignoring config file %s: %s", config_file, e)
        return config

    config.source = Path(config_file)

    # Parse discovery config
    if "discovery" in data:
        disc = data["discovery"]
        defaults = DiscoveryConfig()
        config.discovery.search_paths = _string_list(disc, "search_paths", defaults.search_paths)
        config.discovery.extra_search_paths = _string_list(disc, "extra_search_paths", [])
        config.discovery.user_local_dir = disc.get("user_local_dir", DEFAULT_USER_LOCAL_DIR)
        timeout = disc.get("probe_timeout")
        config.discovery.probe_timeout = float(timeout) if timeout is not None else None

    # Parse symlinks config
    if "symlinks" in data:
        links = data["symlinks"]
        config.symlinks.enabled = links.get("enabled", True)
        config.symlinks.directory = links.get("directory", config.discovery.user_local_dir)
        config.symlinks.names = _string_list(links, "names", list(DEFAULT_SYMLINK_NAMES))
    else:
        # Symlinks live in the user-local dir unless told otherwise
        config.symlinks.directory = config.discovery.user_local_dir

    # Parse policy config
    if "policy" in data:
        pol = data["policy"]
        defaults = PolicyConfig()
        config.policy.bypass_vars = _string_list(pol, "bypass_vars", defaults.bypass_vars)
        config.policy.automation_vars = _string_list(
            pol, "automation_vars", defaults.automation_vars
        )
        config.policy.sandbox_vars = _string_list(pol, "sandbox_vars", defaults.sandbox_vars)
        config.policy.allow_system_var = pol.get("allow_system_var", defaults.allow_system_var)
        config.policy.interactive = pol.get("interactive")

    return config
