"""Declarative data for interpreter discovery and policy decisions.

This is DATA, not code. Search roots, marker variables and probe commands
live here so the engine modules stay free of literals.
"""

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass(frozen=True)
class VersionCheck:
    """Configuration for probing an interpreter's version."""
    args: List[str]
    parse: str  # Regex pattern to extract version


# `<exe> --version`; validated and parsed in versions.parse_banner
BANNER_CHECK = VersionCheck(
    args=["--version"],
    parse=r"^Python\s+(\d+)\.(\d+)(?:\.(\d+))?",
)

# `<exe> -c ...` asking the interpreter for its own major.minor
INTROSPECT_CHECK = VersionCheck(
    args=[
        "-c",
        'import sys; print(f"{sys.version_info.major}.{sys.version_info.minor}")',
    ],
    parse=r"^(\d+)\.(\d+)$",
)


# Search roots in priority order. Order only matters for dedupe
# (first-seen wins when patches tie); the user-local dir always wins.
DEFAULT_SEARCH_PATHS: Tuple[str, ...] = (
    # User installations (preferred)
    "~/.local/bin",
    "~/bin",
    "~/.pythons/*/bin",
    "~/Library/Python/*/bin",
    # Homebrew
    "/opt/homebrew/bin",
    "/opt/homebrew/opt/python@*/bin",
    "/usr/local/bin",
    "/usr/local/opt/python@*/bin",
    # System Python
    "/usr/bin",
    # Custom installations
    "/opt/python*/bin",
    "~/opt/python*/bin",
    "~/opt/python/*/bin",  # ~/opt/python/3.12.12/bin
    "/opt/python/*/bin",  # /opt/python/3.12.12/bin
)

DEFAULT_USER_LOCAL_DIR = "~/.local/bin"

INTERPRETER_GLOB = "python*"

# Lookalikes that match INTERPRETER_GLOB but are not interpreters
EXCLUDED_NAME_FRAGMENTS: Tuple[str, ...] = ("-config", "pythonw")

MAX_SYMLINK_HOPS = 50


@dataclass(frozen=True)
class EnvironmentMarker:
    """An environment variable whose presence signals an active environment."""
    kind: str
    variable: str


# Checked in order, first match wins
ENVIRONMENT_MARKERS: Tuple[EnvironmentMarker, ...] = (
    EnvironmentMarker(kind="venv", variable="VIRTUAL_ENV"),
    EnvironmentMarker(kind="conda", variable="CONDA_DEFAULT_ENV"),
    EnvironmentMarker(kind="poetry", variable="POETRY_ACTIVE"),
    EnvironmentMarker(kind="pipenv", variable="PIPENV_ACTIVE"),
)

VENV_ACTIVATE_SCRIPT = "bin/activate"
VENV_METADATA_FILE = "pyvenv.cfg"


@dataclass(frozen=True)
class PolicyVariables:
    """Names of the environment variables that steer the policy engine."""
    bypass: List[str] = field(default_factory=lambda: ["PYTHON_MANAGER_FORCE_BYPASS"])
    automation: List[str] = field(default_factory=lambda: ["CI"])
    sandbox: List[str] = field(default_factory=lambda: ["CODEX_SANDBOX_NETWORK_DISABLED"])
    allow_system: str = "PYTHON_ALLOW_SYSTEM"


# Exported for subprocesses that cannot see in-process state
EXPORT_INTERPRETER_VARS: Tuple[str, ...] = ("PYTHON", "PYTHON3")
EXPORT_PIP_POLICY_VAR = "PIP_REQUIRE_VIRTUALENV"

DEFAULT_SYMLINK_NAMES: Tuple[str, ...] = ("python", "python3")

INSTALLER_MODULE = "pip"
MODULE_FLAG = "-m"
