"""Data types for runtime resolution."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import semver

from .errors import ResolutionError
from .specs import INSTALLER_MODULE, MODULE_FLAG
from .versions import PythonVersion, banner_patch, parse_banner


@dataclass
class InterpreterRecord:
    """A discovered interpreter, one per major.minor version.

    Attributes:
        version: major.minor key
        path: Path as discovered in a search root
        real_path: Path after following symlinks
        banner: Raw ``--version`` output (e.g. "Python 3.12.1")
    """

    version: PythonVersion
    path: str
    real_path: str
    banner: str = ""

    @property
    def patch(self) -> Optional[int]:
        return banner_patch(self.banner)

    @property
    def full_version(self) -> Optional[semver.Version]:
        return parse_banner(self.banner)

    @property
    def info(self) -> str:
        """One-line summary, e.g. ``Python 3.12.1 (/opt/python/3.12.1/bin/python3.12)``."""
        return f"{self.banner.strip()} ({self.real_path})"

    def __repr__(self) -> str:
        return f"<InterpreterRecord {self.version} @ {self.path}>"


@dataclass
class Registry:
    """Deduplicated interpreters keyed by major.minor.

    ``versions`` is strictly ascending and has exactly one entry in
    ``records`` per element.
    """

    versions: List[PythonVersion] = field(default_factory=list)
    records: Dict[PythonVersion, InterpreterRecord] = field(default_factory=dict)

    @classmethod
    def from_records(cls, records: Dict[PythonVersion, InterpreterRecord]) -> "Registry":
        return cls(versions=sorted(records), records=dict(records))

    def __contains__(self, version: object) -> bool:
        return version in self.records

    def __len__(self) -> int:
        return len(self.versions)

    def get(self, version: PythonVersion) -> Optional[InterpreterRecord]:
        return self.records.get(version)

    def path_for(self, version: PythonVersion) -> Optional[str]:
        record = self.records.get(version)
        return record.path if record else None

    def highest(self) -> Optional[InterpreterRecord]:
        if not self.versions:
            return None
        return self.records[self.versions[-1]]

    def descending(self) -> List[InterpreterRecord]:
        return [self.records[v] for v in reversed(self.versions)]


class EnvironmentKind(str, Enum):
    NONE = "none"
    VENV = "venv"
    CONDA = "conda"
    POETRY = "poetry"
    PIPENV = "pipenv"


@dataclass(frozen=True)
class EnvironmentContext:
    """The isolated environment active for the current call, if any."""

    kind: EnvironmentKind = EnvironmentKind.NONE
    root: Optional[Path] = None  # venv only
    name: Optional[str] = None  # conda env name
    detected_by: str = "none"  # "marker", "heuristic" or "none"

    @property
    def active(self) -> bool:
        return self.kind is not EnvironmentKind.NONE

    @property
    def bin_dir(self) -> Optional[Path]:
        return self.root / "bin" if self.root else None


@dataclass
class OverrideState:
    """Session-scoped default version and installer policy.

    Build mode is only meaningful while a version is selected.
    """

    selected_version: Optional[PythonVersion] = None
    build_mode: bool = False
    symlink_managed: bool = False

    def __post_init__(self) -> None:
        if self.build_mode and self.selected_version is None:
            raise ValueError("build mode requires a selected version")

    @property
    def active(self) -> bool:
        return self.selected_version is not None


class CommandKind(str, Enum):
    INTERPRETER_BARE = "interpreter-bare"
    INTERPRETER_MAJOR = "interpreter-major"
    INTERPRETER_VERSIONED = "interpreter-versioned"
    INSTALLER_BARE = "installer-bare"
    INSTALLER_VERSIONED = "installer-versioned"

    @property
    def is_installer(self) -> bool:
        return self in (CommandKind.INSTALLER_BARE, CommandKind.INSTALLER_VERSIONED)

    @property
    def is_versioned(self) -> bool:
        return self in (CommandKind.INTERPRETER_VERSIONED, CommandKind.INSTALLER_VERSIONED)


_COMMAND_PATTERNS: Tuple[Tuple[re.Pattern, CommandKind], ...] = (
    (re.compile(r"^python$"), CommandKind.INTERPRETER_BARE),
    (re.compile(r"^python\d+$"), CommandKind.INTERPRETER_MAJOR),
    (re.compile(r"^(?:python|py)(\d+\.\d+)$"), CommandKind.INTERPRETER_VERSIONED),
    (re.compile(r"^pip\d*$"), CommandKind.INSTALLER_BARE),
    (re.compile(r"^pip(\d+\.\d+)$"), CommandKind.INSTALLER_VERSIONED),
)


def is_managed_command(command: str) -> bool:
    """Whether ``command`` is a python/pip name this engine resolves."""
    return any(pattern.match(command) for pattern, _ in _COMMAND_PATTERNS)


@dataclass(frozen=True)
class ResolutionRequest:
    """One command invocation to resolve."""

    command: str
    kind: CommandKind
    args: Tuple[str, ...] = ()
    version: Optional[PythonVersion] = None

    @classmethod
    def parse(cls, command: str, args: Sequence[str] = ()) -> "ResolutionRequest":
        """Build a request from a command name like ``python3.12`` or ``pip``.

        Raises:
            ValueError: If the name is not a python/pip command
        """
        for pattern, kind in _COMMAND_PATTERNS:
            match = pattern.match(command)
            if not match:
                continue
            version = PythonVersion.parse(match.group(1)) if kind.is_versioned else None
            return cls(command=command, kind=kind, args=tuple(args), version=version)
        raise ValueError(f"'{command}' is not a python or pip command")

    @property
    def is_installer_module(self) -> bool:
        """True for ``<python> -m pip ...``."""
        return (
            not self.kind.is_installer
            and len(self.args) >= 2
            and self.args[0] == MODULE_FLAG
            and self.args[1] == INSTALLER_MODULE
        )

    @property
    def display(self) -> str:
        """The command as a user typed it, for error messages."""
        if self.is_installer_module:
            return f"{self.command} -m pip"
        return self.command


class DispatchSource(str, Enum):
    BYPASS = "bypass"
    ENVIRONMENT = "environment"
    SYSTEM = "system"
    OVERRIDE = "override"
    REGISTRY = "registry"
    BUILD_MODE = "build_mode"


@dataclass(frozen=True)
class Dispatch:
    """What to execute for a request.

    Attributes:
        executable: Absolute path, or a bare name to be looked up on PATH
        args: Arguments passed after the executable
        source: Which rule produced this dispatch
        fallback: Bypass only; tried once if ``executable`` is missing or
            not executable
        note: Message for the user's terminal (stderr), e.g. build mode
    """

    executable: str
    args: Tuple[str, ...] = ()
    source: DispatchSource = DispatchSource.SYSTEM
    fallback: Optional[str] = None
    note: Optional[str] = None

    @property
    def argv(self) -> List[str]:
        return [self.executable, *self.args]

    @property
    def fallback_argv(self) -> Optional[List[str]]:
        if self.fallback is None:
            return None
        return [self.fallback, *self.args]


@dataclass(frozen=True)
class ResolutionResult:
    """Either a dispatch or the failure that prevented one."""

    request: ResolutionRequest
    outcome: Union[Dispatch, ResolutionError]

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, Dispatch)

    @property
    def dispatch(self) -> Optional[Dispatch]:
        return self.outcome if isinstance(self.outcome, Dispatch) else None

    @property
    def failure(self) -> Optional[ResolutionError]:
        return self.outcome if isinstance(self.outcome, ResolutionError) else None
