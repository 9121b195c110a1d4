from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional


# Registry
@dataclass
class InterpreterInfo:
    version: str  # major.minor, e.g. "3.12"
    path: str
    real_path: str
    banner: str
    full_version: Optional[str] = None  # "3.12.1" when the banner has it
    selected: bool = False  # True for the current override


@dataclass
class EnvironmentInfo:
    """The isolated environment active in this session."""

    kind: Literal["none", "venv", "conda", "poetry", "pipenv"]
    root: Optional[str] = None
    name: Optional[str] = None  # conda only
    detected_by: str = "none"
    own_version: Optional[str] = None  # None when unknown
    binaries: List[str] = field(default_factory=list)  # python*/pip* in bin/


# Resolution
@dataclass
class ResolveResult:
    """Outcome of resolving one command, success or failure."""

    command: str
    args: List[str] = field(default_factory=list)
    executable: Optional[str] = None
    source: Optional[str] = None  # DispatchSource value
    fallback: Optional[str] = None
    note: Optional[str] = None
    error: Optional[str] = None  # remediation text when refused
    error_kind: Optional[str] = None  # FailureKind value


@dataclass
class WhichEntry:
    command: str
    path: Optional[str] = None
    reason: Optional[str] = None  # e.g. "(blocked outside venv)"


@dataclass
class WhichResult:
    entries: List[WhichEntry]
    bypass_active: bool = False  # entries still show managed behaviour


# Override
@dataclass
class SetResult:
    version: str
    path: str
    build_mode: bool
    environment_active: bool = False
    symlinks_published: bool = False
    symlink_dir_on_path: bool = True
    exports: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ClearResponse:
    previous_version: Optional[str] = None
    had_build_mode: bool = False
    symlinks_pending: bool = False
    symlinks_removed: bool = False


# Reports
@dataclass
class StatusReport:
    selected_version: Optional[str] = None
    build_mode: bool = False
    path: Optional[str] = None
    stale: bool = False  # override set but its interpreter is gone
    available: List[str] = field(default_factory=list)
    environment: Optional[EnvironmentInfo] = None


@dataclass
class InfoReport:
    selected_version: Optional[str]
    build_mode: bool
    environment: EnvironmentInfo
    interpreters: List[InterpreterInfo] = field(default_factory=list)


@dataclass
class DiagnosticsReport:
    """Everything needed to explain why a command resolved the way it did."""

    interactive: bool
    bypass_reason: Optional[str]
    policy_variables: Dict[str, Optional[str]]
    marker_variables: Dict[str, Optional[str]]
    environment: EnvironmentInfo
    selected_version: Optional[str]
    build_mode: bool
    symlink_managed: bool
    exports: Dict[str, Optional[str]]
    symlink_dir: str
    symlink_dir_on_path: bool
    symlink_targets: Dict[str, Optional[str]]
    path_lookup: Dict[str, Optional[str]]  # what a subprocess finds on PATH
    config_source: Optional[str] = None
    interpreter_count: int = 0
