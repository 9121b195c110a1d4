"""Runtime resolution engine for python/pip commands."""

from .discovery import InterpreterDiscovery, VersionProbe
from .environment import EnvironmentDetector
from .errors import (
    FailureKind,
    InvalidVersionFormat,
    NoDefaultInterpreter,
    PipBlocked,
    PublishError,
    PymanError,
    ResolutionError,
    StaleOverride,
    VersionMismatch,
    VersionNotFound,
)
from .override import ClearResult, OverrideManager, OverrideResult
from .resolver import PolicyEngine
from .specs import PolicyVariables
from .symlinks import SymlinkPublisher
from .types import (
    CommandKind,
    Dispatch,
    DispatchSource,
    EnvironmentContext,
    EnvironmentKind,
    InterpreterRecord,
    OverrideState,
    Registry,
    ResolutionRequest,
    ResolutionResult,
)
from .versions import PythonVersion, normalize_version

__all__ = [
    "ClearResult",
    "CommandKind",
    "Dispatch",
    "DispatchSource",
    "EnvironmentContext",
    "EnvironmentDetector",
    "EnvironmentKind",
    "FailureKind",
    "InterpreterDiscovery",
    "InterpreterRecord",
    "InvalidVersionFormat",
    "NoDefaultInterpreter",
    "OverrideManager",
    "OverrideResult",
    "OverrideState",
    "PipBlocked",
    "PolicyEngine",
    "PolicyVariables",
    "PublishError",
    "PymanError",
    "PythonVersion",
    "Registry",
    "ResolutionError",
    "ResolutionRequest",
    "ResolutionResult",
    "StaleOverride",
    "SymlinkPublisher",
    "VersionMismatch",
    "VersionNotFound",
    "VersionProbe",
    "normalize_version",
]
