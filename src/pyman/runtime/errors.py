"""Typed failures returned by the resolution engine.

Every failure carries the context a caller needs to tell the user what to do
next; ``str(error)`` is that remediation text.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .versions import PythonVersion


class FailureKind(str, Enum):
    """Failure categories, stable for machine-readable output."""

    VERSION_NOT_FOUND = "version_not_found"
    INVALID_VERSION_FORMAT = "invalid_version_format"
    STALE_OVERRIDE = "stale_override"
    PIP_BLOCKED = "pip_blocked"
    VERSION_MISMATCH = "version_mismatch"
    NO_DEFAULT_INTERPRETER = "no_default_interpreter"
    NOT_A_PYTHON_INTERPRETER = "not_a_python_interpreter"
    PUBLISH_FAILED = "publish_failed"


class PymanError(Exception):
    """Base class for all pyman failures."""

    kind: FailureKind

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ResolutionError(PymanError):
    """A request the engine refused to dispatch."""


def _version_list(versions: Sequence["PythonVersion"], bullet: str = "  - ") -> list[str]:
    return [f"{bullet}{v}" for v in versions]


class InvalidVersionFormat(ResolutionError):
    kind = FailureKind.INVALID_VERSION_FORMAT

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(
            f"Error: '{value}' is not a valid Python version\n\n"
            "Expected major.minor, optionally prefixed: 3.12, python3.12 or py3.12"
        )


class VersionNotFound(ResolutionError):
    kind = FailureKind.VERSION_NOT_FOUND

    def __init__(
        self,
        version: "PythonVersion",
        available: Sequence["PythonVersion"] = (),
        command: Optional[str] = None,
    ) -> None:
        self.version = version
        self.available = list(available)
        self.command = command
        name = command or f"Python {version}"
        lines = [f"Error: {name} not found on this system"]
        if self.available:
            lines += ["", "Available versions:", *_version_list(self.available)]
        super().__init__("\n".join(lines))


class StaleOverride(ResolutionError):
    kind = FailureKind.STALE_OVERRIDE

    def __init__(
        self,
        version: "PythonVersion",
        available: Sequence[tuple["PythonVersion", str]] = (),
    ) -> None:
        self.version = version
        self.available = list(available)
        lines = [
            f"Error: Python {version} is no longer available.",
            "",
            "The previously set version may have been uninstalled.",
            "",
        ]
        if self.available:
            lines.append("Available Python versions:")
            lines += [f"  - {v} -> {path}" for v, path in self.available]
            lines += [
                "",
                "To fix:",
                "  1. pyman clear     (remove stale override)",
                "  2. pyman set <version> (set a new version)",
            ]
        else:
            lines += ["No Python installations found.", "Run: pyman clear"]
        super().__init__("\n".join(lines))


class PipBlocked(ResolutionError):
    kind = FailureKind.PIP_BLOCKED

    def __init__(
        self,
        command: str,
        version: Optional["PythonVersion"] = None,
        allow_system: bool = False,
    ) -> None:
        self.command = command
        self.version = version
        self.allow_system = allow_system
        venv_python = f"python{version}" if version else "python3.x"
        lines = [
            f"Error: {command} is blocked outside virtual environments",
            "",
            "To use pip:",
            f"   1. Create a virtual environment: {venv_python} -m venv [venv-projname]",
            "   2. Activate it: source [venv-projname]/bin/activate",
            "   3. Then use pip normally",
            "",
            "This prevents accidental system-wide package installations.",
        ]
        if allow_system:
            lines.append("Note: PYTHON_ALLOW_SYSTEM does NOT affect pip.")
        if version:
            lines.append(f"Tip: Use 'pyman set {version} --build' to temporarily allow pip.")
        super().__init__("\n".join(lines))


class VersionMismatch(ResolutionError):
    kind = FailureKind.VERSION_MISMATCH

    def __init__(
        self,
        command: str,
        requested: "PythonVersion",
        env_version: "PythonVersion",
        installer: bool = False,
    ) -> None:
        self.command = command
        self.requested = requested
        self.env_version = env_version
        if installer:
            available = f"pip, pip3, pip{env_version}"
        else:
            available = f"python, python3, python{env_version}"
        super().__init__(
            f"Error: {command} is not available in this virtual environment\n\n"
            f"This virtual environment uses Python {env_version}\n"
            f"   Available: {available}\n\n"
            "To use a different Python version, deactivate first with: deactivate"
        )


class NoDefaultInterpreter(ResolutionError):
    kind = FailureKind.NO_DEFAULT_INTERPRETER

    def __init__(
        self,
        command: str,
        available: Sequence[tuple["PythonVersion", str]] = (),
    ) -> None:
        # ``available`` is (version, info) pairs, highest version first
        self.command = command
        self.available = list(available)
        lines = [f"Error: No default '{command}' command available", ""]
        if not self.available:
            lines.append("Warning: No Python 3.x installations found!")
        else:
            newest = self.available[0][0]
            lines.append("Available Python versions:")
            lines.append("")
            lines += [f"  - python{v} -> {info}" for v, info in self.available]
            lines += [
                "",
                "Options:",
                f"   1. Create venv: python{newest} -m venv [venv-projname] "
                "&& source [venv-projname]/bin/activate",
                f"   2. Set temporary default: pyman set {newest}",
                "   3. For build tools: pyman set <version> && PYTHON_ALLOW_SYSTEM=1 "
                "your-build-command",
            ]
        super().__init__("\n".join(lines))


class NotAPythonInterpreter(PymanError):
    """Raised inside discovery for executables that are not Python 3+."""

    kind = FailureKind.NOT_A_PYTHON_INTERPRETER

    def __init__(self, path: str, banner: str) -> None:
        self.path = path
        self.banner = banner
        super().__init__(f"{path} is not a Python 3 interpreter: {banner.strip()!r}")


class PublishError(PymanError):
    kind = FailureKind.PUBLISH_FAILED

    def __init__(self, path: str, reason: Optional[str] = None) -> None:
        self.path = path
        super().__init__(reason or f"Error: Target binary does not exist: {path}")


class SymlinkLoopError(OSError):
    """A symlink chain could not be followed within the hop bound."""

    def __init__(self, path: str, max_hops: int) -> None:
        self.path = path
        self.max_hops = max_hops
        super().__init__(f"Too many levels of symbolic links ({max_hops}): {path}")
