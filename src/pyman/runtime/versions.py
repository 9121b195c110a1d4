"""Version tokens: major.minor keys and full interpreter versions."""

from __future__ import annotations

import re
from typing import NamedTuple, Optional

import semver

from .errors import InvalidVersionFormat
from .specs import BANNER_CHECK

# "3.12" exactly
_MAJOR_MINOR = re.compile(r"^(\d+)\.(\d+)$")

# "Python 3.12.1", "Python 3.13.0rc1", "Python 3.9"
_BANNER = re.compile(BANNER_CHECK.parse)

# Interpreter file names that encode an exact major.minor (python3.12, not python312)
_EXE_NAME = re.compile(r"^python(\d+\.\d+)$")

_VERSION_PREFIXES = ("python", "py")


class PythonVersion(NamedTuple):
    """A major.minor pair; tuple ordering gives numeric comparison."""

    major: int
    minor: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"

    @classmethod
    def parse(cls, text: str) -> "PythonVersion":
        """Parse an exact ``X.Y`` token.

        Raises:
            InvalidVersionFormat: If ``text`` is not shaped like ``3.12``
        """
        match = _MAJOR_MINOR.match(text.strip())
        if not match:
            raise InvalidVersionFormat(text)
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def from_prefix(cls, text: str) -> Optional["PythonVersion"]:
        """Take the major.minor from the start of ``3.12.1``-style text."""
        match = re.match(r"^(\d+)\.(\d+)", text.strip())
        if not match:
            return None
        return cls(int(match.group(1)), int(match.group(2)))


def normalize_version(value: str) -> PythonVersion:
    """Normalize user input such as ``python3.12``, ``py3.12`` or ``3.12``.

    Raises:
        InvalidVersionFormat: If what remains is not a bare major.minor
    """
    token = (value or "").strip()
    for prefix in _VERSION_PREFIXES:
        if token.startswith(prefix) and _MAJOR_MINOR.match(token[len(prefix):]):
            token = token[len(prefix):]
            break
    try:
        return PythonVersion.parse(token)
    except InvalidVersionFormat:
        raise InvalidVersionFormat(value) from None


def version_from_executable_name(name: str) -> Optional[PythonVersion]:
    """Extract the version encoded in an executable name like ``python3.12``."""
    match = _EXE_NAME.match(name)
    if not match:
        return None
    return PythonVersion.parse(match.group(1))


def is_python_banner(banner: str) -> bool:
    """Whether a ``--version`` banner comes from a CPython-family interpreter."""
    return banner.strip().startswith("Python")


def parse_banner(banner: str) -> Optional[semver.Version]:
    """Parse ``Python X.Y[.Z]...`` into a semver Version.

    A missing patch component is reported as 0; use :func:`banner_patch`
    when the distinction matters.
    """
    match = _BANNER.match(banner.strip())
    if not match:
        return None
    major, minor, patch = match.groups()
    return semver.Version(int(major), int(minor), int(patch or 0))


def banner_patch(banner: str) -> Optional[int]:
    """Patch number from a banner, or None when it only carries major.minor."""
    match = _BANNER.match(banner.strip())
    if not match or match.group(3) is None:
        return None
    return int(match.group(3))
