"""Detection of the active isolated environment (venv, conda, poetry, pipenv)."""

from __future__ import annotations

import logging
import os
import re
import shutil
from pathlib import Path
from typing import Dict, MutableMapping, Optional

from .discovery import VersionProbe, is_executable_file
from .specs import ENVIRONMENT_MARKERS, VENV_ACTIVATE_SCRIPT, VENV_METADATA_FILE
from .types import EnvironmentContext, EnvironmentKind
from .versions import PythonVersion

logger = logging.getLogger(__name__)

_VENV_PYTHON = re.compile(r"^(?P<root>.+)/bin/python[^/]*$")
_CFG_VERSION = re.compile(r"^version\s*=\s*(?P<value>.*)$")


class EnvironmentDetector:
    """Identifies the active environment from marker variables and PATH.

    Args:
        environ: Session environment; the heuristic fallback writes
            ``VIRTUAL_ENV`` into it
        probe: Version probe used when ``pyvenv.cfg`` does not say
    """

    def __init__(
        self,
        environ: Optional[MutableMapping[str, str]] = None,
        probe: Optional[VersionProbe] = None,
    ):
        self.environ = os.environ if environ is None else environ
        self.probe = probe or VersionProbe()
        self._version_cache: Dict[Path, PythonVersion] = {}

    def detect(self) -> EnvironmentContext:
        """Return the active environment, or a context of kind NONE."""
        for marker in ENVIRONMENT_MARKERS:
            value = self.environ.get(marker.variable)
            if not value:
                continue
            kind = EnvironmentKind(marker.kind)
            if kind is EnvironmentKind.VENV:
                return EnvironmentContext(kind=kind, root=Path(value), detected_by="marker")
            if kind is EnvironmentKind.CONDA:
                return EnvironmentContext(kind=kind, name=value, detected_by="marker")
            return EnvironmentContext(kind=kind, detected_by="marker")

        root = self._venv_from_path()
        if root is not None:
            # Later lookups in this session take the marker fast path
            self.environ["VIRTUAL_ENV"] = str(root)
            logger.debug("detected venv at %s from PATH; exported VIRTUAL_ENV", root)
            return EnvironmentContext(
                kind=EnvironmentKind.VENV, root=root, detected_by="heuristic"
            )

        return EnvironmentContext()

    def _venv_from_path(self) -> Optional[Path]:
        """Infer a venv from where an unqualified ``python`` would resolve."""
        python_path = shutil.which("python", path=self.environ.get("PATH", ""))
        if not python_path:
            return None
        match = _VENV_PYTHON.match(python_path)
        if not match:
            return None
        root = Path(match.group("root"))
        if (root / VENV_ACTIVATE_SCRIPT).is_file() and (root / VENV_METADATA_FILE).is_file():
            return root
        return None

    def own_version(self, context: EnvironmentContext) -> Optional[PythonVersion]:
        """The environment's own major.minor, or None when unknown.

        venv: ``pyvenv.cfg`` first, then the venv's interpreter; cached by root.
        conda: whatever ``python`` the environment puts on PATH.
        """
        if context.kind is EnvironmentKind.VENV and context.root is not None:
            cached = self._version_cache.get(context.root)
            if cached is not None:
                return cached
            version = self._version_from_cfg(context.root)
            if version is None:
                python = context.root / "bin" / "python"
                if is_executable_file(python):
                    version = self.probe.introspect(str(python))
            if version is not None:
                self._version_cache[context.root] = version
            return version

        if context.kind is EnvironmentKind.CONDA:
            python = shutil.which("python", path=self.environ.get("PATH", ""))
            if python:
                return self.probe.introspect(python)

        return None

    @staticmethod
    def _version_from_cfg(root: Path) -> Optional[PythonVersion]:
        cfg = root / VENV_METADATA_FILE
        try:
            lines = cfg.read_text().splitlines()
        except OSError:
            return None
        for line in lines:
            match = _CFG_VERSION.match(line.strip())
            if match:
                return PythonVersion.from_prefix(match.group("value").strip())
        return None

    @staticmethod
    def binary(context: EnvironmentContext, name: str) -> Optional[str]:
        """Path to ``name`` inside the environment, if it exists and is executable."""
        if context.bin_dir is None:
            return None
        candidate = context.bin_dir / name
        if is_executable_file(candidate):
            return str(candidate)
        return None
