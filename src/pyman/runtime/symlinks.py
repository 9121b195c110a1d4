"""Keeps subprocess-visible artifacts in sync with the override.

Child processes cannot see in-process state. They find the selected
interpreter through two exported variables and through ``python``/``python3``
symlinks in a user-local directory that is expected to be on PATH.

Two sessions publishing at once race on the same symlinks; the last writer
wins.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, MutableMapping, Optional, Sequence

from .discovery import expand_path, is_executable_file
from .errors import PublishError
from .specs import DEFAULT_SYMLINK_NAMES, DEFAULT_USER_LOCAL_DIR, EXPORT_INTERPRETER_VARS
from .types import OverrideState

logger = logging.getLogger(__name__)


class SymlinkPublisher:
    """Publishes the resolved interpreter to symlinks and exported variables."""

    def __init__(
        self,
        state: OverrideState,
        environ: Optional[MutableMapping[str, str]] = None,
        directory: str = DEFAULT_USER_LOCAL_DIR,
        names: Sequence[str] = DEFAULT_SYMLINK_NAMES,
        enabled: bool = True,
    ):
        self.state = state
        self.environ = os.environ if environ is None else environ
        self.directory = Path(expand_path(directory))
        self.names = tuple(names)
        self.enabled = enabled

    def publish(self, resolved_path: str) -> None:
        """Point both symlinks and both exported variables at ``resolved_path``.

        Raises:
            PublishError: If the target is not an executable file, or a
                non-symlink file already occupies one of the names
        """
        if not is_executable_file(resolved_path):
            raise PublishError(resolved_path)

        if self.enabled:
            self.directory.mkdir(parents=True, exist_ok=True)
            for name in self.names:
                self._retarget(self.directory / name, resolved_path)
            self.state.symlink_managed = True
            logger.info("%s -> %s", ", ".join(str(self.directory / n) for n in self.names), resolved_path)

        for var in EXPORT_INTERPRETER_VARS:
            self.environ[var] = resolved_path

    def _retarget(self, link: Path, target: str) -> None:
        if link.exists() and not link.is_symlink():
            raise PublishError(
                target,
                f"Error: {link} exists and is not a symlink; refusing to replace it",
            )
        # Swap in a fresh link with rename(2) so readers never see a gap
        tmp = link.with_name(f".{link.name}.pyman-{os.getpid()}")
        if tmp.is_symlink() or tmp.exists():
            tmp.unlink()
        os.symlink(target, tmp)
        os.replace(tmp, link)

    def remove(self) -> None:
        """Delete the managed symlinks (only ever symlinks, never real files)."""
        for name in self.names:
            link = self.directory / name
            if link.is_symlink():
                link.unlink()
        self.state.symlink_managed = False
        logger.info("removed managed symlinks in %s", self.directory)

    def unexport(self) -> None:
        for var in EXPORT_INTERPRETER_VARS:
            self.environ.pop(var, None)

    def current_targets(self) -> Dict[str, Optional[str]]:
        """Where each managed symlink currently points (None when absent)."""
        targets: Dict[str, Optional[str]] = {}
        for name in self.names:
            link = self.directory / name
            targets[str(link)] = os.readlink(link) if link.is_symlink() else None
        return targets

    def on_path(self) -> bool:
        """Whether the symlink directory is on the session PATH."""
        entries = self.environ.get("PATH", "").split(os.pathsep)
        return any(expand_path(entry) == str(self.directory) for entry in entries if entry)
