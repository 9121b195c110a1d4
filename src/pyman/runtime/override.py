"""Session override: a default version plus the build-mode installer policy."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import MutableMapping, Optional

from .discovery import InterpreterDiscovery, is_executable_file
from .environment import EnvironmentDetector
from .errors import StaleOverride, VersionNotFound
from .specs import EXPORT_PIP_POLICY_VAR
from .symlinks import SymlinkPublisher
from .types import OverrideState
from .versions import PythonVersion, normalize_version

logger = logging.getLogger(__name__)


@dataclass
class OverrideResult:
    """Outcome of a successful ``set``."""

    version: PythonVersion
    path: str
    build_mode: bool
    environment_active: bool = False  # an active environment takes precedence
    symlinks_published: bool = False
    symlink_dir_on_path: bool = True


@dataclass
class ClearResult:
    """Outcome of ``clear``.

    ``symlinks_pending`` asks the caller to confirm removal with the user
    and then call :meth:`OverrideManager.remove_symlinks`.
    """

    previous_version: Optional[PythonVersion] = None
    had_build_mode: bool = False
    symlinks_pending: bool = False

    @property
    def changed(self) -> bool:
        return self.previous_version is not None or self.had_build_mode


class OverrideManager:
    """Mutates :class:`OverrideState`; the only writer of that state."""

    def __init__(
        self,
        state: OverrideState,
        discovery: InterpreterDiscovery,
        publisher: SymlinkPublisher,
        detector: Optional[EnvironmentDetector] = None,
        environ: Optional[MutableMapping[str, str]] = None,
    ):
        self.state = state
        self.discovery = discovery
        self.publisher = publisher
        self.environ = os.environ if environ is None else environ
        self.detector = detector or EnvironmentDetector(self.environ)

    def set(self, version_input: str, build_mode: bool = False) -> OverrideResult:
        """Select a default interpreter for this session.

        Args:
            version_input: ``3.12``, ``python3.12`` or ``py3.12``
            build_mode: Also allow pip outside environments

        Raises:
            InvalidVersionFormat: If the input is not a major.minor token
            VersionNotFound: If no interpreter of that version is installed
            PublishError: If the symlinks cannot be written
        """
        version = normalize_version(version_input)

        # Paths from an earlier scan may be gone by now
        registry = self.discovery.scan(force=True)
        record = registry.get(version)
        if record is None:
            raise VersionNotFound(version, registry.versions)

        self.publisher.publish(record.path)

        self.state.selected_version = version
        if build_mode:
            self.state.build_mode = True
            # Tells pip in child processes that running outside a venv is fine
            self.environ[EXPORT_PIP_POLICY_VAR] = "0"
        logger.info(
            "override set to Python %s (%s)%s",
            version,
            record.path,
            " with build mode" if self.state.build_mode else "",
        )

        return OverrideResult(
            version=version,
            path=record.path,
            build_mode=self.state.build_mode,
            environment_active=self.detector.detect().active,
            symlinks_published=self.publisher.enabled,
            symlink_dir_on_path=self.publisher.on_path(),
        )

    def clear(self) -> ClearResult:
        """Drop the override and build mode."""
        result = ClearResult(
            previous_version=self.state.selected_version,
            had_build_mode=self.state.build_mode,
        )

        if result.previous_version is not None:
            self.publisher.unexport()
        if result.had_build_mode:
            self.environ.pop(EXPORT_PIP_POLICY_VAR, None)

        self.state.build_mode = False
        self.state.selected_version = None
        result.symlinks_pending = result.changed and self.state.symlink_managed

        if result.changed:
            logger.info("override cleared (was %s)", result.previous_version or "unset")
        return result

    def remove_symlinks(self) -> None:
        """Remove published symlinks; call only after the user agreed."""
        self.publisher.remove()

    def validate(self) -> None:
        """Check that the selected version still resolves to an executable.

        Never repairs a stale override; the user must clear and set again.

        Raises:
            StaleOverride: If the interpreter is gone
        """
        version = self.state.selected_version
        if version is None:
            return

        registry = self.discovery.scan(force=True)
        path = registry.path_for(version)
        if path is None or not is_executable_file(path):
            raise StaleOverride(
                version, [(r.version, r.path) for r in reversed(registry.descending())]
            )

    def resolved_path(self) -> Optional[str]:
        """Registry path of the selected version, without rescanning."""
        if self.state.selected_version is None:
            return None
        return self.discovery.registry.path_for(self.state.selected_version)
