from __future__ import annotations

import os
import sys
from typing import List, MutableMapping, Optional, Sequence

from .config import PymanConfig, load_config
from .models.responses import (
    ClearResponse,
    DiagnosticsReport,
    InfoReport,
    ResolveResult,
    SetResult,
    StatusReport,
    WhichResult,
)
from .runtime import runner
from .runtime.discovery import InterpreterDiscovery, VersionProbe
from .runtime.environment import EnvironmentDetector
from .runtime.errors import ResolutionError
from .runtime.override import OverrideManager
from .runtime.resolver import PolicyEngine
from .runtime.specs import EXPORT_INTERPRETER_VARS, EXPORT_PIP_POLICY_VAR
from .runtime.symlinks import SymlinkPublisher
from .runtime.types import Dispatch, OverrideState, ResolutionRequest
from .services.status import StatusService


def _detect_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


class PythonManagerServer:
    """Session facade: owns one engine context for the life of the process.

    Args:
        config: Loaded configuration; read from disk when omitted
        environ: Session environment. Marker and policy variables are read
            from it and exports are written to it. Defaults to ``os.environ``.
        interactive: Overrides the config and terminal auto-detection
    """

    def __init__(
        self,
        config: Optional[PymanConfig] = None,
        environ: Optional[MutableMapping[str, str]] = None,
        interactive: Optional[bool] = None,
    ) -> None:
        self.environ = os.environ if environ is None else environ
        self.config = config or load_config(environ=self.environ)

        if interactive is None:
            interactive = self.config.policy.interactive
        if interactive is None:
            interactive = _detect_interactive()

        self.state = OverrideState()
        probe = VersionProbe(timeout=self.config.discovery.probe_timeout)

        self.discovery = InterpreterDiscovery(
            search_paths=self.config.discovery.effective_search_paths,
            user_local_dir=self.config.discovery.user_local_dir,
            managed_symlink_dir=self.config.symlinks.directory,
            managed_names=self.config.symlinks.names,
            probe=probe,
        )
        self.detector = EnvironmentDetector(self.environ, probe=probe)
        self.publisher = SymlinkPublisher(
            self.state,
            self.environ,
            directory=self.config.symlinks.directory,
            names=self.config.symlinks.names,
            enabled=self.config.symlinks.enabled,
        )
        self.override = OverrideManager(
            self.state, self.discovery, self.publisher, self.detector, self.environ
        )
        self.engine = PolicyEngine(
            self.discovery,
            self.detector,
            self.override,
            self.environ,
            policy=self.config.policy.variables(),
            interactive=interactive,
        )
        self.reports = StatusService(self.engine, self.override, self.detector, self.publisher)

    # Resolution
    def resolve(self, command: str, args: Sequence[str] = ()) -> Dispatch:
        """Resolve a command to a dispatch.

        Raises:
            ValueError: If the command is not a python/pip name
            ResolutionError: If policy refuses the request
        """
        return self.engine.resolve(ResolutionRequest.parse(command, args))

    def describe(self, command: str, args: Sequence[str] = ()) -> ResolveResult:
        """Resolve without raising; failures are carried in the result."""
        result = ResolveResult(command=command, args=list(args))
        try:
            dispatch = self.resolve(command, args)
        except ResolutionError as e:
            result.error = e.message
            result.error_kind = e.kind.value
            return result
        result.executable = dispatch.executable
        result.args = list(dispatch.args)
        result.source = dispatch.source.value
        result.fallback = dispatch.fallback
        result.note = dispatch.note
        return result

    def execute(self, command: str, args: Sequence[str] = ()) -> int:
        """Resolve and run a command, returning its exit code.

        Raises:
            ResolutionError: If policy refuses the request
        """
        return runner.run(self.resolve(command, args), env=self.environ)

    # Override
    def set_python(self, version: str, build_mode: bool = False) -> SetResult:
        outcome = self.override.set(version, build_mode=build_mode)
        warnings: List[str] = []
        if outcome.environment_active:
            warnings.append(
                "An isolated environment is active and takes precedence; "
                "the override applies after you deactivate it."
            )
        if outcome.symlinks_published and not outcome.symlink_dir_on_path:
            warnings.append(
                f"{self.publisher.directory} is not on PATH; subprocesses will not "
                "see the python/python3 symlinks."
            )
        exports = {name: self.environ[name] for name in EXPORT_INTERPRETER_VARS}
        if outcome.build_mode:
            exports[EXPORT_PIP_POLICY_VAR] = self.environ[EXPORT_PIP_POLICY_VAR]
        return SetResult(
            version=str(outcome.version),
            path=outcome.path,
            build_mode=outcome.build_mode,
            environment_active=outcome.environment_active,
            symlinks_published=outcome.symlinks_published,
            symlink_dir_on_path=outcome.symlink_dir_on_path,
            exports=exports,
            warnings=warnings,
        )

    def clear_python(self, remove_symlinks: bool = False) -> ClearResponse:
        """Clear the override.

        Args:
            remove_symlinks: The user agreed to remove the published symlinks
        """
        outcome = self.override.clear()
        response = ClearResponse(
            previous_version=str(outcome.previous_version) if outcome.previous_version else None,
            had_build_mode=outcome.had_build_mode,
            symlinks_pending=outcome.symlinks_pending,
        )
        # A fresh process has no memory of publishing; trust what is on disk
        on_disk = any(target for target in self.publisher.current_targets().values())
        if remove_symlinks and (self.state.symlink_managed or on_disk):
            self.override.remove_symlinks()
            response.symlinks_pending = False
            response.symlinks_removed = True
        return response

    # Reports
    def which(self, commands: Optional[Sequence[str]] = None) -> WhichResult:
        return self.reports.which(commands)

    def info(self) -> InfoReport:
        return self.reports.info()

    def status(self) -> StatusReport:
        return self.reports.status()

    def diagnostics(self) -> DiagnosticsReport:
        source = str(self.config.source) if self.config.source else None
        return self.reports.diagnostics(config_source=source)
