"""Read-only reports over the engine: which, info, status, diagnostics."""

from __future__ import annotations

import os
import shutil
from typing import Dict, List, Optional, Sequence

from ..models.responses import (
    DiagnosticsReport,
    EnvironmentInfo,
    InfoReport,
    InterpreterInfo,
    StatusReport,
    WhichEntry,
    WhichResult,
)
from ..runtime.environment import EnvironmentDetector
from ..runtime.errors import FailureKind, StaleOverride
from ..runtime.override import OverrideManager
from ..runtime.resolver import PolicyEngine
from ..runtime.specs import (
    ENVIRONMENT_MARKERS,
    EXPORT_INTERPRETER_VARS,
    EXPORT_PIP_POLICY_VAR,
)
from ..runtime.symlinks import SymlinkPublisher
from ..runtime.types import EnvironmentContext, InterpreterRecord, ResolutionRequest

# Short reasons shown by `which` in place of a path
_WHICH_REASONS: Dict[FailureKind, str] = {
    FailureKind.PIP_BLOCKED: "(blocked outside venv)",
    FailureKind.VERSION_NOT_FOUND: "(not installed)",
    FailureKind.NO_DEFAULT_INTERPRETER: "(no default; run 'pyman set <version>')",
    FailureKind.VERSION_MISMATCH: "(not in this environment)",
    FailureKind.STALE_OVERRIDE: "(override is stale; run 'pyman clear')",
}

DEFAULT_WHICH_COMMANDS = ("python", "python3", "pip", "pip3")


class StatusService:
    def __init__(
        self,
        engine: PolicyEngine,
        override: OverrideManager,
        detector: EnvironmentDetector,
        publisher: SymlinkPublisher,
    ) -> None:
        self.engine = engine
        self.override = override
        self.detector = detector
        self.publisher = publisher

    @property
    def environ(self):
        return self.engine.environ

    def which(self, commands: Optional[Sequence[str]] = None) -> WhichResult:
        """Report where each command would resolve under the managed policy.

        Bypass is ignored so the report shows what the engine would do in an
        interactive session.

        Args:
            commands: Command names; defaults to python/python3/pip/pip3 plus
                one ``pythonX.Y`` per discovered version

        Raises:
            ValueError: If a name is not a python/pip command
        """
        if not commands:
            versions = self.engine.discovery.registry.versions
            commands = [*DEFAULT_WHICH_COMMANDS, *(f"python{v}" for v in versions)]

        entries: List[WhichEntry] = []
        for command in commands:
            result = self.engine.try_resolve(ResolutionRequest.parse(command), allow_bypass=False)
            if result.ok:
                entries.append(WhichEntry(command=command, path=result.dispatch.executable))
            else:
                reason = _WHICH_REASONS.get(result.failure.kind, f"({result.failure.kind.value})")
                entries.append(WhichEntry(command=command, reason=reason))

        return WhichResult(entries=entries, bypass_active=self.engine.bypass_reason() is not None)

    def environment_info(self, context: Optional[EnvironmentContext] = None) -> EnvironmentInfo:
        context = context or self.detector.detect()
        own = self.detector.own_version(context) if context.active else None
        binaries: List[str] = []
        if context.bin_dir is not None and context.bin_dir.is_dir():
            binaries = sorted(
                p.name
                for p in context.bin_dir.iterdir()
                if p.name.startswith(("python", "pip")) and os.access(p, os.X_OK)
            )
        return EnvironmentInfo(
            kind=context.kind.value,
            root=str(context.root) if context.root else None,
            name=context.name,
            detected_by=context.detected_by,
            own_version=str(own) if own else None,
            binaries=binaries,
        )

    def _interpreter_info(self, record: InterpreterRecord) -> InterpreterInfo:
        full = record.full_version
        return InterpreterInfo(
            version=str(record.version),
            path=record.path,
            real_path=record.real_path,
            banner=record.banner.strip(),
            full_version=str(full) if full else None,
            selected=record.version == self.override.state.selected_version,
        )

    def info(self) -> InfoReport:
        state = self.override.state
        registry = self.engine.discovery.registry
        return InfoReport(
            selected_version=str(state.selected_version) if state.selected_version else None,
            build_mode=state.build_mode,
            environment=self.environment_info(),
            interpreters=[self._interpreter_info(r) for r in registry.descending()],
        )

    def status(self) -> StatusReport:
        """Current override, or the versions a user could select."""
        state = self.override.state
        registry = self.engine.discovery.registry
        report = StatusReport(
            build_mode=state.build_mode,
            available=[str(v) for v in registry.versions],
            environment=self.environment_info(),
        )
        if state.selected_version is not None:
            report.selected_version = str(state.selected_version)
            try:
                self.override.validate()
                report.path = self.override.resolved_path()
            except StaleOverride:
                report.stale = True
            report.available = [str(v) for v in self.engine.discovery.registry.versions]
        return report

    def diagnostics(self, config_source: Optional[str] = None) -> DiagnosticsReport:
        policy = self.engine.policy
        environ = self.environ
        policy_names = [*policy.bypass, *policy.automation, *policy.sandbox, policy.allow_system]
        state = self.override.state
        path = environ.get("PATH", "")

        return DiagnosticsReport(
            interactive=self.engine.interactive,
            bypass_reason=self.engine.bypass_reason(),
            policy_variables={name: environ.get(name) for name in policy_names},
            marker_variables={m.variable: environ.get(m.variable) for m in ENVIRONMENT_MARKERS},
            environment=self.environment_info(),
            selected_version=str(state.selected_version) if state.selected_version else None,
            build_mode=state.build_mode,
            symlink_managed=state.symlink_managed,
            exports={
                name: environ.get(name)
                for name in (*EXPORT_INTERPRETER_VARS, EXPORT_PIP_POLICY_VAR)
            },
            symlink_dir=str(self.publisher.directory),
            symlink_dir_on_path=self.publisher.on_path(),
            symlink_targets=self.publisher.current_targets(),
            path_lookup={
                name: shutil.which(name, path=path) for name in DEFAULT_WHICH_COMMANDS
            },
            config_source=config_source,
            interpreter_count=len(self.engine.discovery.registry),
        )
