"""Policy engine: decide which binary runs for a python/pip command."""

from __future__ import annotations

import os
import shutil
from typing import MutableMapping, Optional

from .discovery import InterpreterDiscovery, is_executable_file
from .environment import EnvironmentDetector
from .errors import (
    NoDefaultInterpreter,
    PipBlocked,
    ResolutionError,
    VersionMismatch,
    VersionNotFound,
)
from .override import OverrideManager
from .specs import INSTALLER_MODULE, MODULE_FLAG, PolicyVariables
from .types import (
    CommandKind,
    Dispatch,
    DispatchSource,
    EnvironmentContext,
    ResolutionRequest,
    ResolutionResult,
)


class PolicyEngine:
    """Resolves python/pip requests to a dispatch or a typed failure.

    Priority:
    1. Bypass (automation, sandbox, non-interactive, explicit flag)
    2. Active isolated environment
    3. Session override (validated; pip gated by build mode)
    4. PYTHON_ALLOW_SYSTEM (never relaxes pip)
    5. No default: fail with the available versions
    """

    def __init__(
        self,
        discovery: InterpreterDiscovery,
        detector: EnvironmentDetector,
        override: OverrideManager,
        environ: Optional[MutableMapping[str, str]] = None,
        policy: Optional[PolicyVariables] = None,
        interactive: bool = True,
    ):
        """Initialize the engine.

        Args:
            discovery: Interpreter registry source
            detector: Isolated-environment detector
            override: Session override manager
            environ: Session environment (policy and marker variables)
            policy: Names of the policy variables
            interactive: False when running under scripts or subshells,
                which triggers bypass
        """
        self.discovery = discovery
        self.detector = detector
        self.override = override
        self.environ = os.environ if environ is None else environ
        self.policy = policy or PolicyVariables()
        self.interactive = interactive

    @property
    def state(self):
        return self.override.state

    def bypass_reason(self) -> Optional[str]:
        """Name of the first active bypass trigger, or None."""
        for var in self.policy.bypass:
            if self.environ.get(var):
                return var
        for var in self.policy.automation:
            if self.environ.get(var):
                return var
        if not self.interactive:
            return "non-interactive"
        for var in self.policy.sandbox:
            if self.environ.get(var):
                return var
        return None

    def allow_system(self) -> bool:
        return bool(self.environ.get(self.policy.allow_system))

    def resolve(self, request: ResolutionRequest, allow_bypass: bool = True) -> Dispatch:
        """Resolve a request.

        Args:
            request: The command to resolve
            allow_bypass: Set False to report managed behaviour even when a
                bypass trigger is active

        Returns:
            Dispatch describing what to execute

        Raises:
            ResolutionError: VersionMismatch, StaleOverride, PipBlocked,
                VersionNotFound or NoDefaultInterpreter
        """
        # 1. Bypass
        if allow_bypass and self.bypass_reason():
            return self._bypass(request)

        # 2. Isolated environment
        context = self.detector.detect()
        if context.active:
            return self._in_environment(request, context)

        # 3-5. Outside any environment
        if request.kind.is_installer:
            return self._installer_outside(request)
        if request.kind is CommandKind.INTERPRETER_VERSIONED:
            return self._versioned_outside(request)
        return self._default_outside(request)

    def try_resolve(self, request: ResolutionRequest, allow_bypass: bool = True) -> ResolutionResult:
        """Like :meth:`resolve` but returns failures as values."""
        try:
            return ResolutionResult(request, self.resolve(request, allow_bypass))
        except ResolutionError as e:
            return ResolutionResult(request, e)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _which(self, name: str) -> Optional[str]:
        return shutil.which(name, path=self.environ.get("PATH", ""))

    def _system(self, request: ResolutionRequest, name: Optional[str] = None) -> Dispatch:
        """Dispatch to the unmanaged binary PATH would find."""
        name = name or request.command
        return Dispatch(
            executable=self._which(name) or name,
            args=request.args,
            source=DispatchSource.SYSTEM,
        )

    @staticmethod
    def _canonical_name(request: ResolutionRequest) -> str:
        """``py3.12`` and ``python3.12`` both live on disk as ``python3.12``."""
        prefix = "pip" if request.kind.is_installer else "python"
        if request.version is None:
            return request.command
        return f"{prefix}{request.version}"

    @staticmethod
    def _build_note(request: ResolutionRequest, version) -> str:
        return f"[build mode] Running {request.display} with Python {version}..."

    # ------------------------------------------------------------------
    # 1. Bypass
    # ------------------------------------------------------------------

    def _bypass(self, request: ResolutionRequest) -> Dispatch:
        """Unmanaged passthrough; never fails on policy grounds.

        When the system binary is missing, a single fallback is attached for
        the runner to try.
        """
        name = self._canonical_name(request)
        found = self._which(name)
        if found:
            return Dispatch(executable=found, args=request.args, source=DispatchSource.BYPASS)
        return Dispatch(
            executable=name,
            args=request.args,
            source=DispatchSource.BYPASS,
            fallback=self._bypass_fallback(request),
        )

    def _bypass_fallback(self, request: ResolutionRequest) -> Optional[str]:
        registry = self.discovery.registry
        highest = registry.highest()

        if request.kind is CommandKind.INSTALLER_BARE:
            return None
        if request.kind is CommandKind.INSTALLER_VERSIONED:
            path = registry.path_for(request.version)
            if path is None:
                return None
            sibling = os.path.join(os.path.dirname(path), f"pip{request.version}")
            return sibling if is_executable_file(sibling) else None
        if request.kind is CommandKind.INTERPRETER_VERSIONED:
            path = registry.path_for(request.version)
            if path is not None:
                return path
        return highest.path if highest else None

    # ------------------------------------------------------------------
    # 2. Inside an isolated environment
    # ------------------------------------------------------------------

    def _in_environment(self, request: ResolutionRequest, context: EnvironmentContext) -> Dispatch:
        if not request.kind.is_versioned:
            path = self.detector.binary(context, request.command)
            if path:
                return Dispatch(path, request.args, DispatchSource.ENVIRONMENT)
            return self._system(request)

        name = self._canonical_name(request)
        exact = self.detector.binary(context, name)
        if exact:
            return Dispatch(exact, request.args, DispatchSource.ENVIRONMENT)

        own = self.detector.own_version(context)
        if own is None:
            # Unknown environment version is not a reason to refuse
            return self._system(request, name)
        if own != request.version:
            raise VersionMismatch(
                request.command,
                request.version,
                own,
                installer=request.kind.is_installer,
            )

        base = self.detector.binary(context, "pip" if request.kind.is_installer else "python")
        if base:
            return Dispatch(base, request.args, DispatchSource.ENVIRONMENT)
        return self._system(request, name)

    # ------------------------------------------------------------------
    # 3-5. Outside any environment
    # ------------------------------------------------------------------

    def _default_outside(self, request: ResolutionRequest) -> Dispatch:
        """Bare and major-only interpreter requests (``python``, ``python3``)."""
        state = self.state

        # 3. Override
        if state.active:
            self.override.validate()
            path = self.override.resolved_path()
            if request.is_installer_module:
                if not state.build_mode:
                    raise PipBlocked(request.display, state.selected_version)
                return Dispatch(
                    path,
                    request.args,
                    DispatchSource.BUILD_MODE,
                    note=self._build_note(request, state.selected_version),
                )
            return Dispatch(path, request.args, DispatchSource.OVERRIDE)

        # 4. PYTHON_ALLOW_SYSTEM still blocks pip, then falls through
        if request.is_installer_module:
            raise PipBlocked(request.display, allow_system=self.allow_system())

        # 5. No default
        registry = self.discovery.registry
        raise NoDefaultInterpreter(
            request.command, [(r.version, r.info) for r in registry.descending()]
        )

    def _versioned_outside(self, request: ResolutionRequest) -> Dispatch:
        """``python3.12`` / ``py3.12`` outside an environment."""
        registry = self.discovery.registry
        path = registry.path_for(request.version)

        if request.is_installer_module:
            if self.state.build_mode and path:
                return Dispatch(
                    path,
                    request.args,
                    DispatchSource.BUILD_MODE,
                    note=self._build_note(request, request.version),
                )
            raise PipBlocked(request.display, request.version)

        if path is None:
            raise VersionNotFound(request.version, registry.versions, command=request.command)
        return Dispatch(path, request.args, DispatchSource.REGISTRY)

    def _installer_outside(self, request: ResolutionRequest) -> Dispatch:
        """``pip``/``pip3``/``pip3.12`` outside an environment: blocked unless build mode."""
        state = self.state
        if request.kind is CommandKind.INSTALLER_BARE:
            if state.active:
                self.override.validate()
            version = state.selected_version
            path = self.override.resolved_path() if state.build_mode else None
        else:
            version = request.version
            path = self.discovery.registry.path_for(version) if state.build_mode else None

        if path:
            return Dispatch(
                path,
                (MODULE_FLAG, INSTALLER_MODULE, *request.args),
                DispatchSource.BUILD_MODE,
                note=f"[build mode] Running {request.command} with Python {version}...",
            )
        raise PipBlocked(request.command, version)
