"""Unit tests for requests, dispatches and override state."""

import pytest

from pyman.runtime.errors import PipBlocked
from pyman.runtime.types import (
    CommandKind,
    Dispatch,
    DispatchSource,
    OverrideState,
    ResolutionRequest,
    ResolutionResult,
    is_managed_command,
)
from pyman.runtime.versions import PythonVersion


class TestResolutionRequest:
    """Test command-name classification."""

    @pytest.mark.parametrize(
        "command,kind,version",
        [
            ("python", CommandKind.INTERPRETER_BARE, None),
            ("python3", CommandKind.INTERPRETER_MAJOR, None),
            ("python3.12", CommandKind.INTERPRETER_VERSIONED, PythonVersion(3, 12)),
            ("py3.10", CommandKind.INTERPRETER_VERSIONED, PythonVersion(3, 10)),
            ("pip", CommandKind.INSTALLER_BARE, None),
            ("pip3", CommandKind.INSTALLER_BARE, None),
            ("pip3.11", CommandKind.INSTALLER_VERSIONED, PythonVersion(3, 11)),
        ],
    )
    def test_parse(self, command, kind, version):
        """Should classify the command and extract its version."""
        request = ResolutionRequest.parse(command)
        assert request.kind is kind
        assert request.version == version

    def test_unknown_command(self):
        """Should reject names that are not python or pip."""
        with pytest.raises(ValueError, match="not a python or pip command"):
            ResolutionRequest.parse("ruby")
        assert not is_managed_command("pipx")

    def test_installer_module_detection(self):
        """Should spot "-m pip" only as the leading arguments."""
        assert ResolutionRequest.parse("python", ["-m", "pip", "install", "x"]).is_installer_module
        assert not ResolutionRequest.parse("python", ["-m", "venv", ".venv"]).is_installer_module
        assert not ResolutionRequest.parse("python", ["-c", "-m pip"]).is_installer_module
        # pip itself is an installer request, not a module invocation
        assert not ResolutionRequest.parse("pip", ["-m", "pip"]).is_installer_module

    def test_display(self):
        """Should include "-m pip" in the display name only when present."""
        assert ResolutionRequest.parse("python3", ["-m", "pip"]).display == "python3 -m pip"
        assert ResolutionRequest.parse("python3", ["x.py"]).display == "python3"


class TestOverrideState:
    """Test the override state invariant."""

    def test_build_mode_requires_version(self):
        """Should refuse build mode without a selected version."""
        with pytest.raises(ValueError):
            OverrideState(build_mode=True)

    def test_active(self):
        """Should be active only with a selected version."""
        assert not OverrideState().active
        assert OverrideState(selected_version=PythonVersion(3, 12)).active


class TestDispatch:
    """Test dispatch and result values."""

    def test_argv(self):
        """Should build argv for the primary and the fallback."""
        dispatch = Dispatch("/usr/bin/python3", ("-V",), DispatchSource.SYSTEM, fallback="/opt/py")
        assert dispatch.argv == ["/usr/bin/python3", "-V"]
        assert dispatch.fallback_argv == ["/opt/py", "-V"]

    def test_result_wraps_failure(self):
        """Should carry a failure instead of a dispatch."""
        request = ResolutionRequest.parse("pip")
        result = ResolutionResult(request, PipBlocked("pip"))
        assert not result.ok
        assert result.dispatch is None
        assert isinstance(result.failure, PipBlocked)
