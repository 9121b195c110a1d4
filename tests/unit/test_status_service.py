"""Unit tests for which/info/status/diagnostics reports."""

import pytest

from tests.helpers.interpreters import make_interpreter, make_venv


@pytest.fixture
def installed(host):
    return {"3.11": host.install("3.11.7"), "3.12": host.install("3.12.1")}


class TestWhich:
    """Test the which report."""

    def test_default_commands(self, make_server, installed):
        """Should cover the bare commands and each installed version."""
        result = make_server().which()
        by_command = {e.command: e for e in result.entries}

        assert list(by_command) == ["python", "python3", "pip", "pip3", "python3.11", "python3.12"]
        assert by_command["python"].reason.startswith("(no default")
        assert by_command["pip"].reason == "(blocked outside venv)"
        assert by_command["python3.12"].path == str(installed["3.12"])

    def test_after_set(self, make_server, installed):
        """Should follow the override and flag missing versions."""
        server = make_server()
        server.set_python("3.11")

        entries = {e.command: e for e in server.which(["python3", "python3.9"]).entries}

        assert entries["python3"].path == str(installed["3.11"])
        assert entries["python3.9"].reason == "(not installed)"

    def test_reports_managed_behaviour_under_bypass(self, environ, make_server, installed):
        """Should report managed behaviour even under bypass."""
        environ["CI"] = "1"
        result = make_server().which(["pip"])

        assert result.bypass_active
        assert result.entries[0].reason == "(blocked outside venv)"

    def test_unknown_command(self, make_server):
        """Should reject commands it does not manage."""
        with pytest.raises(ValueError):
            make_server().which(["ruby"])


class TestInfo:
    """Test the info report."""

    def test_interpreters_newest_first(self, make_server, installed):
        """Should list interpreters newest first and mark the selection."""
        server = make_server()
        server.set_python("3.11")

        report = server.info()

        assert [i.version for i in report.interpreters] == ["3.12", "3.11"]
        assert [i.selected for i in report.interpreters] == [False, True]
        assert report.interpreters[0].full_version == "3.12.1"
        assert report.selected_version == "3.11"
        assert report.environment.kind == "none"

    def test_environment_details(self, environ, make_server, tmp_path):
        """Should describe the active environment."""
        venv = make_venv(tmp_path / "venv", release="3.11.4")
        environ["VIRTUAL_ENV"] = str(venv)

        env = make_server().info().environment

        assert env.kind == "venv"
        assert env.root == str(venv)
        assert env.own_version == "3.11"
        assert env.binaries == ["pip", "python"]


class TestStatus:
    """Test the status report."""

    def test_no_override(self, make_server, installed):
        """Should report no selection."""
        report = make_server().status()

        assert report.selected_version is None
        assert report.available == ["3.11", "3.12"]

    def test_override(self, make_server, installed):
        """Should report the selection and build mode."""
        server = make_server()
        server.set_python("3.12", build_mode=True)

        report = server.status()

        assert report.selected_version == "3.12"
        assert report.build_mode
        assert report.path == str(installed["3.12"])
        assert not report.stale

    def test_stale_override(self, make_server, installed):
        """Should flag an override whose interpreter is gone."""
        server = make_server()
        server.set_python("3.12")
        installed["3.12"].unlink()

        report = server.status()

        assert report.stale
        assert report.path is None
        assert report.available == ["3.11"]


class TestDiagnostics:
    """Test the diagnostics snapshot."""

    def test_snapshot(self, host, environ, make_server, installed):
        """Should capture policy, markers, exports, symlinks and PATH lookups."""
        make_interpreter(host.sys_bin / "python3")
        environ["PYTHON_ALLOW_SYSTEM"] = "1"
        server = make_server()
        server.set_python("3.12")

        report = server.diagnostics()

        assert report.interactive is True
        assert report.bypass_reason is None
        assert report.policy_variables["PYTHON_ALLOW_SYSTEM"] == "1"
        assert report.policy_variables["CI"] is None
        assert report.marker_variables == {
            "VIRTUAL_ENV": None,
            "CONDA_DEFAULT_ENV": None,
            "POETRY_ACTIVE": None,
            "PIPENV_ACTIVE": None,
        }
        assert report.selected_version == "3.12"
        assert report.symlink_managed
        assert report.exports["PYTHON3"] == str(installed["3.12"])
        assert report.exports["PIP_REQUIRE_VIRTUALENV"] is None
        assert report.symlink_targets[str(host.links / "python3")] == str(installed["3.12"])
        assert not report.symlink_dir_on_path
        assert report.path_lookup["python3"] == str(host.sys_bin / "python3")
        assert report.path_lookup["pip"] is None
        assert report.interpreter_count == 2
