"""Integration tests for the pyman command line."""

import json
from unittest.mock import patch

import pytest

from pyman import cli


@pytest.fixture
def server(host, make_server):
    host.install("3.11.7")
    host.install("3.12.1")
    server = make_server()
    with patch.object(cli, "PythonManagerServer", return_value=server):
        yield server


class TestCli:
    """Test the pyman subcommands end to end."""

    def test_which(self, server, host, capsys):
        """Should print paths and refusal reasons."""
        assert cli.main(["which", "python3.12", "pip"]) == 0

        out = capsys.readouterr().out
        assert str(host.opt / "3.12.1" / "bin" / "python3.12") in out
        assert "(blocked outside venv)" in out

    def test_status_json(self, server, capsys):
        """Should emit the status report as JSON."""
        assert cli.main(["status", "--json"]) == 0

        report = json.loads(capsys.readouterr().out)
        assert report["available"] == ["3.11", "3.12"]

    def test_info(self, server, capsys):
        """Should list interpreters with their banners."""
        assert cli.main(["info"]) == 0
        out = capsys.readouterr().out
        assert "python3.12" in out
        assert "Python 3.11.7" in out

    def test_diag(self, server, capsys):
        """Should print the diagnostics report."""
        assert cli.main(["diag"]) == 0
        assert "Bypass:      inactive" in capsys.readouterr().out

    def test_set_prints_exports(self, server, host, capsys):
        """Should print export lines for eval."""
        assert cli.main(["set", "3.12", "--build"]) == 0

        captured = capsys.readouterr()
        exe = host.opt / "3.12.1" / "bin" / "python3.12"
        assert f"export PYTHON={exe}" in captured.out
        assert "export PIP_REQUIRE_VIRTUALENV=0" in captured.out
        assert "build mode" in captured.err

    def test_clear(self, server, capsys):
        """Should print unset lines and mention pending symlinks."""
        cli.main(["set", "3.12"])
        assert cli.main(["clear"]) == 0

        captured = capsys.readouterr()
        assert "unset PYTHON PYTHON3 PIP_REQUIRE_VIRTUALENV" in captured.out
        assert "--remove-symlinks" in captured.err

    def test_clear_removes_symlinks_from_a_new_session(self, host, make_server):
        """Should delete the published symlinks even when set ran in another process."""
        host.install("3.12.1")
        with patch.object(cli, "PythonManagerServer", side_effect=[make_server(), make_server()]):
            assert cli.main(["set", "3.12"]) == 0
            assert (host.links / "python3").is_symlink()

            assert cli.main(["clear", "--remove-symlinks"]) == 0

        assert not (host.links / "python").exists()
        assert not (host.links / "python3").exists()

    def test_clear_remove_symlinks_keeps_regular_files(self, host, make_server):
        """Should leave a regular file that happens to use a managed name."""
        host.links.mkdir()
        (host.links / "python").write_text("not ours")
        with patch.object(cli, "PythonManagerServer", return_value=make_server()):
            assert cli.main(["clear", "--remove-symlinks"]) == 0

        assert (host.links / "python").read_text() == "not ours"

    def test_failure_exits_1(self, server, capsys):
        """Should exit 1 on a resolution failure."""
        assert cli.main(["set", "3.9"]) == 1
        assert "Python 3.9 not found" in capsys.readouterr().err

    def test_exec_with_override(self, server, host, capfd):
        """Should run the target with the chosen version."""
        code = cli.main(["exec", "--use", "3.11", "python3", "script.py", "--flag"])

        assert code == 0
        exe = host.opt / "3.11.7" / "bin" / "python3.11"
        assert f"ran {exe} script.py --flag" in capfd.readouterr().out

    def test_exec_blocked_pip(self, server, capsys):
        """Should exit 1 when pip is blocked."""
        assert cli.main(["exec", "pip", "install", "x"]) == 1
        assert "blocked outside virtual environments" in capsys.readouterr().err

    def test_exec_build_requires_use(self, server, capsys):
        """Should exit 2 for --build without --use."""
        assert cli.main(["exec", "--build", "pip", "list"]) == 2

    def test_unknown_command(self, server, capsys):
        """Should exit 2 for an unmanaged command."""
        assert cli.main(["which", "ruby"]) == 2
