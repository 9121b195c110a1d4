"""Unit tests for configuration loading."""

import tempfile
from pathlib import Path

from pyman.config import PymanConfig, find_config_file, load_config
from pyman.runtime.specs import DEFAULT_SEARCH_PATHS


class TestConfigParsing:
    """Test TOML configuration parsing."""

    def test_find_config_file_from_env(self):
        """Should honour PYMAN_CONFIG."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            config_file = Path(tmp_dir) / "pyman.toml"
            config_file.write_text("[symlinks]\nenabled = false\n")

            assert find_config_file({"PYMAN_CONFIG": str(config_file)}) == config_file

    def test_find_config_file_missing(self):
        """Should return None when the file does not exist."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            env = {"PYMAN_CONFIG": str(Path(tmp_dir) / "absent.toml")}
            assert find_config_file(env) is None

    def test_load_config_defaults(self):
        """No file means defaults."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            config = load_config(environ={"PYMAN_CONFIG": str(Path(tmp_dir) / "absent.toml")})

        assert isinstance(config, PymanConfig)
        assert config.source is None
        assert config.discovery.search_paths == list(DEFAULT_SEARCH_PATHS)
        assert config.discovery.probe_timeout is None
        assert config.symlinks.enabled is True
        assert config.symlinks.names == ["python", "python3"]
        assert config.policy.interactive is None
        assert config.policy.variables().allow_system == "PYTHON_ALLOW_SYSTEM"

    def test_load_config_full(self):
        """Should read every section of a complete file."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            config_file = Path(tmp_dir) / "config.toml"
            config_file.write_text(
                """
[discovery]
search_paths = ["/opt/py/*/bin"]
extra_search_paths = ["~/tools/bin"]
user_local_dir = "~/bin"
probe_timeout = 5

[symlinks]
enabled = false
names = ["python3"]

[policy]
automation_vars = ["CI", "GITHUB_ACTIONS"]
allow_system_var = "ALLOW_PY"
interactive = true
"""
            )
            config = load_config(config_file)

        assert config.source == config_file
        assert config.discovery.effective_search_paths == ["/opt/py/*/bin", "~/tools/bin"]
        assert config.discovery.user_local_dir == "~/bin"
        assert config.discovery.probe_timeout == 5.0
        assert config.symlinks.enabled is False
        assert config.symlinks.names == ["python3"]
        # Symlink dir follows the user-local dir unless set
        assert config.symlinks.directory == "~/bin"
        variables = config.policy.variables()
        assert variables.automation == ["CI", "GITHUB_ACTIONS"]
        assert variables.bypass == ["PYTHON_MANAGER_FORCE_BYPASS"]
        assert variables.allow_system == "ALLOW_PY"
        assert config.policy.interactive is True

    def test_invalid_toml_falls_back_to_defaults(self, caplog):
        """Should warn and use defaults on invalid TOML."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            config_file = Path(tmp_dir) / "config.toml"
            config_file.write_text("[discovery\nsearch_paths = ")
            config = load_config(config_file)

        assert config.source is None
        assert config.discovery.search_paths == list(DEFAULT_SEARCH_PATHS)
        assert "Ignoring config file" in caplog.text

    def test_wrong_type_uses_default(self, caplog):
        """Should warn and use the default for a mistyped value."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            config_file = Path(tmp_dir) / "config.toml"
            config_file.write_text('[discovery]\nsearch_paths = "/usr/bin"\n')
            config = load_config(config_file)

        assert config.discovery.search_paths == list(DEFAULT_SEARCH_PATHS)
        assert "search_paths must be a list" in caplog.text
