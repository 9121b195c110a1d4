"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable, Dict

import pytest

from pyman.config import DiscoveryConfig, PolicyConfig, PymanConfig, SymlinkConfig
from pyman.server import PythonManagerServer
from tests.helpers.interpreters import make_interpreter


class FakeHost:
    """A throwaway filesystem laid out like a machine with several Pythons.

    - ``user_local``: ~/.local/bin (always wins dedupe)
    - ``opt``: /opt/python/<release>/bin trees
    - ``usr_bin``: system location
    - ``sys_bin``: the only directory on the session PATH
    - ``links``: where managed symlinks are published
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.home = root / "home"
        self.user_local = self.home / ".local" / "bin"
        self.opt = root / "opt" / "python"
        self.usr_bin = root / "usr" / "bin"
        self.sys_bin = root / "sysbin"
        self.links = root / "links"
        for directory in (self.user_local, self.opt, self.usr_bin, self.sys_bin):
            directory.mkdir(parents=True, exist_ok=True)

    @property
    def search_paths(self):
        return [str(self.user_local), str(self.opt / "*" / "bin"), str(self.usr_bin)]

    def install(self, release: str, name: str = None, banner: str = None, **kwargs) -> Path:
        """Install a fake ``python{major.minor}`` under /opt/python/<release>/bin."""
        major_minor = ".".join(release.split(".")[:2])
        name = name or f"python{major_minor}"
        banner = banner or f"Python {release}"
        return make_interpreter(self.opt / release / "bin" / name, banner=banner, **kwargs)

    def config(self, **policy) -> PymanConfig:
        return PymanConfig(
            discovery=DiscoveryConfig(
                search_paths=self.search_paths,
                user_local_dir=str(self.user_local),
            ),
            symlinks=SymlinkConfig(directory=str(self.links)),
            policy=PolicyConfig(**policy),
        )


@pytest.fixture
def host(tmp_path) -> FakeHost:
    return FakeHost(tmp_path)


@pytest.fixture
def environ(host) -> Dict[str, str]:
    """Session environment; never the real os.environ."""
    return {"PATH": str(host.sys_bin), "HOME": str(host.home)}


@pytest.fixture
def make_server(host, environ) -> Callable[..., PythonManagerServer]:
    """Build a session facade over the fake host."""

    def _make(interactive: bool = True, **policy) -> PythonManagerServer:
        return PythonManagerServer(
            config=host.config(**policy), environ=environ, interactive=interactive
        )

    return _make
