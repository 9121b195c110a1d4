"""Unit tests for symlink publishing and exports."""

import os

import pytest

from pyman.runtime.errors import PublishError
from pyman.runtime.symlinks import SymlinkPublisher
from pyman.runtime.types import OverrideState


@pytest.fixture
def state():
    return OverrideState()


class TestPublish:
    """Test artifact creation."""

    def test_publish_creates_links_and_exports(self, host, environ, state):
        """Should create both symlinks and export both variables."""
        target = host.install("3.12.1")
        publisher = SymlinkPublisher(state, environ, directory=str(host.links))

        publisher.publish(str(target))

        assert os.readlink(host.links / "python") == str(target)
        assert os.readlink(host.links / "python3") == str(target)
        assert environ["PYTHON"] == str(target)
        assert environ["PYTHON3"] == str(target)
        assert state.symlink_managed

    def test_republish_retargets(self, host, environ, state):
        """Should retarget existing links without leaving temp files."""
        old = host.install("3.11.7")
        new = host.install("3.12.1")
        publisher = SymlinkPublisher(state, environ, directory=str(host.links))

        publisher.publish(str(old))
        publisher.publish(str(new))

        assert os.readlink(host.links / "python3") == str(new)
        # No temporary links left behind
        assert sorted(p.name for p in host.links.iterdir()) == ["python", "python3"]

    def test_missing_target(self, host, environ, state):
        """Should refuse a target that does not exist."""
        publisher = SymlinkPublisher(state, environ, directory=str(host.links))

        with pytest.raises(PublishError, match="does not exist"):
            publisher.publish(str(host.root / "nope"))
        assert "PYTHON" not in environ
        assert not state.symlink_managed

    def test_refuses_to_replace_regular_file(self, host, environ, state):
        """Should never overwrite a regular file."""
        target = host.install("3.12.1")
        host.links.mkdir()
        (host.links / "python").write_text("not a link")
        publisher = SymlinkPublisher(state, environ, directory=str(host.links))

        with pytest.raises(PublishError, match="not a symlink"):
            publisher.publish(str(target))
        assert (host.links / "python").read_text() == "not a link"

    def test_disabled_only_exports(self, host, environ, state):
        """Should only export variables when symlinks are disabled."""
        target = host.install("3.12.1")
        publisher = SymlinkPublisher(state, environ, directory=str(host.links), enabled=False)

        publisher.publish(str(target))

        assert not host.links.exists()
        assert environ["PYTHON3"] == str(target)
        assert not state.symlink_managed


class TestRemove:
    """Test removing published artifacts."""

    def test_remove_only_symlinks(self, host, environ, state):
        """Should delete the managed symlinks."""
        target = host.install("3.12.1")
        publisher = SymlinkPublisher(state, environ, directory=str(host.links))
        publisher.publish(str(target))

        publisher.remove()

        assert not (host.links / "python").exists()
        assert not (host.links / "python3").is_symlink()
        assert not state.symlink_managed
        assert publisher.current_targets() == {
            str(host.links / "python"): None,
            str(host.links / "python3"): None,
        }

    def test_unexport(self, host, environ, state):
        """Should drop PYTHON and PYTHON3."""
        publisher = SymlinkPublisher(state, environ, directory=str(host.links))
        environ.update(PYTHON="/x", PYTHON3="/x")

        publisher.unexport()

        assert "PYTHON" not in environ and "PYTHON3" not in environ


class TestOnPath:
    """Test the PATH check for the symlink directory."""

    def test_on_path(self, host, environ, state):
        """Should notice when the symlink directory is on PATH."""
        publisher = SymlinkPublisher(state, environ, directory=str(host.links))
        assert not publisher.on_path()

        environ["PATH"] = f"{host.links}:{environ['PATH']}"
        assert publisher.on_path()
