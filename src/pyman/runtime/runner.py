"""Execute a resolved dispatch."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from typing import List, Mapping, Optional

from .types import Dispatch

logger = logging.getLogger(__name__)

# Shell conventions for "command not found" / "found but not executable"
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126


def _spawn(argv: List[str], env: Optional[Mapping[str, str]]) -> int:
    """Run ``argv`` to completion and return its exit code.

    Spawn failures are mapped to 127/126 the way a shell reports them.
    """
    try:
        return subprocess.run(argv, env=None if env is None else dict(env)).returncode
    except FileNotFoundError:
        return EXIT_NOT_FOUND
    except PermissionError:
        return EXIT_NOT_EXECUTABLE


def run(dispatch: Dispatch, env: Optional[Mapping[str, str]] = None) -> int:
    """Run a dispatch, trying its bypass fallback once when the primary is missing.

    Args:
        dispatch: Resolved executable and arguments
        env: Environment for the child; the engine's session environment
            so that ``PYTHON``/``PIP_REQUIRE_VIRTUALENV`` exports reach it

    Returns:
        The child's exit code (127/126 when nothing could be spawned)
    """
    if dispatch.note:
        print(dispatch.note, file=sys.stderr)

    code = _spawn(dispatch.argv, env)
    if code in (EXIT_NOT_FOUND, EXIT_NOT_EXECUTABLE) and dispatch.fallback_argv:
        if _spawned_nothing(dispatch.executable, env):
            logger.info(
                "%s unavailable (exit %d), falling back to %s",
                dispatch.executable,
                code,
                dispatch.fallback,
            )
            code = _spawn(dispatch.fallback_argv, env)
    return code


def _spawned_nothing(executable: str, env: Optional[Mapping[str, str]]) -> bool:
    """Whether a 127/126 came from the spawn itself rather than the child.

    A child may legitimately exit 127; only retry when the executable could
    not be located or run.
    """
    if os.sep in executable:
        return not (os.path.isfile(executable) and os.access(executable, os.X_OK))
    path = (env or os.environ).get("PATH", "")
    found = shutil.which(executable, path=path)
    return found is None
