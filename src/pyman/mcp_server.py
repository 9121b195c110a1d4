"""MCP Server for pyman.

Exposes the Python runtime resolution engine as MCP tools using FastMCP.
The server process is one session: an override set with ``set_python``
stays in effect for later tool calls until ``clear_python``.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from mcp.server import FastMCP

from .runtime.errors import PymanError
from .server import PythonManagerServer

# Global session instance
_pyman_server: Optional[PythonManagerServer] = None


mcp = FastMCP("pyman: Python runtime manager")


def get_pyman_server() -> PythonManagerServer:
    """Get or create the session facade.

    The server talks over stdio, so the terminal check would always say
    non-interactive; it is treated as interactive and only the policy
    variables (CI, sandbox, force-bypass) trigger bypass.
    """
    global _pyman_server
    if _pyman_server is None:
        _pyman_server = PythonManagerServer(interactive=True)
    return _pyman_server


def _to_dict(obj: Any) -> Any:
    """Convert dataclass objects to dictionaries for JSON serialization."""
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    elif isinstance(obj, list):
        return [_to_dict(item) for item in obj]
    elif isinstance(obj, dict):
        return {k: _to_dict(v) for k, v in obj.items()}
    return obj


def _error(e: Exception) -> Dict[str, Any]:
    kind = e.kind.value if isinstance(e, PymanError) else "invalid_request"
    return {"error": str(e), "kind": kind}


# ============================================================================
# QUICK START GUIDE
# ============================================================================
#
#   resolve_command    - Which binary would run for python/pip/python3.X/pip3.X
#   list_interpreters  - Discovered interpreters, one per major.minor
#   set_python         - Select a default version (optionally with pip allowed)
#   clear_python       - Drop the default version and build mode
#   get_status         - Current override, or the versions available
#   get_diagnostics    - Policy variables, environment, exports, symlinks
#
# Precedence: bypass > active environment > override > no default.
# pip is blocked outside environments unless build mode is on.
#
# ============================================================================


@mcp.tool()
async def resolve_command(command: str, args: List[str] | None = None) -> Dict[str, Any]:
    """Resolve a python/pip command to the executable that would run.

    Args:
        command: python, python3, python3.12, py3.12, pip, pip3 or pip3.12
        args: Arguments that would follow the command. ``["-m", "pip", ...]``
              is subject to the pip policy.

    Returns:
        executable, args, source (bypass/environment/system/override/registry/
        build_mode), optional fallback and note. When the policy refuses the
        request: error (remediation text) and error_kind.
    """
    try:
        result = get_pyman_server().describe(command, args or [])
    except ValueError as e:
        return _error(e)
    return _to_dict(result)


@mcp.tool()
async def which_commands(commands: List[str] | None = None) -> Dict[str, Any]:
    """Show where each command resolves, or why it is refused.

    Args:
        commands: Command names; defaults to python, python3, pip, pip3 and
                  one pythonX.Y per installed version
    """
    try:
        return _to_dict(get_pyman_server().which(commands))
    except ValueError as e:
        return _error(e)


@mcp.tool()
async def list_interpreters() -> Dict[str, Any]:
    """List discovered Python 3 interpreters, newest first.

    Returns:
        selected_version, build_mode, the active environment and
        interpreters (version, path, real_path, banner, full_version, selected)
    """
    return _to_dict(get_pyman_server().info())


@mcp.tool()
async def set_python(version: str, build_mode: bool = False) -> Dict[str, Any]:
    """Select the default Python for this session.

    Rescans installed interpreters, points ~/.local/bin/python{,3} at the
    selection and exports PYTHON/PYTHON3.

    Args:
        version: "3.12", "python3.12" or "py3.12"
        build_mode: Also allow pip outside virtual environments
                    (exports PIP_REQUIRE_VIRTUALENV=0)
    """
    try:
        return _to_dict(get_pyman_server().set_python(version, build_mode))
    except PymanError as e:
        return _error(e)


@mcp.tool()
async def clear_python(remove_symlinks: bool = False) -> Dict[str, Any]:
    """Clear the session default and build mode.

    Args:
        remove_symlinks: Also delete the python/python3 symlinks. Ask the
                         user first; when False, symlinks_pending reports
                         whether any are left behind.
    """
    return _to_dict(get_pyman_server().clear_python(remove_symlinks))


@mcp.tool()
async def get_status() -> Dict[str, Any]:
    """Current override and build mode, or the versions available to select."""
    return _to_dict(get_pyman_server().status())


@mcp.tool()
async def get_diagnostics() -> Dict[str, Any]:
    """Explain the resolution context.

    Returns policy and marker variables, bypass state, environment, exports,
    symlink targets and what a subprocess would find on PATH.
    """
    return _to_dict(get_pyman_server().diagnostics())


# ============================================================================
# Entry Point
# ============================================================================


def main():
    """Run the MCP server over stdio."""
    # stdout carries the MCP protocol
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    server = get_pyman_server()
    registry = server.discovery.scan()

    print("🚀 Starting pyman MCP Server", file=sys.stderr)
    print(f"🐍 Interpreters: {', '.join(str(v) for v in registry.versions) or 'none'}", file=sys.stderr)
    print("", file=sys.stderr)

    mcp.run()


if __name__ == "__main__":
    main()
