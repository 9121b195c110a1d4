"""Command-line interface for pyman."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import List, Optional

from .models.responses import DiagnosticsReport, InfoReport, StatusReport, WhichResult
from .runtime.errors import PymanError
from .runtime.specs import EXPORT_INTERPRETER_VARS, EXPORT_PIP_POLICY_VAR
from .server import PythonManagerServer


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        stream=sys.stderr, level=level, format="%(levelname)s %(name)s: %(message)s"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pyman",
        description="Resolve python/pip commands to installed interpreters and "
        "block pip outside virtual environments",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="-v for info, -vv for debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    which = sub.add_parser("which", help="Show where commands resolve")
    which.add_argument("names", nargs="*", help="python, python3.12, pip, ...")
    which.add_argument("--json", action="store_true")

    for name, help_text in (
        ("info", "Show the override, the environment and installed interpreters"),
        ("diag", "Show everything that affects resolution"),
        ("status", "Show the current override or the versions available"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--json", action="store_true")

    run = sub.add_parser("exec", help="Resolve and run a command")
    run.add_argument("--use", metavar="X.Y", help="Set the default version for this run")
    run.add_argument("--build", action="store_true", help="Allow pip (requires --use)")
    run.add_argument("target", help="python, python3, python3.12, pip, ...")
    run.add_argument("args", nargs=argparse.REMAINDER)

    set_p = sub.add_parser("set", help="Publish symlinks for a version and print exports")
    set_p.add_argument("version", help="3.12, python3.12 or py3.12")
    set_p.add_argument("--build", action="store_true", help="Also allow pip outside venvs")

    clear = sub.add_parser("clear", help="Print unset lines and optionally remove symlinks")
    clear.add_argument(
        "--remove-symlinks", action="store_true", help="Delete the python/python3 symlinks"
    )

    sub.add_parser("serve", help="Run the MCP server over stdio")
    return parser


# ----------------------------------------------------------------------
# Rendering
# ----------------------------------------------------------------------


def _emit(obj, as_json: bool, render) -> None:
    if as_json:
        print(json.dumps(asdict(obj), indent=2))
    else:
        render(obj)


def _render_which(result: WhichResult) -> None:
    width = max((len(e.command) for e in result.entries), default=0)
    for entry in result.entries:
        print(f"{entry.command:<{width}}  {entry.path or entry.reason}")
    if result.bypass_active:
        print("(bypass is active; commands run unmanaged in this context)", file=sys.stderr)


def _render_info(report: InfoReport) -> None:
    print(f"Override:    {report.selected_version or 'none'}")
    print(f"Build mode:  {'on' if report.build_mode else 'off'}")
    env = report.environment
    if env.kind == "none":
        print("Environment: none")
    else:
        where = env.root or env.name or ""
        print(f"Environment: {env.kind} {where} (Python {env.own_version or 'unknown'})")
        if env.binaries:
            print(f"   Available: {', '.join(env.binaries)}")
    print()
    if not report.interpreters:
        print("No Python 3.x installations found!")
        return
    print("Installed interpreters:")
    for interp in report.interpreters:
        marker = "*" if interp.selected else " "
        print(f" {marker} python{interp.version:<6} {interp.path}")
        print(f"     {interp.banner} ({interp.real_path})")


def _render_status(report: StatusReport) -> None:
    if report.selected_version is None:
        print("No default Python set.")
        if report.available:
            print("Available versions: " + ", ".join(report.available))
        else:
            print("No Python 3.x installations found!")
        return
    if report.stale:
        print(f"Python {report.selected_version} is set but no longer available.")
        print("Run: pyman clear")
        return
    mode = " (build mode: pip allowed)" if report.build_mode else ""
    print(f"Python {report.selected_version} -> {report.path}{mode}")
    if report.environment and report.environment.kind != "none":
        print(f"Note: the active {report.environment.kind} environment takes precedence.")


def _render_diag(report: DiagnosticsReport) -> None:
    def section(title: str, values) -> None:
        print(f"{title}:")
        for key, value in values.items():
            print(f"  {key} = {value if value is not None else '(unset)'}")
        print()

    print(f"Interactive: {report.interactive}")
    print(f"Bypass:      {report.bypass_reason or 'inactive'}")
    print(f"Config:      {report.config_source or '(defaults)'}")
    print()
    section("Policy variables", report.policy_variables)
    section("Environment markers", report.marker_variables)
    env = report.environment
    print(f"Environment: {env.kind} (detected by {env.detected_by}, Python {env.own_version or 'unknown'})")
    print(f"Override:    {report.selected_version or 'none'}, build mode {'on' if report.build_mode else 'off'}")
    print(f"Interpreters discovered: {report.interpreter_count}")
    print()
    section("Exports", report.exports)
    on_path = "on PATH" if report.symlink_dir_on_path else "NOT on PATH"
    print(f"Symlink directory: {report.symlink_dir} ({on_path}, managed={report.symlink_managed})")
    section("Symlinks", report.symlink_targets)
    section("Subprocess PATH lookup", report.path_lookup)


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------


def _cmd_set(server: PythonManagerServer, args: argparse.Namespace) -> int:
    result = server.set_python(args.version, build_mode=args.build)
    # stdout is meant for `eval "$(pyman set 3.12)"`
    for name, value in result.exports.items():
        print(f"export {name}={value}")
    mode = " (build mode: pip allowed)" if result.build_mode else ""
    print(f"Python {result.version} -> {result.path}{mode}", file=sys.stderr)
    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    return 0


def _cmd_clear(server: PythonManagerServer, args: argparse.Namespace) -> int:
    result = server.clear_python(remove_symlinks=args.remove_symlinks)
    print(f"unset {' '.join(EXPORT_INTERPRETER_VARS)} {EXPORT_PIP_POLICY_VAR}")
    if result.symlinks_pending:
        print(
            "Symlinks are still in place; rerun with --remove-symlinks to delete them.",
            file=sys.stderr,
        )
    return 0


def _cmd_exec(server: PythonManagerServer, args: argparse.Namespace) -> int:
    if args.build and not args.use:
        print("Error: --build requires --use <version>", file=sys.stderr)
        return 2
    if args.use:
        server.set_python(args.use, build_mode=args.build)
    passthrough: List[str] = list(args.args)
    if passthrough[:1] == ["--"]:
        passthrough = passthrough[1:]
    return server.execute(args.target, passthrough)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "serve":
        from .mcp_server import main as serve

        serve()
        return 0

    server = PythonManagerServer()
    try:
        if args.command == "which":
            _emit(server.which(args.names or None), args.json, _render_which)
        elif args.command == "info":
            _emit(server.info(), args.json, _render_info)
        elif args.command == "status":
            _emit(server.status(), args.json, _render_status)
        elif args.command == "diag":
            _emit(server.diagnostics(), args.json, _render_diag)
        elif args.command == "set":
            return _cmd_set(server, args)
        elif args.command == "clear":
            return _cmd_clear(server, args)
        elif args.command == "exec":
            return _cmd_exec(server, args)
    except PymanError as e:
        print(str(e), file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
