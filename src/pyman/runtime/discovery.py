"""Interpreter discovery: scan search roots and build a deduplicated registry."""

from __future__ import annotations

import glob
import logging
import os
import re
import subprocess
from typing import Dict, Iterator, List, Optional, Sequence

from .errors import NotAPythonInterpreter, SymlinkLoopError
from .specs import (
    BANNER_CHECK,
    DEFAULT_SEARCH_PATHS,
    DEFAULT_SYMLINK_NAMES,
    DEFAULT_USER_LOCAL_DIR,
    EXCLUDED_NAME_FRAGMENTS,
    INTERPRETER_GLOB,
    INTROSPECT_CHECK,
    MAX_SYMLINK_HOPS,
)
from .types import InterpreterRecord, Registry
from .versions import (
    PythonVersion,
    is_python_banner,
    parse_banner,
    version_from_executable_name,
)

logger = logging.getLogger(__name__)


def expand_path(path: str) -> str:
    """Expand ``~`` and environment variables in a configured path."""
    return os.path.normpath(os.path.expandvars(os.path.expanduser(path)))


def is_executable_file(path: os.PathLike | str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def resolve_symlink_chain(path: str, max_hops: int = MAX_SYMLINK_HOPS) -> str:
    """Follow a symlink chain to the real file, one link at a time.

    Relative targets are resolved against the directory of the link that
    holds them.

    Raises:
        SymlinkLoopError: If the chain is longer than ``max_hops`` (cyclic
            links) or a link cannot be read
    """
    current = path
    hops = 0
    while os.path.islink(current):
        if hops >= max_hops:
            raise SymlinkLoopError(path, max_hops)
        try:
            target = os.readlink(current)
        except OSError as e:
            raise SymlinkLoopError(path, max_hops) from e
        if not os.path.isabs(target):
            target = os.path.join(os.path.dirname(current), target)
        current = os.path.normpath(target)
        hops += 1
    return current


class VersionProbe:
    """Runs candidate executables to learn their version.

    Probes block until the child exits; ``timeout`` is None unless
    configured.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    def _run(self, executable: str, args: List[str]) -> Optional[subprocess.CompletedProcess]:
        try:
            return subprocess.run(
                [executable] + args,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("probe %s %s failed: %s", executable, " ".join(args), e)
            return None

    def banner(self, executable: str) -> Optional[str]:
        """Return ``<exe> --version`` output (stdout + stderr), None on failure."""
        result = self._run(executable, BANNER_CHECK.args)
        if result is None or result.returncode != 0:
            return None
        # Python 2 prints its banner on stderr
        return ((result.stdout or "") + (result.stderr or "")).strip()

    def introspect(self, executable: str) -> Optional[PythonVersion]:
        """Ask the interpreter for ``sys.version_info`` major.minor."""
        result = self._run(executable, INTROSPECT_CHECK.args)
        if result is None or result.returncode != 0:
            return None
        match = re.match(INTROSPECT_CHECK.parse, (result.stdout or "").strip())
        if not match:
            return None
        return PythonVersion(int(match.group(1)), int(match.group(2)))


class InterpreterDiscovery:
    """Scans the filesystem for Python 3 interpreters.

    The registry is built lazily on first use and cached until
    :meth:`invalidate` or ``scan(force=True)``.
    """

    def __init__(
        self,
        search_paths: Sequence[str] = DEFAULT_SEARCH_PATHS,
        user_local_dir: str = DEFAULT_USER_LOCAL_DIR,
        managed_symlink_dir: Optional[str] = None,
        managed_names: Sequence[str] = DEFAULT_SYMLINK_NAMES,
        probe: Optional[VersionProbe] = None,
    ):
        """Initialize discovery.

        Args:
            search_paths: Ordered glob patterns of directories to scan
            user_local_dir: Directory whose interpreters always win dedupe
            managed_symlink_dir: Directory holding symlinks this tool created
            managed_names: Names of those symlinks; they are never candidates
            probe: Version probe (injectable for tests)
        """
        self.search_paths = list(search_paths)
        self.user_local_dir = expand_path(user_local_dir)
        self.managed_symlink_dir = (
            expand_path(managed_symlink_dir) if managed_symlink_dir else self.user_local_dir
        )
        self.managed_names = frozenset(managed_names)
        self.probe = probe or VersionProbe()
        self._registry: Optional[Registry] = None

    @property
    def registry(self) -> Registry:
        return self.scan()

    def invalidate(self) -> None:
        """Drop the cached registry so the next scan rebuilds it."""
        self._registry = None

    def scan(self, force: bool = False) -> Registry:
        """Return the registry, building it if needed.

        Args:
            force: Rebuild even if a cached registry exists

        Returns:
            Registry of discovered interpreters (possibly empty)
        """
        if self._registry is not None and not force:
            return self._registry

        records: Dict[PythonVersion, InterpreterRecord] = {}
        for candidate in self.iter_candidates():
            record = self._inspect(candidate)
            if record is None:
                continue
            existing = records.get(record.version)
            if existing is None or self._prefer(record, existing):
                records[record.version] = record

        self._registry = Registry.from_records(records)
        logger.debug(
            "discovered %d interpreter(s): %s",
            len(self._registry),
            ", ".join(str(v) for v in self._registry.versions) or "none",
        )
        return self._registry

    def iter_search_dirs(self) -> Iterator[str]:
        """Expand the search patterns into existing directories, in order."""
        seen = set()
        for pattern in self.search_paths:
            for directory in sorted(glob.glob(expand_path(pattern))):
                directory = os.path.normpath(directory)
                if directory in seen or not os.path.isdir(directory):
                    continue
                seen.add(directory)
                yield directory

    def iter_candidates(self) -> Iterator[str]:
        """Yield interpreter-looking executables from every search dir."""
        for directory in self.iter_search_dirs():
            for path in sorted(glob.glob(os.path.join(directory, INTERPRETER_GLOB))):
                name = os.path.basename(path)
                if any(fragment in name for fragment in EXCLUDED_NAME_FRAGMENTS):
                    continue
                if not is_executable_file(path):
                    continue
                if self._is_managed_symlink(directory, name, path):
                    logger.debug("skipping managed symlink %s", path)
                    continue
                yield path

    def _is_managed_symlink(self, directory: str, name: str, path: str) -> bool:
        return (
            directory == self.managed_symlink_dir
            and name in self.managed_names
            and os.path.islink(path)
        )

    def _inspect(self, path: str) -> Optional[InterpreterRecord]:
        """Work out a candidate's version; None means skip it."""
        try:
            return self._build_record(path)
        except NotAPythonInterpreter as e:
            logger.debug("skipping %s", e)
        except SymlinkLoopError as e:
            logger.debug("skipping %s: %s", path, e)
        return None

    def _build_record(self, path: str) -> Optional[InterpreterRecord]:
        version = version_from_executable_name(os.path.basename(path))

        banner = self.probe.banner(path)
        if banner is None:
            logger.debug("skipping %s: --version failed", path)
            return None
        if not is_python_banner(banner):
            raise NotAPythonInterpreter(path, banner)

        parsed = parse_banner(banner)
        if parsed is not None:
            if parsed.major < 3:
                raise NotAPythonInterpreter(path, banner)
            if version is None:
                version = PythonVersion(parsed.major, parsed.minor)

        if version is None:
            introspected = self.probe.introspect(path)
            if introspected is not None and introspected.major >= 3:
                version = introspected

        if version is None:
            logger.debug("skipping %s: could not determine version", path)
            return None
        if version.major < 3:
            raise NotAPythonInterpreter(path, banner)

        return InterpreterRecord(
            version=version,
            path=path,
            real_path=resolve_symlink_chain(path),
            banner=banner,
        )

    def _in_user_local(self, record: InterpreterRecord) -> bool:
        return os.path.dirname(record.path) == self.user_local_dir

    def _prefer(self, candidate: InterpreterRecord, existing: InterpreterRecord) -> bool:
        """Whether ``candidate`` should replace ``existing`` for one version.

        1. The user-local directory always wins.
        2. Otherwise the higher patch wins.
        3. Otherwise the first-seen is kept.
        """
        if self._in_user_local(candidate):
            return True
        if self._in_user_local(existing):
            return False
        new_patch, old_patch = candidate.patch, existing.patch
        if new_patch is not None and old_patch is not None:
            return new_patch > old_patch
        return False

