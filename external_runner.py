# external_runner.py
from __future__ import annotations
import logging
import os
import stat
import subprocess
from typing import IO, List, Optional, Sequence, Tuple

import Interrupt

NOT_EXEC  = 126

log = logging.getLogger("tabsh.external")

# POSIX platforms expose execute bits; elsewhere a regular file is enough.
HAS_EXEC_BITS = os.name == "posix"


def build_search_path(raw: Optional[str] = None) -> List[str]:
    """Split a PATH-style string into the directories that actually exist.
    Order is kept and duplicates are allowed; the first entry wins on lookup."""
    if raw is None:
        raw = os.environ.get("PATH", "")
    dirs = []
    for entry in raw.split(os.pathsep):
        if entry and os.path.isdir(entry):
            dirs.append(entry)
        elif entry:
            log.debug("skipping search path entry %r: not a directory", entry)
    return dirs


def is_executable_file(path: str) -> bool:
    try:
        st = os.stat(path)
    except OSError:
        return False
    if not stat.S_ISREG(st.st_mode):
        return False
    if HAS_EXEC_BITS:
        return bool(st.st_mode & 0o111)
    return True


def resolve_executable(name: str, search_path: Sequence[str]) -> Optional[str]:
    """Return the full path of the first executable called `name`, or None."""
    if not name:
        return None
    for directory in search_path:
        full_path = os.path.join(directory, name)
        if is_executable_file(full_path):
            log.debug("resolved %s -> %s", name, full_path)
            return full_path
    log.debug("%s not found in %d search directories", name, len(search_path))
    return None


def run_external(path: str, args: Sequence[str], *,
                 stdout: Optional[IO] = None,
                 stderr: Optional[IO] = None,
                 capture: bool = False) -> Tuple[int, str, str]:
    """Run the executable at `path` with argv[0] set to its base name.
    Returns (exit_code, stdout_text, stderr_text).
    If capture=False, the child writes to the given handles (or the terminal)
    and the returned texts are empty, except for a launch failure message."""
    name = os.path.basename(path)
    argv = [name, *args]
    log.debug("spawning %s as %r", path, argv)
    try:
        with Interrupt.child_running():
            if capture:
                cp = subprocess.run(argv, executable=path, text=True, capture_output=True)
                return cp.returncode, cp.stdout, cp.stderr
            cp = subprocess.run(argv, executable=path, stdout=stdout, stderr=stderr)
    except OSError as e:
        reason = e.strerror or str(e)
        return NOT_EXEC, "", f"{name}: failed to execute: {reason}\n"
    if cp.returncode != 0:
        log.debug("%s exited with status %d", name, cp.returncode)
    return cp.returncode, "", ""
