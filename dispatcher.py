# dispatcher.py - routes a parsed CommandLine to a builtin or an external program
from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from typing import IO, Iterator, List, Mapping, Optional, Sequence

import commands
from external_runner import build_search_path, resolve_executable, run_external
from tokenizer import CommandLine, Redirection

log = logging.getLogger("tabsh.dispatch")


class RedirectionError(OSError):
    """The target of an output redirection could not be opened."""

    def __init__(self, target: str):
        super().__init__(f"{target}: cannot open file for output redirection")
        self.target = target


@contextmanager
def open_redirection(redirection: Optional[Redirection]) -> Iterator[Optional[IO]]:
    """Open the redirection target (created if absent) for the block."""
    if redirection is None:
        yield None
        return
    try:
        fh = open(redirection.target, redirection.mode.file_mode, encoding="utf-8")
    except OSError as e:
        raise RedirectionError(redirection.target) from e
    with fh:
        yield fh


class Shell:
    """Holds what commands need between lines: search path, environment, streams.

    The search path is read once from the environment's PATH and never
    changed afterwards. Streams default to whatever sys.stdout/sys.stderr are
    at the time of writing, so test harnesses that swap them keep working.
    """

    def __init__(self,
                 search_path: Optional[Sequence[str]] = None,
                 environ: Optional[Mapping[str, str]] = None,
                 stdout: Optional[IO] = None,
                 stderr: Optional[IO] = None):
        self.environ = os.environ if environ is None else environ
        if search_path is None:
            search_path = build_search_path(self.environ.get("PATH", ""))
        self.search_path: List[str] = list(search_path)
        self._stdout = stdout
        self._stderr = stderr

    @property
    def stdout(self) -> IO:
        return self._stdout or sys.stdout

    @property
    def stderr(self) -> IO:
        return self._stderr or sys.stderr

    def find_executable(self, name: str) -> Optional[str]:
        return resolve_executable(name, self.search_path)

    # -----------------------
    # Dispatch
    # -----------------------
    def execute(self, command_line: CommandLine) -> bool:
        """Run one command line. Returns False only when the shell should stop."""
        if command_line.is_empty:
            return True
        try:
            builtin = commands.Builtin.lookup(command_line.command)
            if builtin is not None:
                return self._run_builtin(builtin, command_line)
            self._run_external(command_line)
        except RedirectionError as e:
            self.stdout.write(f"{e}\n")
            self.stdout.flush()
        return True

    def _run_builtin(self, builtin: commands.Builtin, command_line: CommandLine) -> bool:
        log.debug("builtin %s %r", builtin.value, command_line.args)
        result = commands.HANDLERS[builtin](self, command_line.args)
        self._emit(result, command_line.redirection)
        return result.keep_running

    def _emit(self, result: commands.Output, redirection: Optional[Redirection]) -> None:
        if redirection is None:
            self._write(self.stdout, result.stdout)
            self._write(self.stderr, result.stderr)
            return
        if redirection.mode.stream == "stdout":
            to_file, console, console_text = result.stdout, self.stderr, result.stderr
        else:
            to_file, console, console_text = result.stderr, self.stdout, result.stdout
        self._write(console, console_text)
        with open_redirection(redirection) as fh:
            fh.write(to_file)

    @staticmethod
    def _write(stream: IO, text: str) -> None:
        if text:
            stream.write(text)
            stream.flush()

    def _run_external(self, command_line: CommandLine) -> None:
        name = command_line.command
        full_path = self.find_executable(name)
        if full_path is None:
            self._write(self.stderr, f"{name}: command not found\n")
            return

        redirection = command_line.redirection
        with open_redirection(redirection) as fh:
            stdout = stderr = None
            if fh is not None:
                if redirection.mode.stream == "stdout":
                    stdout = fh
                else:
                    stderr = fh
            # keep our own buffered output ahead of the child's
            self.stdout.flush()
            self.stderr.flush()
            code, _, err = run_external(full_path, command_line.args, stdout=stdout, stderr=stderr)
        if err:
            # launch failures are reported on the console, never into the redirect
            self._write(self.stdout, err)
        log.debug("%s finished with %d", name, code)
