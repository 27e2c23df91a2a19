#!/usr/bin/env python3
# commands.py - builtins for tabsh

import os
from dataclasses import dataclass
from enum import Enum

from external_runner import resolve_executable


class Builtin(Enum):
    EXIT = "exit"
    ECHO = "echo"
    TYPE = "type"
    PWD = "pwd"
    CD = "cd"

    @classmethod
    def lookup(cls, name):
        """Exact-name match against the builtin set, or None."""
        try:
            return cls(name)
        except ValueError:
            return None


BUILTIN_NAMES = tuple(sorted(b.value for b in Builtin))


@dataclass
class Output:
    """What a builtin produced; the dispatcher decides where it goes."""
    stdout: str = ""
    stderr: str = ""
    keep_running: bool = True


# -----------------------
# Builtin commands
# Each function accepts the Shell and the parsed argument tuple
# -----------------------
def exit_shell(shell, args):
    return Output(keep_running=False)


def echo(shell, args):
    return Output(stdout=" ".join(args) + "\n")


def type_command(shell, args):
    lines = []
    for name in args:
        if Builtin.lookup(name) is not None:
            lines.append(f"{name} is a shell builtin\n")
            continue
        full_path = resolve_executable(name, shell.search_path)
        if full_path:
            lines.append(f"{name} is {full_path}\n")
        else:
            lines.append(f"{name}: not found\n")
    return Output(stdout="".join(lines))


def print_working_directory(shell, args):
    try:
        return Output(stdout=os.getcwd() + "\n")
    except OSError as e:
        return Output(stderr=f"pwd: error retrieving current directory: {e}\n")


def change_directory(shell, args):
    if len(args) > 1:
        return Output(stderr="cd: too many arguments\n")
    if not args or args[0] == "~":
        target = shell.environ.get("HOME", "")
    else:
        target = args[0]
    try:
        os.chdir(target)
    except OSError:
        return Output(stderr=f"cd: {target}: No such file or directory\n")
    return Output()


HANDLERS = {
    Builtin.EXIT: exit_shell,
    Builtin.ECHO: echo,
    Builtin.TYPE: type_command,
    Builtin.PWD: print_working_directory,
    Builtin.CD: change_directory,
}
