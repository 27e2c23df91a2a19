# tokenizer.py - turns one input line into a command, its arguments and a redirection
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

WHITESPACE = " \t\n\r\f\v"
QUOTES = ("'", '"')


class TokenizeError(ValueError):
    """Raised when a line cannot be turned into a CommandLine."""


class RedirectMode(Enum):
    STDOUT = "stdout"
    STDERR = "stderr"
    STDOUT_APPEND = "stdout_append"
    STDERR_APPEND = "stderr_append"

    @property
    def stream(self) -> str:
        if self in (RedirectMode.STDOUT, RedirectMode.STDOUT_APPEND):
            return "stdout"
        return "stderr"

    @property
    def append(self) -> bool:
        return self in (RedirectMode.STDOUT_APPEND, RedirectMode.STDERR_APPEND)

    @property
    def file_mode(self) -> str:
        return "a" if self.append else "w"


# Checked in this order; the first operator present anywhere in the text wins.
REDIRECT_OPERATORS: Tuple[Tuple[str, RedirectMode], ...] = (
    ("1>>", RedirectMode.STDOUT_APPEND),
    ("2>>", RedirectMode.STDERR_APPEND),
    (">>", RedirectMode.STDOUT_APPEND),
    ("1>", RedirectMode.STDOUT),
    ("2>", RedirectMode.STDERR),
    (">", RedirectMode.STDOUT),
)


@dataclass(frozen=True)
class Redirection:
    target: str
    mode: RedirectMode


@dataclass(frozen=True)
class CommandLine:
    command: str
    args: Tuple[str, ...] = field(default_factory=tuple)
    redirection: Optional[Redirection] = None

    @property
    def is_empty(self) -> bool:
        return self.command == ""


# -----------------------
# Quoting automaton
# -----------------------
_OUTSIDE = None  # otherwise the active quote character


def parse_args(text: str) -> List[str]:
    """Split an argument string into words.

    Single and double quotes group characters and are dropped; quoted pieces
    that touch each other (or a bare word) become one argument. There is no
    escape processing: backslashes are kept as ordinary characters, inside or
    outside quotes. An unterminated quote runs to the end of the text.
    """
    result: List[str] = []
    current: List[str] = []
    quote = _OUTSIDE

    for c in text:
        if quote is not _OUTSIDE:
            if c == quote:
                quote = _OUTSIDE
            else:
                current.append(c)
        elif c in QUOTES:
            quote = c
        elif c in WHITESPACE:
            if current:
                result.append("".join(current))
                current = []
        else:
            current.append(c)

    if current:
        result.append("".join(current))
    return result


def split_command(line: str) -> Tuple[str, str]:
    """Split at the first whitespace run that is not inside quotes."""
    quote = _OUTSIDE
    for i, c in enumerate(line):
        if quote is not _OUTSIDE:
            if c == quote:
                quote = _OUTSIDE
        elif c in QUOTES:
            quote = c
        elif c in WHITESPACE:
            return line[:i], line[i:].lstrip(WHITESPACE)
    return line, ""


def strip_quotes(text: str) -> str:
    """Trim whitespace, then drop one matching pair of surrounding quotes."""
    text = text.strip(WHITESPACE)
    if len(text) >= 2 and text[0] in QUOTES and text[-1] == text[0]:
        return text[1:-1]
    return text


def split_redirection(rest: str) -> Tuple[str, Optional[Redirection]]:
    for operator, mode in REDIRECT_OPERATORS:
        idx = rest.find(operator)
        if idx < 0:
            continue
        target = strip_quotes(rest[idx + len(operator):])
        if not target.strip(WHITESPACE):
            raise TokenizeError("syntax error near unexpected token `newline'")
        return rest[:idx], Redirection(target, mode)
    return rest, None


def parse(raw_line: str) -> CommandLine:
    line = raw_line.strip(WHITESPACE)
    if not line:
        return CommandLine("")

    head, rest = split_command(line)
    arg_text, redirection = split_redirection(rest)
    # the command word goes through the same automaton so 'my prog' loses its quotes
    command = "".join(parse_args(head))
    return CommandLine(command, tuple(parse_args(arg_text)), redirection)
