#!/usr/bin/env python3
# Repl.py - interactive loop, script mode and the tab key binding
import logging
import os
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.application import run_in_terminal
from prompt_toolkit.history import FileHistory
from prompt_toolkit.key_binding import KeyBindings

import argparser
import tokenizer
from completion import CompletionEngine, ListingCache, TabHandler, format_listing
from dispatcher import Shell

log = logging.getLogger("tabsh.repl")

PROMPT = "$ "
LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"


# -----------------------
# Line processor
# -----------------------
def process_line(shell, line):
    """Parse and run one line. Returns False when the shell should stop."""
    try:
        command_line = tokenizer.parse(line)
    except tokenizer.TokenizeError as e:
        print(f"parse error: {e}", file=shell.stdout, flush=True)
        return True
    try:
        return shell.execute(command_line)
    except Exception as e:
        log.debug("unhandled error for %r", line, exc_info=True)
        print(f"Runtime error: {e}", file=shell.stderr, flush=True)
        return True


# -----------------------
# Script / stream mode
# -----------------------
def run_stream(shell, stream):
    for line in stream:
        l = line.rstrip("\n")
        if not l.strip() or l.strip().startswith("#"):
            continue
        if not process_line(shell, l):
            break
    return 0


def run_script(shell, path):
    if not os.path.exists(path):
        print(f"Script not found: {path}", file=sys.stderr)
        return 1
    with open(path, "r", encoding="utf-8") as f:
        return run_stream(shell, f)


# -----------------------
# Tab key
# -----------------------
def build_key_bindings(tab_handler):
    kb = KeyBindings()

    @kb.add("tab")
    def _(event):
        buffer = event.current_buffer
        cursor = buffer.cursor_position
        result = tab_handler.press(buffer.text, cursor)

        if result.replacement is not None:
            buffer.delete_before_cursor(cursor - result.start)
            buffer.insert_text(result.replacement)
        if result.bell:
            event.app.output.bell()
            event.app.output.flush()
        if result.listing:
            listing = format_listing(result.listing)
            # prints below the prompt, then prompt_toolkit redraws "$ <line>"
            run_in_terminal(lambda: print(listing))

    return kb


def build_session(shell, history_file, cache=True):
    engine = CompletionEngine(cache=ListingCache() if cache else None)
    tab_handler = TabHandler(engine, shell.search_path)
    return PromptSession(history=FileHistory(history_file),
                         key_bindings=build_key_bindings(tab_handler))


# -----------------------
# Main loop
# -----------------------
def interactive_loop(shell, session):
    while True:
        try:
            line = session.prompt(PROMPT)
        except KeyboardInterrupt:
            print("\nInterrupted, exiting shell.")
            return 0
        except EOFError:
            print("\nExiting shell.")
            return 0
        if not process_line(shell, line):
            return 0


def main(argv=None):
    args = argparser.build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING,
                        format=LOG_FORMAT, stream=sys.stderr)

    shell = Shell()
    log.debug("search path: %s", shell.search_path)

    if args.script:
        return run_script(shell, args.script)
    if not sys.stdin.isatty():
        return run_stream(shell, sys.stdin)

    session = build_session(shell, args.history_file, cache=args.cache)
    return interactive_loop(shell, session)


if __name__ == "__main__":
    sys.exit(main())
