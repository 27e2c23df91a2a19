# argparser.py
import argparse
import os


def default_history_file():
    return os.environ.get("TABSH_HISTFILE") or os.path.join(os.path.expanduser("~"), ".tabsh_history")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="tabsh",
        description="Minimal interactive shell with tab completion.")

    parser.add_argument("script", nargs="?", default=None,
                        help="Run the commands in SCRIPT instead of prompting")
    parser.add_argument("--history-file", default=default_history_file(),
                        help="Where interactive history is kept (default: %(default)s)")
    parser.add_argument("--no-cache", dest="cache", action="store_false",
                        help="Re-list search path directories on every tab press")
    parser.add_argument("--debug", action="store_true",
                        help="Log resolution, spawning and completion to stderr")

    return parser
