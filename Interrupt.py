# Interrupt.py - SIGINT handling while a foreground child runs

import logging
import signal
import threading
from contextlib import contextmanager

log = logging.getLogger("tabsh.interrupt")

# Number of Ctrl-C presses seen while a child was in the foreground.
INTERRUPTS_SEEN = 0


# -----------------------------
#   SIGINT  (Ctrl-C)
# -----------------------------
def handle_sigint(signum, frame):
    # The child shares our process group and gets the same signal;
    # the shell itself keeps waiting for it.
    global INTERRUPTS_SEEN
    INTERRUPTS_SEEN += 1
    log.debug("SIGINT while child running (%d so far)", INTERRUPTS_SEEN)


@contextmanager
def child_running():
    """Install handle_sigint for the duration of a child process.

    Installed handlers are reset to the default on exec, so the child still
    dies on Ctrl-C unless it handles the signal. Signal handlers can only be
    changed from the main thread; elsewhere this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, handle_sigint)
    if previous is None:  # installed from C, cannot be restored by value
        previous = signal.SIG_DFL
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)
