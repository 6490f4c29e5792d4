"""
Teardown registration for the hosting process.

Teardown actions run once, on normal interpreter exit or when SIGINT/SIGTERM
arrives.  Signals are turned into ``SystemExit`` so the actions run through
``atexit`` on the main thread, never inside the signal handler itself.
"""

import atexit
import signal
import threading
from typing import Callable, List

from loguru import logger

TeardownAction = Callable[[], None]

# Global state
_actions: List[TeardownAction] = []
_actions_lock = threading.Lock()
_atexit_registered = False
_signals_installed = False


def register_teardown(action: TeardownAction, *, handle_signals: bool = True) -> None:
    """Register ``action`` to run once when the process exits."""
    global _atexit_registered

    with _actions_lock:
        _actions.append(action)
        if not _atexit_registered:
            atexit.register(run_teardown)
            _atexit_registered = True

    if handle_signals:
        install_signal_handlers()


def run_teardown() -> None:
    """Run registered actions, most recent first; each runs at most once."""
    while True:
        with _actions_lock:
            if not _actions:
                return
            action = _actions.pop()
        try:
            action()
        except Exception:
            logger.exception("Teardown action failed")


def _exit_on_signal(signum: int, _frame: object) -> None:  # pragma: no cover - hard to simulate
    logger.info(f"Received signal {signum}, shutting down...")
    raise SystemExit(128 + signum)


def install_signal_handlers() -> None:
    """Route SIGINT and SIGTERM through ``SystemExit`` so atexit hooks run."""
    global _signals_installed

    if _signals_installed:
        return
    try:
        signal.signal(signal.SIGINT, _exit_on_signal)
        signal.signal(signal.SIGTERM, _exit_on_signal)
        _signals_installed = True
    except ValueError:
        # Not on the main thread; rely on atexit alone.
        logger.debug("Signal handlers not installed outside the main thread")
