"""Route OS termination signals to the bootstrap's exit notification."""

import signal
from typing import Dict, Iterable

from core.core_manager import CoreManager


def install_signal_handlers(
    manager: CoreManager,
    signals: Iterable[signal.Signals] = (signal.SIGINT, signal.SIGTERM),
) -> Dict[signal.Signals, object]:
    """Register handlers that fire the exit event and then exit the interpreter.

    SIGTERM does not run ``atexit`` callbacks on its own; the handler raises
    ``SystemExit`` so normal unwinding follows and the manager's exit hook
    (``atexit`` by default) fires the exit event.
    Must be called from the main thread.

    :param manager: Bootstrap whose exit event is fired.
    :param signals: Signals to intercept.
    :return: Previously installed handlers, keyed by signal.
    """

    def _handle(signum, frame=None):
        """Leave with the conventional status; exit observers run once the stack unwinds.

        The handler may interrupt the main thread inside a locked logger write,
        so it takes no locks itself. The exit hook registered by the manager
        delivers the exit event after the interpreter has unwound.

        :param signum: Signal number intercepted from the OS.
        :param frame: Optional current stack frame (unused).
        """
        raise SystemExit(128 + signum)

    previous = {}
    for sig in signals:
        previous[sig] = signal.signal(sig, _handle)
    return previous
