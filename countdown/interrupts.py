import signal
from typing import Any, Dict

from .errors import Interrupted


class CancellationFlag:
    def __init__(self) -> None:
        self._set = False

    def set(self) -> None:
        self._set = True

    def is_set(self) -> bool:
        return self._set


class InterruptHandler:
    """Maps SIGINT onto the cancellation flag and SIGWINCH onto a width reset.

    Nothing is preempted: the flag is only acted on when a caller reaches
    ``checkpoint()``.
    """

    def __init__(self, flag: CancellationFlag, renderer) -> None:
        self.flag = flag
        self.renderer = renderer
        self._previous: Dict[int, Any] = {}

    def on_interrupt(self, signum=None, frame=None) -> None:
        self.flag.set()

    def on_resize(self, signum=None, frame=None) -> None:
        self.renderer.geometry.invalidate()

    def install(self) -> None:
        self._previous[signal.SIGINT] = signal.signal(signal.SIGINT, self.on_interrupt)
        winch = getattr(signal, "SIGWINCH", None)
        if winch is not None:
            self._previous[winch] = signal.signal(winch, self.on_resize)

    def restore(self) -> None:
        for signum, handler in self._previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous.clear()

    def checkpoint(self) -> None:
        if not self.flag.is_set():
            return
        self.renderer.erase_previous()
        raise Interrupted()

    def __enter__(self) -> "InterruptHandler":
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()
