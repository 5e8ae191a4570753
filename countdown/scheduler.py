import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .timecalc import Resolution

logger = logging.getLogger(__name__)

TICK_STEP = 1.0
POLL_INTERVAL = 0.05


class SystemClock:
    def monotonic(self) -> float:
        return time.monotonic()

    def time(self) -> float:
        return time.time()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


def sleep_until(clock, target: float, flag=None) -> bool:
    """Sleep until the monotonic ``target``; False if ``flag`` got set first."""
    while True:
        if flag is not None and flag.is_set():
            return False
        left = target - clock.monotonic()
        if left <= 0:
            return True
        clock.sleep(min(left, POLL_INTERVAL))


class Pacer:
    def __init__(self, clock, step: float, flag=None) -> None:
        self.clock = clock
        self.step = step
        self.flag = flag
        self.anchor = clock.monotonic()

    def wait_next(self) -> bool:
        self.anchor += self.step
        return sleep_until(self.clock, self.anchor, self.flag)


@dataclass
class ScheduleState:
    anchor: float
    prev_remaining: int = -1
    step: float = TICK_STEP


class TickScheduler:
    def __init__(self, resolution: Resolution, flag, clock=None, step: float = TICK_STEP) -> None:
        self.resolution = resolution
        self.flag = flag
        self.clock = clock or SystemClock()
        self.step = step
        self.state: Optional[ScheduleState] = None
        self.resyncs: List[int] = []

    def remaining(self) -> int:
        return self.resolution.remaining(self.clock.time())

    def run(
        self,
        on_frame: Callable[[int], None],
        on_tick: Optional[Callable[[int], None]] = None,
    ) -> bool:
        """Emit one frame per changed second until zero.

        Returns True once the zero frame is painted, False when the
        cancellation flag cut the run short.
        """
        state = ScheduleState(anchor=self.clock.monotonic(), step=self.step)
        self.state = state
        while True:
            if self.flag.is_set():
                return False
            remaining = self.remaining()
            if on_tick is not None:
                on_tick(remaining)

            # only strictly decreasing values are painted
            if state.prev_remaining == -1 or remaining < state.prev_remaining:
                if state.prev_remaining != -1 and state.prev_remaining - remaining > 1:
                    skipped = state.prev_remaining - remaining - 1
                    self.resyncs.append(skipped)
                    logger.info("[Resync: skipped %d second(s)]", skipped)
                state.prev_remaining = remaining
                on_frame(remaining)
                if self.flag.is_set():
                    return False
                if remaining == 0:
                    return True

            state.anchor += state.step
            if not sleep_until(self.clock, state.anchor, self.flag):
                return False
