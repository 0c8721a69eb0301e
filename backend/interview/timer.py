"""
Scheduled-task handles for the interview countdown and delayed questions.

Every scheduled callback is held as a cancellable handle so that a stale
callback can never act on a superseded question or session.
"""
import asyncio
import heapq
import itertools
import logging
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class AsyncioScheduler:
    """Schedules callbacks on the running asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class ManualHandle:
    """Cancellable handle returned by ManualScheduler."""

    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler:
    """
    Deterministic scheduler driven by explicit calls to ``advance``.
    Runs the interview without wall-clock time (tests, replays).
    """

    def __init__(self):
        self.now = 0.0
        self._queue: List[Tuple[float, int, ManualHandle]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(self.now + delay, callback)
        heapq.heappush(self._queue, (handle.when, next(self._counter), handle))
        return handle

    @property
    def pending(self) -> int:
        """Number of live (not cancelled) scheduled callbacks."""
        return sum(1 for _, _, handle in self._queue if not handle.cancelled())

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, firing due callbacks in order.

        Returns:
            Number of callbacks fired
        """
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            self.now = when
            if handle.cancelled():
                continue
            handle.callback()
            fired += 1
        self.now = target
        return fired


class CountdownTimer:
    """
    Repeating tick source for a single question.

    ``on_tick`` returns True to keep ticking; the timer stops otherwise.
    """

    def __init__(self, scheduler, interval: float = 1.0):
        self.scheduler = scheduler
        self.interval = interval
        self._handle = None
        self._on_tick: Optional[Callable[[], bool]] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self, on_tick: Callable[[], bool]):
        """Start ticking, cancelling any countdown already running."""
        self.stop()
        self._on_tick = on_tick
        self._handle = self.scheduler.call_later(self.interval, self._fire)
        logger.debug(f"Countdown started ({self.interval}s ticks)")

    def stop(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._on_tick = None

    def _fire(self):
        on_tick = self._on_tick
        self._handle = None
        if on_tick is None:
            return
        if on_tick():
            # on_tick may have restarted the timer itself
            if self._handle is None and self._on_tick is on_tick:
                self._handle = self.scheduler.call_later(self.interval, self._fire)
        elif self._on_tick is on_tick:
            self._on_tick = None
