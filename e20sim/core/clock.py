"""
Timer Service - Virtual clock for deferred, single-shot timed actions

Schedulers never sleep or read the wall clock. They ask the TimerService to
run a callback after a delay, and whoever owns the service moves time forward:
tests call advance() with exact amounts, the preview window advances by the
real frame delta.

Times are in milliseconds.
"""

import heapq
import itertools
from typing import Any, Callable, List, Optional, Tuple


class TimerHandle:
    """Handle to a pending timer; cancel() prevents it from firing"""

    __slots__ = ('due', 'callback', 'args', '_cancelled', '_fired')

    def __init__(self, due: float, callback: Callable[..., Any], args: Tuple):
        self.due = due
        self.callback = callback
        self.args = args
        self._cancelled = False
        self._fired = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        """True while the timer is still waiting to fire"""
        return not (self._cancelled or self._fired)

    def __repr__(self) -> str:
        state = 'cancelled' if self._cancelled else 'fired' if self._fired else 'pending'
        return f"<TimerHandle due={self.due} {state}>"


class TimerService:
    """
    Heap of single-shot timers ordered by (due time, scheduling order).

    Example:
        clock = TimerService()
        clock.call_later(200, spawn)
        clock.advance(1000)   # spawn runs at t=200, plus anything it schedules <= 1000
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._sequence = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of timers still waiting to fire"""
        return sum(1 for _, _, handle in self._queue if handle.active)

    def call_later(self, delay: float, callback: Callable[..., Any], *args) -> TimerHandle:
        """Run callback(*args) once, delay ms from now"""
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        return self.call_at(self._now + delay, callback, *args)

    def call_at(self, when: float, callback: Callable[..., Any], *args) -> TimerHandle:
        """Run callback(*args) once at absolute time `when`"""
        if when < self._now:
            raise ValueError(f"cannot schedule in the past ({when} < {self._now})")
        handle = TimerHandle(when, callback, args)
        heapq.heappush(self._queue, (when, next(self._sequence), handle))
        return handle

    def next_due(self) -> Optional[float]:
        """Due time of the earliest live timer, None if idle"""
        self._drop_cancelled()
        return self._queue[0][0] if self._queue else None

    def advance(self, ms: float) -> int:
        """
        Move time forward by ms, firing every timer due on the way.

        Timers scheduled by callbacks during the advance fire too if they fall
        inside the window. The clock reads each timer's due time while its
        callback runs, and ends exactly at now + ms.

        Returns:
            Number of callbacks run
        """
        if ms < 0:
            raise ValueError(f"cannot move time backwards ({ms})")

        target = self._now + ms
        fired = 0

        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = due
            handle._fired = True
            handle.callback(*handle.args)
            fired += 1

        self._now = target
        return fired

    def run_until_idle(self, limit: int = 10000) -> int:
        """Fire timers in order until none remain (bounded for self-rescheduling chains)"""
        fired = 0
        while fired < limit:
            due = self.next_due()
            if due is None:
                break
            fired += self.advance(due - self._now)
        return fired

    def clear(self) -> None:
        """Cancel everything"""
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)
