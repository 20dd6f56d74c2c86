"""Clock and timer primitives.

All engine concurrency is expressed as one-shot or repeating callbacks on a
TimerSource. Callbacks are dispatched one at a time in (due time, creation
order) order, so engine state is only ever touched by a single writer.

- SimulatedClock: virtual time advanced explicitly (tests, headless runs)
- TimerGroup: the set of handles owned by one session, cancelled in one call
The real-time source driven by PsychoPy lives in realtime_clock.py.
"""
from __future__ import annotations

import heapq
import itertools
import logging
from typing import Callable, Optional

logger = logging.getLogger('FocusFinder.timers')


class Timer:
    """Handle for a scheduled callback."""

    __slots__ = ('due', 'interval', 'callback', 'name', 'cancelled', 'fired')

    def __init__(
        self,
        due: float,
        callback: Callable[[], None],
        interval: Optional[float] = None,
        name: str = '',
    ) -> None:
        self.due = due
        self.callback = callback
        self.interval = interval
        self.name = name
        self.cancelled = False
        self.fired = False

    @property
    def repeating(self) -> bool:
        return self.interval is not None

    @property
    def active(self) -> bool:
        return not self.cancelled and (self.repeating or not self.fired)

    def cancel(self) -> None:
        self.cancelled = True

    def __repr__(self) -> str:
        kind = f"every {self.interval}s" if self.repeating else 'once'
        return f"Timer({self.name or self.callback!r}, due={self.due:.3f}, {kind})"


class TimerSource:
    """Priority queue of pending timers; subclasses decide what 'now' is."""

    def __init__(self) -> None:
        self._heap: list[tuple[float, int, Timer]] = []
        self._seq = itertools.count()

    # =========================================================================
    # CLOCK
    # =========================================================================

    def now(self) -> float:
        raise NotImplementedError

    # =========================================================================
    # SCHEDULING
    # =========================================================================

    def call_later(self, delay: float, callback: Callable[[], None], name: str = '') -> Timer:
        """Run ``callback`` once, ``delay`` seconds from now."""
        timer = Timer(self.now() + max(0.0, delay), callback, name=name)
        self._push(timer)
        return timer

    def call_repeating(
        self,
        interval: float,
        callback: Callable[[], None],
        name: str = '',
        first_delay: Optional[float] = None,
    ) -> Timer:
        """Run ``callback`` every ``interval`` seconds (first run after ``first_delay``)."""
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        delay = interval if first_delay is None else max(0.0, first_delay)
        timer = Timer(self.now() + delay, callback, interval=interval, name=name)
        self._push(timer)
        return timer

    def cancel(self, timer: Timer) -> None:
        timer.cancel()

    def pending_count(self) -> int:
        return sum(1 for _, _, t in self._heap if t.active)

    def next_due(self) -> Optional[float]:
        self._drop_cancelled()
        return self._heap[0][0] if self._heap else None

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def _push(self, timer: Timer) -> None:
        heapq.heappush(self._heap, (timer.due, next(self._seq), timer))

    def _drop_cancelled(self) -> None:
        while self._heap and self._heap[0][2].cancelled:
            heapq.heappop(self._heap)

    def _pop_due(self, limit: float) -> Optional[Timer]:
        self._drop_cancelled()
        if not self._heap or self._heap[0][0] > limit:
            return None
        _, _, timer = heapq.heappop(self._heap)
        return timer

    def _fire(self, timer: Timer) -> None:
        # Re-arm before the callback runs so the callback may cancel its own timer
        if timer.repeating:
            timer.due += timer.interval
            self._push(timer)
        else:
            timer.fired = True
        timer.callback()

    def run_due(self, limit: Optional[float] = None) -> int:
        """Fire every timer due at or before ``limit`` (default: now).

        Returns:
            Number of callbacks executed
        """
        limit = self.now() if limit is None else limit
        count = 0
        while True:
            timer = self._pop_due(limit)
            if timer is None:
                return count
            self._fire(timer)
            count += 1


class SimulatedClock(TimerSource):
    """Virtual clock: time only moves when advance() is called."""

    def __init__(self, start: float = 0.0) -> None:
        super().__init__()
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> int:
        """Move time forward, firing each due timer at its own due time.

        Returns:
            Number of callbacks executed
        """
        if seconds < 0:
            raise ValueError('cannot move a clock backwards')
        target = self._now + seconds
        count = 0
        while True:
            timer = self._pop_due(target)
            if timer is None:
                break
            self._now = max(self._now, timer.due)
            self._fire(timer)
            count += 1
        self._now = target
        return count

    def advance_to(self, when: float) -> int:
        return self.advance(max(0.0, when - self._now))


class TimerGroup:
    """All timer handles owned by one session.

    Every timer the session (or its components) starts goes through a group,
    so stopping or resetting the session is a single cancel_all() call.
    """

    def __init__(self, source: TimerSource) -> None:
        self.source = source
        self._timers: list[Timer] = []

    def call_later(self, delay: float, callback: Callable[[], None], name: str = '') -> Timer:
        self._prune()
        timer = self.source.call_later(delay, callback, name=name)
        self._timers.append(timer)
        return timer

    def call_repeating(
        self,
        interval: float,
        callback: Callable[[], None],
        name: str = '',
        first_delay: Optional[float] = None,
    ) -> Timer:
        self._prune()
        timer = self.source.call_repeating(interval, callback, name=name, first_delay=first_delay)
        self._timers.append(timer)
        return timer

    def cancel_all(self) -> int:
        """Cancel every owned timer. Returns how many were still active."""
        active = [t for t in self._timers if t.active]
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()
        if active:
            logger.debug('Cancelled %d pending timers', len(active))
        return len(active)

    def active_count(self) -> int:
        return sum(1 for t in self._timers if t.active)

    def _prune(self) -> None:
        self._timers = [t for t in self._timers if t.active]
