"""Real-time timer source backed by the PsychoPy clock.

The front end calls pump() once per frame; due callbacks run inside the frame
loop, so the engine stays single-threaded exactly as with SimulatedClock.
"""
from __future__ import annotations

from typing import Callable, Optional

from psychopy import core

from timer_source import TimerSource


class PsychopyClock(TimerSource):
    """Timer source whose time is ``core.getTime()`` relative to construction."""

    def __init__(self, get_time: Optional[Callable[[], float]] = None) -> None:
        super().__init__()
        self._get_time = get_time or core.getTime
        self._origin = float(self._get_time())

    def now(self) -> float:
        return float(self._get_time()) - self._origin

    def pump(self) -> int:
        """Fire every callback that has become due. Returns the number fired."""
        return self.run_due(self.now())

