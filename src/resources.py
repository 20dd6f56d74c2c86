"""Resource model: bounded score/focus counters plus session time accounting.

Score is the only failure driver; focus is presentational pressure. Both are
clamped to [0, 100] after every mutation and neither decays over time.
"""
from __future__ import annotations

from typing import Optional

from cues import CueChannel, CueEvent
from utils import clamp

MAX_RESOURCE = 100.0


class ResourceModel:
    """Score, focus, elapsed session time and per-task time remaining.

    Attributes:
        score: 0-100, decremented only by task-timeout penalties
        focus: 0-100, decremented on distraction activation, recovered on resolution
        elapsed_seconds: Master countdown progress
        task_time_remaining: Per-task countdown
        frozen: True once the session is terminal; mutations become no-ops
    """

    def __init__(
        self,
        focus_critical_level: float = 15.0,
        cues: Optional[CueChannel] = None,
    ) -> None:
        self.focus_critical_level = focus_critical_level
        self.cues = cues
        self.reset(task_seconds=0.0)

    def reset(self, task_seconds: float) -> None:
        self.score = MAX_RESOURCE
        self.focus = MAX_RESOURCE
        self.elapsed_seconds = 0.0
        self.task_time_remaining = float(task_seconds)
        self.frozen = False

    def freeze(self) -> None:
        self.frozen = True

    # =========================================================================
    # SCORE
    # =========================================================================

    def apply_timeout_penalty(self, amount: float) -> float:
        """Subtract a task-timeout penalty. Returns the new score."""
        if not self.frozen:
            self.score = clamp(self.score - amount)
        return self.score

    @property
    def score_depleted(self) -> bool:
        return self.score <= 0

    # =========================================================================
    # FOCUS
    # =========================================================================

    def drain_focus(self, amount: float) -> float:
        if self.frozen:
            return self.focus
        before = self.focus
        self.focus = clamp(self.focus - amount)
        # Fire once per downward crossing of the critical line
        if self.cues and 0 < self.focus <= self.focus_critical_level < before:
            self.cues.emit(CueEvent.FOCUS_CRITICAL, focus=self.focus)
        return self.focus

    def restore_focus(self, amount: float) -> float:
        if not self.frozen:
            self.focus = clamp(self.focus + amount)
        return self.focus

    @property
    def focus_ratio(self) -> float:
        return self.focus / MAX_RESOURCE

    # =========================================================================
    # TIME
    # =========================================================================

    def add_elapsed(self, seconds: float) -> float:
        if not self.frozen:
            self.elapsed_seconds += seconds
        return self.elapsed_seconds

    def count_down_task(self, seconds: float) -> float:
        if not self.frozen:
            self.task_time_remaining = max(0.0, self.task_time_remaining - seconds)
        return self.task_time_remaining

    def reset_task_countdown(self, seconds: float) -> None:
        if not self.frozen:
            self.task_time_remaining = float(seconds)
