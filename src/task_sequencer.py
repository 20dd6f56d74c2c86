"""TaskSequencer: circular list of primary objectives.

Advances exactly once per completion or timeout; after the last task the
index wraps to the first, so a session is bounded only by the master timer.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from cues import CueChannel, CueEvent
from focus_types import SessionConfig
from models import Task, TaskOutcome, TaskRecord
from resources import ResourceModel

logger = logging.getLogger('FocusFinder.tasks')


class TaskSequencer:

    def __init__(
        self,
        config: SessionConfig,
        resources: ResourceModel,
        cues: CueChannel,
        now: Callable[[], float],
        is_suspended: Callable[[], bool],
    ) -> None:
        """Initialize the sequencer.

        Args:
            config: Session constants (task_timeout_seconds, task_reward, timeout_penalty)
            resources: Shared resource model mutated on completion/timeout
            cues: Cue channel for task-completed / task-timeout
            now: Session-relative clock used to stamp task records
            is_suspended: True while an interruption blocks main-task matching
        """
        self.config = config
        self.resources = resources
        self.cues = cues
        self.now = now
        self.is_suspended = is_suspended
        self.tasks: tuple[Task, ...] = ()
        self.task_index = 0
        self.completed_count = 0
        self.skipped_count = 0
        self.records: list[TaskRecord] = []

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def load(self, tasks: Sequence[Task]) -> None:
        """Install the session's task sequence and open the first record."""
        self.tasks = tuple(tasks)
        self.task_index = 0
        self.completed_count = 0
        self.skipped_count = 0
        self.records = []
        if self.tasks:
            self._open_record()
        self.resources.reset_task_countdown(self.config['task_timeout_seconds'])

    def unload(self) -> None:
        self.tasks = ()
        self.task_index = 0
        self.completed_count = 0
        self.skipped_count = 0
        self.records = []

    def current_task(self) -> Optional[Task]:
        if not self.tasks:
            return None
        return self.tasks[self.task_index]

    @property
    def progress_ratio(self) -> float:
        """Current index over sequence length (0 when nothing is loaded)."""
        if not self.tasks:
            return 0.0
        return self.task_index / len(self.tasks)

    # =========================================================================
    # EVENTS
    # =========================================================================

    def on_label_observed(self, label: str) -> bool:
        """Complete the current task if ``label`` is its target.

        Returns:
            True if the task completed; False when suspended, unloaded or no match
        """
        task = self.current_task()
        if task is None or self.is_suspended():
            return False
        if (label or '').strip().lower() != task.target_label:
            return False

        self.resources.restore_focus(self.config['task_reward'])
        self.completed_count += 1
        self._advance(TaskOutcome.COMPLETED)
        logger.info('Task completed: %s (focus %.0f)', task.id, self.resources.focus)
        self.cues.emit(
            CueEvent.TASK_COMPLETED,
            task_id=task.id,
            next_task_id=self.current_task().id,
            focus=self.resources.focus,
        )
        return True

    def on_task_timeout(self) -> None:
        """Skip the current task: apply the score penalty and advance without reward."""
        task = self.current_task()
        if task is None:
            return
        self.resources.apply_timeout_penalty(self.config['timeout_penalty'])
        self.skipped_count += 1
        self._advance(TaskOutcome.SKIPPED)
        logger.info('Task timed out: %s (score %.0f)', task.id, self.resources.score)
        self.cues.emit(
            CueEvent.TASK_TIMEOUT,
            task_id=task.id,
            next_task_id=self.current_task().id,
            score=self.resources.score,
        )

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _advance(self, outcome: TaskOutcome) -> None:
        if self.records:
            self.records[-1].close(self.now(), outcome)
        self.task_index = (self.task_index + 1) % len(self.tasks)
        self._open_record()
        self.resources.reset_task_countdown(self.config['task_timeout_seconds'])

    def _open_record(self) -> None:
        task = self.tasks[self.task_index]
        self.records.append(TaskRecord(task.id, task.target_label, started_at=self.now()))
