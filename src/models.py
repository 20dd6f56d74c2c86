"""Data models for the Focus Finder session engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class SessionState(str, Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    COMPLETED = 'completed'
    FAILED = 'failed'


class DistractionCategory(str, Enum):
    ENVIRONMENT = 'environment'
    BIOLOGICAL = 'biological'
    PSYCHOLOGICAL = 'psychological'
    SOCIAL = 'social'


class SpecialEffect(str, Enum):
    NONE = 'none'
    RABBIT_HOLE = 'rabbit-hole'
    WORKING_MEMORY_FAILURE = 'working-memory-failure'


class Resolution(str, Enum):
    RECOGNIZED = 'recognized'
    DISMISSED = 'dismissed'
    ESCAPED = 'escaped'
    RECOVERED = 'recovered'
    EXPIRED = 'expired'


class TaskOutcome(str, Enum):
    COMPLETED = 'completed'
    SKIPPED = 'skipped'


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    target_label: str
    difficulty: str = 'normal'
    hint: str = ''
    prompt: str = ''


@dataclass(frozen=True)
class StoryChapter:
    title: str
    description: str
    narrative: str
    task_ids: tuple[str, ...]


@dataclass(frozen=True)
class DistractionCatalogEntry:
    """Static pool entry; the scheduler draws DistractionEvents from these."""

    category: DistractionCategory
    title: str
    description: str
    target_label: Optional[str]
    cost_seconds: float
    special_effect: SpecialEffect = SpecialEffect.NONE

    @property
    def is_special(self) -> bool:
        return self.special_effect is not SpecialEffect.NONE


@dataclass
class DistractionEvent:
    id: str
    category: DistractionCategory
    title: str
    triggered_at: float
    cost_seconds: float
    target_label: Optional[str] = None
    special_effect: SpecialEffect = SpecialEffect.NONE
    resolved_at: Optional[float] = None
    resolution: Optional[Resolution] = None

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'category': self.category.value,
            'title': self.title,
            'triggered_at': round(self.triggered_at, 3),
            'resolved_at': round(self.resolved_at, 3) if self.resolved_at is not None else None,
            'cost_seconds': self.cost_seconds,
            'target_label': self.target_label,
            'special_effect': self.special_effect.value,
            'resolution': self.resolution.value if self.resolution else None,
        }


@dataclass(frozen=True)
class ScheduleEvent:
    fire_at_seconds: float
    category_hint: DistractionCategory
    phase: int  # 1-3, or 0 for the uniformly placed extras


@dataclass
class TaskRecord:
    """One attempt at a task, from the moment it became current."""

    task_id: str
    target_label: str
    started_at: float
    ended_at: Optional[float] = None
    outcome: Optional[TaskOutcome] = None

    def close(self, ended_at: float, outcome: TaskOutcome) -> None:
        self.ended_at = ended_at
        self.outcome = outcome

    def seconds_used(self) -> Optional[float]:
        if self.ended_at is None:
            return None
        return self.ended_at - self.started_at


@dataclass
class SessionSummary:
    """Outcome report produced when a session reaches a terminal state.

    Attributes:
        state: COMPLETED or FAILED (or RUNNING for a mid-session snapshot)
        tasks_completed: Tasks resolved by recognition
        tasks_skipped: Tasks advanced by per-task timeout
        distractions_triggered: Interruptions activated
        distractions_resolved: Interruptions resolved by any path
        distractions_suppressed: Scheduled firings blocked by the guards
        adjusted_seconds: Elapsed time minus resolved distraction cost
    """
    state: SessionState
    chapter_title: str
    tasks_completed: int
    tasks_skipped: int
    distractions_triggered: int
    distractions_resolved: int
    distractions_suppressed: int
    final_score: float
    final_focus: float
    elapsed_seconds: float
    total_distraction_cost: float
    adjusted_seconds: float
    task_records: list[TaskRecord] = field(default_factory=list)
    distraction_log: list[DistractionEvent] = field(default_factory=list)

    @property
    def tasks_attempted(self) -> int:
        return self.tasks_completed + self.tasks_skipped

    @property
    def completion_rate(self) -> float:
        if self.tasks_attempted == 0:
            return 0.0
        return self.tasks_completed / self.tasks_attempted

    @property
    def tasks_per_minute(self) -> float:
        if self.adjusted_seconds <= 0:
            return 0.0
        return self.tasks_completed / self.adjusted_seconds * 60.0

    def to_dict(self) -> dict:
        return {
            'state': self.state.value,
            'chapter_title': self.chapter_title,
            'tasks_completed': self.tasks_completed,
            'tasks_skipped': self.tasks_skipped,
            'distractions_triggered': self.distractions_triggered,
            'distractions_resolved': self.distractions_resolved,
            'distractions_suppressed': self.distractions_suppressed,
            'final_score': self.final_score,
            'final_focus': self.final_focus,
            'elapsed_seconds': self.elapsed_seconds,
            'total_distraction_cost': round(self.total_distraction_cost, 3),
            'adjusted_seconds': round(self.adjusted_seconds, 3),
            'completion_rate': round(self.completion_rate, 4),
            'tasks_per_minute': round(self.tasks_per_minute, 3),
        }
