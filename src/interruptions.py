"""Active interruption variants.

An interruption is the live state of one unresolved DistractionEvent. All
three kinds share one base class so the session's mutual-exclusion guard is
a single ``active_interruption is not None`` check:

- OrdinaryInterruption: resolved by recognising its target label or by
  dismissal; a safety timeout releases it if neither happens
- RabbitHoleInterruption: absorbing sub-state, escape prompt after a delay,
  resolved by escape or auto-expiry
- WorkingMemoryInterruption: dissolve -> confusion -> recovery prompt,
  resolved by recover (recovery stage only) or auto-expiry
"""
from __future__ import annotations

from enum import Enum
from typing import ClassVar, Optional

from focus_types import SessionConfig
from models import DistractionEvent, Resolution, SpecialEffect, Task
from timer_source import Timer


class InterruptionKind(str, Enum):
    ORDINARY = 'ordinary'
    RABBIT_HOLE = 'rabbit-hole'
    WORKING_MEMORY = 'working-memory-failure'


class InterruptionStage(str, Enum):
    AWAITING_TARGET = 'awaiting-target'
    ABSORBED = 'absorbed'
    ESCAPE_PROMPT = 'escape-prompt'
    DISSOLVING = 'dissolving'
    CONFUSED = 'confused'
    RECOVERING = 'recovering'


class ActiveInterruption:
    """Base for the three interruption kinds.

    Attributes:
        event: The DistractionEvent being worked through
        stage: Current sub-state
        expires_after: Seconds after activation when the interruption
            resolves itself (None: never)
        timers: Stage/expiry handles owned by this interruption
    """

    kind: ClassVar[InterruptionKind]
    initial_stage: ClassVar[InterruptionStage]
    manual_resolution: ClassVar[Resolution]

    def __init__(self, event: DistractionEvent, reward: float, expires_after: Optional[float]) -> None:
        self.event = event
        self.reward = reward
        self.expires_after = expires_after if expires_after and expires_after > 0 else None
        self.stage = self.initial_stage
        self.timers: list[Timer] = []

    def stage_plan(self) -> list[tuple[float, InterruptionStage]]:
        """(seconds after activation, stage) transitions to schedule."""
        return []

    def matches_label(self, label: str) -> bool:
        return False

    def accepts(self, resolution: Resolution) -> bool:
        if resolution is Resolution.EXPIRED:
            return self.expires_after is not None
        return resolution is self.manual_resolution

    def reward_for(self, resolution: Resolution) -> float:
        return self.reward

    def cancel_timers(self) -> None:
        for timer in self.timers:
            timer.cancel()
        self.timers.clear()

    def describe(self) -> dict:
        return {
            'kind': self.kind.value,
            'stage': self.stage.value,
            'event_id': self.event.id,
            'title': self.event.title,
            'target_label': self.event.target_label,
        }


class OrdinaryInterruption(ActiveInterruption):
    kind = InterruptionKind.ORDINARY
    initial_stage = InterruptionStage.AWAITING_TARGET
    manual_resolution = Resolution.DISMISSED

    def matches_label(self, label: str) -> bool:
        target = self.event.target_label
        return bool(target) and (label or '').strip().lower() == target

    def accepts(self, resolution: Resolution) -> bool:
        if resolution is Resolution.RECOGNIZED:
            return bool(self.event.target_label)
        return super().accepts(resolution)

    def reward_for(self, resolution: Resolution) -> float:
        # The safety timeout releases the lock without any recovery
        return 0.0 if resolution is Resolution.EXPIRED else self.reward


class RabbitHoleInterruption(ActiveInterruption):
    kind = InterruptionKind.RABBIT_HOLE
    initial_stage = InterruptionStage.ABSORBED
    manual_resolution = Resolution.ESCAPED

    def __init__(
        self,
        event: DistractionEvent,
        reward: float,
        expires_after: Optional[float],
        escape_prompt_after: float,
    ) -> None:
        super().__init__(event, reward, expires_after)
        self.escape_prompt_after = escape_prompt_after

    def stage_plan(self) -> list[tuple[float, InterruptionStage]]:
        return [(self.escape_prompt_after, InterruptionStage.ESCAPE_PROMPT)]


class WorkingMemoryInterruption(ActiveInterruption):
    kind = InterruptionKind.WORKING_MEMORY
    initial_stage = InterruptionStage.DISSOLVING
    manual_resolution = Resolution.RECOVERED

    def __init__(
        self,
        event: DistractionEvent,
        reward: float,
        expires_after: Optional[float],
        stage_seconds: tuple[float, float],
        forgotten_task: Optional[Task],
    ) -> None:
        super().__init__(event, reward, expires_after)
        self.dissolve_seconds, self.confused_seconds = stage_seconds
        self.forgotten_task_title = forgotten_task.title if forgotten_task else ''

    def stage_plan(self) -> list[tuple[float, InterruptionStage]]:
        return [
            (self.dissolve_seconds, InterruptionStage.CONFUSED),
            (self.dissolve_seconds + self.confused_seconds, InterruptionStage.RECOVERING),
        ]

    def accepts(self, resolution: Resolution) -> bool:
        if resolution is Resolution.RECOVERED:
            return self.stage is InterruptionStage.RECOVERING
        return super().accepts(resolution)

    def describe(self) -> dict:
        info = super().describe()
        info['forgotten_task'] = self.forgotten_task_title
        return info


def create_interruption(
    event: DistractionEvent,
    config: SessionConfig,
    current_task: Optional[Task],
) -> ActiveInterruption:
    """Build the interruption variant matching the event's special effect."""
    if event.special_effect is SpecialEffect.RABBIT_HOLE:
        return RabbitHoleInterruption(
            event,
            reward=config['rabbit_hole_reward'],
            expires_after=config['rabbit_hole_seconds'],
            escape_prompt_after=config['rabbit_hole_escape_prompt_seconds'],
        )
    if event.special_effect is SpecialEffect.WORKING_MEMORY_FAILURE:
        dissolve, confused = config['working_memory_stage_seconds']
        return WorkingMemoryInterruption(
            event,
            reward=config['working_memory_reward'],
            expires_after=config['working_memory_seconds'],
            stage_seconds=(float(dissolve), float(confused)),
            forgotten_task=current_task,
        )
    return OrdinaryInterruption(
        event,
        reward=config['distraction_reward'],
        expires_after=config.get('distraction_timeout_seconds'),
    )
