"""DistractionScheduler: when to interrupt, and with what.

Timing is a three-phase escalation precomputed at session start (sparse,
moderate, dense thirds of the session) plus a few uniformly placed extras,
so cancelling the whole plan is one TimerGroup.cancel_all().

Selection is a weighted draw over four buckets whose weights move with game
progress and focus. category_weights() is a pure function so the formula can
be checked on its own; the draw happens separately in sample_bucket().
"""
from __future__ import annotations

import logging
import random
from functools import partial
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from catalog import Catalog
from cues import CueEvent
from focus_types import SessionConfig
from interruptions import ActiveInterruption, InterruptionStage, create_interruption
from models import (
    DistractionCatalogEntry,
    DistractionCategory,
    DistractionEvent,
    Resolution,
    ScheduleEvent,
)
from utils import clamp

if TYPE_CHECKING:
    from session import FocusSession

logger = logging.getLogger('FocusFinder.scheduler')

# Selection buckets. Environment and biological entries share one bucket.
SPECIAL = 'special'
PHYSICAL = 'physical'
PSYCHOLOGICAL = 'psychological'
SOCIAL = 'social'
BUCKETS = (SPECIAL, PHYSICAL, PSYCHOLOGICAL, SOCIAL)

DEFAULT_BASE_WEIGHTS = {SPECIAL: 0.50, PHYSICAL: 0.20, PSYCHOLOGICAL: 0.15, SOCIAL: 0.15}

# Difficulty tuning for the live weight shifts
PROGRESS_MIDPOINT = 0.5
PROGRESS_SPECIAL_BOOST = 0.15
LOW_FOCUS_RATIO = 0.4
LOW_FOCUS_PHYSICAL_BOOST = 0.15
HIGH_FOCUS_RATIO = 0.7
HIGH_FOCUS_PHYSICAL_DROP = 0.10
HIGH_FOCUS_SPECIAL_BOOST = 0.10
HIGH_FOCUS_SOCIAL_BOOST = 0.05


# =============================================================================
# PURE HELPERS
# =============================================================================

def bucket_of(entry: DistractionCatalogEntry) -> str:
    if entry.is_special:
        return SPECIAL
    if entry.category in (DistractionCategory.ENVIRONMENT, DistractionCategory.BIOLOGICAL):
        return PHYSICAL
    if entry.category is DistractionCategory.PSYCHOLOGICAL:
        return PSYCHOLOGICAL
    return SOCIAL


def normalize_weights(weights: dict[str, float]) -> dict[str, float]:
    """Clip negatives to zero and scale to sum 1 (uniform if everything is zero)."""
    clipped = {key: max(0.0, float(w)) for key, w in weights.items()}
    total = sum(clipped.values())
    if total <= 0:
        return {key: 1.0 / len(clipped) for key in clipped}
    return {key: w / total for key, w in clipped.items()}


def category_weights(
    progress: float,
    focus_ratio: float,
    base: Optional[dict[str, float]] = None,
) -> dict[str, float]:
    """Selection weights for the four buckets.

    - special grows linearly once progress passes the midpoint
    - low focus pushes toward physical (fatigue) distractions
    - high focus pulls away from physical and toward special and social
      ("false confidence" traps)

    Args:
        progress: Task index over sequence length, clamped to [0, 1]
        focus_ratio: Focus over 100, clamped to [0, 1]
        base: Base weights per bucket (defaults to DEFAULT_BASE_WEIGHTS)

    Returns:
        Non-negative weights keyed by bucket, summing to 1
    """
    weights = dict(DEFAULT_BASE_WEIGHTS)
    if base:
        weights.update({key: float(base[key]) for key in BUCKETS if key in base})
    progress = clamp(progress, 0.0, 1.0)
    focus_ratio = clamp(focus_ratio, 0.0, 1.0)

    if progress > PROGRESS_MIDPOINT:
        weights[SPECIAL] += PROGRESS_SPECIAL_BOOST * (progress - PROGRESS_MIDPOINT) / (1 - PROGRESS_MIDPOINT)

    if focus_ratio < LOW_FOCUS_RATIO:
        weights[PHYSICAL] += LOW_FOCUS_PHYSICAL_BOOST
    elif focus_ratio > HIGH_FOCUS_RATIO:
        weights[PHYSICAL] -= HIGH_FOCUS_PHYSICAL_DROP
        weights[SPECIAL] += HIGH_FOCUS_SPECIAL_BOOST
        weights[SOCIAL] += HIGH_FOCUS_SOCIAL_BOOST

    return normalize_weights(weights)


def sample_bucket(weights: dict[str, float], draw: float) -> str:
    """Pick a bucket by cumulative sampling; ``draw`` is uniform in [0, 1)."""
    cumulative = 0.0
    last_positive = None
    for key in BUCKETS:
        w = weights.get(key, 0.0)
        if w <= 0:
            continue
        last_positive = key
        cumulative += w
        if draw < cumulative:
            return key
    # Floating-point shortfall at the top of the range
    if last_positive is None:
        raise ValueError(f"no bucket has positive weight: {weights}")
    return last_positive


def build_schedule(
    duration: float,
    rng: random.Random,
    phase_gaps: Sequence[Sequence[float]],
    random_extras: int = 0,
    categories: Iterable[DistractionCategory] = tuple(DistractionCategory),
) -> list[ScheduleEvent]:
    """Precompute every distraction firing for a session.

    Each third of ``duration`` is filled with firings separated by gaps drawn
    from that phase's [min, max] range, the first one gap after the phase
    starts. ``random_extras`` firings are then placed uniformly over the whole
    session. Each firing carries a random category hint.

    Returns:
        ScheduleEvents sorted by fire time
    """
    categories = tuple(categories)
    third = duration / 3.0
    events: list[ScheduleEvent] = []
    for phase, (low, high) in enumerate(phase_gaps, start=1):
        phase_end = phase * third
        t = (phase - 1) * third + rng.uniform(low, high)
        while t < phase_end:
            events.append(ScheduleEvent(round(t, 3), rng.choice(categories), phase))
            t += rng.uniform(low, high)
    for _ in range(max(0, random_extras)):
        events.append(ScheduleEvent(round(rng.uniform(0.0, duration), 3), rng.choice(categories), 0))
    events.sort(key=lambda e: (e.fire_at_seconds, e.phase))
    return events


# =============================================================================
# SCHEDULER
# =============================================================================

class DistractionScheduler:
    """Fires, selects, activates and resolves interruptions for one session.

    The active interruption itself is a field on the session; the scheduler
    is the only writer of that field.
    """

    def __init__(
        self,
        session: 'FocusSession',
        config: SessionConfig,
        catalog: Catalog,
        rng: random.Random,
    ) -> None:
        self.session = session
        self.config = config
        self.rng = rng
        self.pools: dict[str, list[DistractionCatalogEntry]] = {key: [] for key in BUCKETS}
        for entry in catalog.distractions:
            self.pools[bucket_of(entry)].append(entry)
        self.intensity = float(config['difficulty_intensity'][config['difficulty']])
        self.reset()

    def reset(self) -> None:
        self.schedule: list[ScheduleEvent] = []
        self.log: list[DistractionEvent] = []
        self.triggered_count = 0
        self.resolved_count = 0
        self.suppressed_count = 0
        self._counter = 0

    @property
    def enabled(self) -> bool:
        return bool(self.config.get('distractions_enabled', True)) and any(self.pools.values())

    # =========================================================================
    # TIMING
    # =========================================================================

    def start(self, duration: float) -> list[ScheduleEvent]:
        """Plan the session's firings and register one timer per firing."""
        self.reset()
        if not self.enabled:
            logger.info('Distractions disabled for this session')
            return []
        self.schedule = build_schedule(
            duration,
            self.rng,
            self.config['phase_gaps'],
            int(self.config.get('random_extra_triggers', 0)),
        )
        for event in self.schedule:
            self.session.call_later(
                event.fire_at_seconds - self.session.elapsed(),
                partial(self.on_fire, event),
                name=f"distraction@{event.fire_at_seconds}",
            )
        logger.info(
            'Scheduled %d distraction firings (phases %s)',
            len(self.schedule),
            [sum(1 for e in self.schedule if e.phase == p) for p in (1, 2, 3, 0)],
        )
        return self.schedule

    def on_fire(self, scheduled: ScheduleEvent) -> Optional[ActiveInterruption]:
        """Handle one scheduled firing; returns the new interruption, if any."""
        active = self.session.active_interruption
        if active is not None and active.event.category is scheduled.category_hint:
            self._suppress(scheduled, f"{scheduled.category_hint.value} still active")
            return None
        if active is not None:
            self._suppress(scheduled, 'interruption unresolved')
            return None
        entry = self.select_entry(
            self.session.sequencer.progress_ratio,
            self.session.resources.focus_ratio,
        )
        if entry is None:
            return None
        return self.activate(entry)

    def _suppress(self, scheduled: ScheduleEvent, reason: str) -> None:
        self.suppressed_count += 1
        logger.debug('Firing at %.1fs suppressed: %s', scheduled.fire_at_seconds, reason)

    # =========================================================================
    # SELECTION
    # =========================================================================

    def select_entry(self, progress: float, focus_ratio: float) -> Optional[DistractionCatalogEntry]:
        """Weighted bucket draw, then a uniform pick inside the bucket."""
        if not any(self.pools.values()):
            return None
        weights = category_weights(progress, focus_ratio, self.config.get('category_weights'))
        weights = normalize_weights({
            key: (w if self.pools[key] else 0.0) for key, w in weights.items()
        })
        bucket = sample_bucket(weights, self.rng.random())
        return self.rng.choice(self.pools[bucket])

    # =========================================================================
    # ACTIVATION / RESOLUTION
    # =========================================================================

    def activate(self, entry: DistractionCatalogEntry) -> Optional[ActiveInterruption]:
        """Start an interruption for ``entry`` and take the global lock.

        Returns None (and changes nothing) when the session is not running or
        an interruption is already active.
        """
        session = self.session
        if not session.is_running or session.active_interruption is not None:
            return None
        self._counter += 1
        event = DistractionEvent(
            id=f"{entry.category.value}-{self._counter}",
            category=entry.category,
            title=entry.title,
            triggered_at=session.elapsed(),
            cost_seconds=round(entry.cost_seconds * self.intensity, 3),
            target_label=entry.target_label,
            special_effect=entry.special_effect,
        )
        interruption = create_interruption(event, self.config, session.sequencer.current_task())
        session.active_interruption = interruption
        self.log.append(event)
        self.triggered_count += 1
        session.resources.drain_focus(self.config['distraction_focus_cost'])

        for offset, stage in interruption.stage_plan():
            interruption.timers.append(session.call_later(
                offset, partial(self._enter_stage, interruption, stage), name=f"{event.id}:{stage.value}",
            ))
        if interruption.expires_after is not None:
            interruption.timers.append(session.call_later(
                interruption.expires_after, partial(self._expire, interruption), name=f"{event.id}:expiry",
            ))

        logger.info(
            'Distraction activated: %s [%s/%s] focus=%.0f',
            event.title, event.category.value, interruption.kind.value, session.resources.focus,
        )
        session.cues.emit(
            CueEvent.DISTRACTION_ACTIVATED,
            category=event.category.value,
            special_effect=event.special_effect.value,
            focus=session.resources.focus,
            **interruption.describe(),
        )
        return interruption

    def on_label_observed(self, label: str) -> bool:
        """Offer a label to the active interruption.

        Returns:
            True if an interruption was active (the label must not reach the
            main task), whether or not it matched
        """
        interruption = self.session.active_interruption
        if interruption is None:
            return False
        if interruption.matches_label(label):
            self.resolve(Resolution.RECOGNIZED)
        return True

    def resolve(self, resolution: Resolution) -> bool:
        """Resolve the active interruption via ``resolution`` if it accepts it."""
        session = self.session
        interruption = session.active_interruption
        if interruption is None or not interruption.accepts(resolution):
            return False
        interruption.cancel_timers()
        event = interruption.event
        event.resolved_at = session.elapsed()
        event.resolution = resolution
        session.active_interruption = None
        self.resolved_count += 1
        session.resources.restore_focus(interruption.reward_for(resolution))
        logger.info(
            'Distraction resolved: %s via %s after %.1fs (focus %.0f)',
            event.title, resolution.value, event.resolved_at - event.triggered_at, session.resources.focus,
        )
        session.cues.emit(
            CueEvent.DISTRACTION_RESOLVED,
            event_id=event.id,
            kind=interruption.kind.value,
            resolution=resolution.value,
            focus=session.resources.focus,
        )
        return True

    def _enter_stage(self, interruption: ActiveInterruption, stage: InterruptionStage) -> None:
        if self.session.active_interruption is not interruption:
            return
        interruption.stage = stage
        logger.debug('Interruption %s entered stage %s', interruption.event.id, stage.value)
        self.session.cues.emit(CueEvent.INTERRUPTION_STAGE, **interruption.describe())

    def _expire(self, interruption: ActiveInterruption) -> None:
        if self.session.active_interruption is not interruption:
            return
        self.resolve(Resolution.EXPIRED)

    @property
    def total_resolved_cost(self) -> float:
        return sum(e.cost_seconds for e in self.log if e.is_resolved)
