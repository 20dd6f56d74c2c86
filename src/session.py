"""FocusSession: top-level state machine of one Focus Finder play-through.

Lifecycle:
    IDLE --start()--> RUNNING --master countdown ends--> COMPLETED
                              --score reaches 0-------> FAILED
    any state --reset()--> IDLE

Every timer the session or its components start is owned by one TimerGroup
and wrapped in a generation guard, so callbacks that outlive a reset (or a
terminal transition) are no-ops.
"""
from __future__ import annotations

import logging
import random
from typing import Any, Callable, Iterable, Optional

from catalog import Catalog
from cues import CueChannel, CueEvent
from distraction_scheduler import DistractionScheduler
from focus_types import SessionConfig
from interruptions import ActiveInterruption
from models import Resolution, SessionState, SessionSummary, StoryChapter, Task
from recognition_bridge import LabelMatcher, RecognitionBridge, RecognitionFeed
from resources import ResourceModel
from task_sequencer import TaskSequencer
from timer_source import Timer, TimerGroup, TimerSource
from utils import build_task_sequence

logger = logging.getLogger('FocusFinder.session')

# Tolerance for accumulated float ticks
EPSILON = 1e-9


class SessionStateError(RuntimeError):
    """Raised when a command is not valid in the session's current state."""


class FocusSession:
    """Session aggregate: owns the resources, sequencer, scheduler and timers.

    Public API:
    - start() / reset(): lifecycle commands
    - on_label_observed() / on_labels_observed(): recognition input
    - dismiss_distraction() / escape_rabbit_hole() / recover_working_memory():
      explicit interruption actions
    - summary: SessionSummary once COMPLETED or FAILED
    - snapshot(): read model for presentation
    """

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    def __init__(
        self,
        config: SessionConfig,
        catalog: Catalog,
        clock: TimerSource,
        cues: Optional[CueChannel] = None,
        rng: Optional[random.Random] = None,
        feed: Optional[RecognitionFeed] = None,
    ) -> None:
        """Initialize an idle session.

        Args:
            config: Session constants from config_loader.load_session_config()
            catalog: Tasks, chapters and distraction pool
            clock: Timer source (SimulatedClock in tests, PsychopyClock live)
            cues: Cue channel; a private one is created when omitted
            rng: Random source; defaults to random.Random(config['seed'])
            feed: Optional recognition feed polled while running
        """
        self.config = config
        self.catalog = catalog
        self.clock = clock
        self.cues = cues or CueChannel()
        self.rng = rng or random.Random(config.get('seed'))

        self.state = SessionState.IDLE
        self.generation = 0
        self.timers = TimerGroup(clock)
        self.active_interruption: Optional[ActiveInterruption] = None
        self.chapter: Optional[StoryChapter] = None
        self.summary: Optional[SessionSummary] = None
        self._started_at = 0.0

        self.resources = ResourceModel(config.get('focus_critical_level', 15.0), self.cues)
        self.sequencer = TaskSequencer(
            config,
            self.resources,
            self.cues,
            now=self.elapsed,
            is_suspended=self.has_active_interruption,
        )
        self.scheduler = DistractionScheduler(self, config, catalog, self.rng)
        self.bridge: Optional[RecognitionBridge] = None
        if feed is not None:
            self.attach_feed(feed)

    def attach_feed(self, feed: RecognitionFeed) -> RecognitionBridge:
        matcher = LabelMatcher(
            self.catalog.label_aliases,
            confidence_threshold=self.config.get('confidence_threshold', 0.55),
            stability_count=self.config.get('stability_count', 3),
            stability_window=self.config.get('stability_window_seconds', 2.0),
        )
        self.bridge = RecognitionBridge(feed, matcher, self.on_labels_observed, self.elapsed)
        return self.bridge

    # =========================================================================
    # READ MODEL
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self.state is SessionState.RUNNING

    @property
    def session_seconds(self) -> float:
        if self.config.get('debug_mode'):
            return float(self.config.get('debug_session_seconds', self.config['session_seconds']))
        return float(self.config['session_seconds'])

    @property
    def score(self) -> float:
        return self.resources.score

    @property
    def focus(self) -> float:
        return self.resources.focus

    @property
    def elapsed_seconds(self) -> float:
        return self.resources.elapsed_seconds

    @property
    def task_index(self) -> int:
        return self.sequencer.task_index

    @property
    def skipped_count(self) -> int:
        return self.sequencer.skipped_count

    def has_active_interruption(self) -> bool:
        return self.active_interruption is not None

    def current_task(self) -> Optional[Task]:
        return self.sequencer.current_task()

    def elapsed(self) -> float:
        """Clock seconds since start() (0 while idle)."""
        if self.state is SessionState.IDLE:
            return 0.0
        return self.clock.now() - self._started_at

    def time_left(self) -> float:
        return max(0.0, self.session_seconds - self.resources.elapsed_seconds)

    def snapshot(self) -> dict[str, Any]:
        task = self.current_task()
        return {
            'state': self.state.value,
            'chapter': self.chapter.title if self.chapter else '',
            'time_left': self.time_left(),
            'score': self.resources.score,
            'focus': self.resources.focus,
            'task_index': self.sequencer.task_index,
            'task_count': len(self.sequencer.tasks),
            'task': None if task is None else {
                'id': task.id, 'title': task.title, 'hint': task.hint, 'prompt': task.prompt,
            },
            'task_time_left': self.resources.task_time_remaining,
            'tasks_completed': self.sequencer.completed_count,
            'tasks_skipped': self.sequencer.skipped_count,
            'interruption': self.active_interruption.describe() if self.active_interruption else None,
        }

    # =========================================================================
    # TIMERS
    # =========================================================================

    def call_later(self, delay: float, callback: Callable[[], None], name: str = '') -> Timer:
        """Schedule a session-owned, generation-guarded one-shot callback."""
        return self.timers.call_later(delay, self._guarded(callback, name), name=name)

    def call_repeating(self, interval: float, callback: Callable[[], None], name: str = '') -> Timer:
        return self.timers.call_repeating(interval, self._guarded(callback, name), name=name)

    def _guarded(self, callback: Callable[[], None], name: str) -> Callable[[], None]:
        generation = self.generation

        def run() -> None:
            if self.generation != generation or self.state is not SessionState.RUNNING:
                logger.debug('Ignored stale timer %s (generation %d, now %d, state %s)',
                              name, generation, self.generation, self.state.value)
                return
            callback()

        return run

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """IDLE -> RUNNING: fresh resources, new task sequence, all timers started."""
        if self.state is not SessionState.IDLE:
            raise SessionStateError(f"cannot start a session in state {self.state.value}")

        self.generation += 1
        self._started_at = self.clock.now()
        self.summary = None
        self.active_interruption = None
        self.resources.reset(task_seconds=self.config['task_timeout_seconds'])
        self.chapter = self.catalog.choose_chapter(self.rng)
        tasks = build_task_sequence(
            self.chapter, self.catalog.tasks, int(self.config['tasks_per_session']), self.rng,
        )
        self.state = SessionState.RUNNING
        self.sequencer.load(tasks)

        tick = float(self.config['tick_seconds'])
        self.call_repeating(tick, self._on_master_tick, name='master-countdown')
        self.call_repeating(tick, self._on_task_tick, name='task-countdown')
        self.scheduler.start(self.session_seconds)
        if self.bridge is not None:
            self.bridge.reset()
            self.call_repeating(
                float(self.config['recognition_interval_seconds']), self.bridge.poll, name='recognition-poll',
            )

        logger.info(
            'Session started: chapter=%r tasks=%s duration=%.0fs generation=%d',
            self.chapter.title, [t.id for t in tasks], self.session_seconds, self.generation,
        )
        self.cues.emit(
            CueEvent.SESSION_STARTED,
            chapter=self.chapter.title,
            narrative=self.chapter.narrative,
            task_id=tasks[0].id,
            session_seconds=self.session_seconds,
        )

    def reset(self) -> None:
        """Any state -> IDLE: cancel every pending timer and discard session state."""
        cancelled = self.timers.cancel_all()
        if self.active_interruption is not None:
            self.active_interruption.cancel_timers()
        self.active_interruption = None
        self.generation += 1
        previous = self.state
        self.state = SessionState.IDLE
        self.resources.reset(task_seconds=0.0)
        self.sequencer.unload()
        self.scheduler.reset()
        self.chapter = None
        self.summary = None
        logger.info('Session reset from %s (%d timers cancelled)', previous.value, cancelled)
        self.cues.emit(CueEvent.SESSION_RESET, previous_state=previous.value)

    def _finish(self, state: SessionState, cue: CueEvent) -> None:
        self.state = state
        self.timers.cancel_all()
        if self.active_interruption is not None:
            self.active_interruption.cancel_timers()
        self.resources.freeze()
        self.summary = self.build_summary()
        logger.info(
            'Session %s: completed=%d skipped=%d score=%.0f focus=%.0f',
            state.value, self.summary.tasks_completed, self.summary.tasks_skipped,
            self.summary.final_score, self.summary.final_focus,
        )
        self.cues.emit(cue, **self.summary.to_dict())

    # =========================================================================
    # TIMER CALLBACKS
    # =========================================================================

    def _on_master_tick(self) -> None:
        elapsed = self.resources.add_elapsed(float(self.config['tick_seconds']))
        if elapsed >= self.session_seconds - EPSILON:
            self._finish(SessionState.COMPLETED, CueEvent.SESSION_COMPLETED)

    def _on_task_tick(self) -> None:
        remaining = self.resources.count_down_task(float(self.config['tick_seconds']))
        if remaining > EPSILON:
            return
        self.sequencer.on_task_timeout()
        if self.resources.score_depleted:
            self._finish(SessionState.FAILED, CueEvent.SCORE_DEPLETED)

    # =========================================================================
    # INPUT
    # =========================================================================

    def on_label_observed(self, label: str) -> bool:
        """Route one recognised label; returns True if the main task completed.

        An active interruption sees the label first and blocks the main task
        whether or not it matches.
        """
        if not self.is_running or not label:
            return False
        if self.scheduler.on_label_observed(label):
            return False
        return self.sequencer.on_label_observed(label)

    def on_labels_observed(self, labels: Iterable[str]) -> bool:
        """Route one poll's labels. The main task is not matched in a poll
        that started with an interruption active, even if the poll resolves it.
        """
        if not self.is_running:
            return False
        labels = [label for label in labels if label]
        if self.active_interruption is not None:
            for label in labels:
                self.scheduler.on_label_observed(label)
                if self.active_interruption is None:
                    break
            return False
        return any(self.sequencer.on_label_observed(label) for label in labels)

    def dismiss_distraction(self) -> bool:
        return self.is_running and self.scheduler.resolve(Resolution.DISMISSED)

    def escape_rabbit_hole(self) -> bool:
        return self.is_running and self.scheduler.resolve(Resolution.ESCAPED)

    def recover_working_memory(self) -> bool:
        return self.is_running and self.scheduler.resolve(Resolution.RECOVERED)

    # =========================================================================
    # REPORTING
    # =========================================================================

    def build_summary(self) -> SessionSummary:
        elapsed = self.resources.elapsed_seconds
        cost = self.scheduler.total_resolved_cost
        return SessionSummary(
            state=self.state,
            chapter_title=self.chapter.title if self.chapter else '',
            tasks_completed=self.sequencer.completed_count,
            tasks_skipped=self.sequencer.skipped_count,
            distractions_triggered=self.scheduler.triggered_count,
            distractions_resolved=self.scheduler.resolved_count,
            distractions_suppressed=self.scheduler.suppressed_count,
            final_score=self.resources.score,
            final_focus=self.resources.focus,
            elapsed_seconds=elapsed,
            total_distraction_cost=cost,
            adjusted_seconds=max(0.0, elapsed - cost),
            task_records=list(self.sequencer.records),
            distraction_log=list(self.scheduler.log),
        )
