"""Cue channel: named engine events for presentation subscribers.

Emission is synchronous and fire-and-forget; the engine never waits for a
subscriber to acknowledge anything.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger('FocusFinder.cues')


class CueEvent(str, Enum):
    SESSION_STARTED = 'session-started'
    TASK_COMPLETED = 'task-completed'
    TASK_TIMEOUT = 'task-timeout'
    DISTRACTION_ACTIVATED = 'distraction-activated'
    DISTRACTION_RESOLVED = 'distraction-resolved'
    INTERRUPTION_STAGE = 'interruption-stage'
    FOCUS_CRITICAL = 'focus-critical'
    SCORE_DEPLETED = 'score-depleted'
    SESSION_COMPLETED = 'session-completed'
    SESSION_RESET = 'session-reset'


CueHandler = Callable[[CueEvent, dict[str, Any]], None]


class CueChannel:
    def __init__(self) -> None:
        self._handlers: dict[CueEvent, list[CueHandler]] = defaultdict(list)
        self._catch_all: list[CueHandler] = []

    def subscribe(self, event: CueEvent, handler: CueHandler) -> None:
        self._handlers[event].append(handler)

    def subscribe_all(self, handler: CueHandler) -> None:
        self._catch_all.append(handler)

    def unsubscribe(self, handler: CueHandler) -> None:
        for handlers in self._handlers.values():
            if handler in handlers:
                handlers.remove(handler)
        if handler in self._catch_all:
            self._catch_all.remove(handler)

    def emit(self, event: CueEvent, **payload: Any) -> None:
        logger.debug('cue %s %s', event.value, payload)
        for handler in list(self._handlers.get(event, ())) + list(self._catch_all):
            handler(event, payload)


class CueRecorder:
    """Subscriber that keeps every cue; used by tests and the results log."""

    def __init__(self, channel: CueChannel | None = None) -> None:
        self.events: list[tuple[CueEvent, dict[str, Any]]] = []
        if channel is not None:
            channel.subscribe_all(self)

    def __call__(self, event: CueEvent, payload: dict[str, Any]) -> None:
        self.events.append((event, payload))

    def names(self) -> list[CueEvent]:
        return [event for event, _ in self.events]

    def count(self, event: CueEvent) -> int:
        return sum(1 for e, _ in self.events if e is event)
