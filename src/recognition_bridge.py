"""Recognition bridge: turns raw recognition results into game labels.

The feed is a non-blocking poll returning whatever the recogniser saw in its
latest frame. Each poll goes through:
1. normalisation (strings, Detection, (label, score) pairs or dicts)
2. confidence threshold
3. alias mapping from detector classes to game labels
4. stability check: a label must be seen ``stability_count`` times within
   ``stability_window`` seconds before it is forwarded
An empty or failed poll is simply "no match this tick".
"""
from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

logger = logging.getLogger('FocusFinder.recognition')


@dataclass(frozen=True)
class Detection:
    label: str
    score: float = 1.0


RecognitionFeed = Callable[[], Optional[Iterable[Any]]]


def to_detection(item: Any) -> Optional[Detection]:
    """Coerce one raw feed item to a Detection (None if unusable)."""
    if isinstance(item, Detection):
        label, score = item.label, item.score
    elif isinstance(item, str):
        label, score = item, 1.0
    elif isinstance(item, Mapping):
        label = item.get('label', item.get('class'))
        score = item.get('score', 1.0)
    elif isinstance(item, (tuple, list)) and len(item) == 2:
        label, score = item
    else:
        return None
    if not isinstance(label, str) or not label.strip():
        return None
    try:
        score = float(score)
    except (TypeError, ValueError):
        return None
    return Detection(label.strip().lower(), score)


class LabelMatcher:
    """Confidence filter, alias table and temporal stability check."""

    def __init__(
        self,
        aliases: Mapping[str, Sequence[str]] | None = None,
        confidence_threshold: float = 0.55,
        stability_count: int = 3,
        stability_window: float = 2.0,
    ) -> None:
        self.aliases = dict(aliases or {})
        self.confidence_threshold = confidence_threshold
        self.stability_count = max(1, int(stability_count))
        self.stability_window = stability_window
        self._history: dict[str, deque[float]] = defaultdict(deque)

    def reset(self) -> None:
        self._history.clear()

    def game_labels(self, detector_label: str) -> tuple[str, ...]:
        return tuple(self.aliases.get(detector_label, (detector_label,)))

    def candidates(self, raw: Optional[Iterable[Any]]) -> list[str]:
        """Game labels present in one poll result, best score first, no duplicates."""
        detections = [d for d in (to_detection(item) for item in (raw or ())) if d is not None]
        detections = [d for d in detections if d.score >= self.confidence_threshold]
        detections.sort(key=lambda d: d.score, reverse=True)
        labels: list[str] = []
        for detection in detections:
            for label in self.game_labels(detection.label):
                if label not in labels:
                    labels.append(label)
        return labels

    def observe(self, raw: Optional[Iterable[Any]], now: float) -> list[str]:
        """Record one poll and return the labels that are now stable."""
        stable = []
        for label in self.candidates(raw):
            history = self._history[label]
            history.append(now)
            while history and now - history[0] >= self.stability_window:
                history.popleft()
            if len(history) >= self.stability_count:
                stable.append(label)
        return stable


class RecognitionBridge:
    """Polls a recognition feed and forwards stable labels to the engine."""

    def __init__(
        self,
        feed: RecognitionFeed,
        matcher: LabelMatcher,
        on_labels: Callable[[list[str]], Any],
        now: Callable[[], float],
    ) -> None:
        self.feed = feed
        self.matcher = matcher
        self.on_labels = on_labels
        self.now = now
        self.poll_count = 0
        self.failed_polls = 0

    def reset(self) -> None:
        self.matcher.reset()
        self.poll_count = 0
        self.failed_polls = 0

    def poll(self) -> list[str]:
        """Run one recognition poll. Returns the labels forwarded this tick."""
        self.poll_count += 1
        try:
            raw = self.feed()
        except Exception:
            # A failed frame is just a frame without a match
            self.failed_polls += 1
            logger.warning('Recognition poll failed', exc_info=True)
            return []
        labels = self.matcher.observe(raw, self.now())
        if labels:
            self.on_labels(labels)
        return labels


class KeyboardFeed:
    """Recognition feed driven by key presses instead of a camera.

    A pressed label stays "in view" for ``hold_seconds`` so it survives the
    stability check exactly like an object held in front of a camera.
    """

    def __init__(self, now: Callable[[], float], hold_seconds: float = 1.6) -> None:
        self.now = now
        self.hold_seconds = hold_seconds
        self._held: dict[str, float] = {}

    def press(self, label: Optional[str]) -> None:
        if label:
            self._held[label.strip().lower()] = self.now() + self.hold_seconds

    def clear(self) -> None:
        self._held.clear()

    def __call__(self) -> list[Detection]:
        now = self.now()
        self._held = {label: until for label, until in self._held.items() if until > now}
        return [Detection(label) for label in self._held]
