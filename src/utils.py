"""Utility helpers for the Focus Finder session engine."""
from __future__ import annotations

import random
from typing import List, Sequence

from models import StoryChapter, Task


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def format_seconds(value: float) -> str:
    """Format a second count as MM:SS (negative values show as 00:00)."""
    total = max(0, int(value))
    return f"{total // 60:02d}:{total % 60:02d}"


def build_task_sequence(
    chapter: StoryChapter,
    pool: Sequence[Task],
    length: int,
    rng: random.Random,
) -> List[Task]:
    """Build the ordered task list for one session.

    The chapter's own tasks come first, in chapter order. The list is then
    topped up with distinct random tasks from the whole pool; tasks repeat
    only once every pool task has been used.

    Args:
        chapter: Story chapter chosen for the session
        pool: Every known task
        length: Number of tasks in the sequence
        rng: Random source (seed it for reproducible sessions)

    Returns:
        List of exactly ``length`` tasks
    """
    if not pool:
        raise ValueError('task pool is empty')
    by_id = {task.id: task for task in pool}
    tasks: List[Task] = [by_id[tid] for tid in chapter.task_ids if tid in by_id][:length]
    while len(tasks) < length:
        used = {task.id for task in tasks}
        candidates = [task for task in pool if task.id not in used]
        if not candidates:
            # Pool exhausted: allow repeats but never the same task twice in a row
            candidates = [task for task in pool if task.id != tasks[-1].id] or list(pool)
        tasks.append(rng.choice(candidates))
    return tasks
