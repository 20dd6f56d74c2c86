"""Catalog: immutable reference data (tasks, story chapters, distraction pool).

Loaded once from configs/catalog.json; sessions only ever read from it.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from config_loader import load_raw_catalog
from focus_types import CatalogConfig
from models import (
    DistractionCatalogEntry,
    DistractionCategory,
    SpecialEffect,
    StoryChapter,
    Task,
)


@dataclass(frozen=True)
class Catalog:
    tasks: tuple[Task, ...]
    chapters: tuple[StoryChapter, ...]
    distractions: tuple[DistractionCatalogEntry, ...]
    label_aliases: Mapping[str, tuple[str, ...]]

    @classmethod
    def from_config(cls, raw: CatalogConfig) -> 'Catalog':
        """Build a Catalog from the parsed catalog.json structure.

        Raises:
            ValueError: if there are no tasks, or a chapter/alias entry is malformed
        """
        tasks = tuple(
            Task(
                id=spec['id'],
                title=spec.get('title', spec['id']),
                target_label=spec.get('target_label', spec['id']).strip().lower(),
                difficulty=spec.get('difficulty', 'normal'),
                hint=spec.get('hint', ''),
                prompt=spec.get('prompt', ''),
            )
            for spec in raw.get('tasks', [])
        )
        if not tasks:
            raise ValueError('catalog has no tasks')

        chapters = tuple(
            StoryChapter(
                title=spec.get('title', ''),
                description=spec.get('description', ''),
                narrative=spec.get('narrative', ''),
                task_ids=tuple(spec.get('tasks', [])),
            )
            for spec in raw.get('chapters', [])
        )
        # Without chapters, the whole pool acts as a single untitled chapter
        if not chapters:
            chapters = (StoryChapter('', '', '', tuple(t.id for t in tasks)),)

        distractions = []
        for spec in raw.get('distractions', []):
            target = spec.get('target_label')
            distractions.append(DistractionCatalogEntry(
                category=DistractionCategory(spec['category']),
                title=spec.get('title', ''),
                description=spec.get('description', ''),
                target_label=target.strip().lower() if target else None,
                cost_seconds=float(spec.get('cost_seconds', 0)),
                special_effect=SpecialEffect(spec.get('special_effect', 'none')),
            ))

        aliases = {
            key.strip().lower(): tuple(v.strip().lower() for v in values)
            for key, values in raw.get('label_aliases', {}).items()
        }
        return cls(
            tasks=tasks,
            chapters=chapters,
            distractions=tuple(distractions),
            label_aliases=MappingProxyType(aliases),
        )

    def task_by_id(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def choose_chapter(self, rng: random.Random) -> StoryChapter:
        return rng.choice(self.chapters)


def load_catalog(path: str | None = None) -> Catalog:
    return Catalog.from_config(load_raw_catalog(path))
