"""Typed structures for Focus Finder configuration and catalog data.

Defines TypedDict schemas for:
- SessionConfig: timing, resource and scheduling constants
- TaskSpec / ChapterSpec / DistractionSpec: raw catalog entries
- CatalogConfig: the whole catalog file
- ParticipantInfo: participant metadata collected by the front end
- LayoutConfig: HUD positions, fonts and colors
"""
from __future__ import annotations

from typing import TypedDict


class SessionConfig(TypedDict, total=False):
    # Session timing
    session_seconds: float
    debug_session_seconds: float
    debug_mode: bool
    task_timeout_seconds: float
    tick_seconds: float
    tasks_per_session: int
    seed: int | None
    # Resource constants
    timeout_penalty: float
    task_reward: float
    distraction_focus_cost: float
    distraction_reward: float
    rabbit_hole_reward: float
    working_memory_reward: float
    focus_critical_level: float
    # Distraction scheduling
    distractions_enabled: bool
    difficulty: str
    difficulty_intensity: dict[str, float]
    phase_gaps: list[list[float]]
    random_extra_triggers: int
    category_weights: dict[str, float]
    # Interruption sub-flows
    distraction_timeout_seconds: float
    rabbit_hole_seconds: float
    rabbit_hole_escape_prompt_seconds: float
    working_memory_stage_seconds: list[float]
    working_memory_seconds: float
    # Recognition
    recognition_interval_seconds: float
    confidence_threshold: float
    stability_count: int
    stability_window_seconds: float


class TaskSpec(TypedDict, total=False):
    id: str
    title: str
    target_label: str
    difficulty: str
    hint: str
    prompt: str


class ChapterSpec(TypedDict, total=False):
    title: str
    description: str
    narrative: str
    tasks: list[str]


class DistractionSpec(TypedDict, total=False):
    category: str
    title: str
    description: str
    target_label: str | None
    cost_seconds: float
    special_effect: str


class CatalogConfig(TypedDict, total=False):
    tasks: list[TaskSpec]
    chapters: list[ChapterSpec]
    distractions: list[DistractionSpec]
    label_aliases: dict[str, list[str]]


class ParticipantInfo(TypedDict, total=False):
    participant_id: str
    age: str
    gender: str
    session: str
    notes: str


class LayoutConfig(TypedDict, total=False):
    font_main: str
    header_y: float
    header_font_size: float
    header_x_spread: float
    timer_red_threshold: int
    focus_warning_color: str
    chapter_y: float
    chapter_height: float
    task_title_y: float
    task_title_height: float
    task_text_y: float
    task_text_height: float
    interruption_y: float
    interruption_height: float
    interruption_color: str
    banner_y: float
    banner_height: float
    banner_seconds: float
    footer_y: float
    footer_height: float
    instruction_center_y: float
    instruction_line_height: float
    instruction_line_spacing: float
    wrap_width: float
