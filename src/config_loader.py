"""Configuration loader for the Focus Finder session engine.

Separately loads the session constants (configs/session.json), the catalog
(configs/catalog.json) and the HUD layout (configs/layout.json), with
external override precedence for session and layout when running as a
packaged exe.
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any, cast

from focus_types import CatalogConfig, LayoutConfig, SessionConfig


def get_base_dir() -> str:
    """Return base directory for read-only resources (configs).

    Note: In PyInstaller onefile, resources are unpacked to a temporary
    extraction directory (sys._MEIPASS). That location is read-only and may be
    deleted after exit, so DO NOT write output files there.
    """
    meipass = getattr(sys, '_MEIPASS', None)
    if meipass and os.path.isdir(meipass):
        return meipass
    # Onedir: use the executable directory so bundled folders like 'configs/' work
    if getattr(sys, 'frozen', False):
        return os.path.dirname(sys.executable)
    # Normal dev mode: project root (src/..)
    return os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


def get_output_dir() -> str:
    """Return a persistent, user-writable directory for results and logs.

    - For frozen apps (onefile/onedir), use the directory next to the executable.
    - For dev, use the project-level 'data' directory.
    """
    if getattr(sys, 'frozen', False):
        return os.path.join(os.path.dirname(sys.executable), 'data')
    return os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'data'))


def get_exe_override_path(rel_path: str) -> str | None:
    """When running as a frozen exe, return the override path next to the exe.

    Example: rel_path='configs/session.json' -> '<exe_dir>/configs/session.json'
    Returns None if not frozen.
    """
    if getattr(sys, 'frozen', False):
        return os.path.join(os.path.dirname(sys.executable), rel_path)
    return None


# Module-level constants
BASE_DIR = get_base_dir()
SESSION_DEFAULT_PATH = os.path.join(BASE_DIR, 'configs', 'session.json')
CATALOG_DEFAULT_PATH = os.path.join(BASE_DIR, 'configs', 'catalog.json')
LAYOUT_DEFAULT_PATH = os.path.join(BASE_DIR, 'configs', 'layout.json')


def _read_json(path: str, what: str) -> Any:
    if not os.path.exists(path):
        raise RuntimeError(
            f"Default {what} file not found: {path}\n"
            "It is a required baseline configuration; make sure the project ships it."
        )
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_session_config(
    overrides: dict[str, Any] | None = None,
    path: str | None = None,
) -> SessionConfig:
    """Load session constants with external-override precedence.

    Search order:
    1) Load defaults from <BASE_DIR>/configs/session.json (must exist)
    2) If running as frozen exe, merge <exe_dir>/configs/session.json
    3) Merge ``overrides`` (used by tests and the debug front end)

    Args:
        overrides: Keys taking precedence over both files
        path: Alternative default file (defaults to SESSION_DEFAULT_PATH)

    Returns:
        SessionConfig: validated session constants
    """
    config = cast(SessionConfig, _read_json(path or SESSION_DEFAULT_PATH, 'session config'))

    override_path = get_exe_override_path(os.path.join('configs', 'session.json'))
    if override_path and os.path.exists(override_path):
        try:
            with open(override_path, 'r', encoding='utf-8') as f:
                config.update(cast(SessionConfig, json.load(f)))
        except (OSError, ValueError) as e:
            # Malformed override: warn and continue with defaults
            import warnings
            warnings.warn(
                f"External session config is malformed, using defaults: {override_path}\nError: {e}"
            )

    if overrides:
        config.update(cast(SessionConfig, overrides))
    validate_config(config)
    return config


def validate_config(config: SessionConfig) -> None:
    """Raise ValueError for constants the engine cannot run with."""
    for key in ('session_seconds', 'task_timeout_seconds', 'tick_seconds',
                'recognition_interval_seconds'):
        if float(config.get(key, 0)) <= 0:
            raise ValueError(f"{key} must be positive, got {config.get(key)!r}")
    if int(config.get('tasks_per_session', 0)) <= 0:
        raise ValueError('tasks_per_session must be positive')
    weights = config.get('category_weights', {})
    if any(float(w) < 0 for w in weights.values()):
        raise ValueError(f"category_weights must be non-negative: {weights}")
    gaps = config.get('phase_gaps', [])
    if len(gaps) != 3 or any(len(g) != 2 or g[0] <= 0 or g[1] < g[0] for g in gaps):
        raise ValueError(f"phase_gaps must be three [min, max] pairs with 0 < min <= max: {gaps}")
    if config.get('difficulty') not in config.get('difficulty_intensity', {}):
        raise ValueError(f"unknown difficulty {config.get('difficulty')!r}")


def load_raw_catalog(path: str | None = None) -> CatalogConfig:
    """Load catalog.json (tasks, chapters, distraction pool, label aliases)."""
    return cast(CatalogConfig, _read_json(path or CATALOG_DEFAULT_PATH, 'catalog'))


def load_layout(path: str | None = None) -> LayoutConfig:
    """Load layout.json (HUD positions, fonts and colors) with external-override precedence."""
    layout = cast(LayoutConfig, _read_json(path or LAYOUT_DEFAULT_PATH, 'layout'))

    override_path = get_exe_override_path(os.path.join('configs', 'layout.json'))
    if override_path and os.path.exists(override_path):
        try:
            with open(override_path, 'r', encoding='utf-8') as f:
                layout.update(cast(LayoutConfig, json.load(f)))
        except (OSError, ValueError) as e:
            import warnings
            warnings.warn(
                f"External layout config is malformed, using defaults: {override_path}\nError: {e}"
            )
    return layout
