"""Renderer: all drawing for the Focus Finder HUD.

This class provides a memory-efficient rendering interface that:
- Reuses visual objects to prevent GPU memory leaks
- Accepts state via dependency injection (window, layout)
- Separates concerns: atomic draw_* methods (no flip) vs show_* flows (with flip)
- Reads the engine only through FocusSession.snapshot() and cue events

Memory Management:
- Pre-creates every HUD TextStim in __init__
- Per-frame work is text/color assignment only
- Caller responsible for window.flip() in the frame loop
"""
from __future__ import annotations

from typing import Any, Optional, Sequence

from psychopy import core, event, visual

from cues import CueEvent
from focus_types import LayoutConfig
from utils import format_seconds

STAGE_TEXT = {
    'awaiting-target': 'Show the {target} to deal with it, or press SPACE to dismiss',
    'absorbed': 'You are sinking into the feed...',
    'escape-prompt': 'Press E to escape the rabbit hole!',
    'dissolving': 'Your goal is dissolving: {forgotten}',
    'confused': 'Wait... what was I doing?',
    'recovering': 'Press R to recover your train of thought',
}

CUE_BANNERS = {
    CueEvent.TASK_COMPLETED: ('Found it! +focus', 'green'),
    CueEvent.TASK_TIMEOUT: ('Too slow! -score', 'red'),
    CueEvent.DISTRACTION_RESOLVED: ('Back on track', 'lightblue'),
    CueEvent.FOCUS_CRITICAL: ('Focus critical!', 'orange'),
}

KEY_HELP = '[1] task object   [2] distraction object   [SPACE] dismiss   [E] escape   [R] recover   [ESC] quit'


class Renderer:
    """Handles all visual rendering for the session HUD.

    Architecture:
    - __init__: Pre-creates reusable visual objects
    - show_*: Blocking flows with internal flip loops (instruction, completion)
    - draw_*: Atomic drawing primitives (caller manages flip)
    - on_cue: CueChannel subscriber feeding the transient banner
    """

    def __init__(self, win: visual.Window, layout: LayoutConfig) -> None:
        """Initialize renderer with pre-created reusable visual objects.

        Args:
            win: PsychoPy window for rendering
            layout: Layout configuration dictionary
        """
        self._win = win
        self._layout = layout
        font = layout['font_main']
        wrap = layout['wrap_width']

        def text_stim(y: float, height: float, x: float = 0.0, color: str = 'white') -> visual.TextStim:
            return visual.TextStim(
                self._win, text='', pos=(x, y), height=height,
                color=color, font=font, wrapWidth=wrap,
            )

        spread = layout['header_x_spread']
        self._timer_stim = text_stim(layout['header_y'], layout['header_font_size'], x=-spread)
        self._score_stim = text_stim(layout['header_y'], layout['header_font_size'])
        self._focus_stim = text_stim(layout['header_y'], layout['header_font_size'], x=spread)
        self._chapter_stim = text_stim(layout['chapter_y'], layout['chapter_height'], color='gray')
        self._task_title_stim = text_stim(layout['task_title_y'], layout['task_title_height'])
        self._task_text_stim = text_stim(layout['task_text_y'], layout['task_text_height'])
        self._interruption_stim = text_stim(
            layout['interruption_y'], layout['interruption_height'], color=layout['interruption_color'],
        )
        self._banner_stim = text_stim(layout['banner_y'], layout['banner_height'])
        self._footer_stim = text_stim(layout['footer_y'], layout['footer_height'], color='gray')
        self._footer_stim.text = KEY_HELP

        self._banner_until = 0.0

    # =========================================================================
    # BLOCKING FLOWS
    # =========================================================================

    def show_instruction(self, lines: Sequence[str], keys: Sequence[str] = ('space',)) -> Optional[str]:
        """Display instruction lines until one of ``keys`` (or escape) is pressed.

        Returns:
            The key pressed
        """
        event.clearEvents()
        while True:
            self._draw_multiline(
                lines,
                center_y=self._layout['instruction_center_y'],
                line_height=self._layout['instruction_line_height'],
                spacing=self._layout['instruction_line_spacing'],
            )
            self._win.flip()
            pressed = event.getKeys(keyList=list(keys) + ['escape'])
            if pressed:
                return pressed[0]

    def show_completion(
        self,
        lines: Sequence[str],
        colors: list[str] | None = None,
        seconds: float = 5.0,
        bold_idx: set[int] | None = None,
    ) -> None:
        """Display the end-of-session screen for a fixed duration (blocking)."""
        if bold_idx is None:
            bold_idx = {0}
        end_time = core.getTime() + max(0.0, seconds)
        while core.getTime() < end_time:
            self._draw_multiline(
                lines,
                center_y=self._layout['instruction_center_y'],
                line_height=self._layout['instruction_line_height'],
                spacing=self._layout['instruction_line_spacing'],
                colors=colors,
                bold_idx=bold_idx,
            )
            self._win.flip()

    # =========================================================================
    # FRAME DRAWING
    # =========================================================================

    def draw_hud(self, snapshot: dict[str, Any], focus_warning_level: float) -> None:
        """Draw one frame of the running session from FocusSession.snapshot()."""
        self.draw_header(snapshot['time_left'], snapshot['score'], snapshot['focus'], focus_warning_level)
        self._chapter_stim.text = snapshot['chapter']
        self._chapter_stim.draw()
        interruption = snapshot['interruption']
        if interruption is not None:
            self.draw_interruption(interruption)
        else:
            self.draw_task(snapshot['task'], snapshot['task_time_left'])
        self.draw_banner()
        self._footer_stim.draw()

    def draw_header(self, time_left: float, score: float, focus: float, focus_warning_level: float) -> None:
        red = self._layout['timer_red_threshold']
        self._timer_stim.text = f"Time {format_seconds(time_left)}"
        self._timer_stim.color = 'red' if time_left <= red else 'white'
        self._timer_stim.draw()

        self._score_stim.text = f"Score {score:.0f}"
        self._score_stim.draw()

        self._focus_stim.text = f"Focus {focus:.0f}"
        self._focus_stim.color = self._layout['focus_warning_color'] if focus <= focus_warning_level else 'white'
        self._focus_stim.draw()

    def draw_task(self, task: Optional[dict[str, str]], task_time_left: float) -> None:
        if task is None:
            return
        self._task_title_stim.text = task['title']
        self._task_title_stim.draw()
        details = [line for line in (task.get('prompt'), task.get('hint')) if line]
        details.append(f"{int(max(0, task_time_left))}s left for this object")
        self._task_text_stim.text = '\n'.join(details)
        self._task_text_stim.draw()

    def draw_interruption(self, interruption: dict[str, Any]) -> None:
        self._task_title_stim.text = interruption['title']
        self._task_title_stim.draw()
        template = STAGE_TEXT.get(interruption['stage'], '')
        self._interruption_stim.text = template.format(
            target=interruption.get('target_label') or 'object',
            forgotten=interruption.get('forgotten_task') or '...',
        )
        self._interruption_stim.draw()

    def draw_banner(self) -> None:
        if core.getTime() < self._banner_until:
            self._banner_stim.draw()

    # =========================================================================
    # CUES
    # =========================================================================

    def on_cue(self, cue: CueEvent, payload: dict[str, Any]) -> None:
        if cue is CueEvent.SESSION_STARTED:
            text, color = payload.get('narrative') or payload.get('chapter', ''), 'white'
        elif cue in CUE_BANNERS:
            text, color = CUE_BANNERS[cue]
        else:
            return
        self._banner_stim.text = text
        self._banner_stim.color = color
        self._banner_until = core.getTime() + self._layout['banner_seconds']

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _draw_multiline(
        self,
        lines: Sequence[str],
        center_y: float,
        line_height: float,
        spacing: float = 1.5,
        colors: list[str] | None = None,
        bold_idx: set[int] | None = None,
        x: float = 0.0,
    ) -> None:
        """Draw vertically-centered multi-line text (internal helper).

        Creates TextStim per line (acceptable for short-lived screens).
        """
        lines = list(lines or [])
        n = len(lines)
        if n == 0:
            return
        total = line_height * spacing * (n - 1) if n > 1 else 0.0
        start_y = center_y + total / 2.0

        for i, text in enumerate(lines):
            y = start_y - i * (line_height * spacing)
            color = (colors[i] if (colors and i < len(colors)) else 'white')
            stim = visual.TextStim(
                self._win, text=text or '', pos=(x, y), height=line_height,
                color=color, font=self._layout['font_main'], wrapWidth=self._layout['wrap_width'],
            )
            if bold_idx and i in bold_idx:
                stim.bold = True
            stim.draw()
