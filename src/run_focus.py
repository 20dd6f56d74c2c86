"""Focus Finder – Entry Point

This module is the application entry for the Focus Finder session. It is responsible for:
- Collecting participant information via a PsychoPy dialog
- Initializing the display window (fullscreen in normal mode, 1280×800 window in debug mode)
- Loading configuration and the catalog, wiring a FocusSession to a PsychoPy clock
- Running the frame loop: keyboard input, timer pump, HUD drawing
- Saving results when the session reaches COMPLETED or FAILED (or is aborted)

Keyboard:
- 1: hold the current task's object in view
- 2: hold the active distraction's object in view
- SPACE: dismiss a distraction, E: escape a rabbit hole, R: recover from a memory lapse
- ESC: abort the session (partial results are still saved)

Debug mode:
- Enable by setting `"debug_mode": true` in `configs/session.json`, or by entering participant_id `0` in the dialog.
- The session lasts `debug_session_seconds` and runs in a 1280×800 window.

Dependencies: PsychoPy.
"""
from psychopy import event, gui, visual

from catalog import load_catalog
from config_loader import load_layout, load_session_config
from cues import CueChannel
from logging_setup import setup_logger
from models import SessionState
from realtime_clock import PsychopyClock
from recognition_bridge import KeyboardFeed
from renderer import Renderer
from results_writer import ResultsWriter
from session import FocusSession
from utils import format_seconds


def get_participant_info():
    """Collect participant information via PsychoPy dialog.

    Returns:
        dict | None: Participant info dict if valid, None if cancelled
    """
    default = {
        'participant_id': '',
        'age': '',
        'gender': '',
        'session': 'S1',
        'notes': ''
    }
    while True:
        dlg = gui.DlgFromDict(default, title='Participant', order=['participant_id', 'age', 'gender', 'session', 'notes'])
        if not dlg.OK:
            return None
        pid = (default.get('participant_id') or '').strip()
        if pid:
            return default
        gui.Dlg(title='Notice', labelButtonOK='OK').addText('participant_id is required').show()


def handle_keys(session, feed, keys):
    """Apply one frame's key presses. Returns False when the participant quits."""
    for key in keys:
        if key == 'escape':
            return False
        if key == '1':
            task = session.current_task()
            feed.press(task.target_label if task else None)
        elif key == '2':
            interruption = session.active_interruption
            feed.press(interruption.event.target_label if interruption else None)
        elif key == 'space':
            session.dismiss_distraction()
        elif key == 'e':
            session.escape_rabbit_hole()
        elif key == 'r':
            session.recover_working_memory()
    return True


def summary_lines(summary):
    title = 'Session complete!' if summary.state is SessionState.COMPLETED else 'Out of score!'
    return [
        title,
        f"Objects found: {summary.tasks_completed}   skipped: {summary.tasks_skipped}",
        f"Distractions handled: {summary.distractions_resolved} / {summary.distractions_triggered}",
        f"Final score {summary.final_score:.0f}   focus {summary.final_focus:.0f}",
        f"Time on task {format_seconds(summary.adjusted_seconds)}",
    ]


def main():
    """Main entry point for the Focus Finder session."""
    logger = setup_logger()

    # Retry loop for participant info
    while True:
        info = get_participant_info()
        if info is None:
            confirm = gui.Dlg(title='Quit?', labelButtonOK='Retry', labelButtonCancel='Quit')
            confirm.addText('No participant information entered. Try again?')
            confirm.show()
            if confirm.OK:
                continue
            else:
                return
        break

    pid_str = str((info or {}).get('participant_id', '')).strip()
    config = load_session_config(overrides={'debug_mode': True} if pid_str == '0' else None)
    catalog = load_catalog()
    layout = load_layout()
    debug_active = bool(config.get('debug_mode', False))

    if debug_active:
        win = visual.Window(size=(1280, 800), color='black', units='norm')
    else:
        win = visual.Window(fullscr=True, color='black', units='norm')

    clock = PsychopyClock()
    cues = CueChannel()
    renderer = Renderer(win, layout)
    cues.subscribe_all(renderer.on_cue)
    feed = KeyboardFeed(clock.now)
    session = FocusSession(config, catalog, clock, cues=cues, feed=feed)
    logger.info('Participant %s, debug=%s', pid_str, debug_active)

    try:
        pressed = renderer.show_instruction([
            'Focus Finder',
            'Find each object before its timer runs out.',
            'Distractions will try to pull you away: deal with them quickly.',
            'Press SPACE to begin.',
        ])
        if pressed == 'escape':
            return

        event.clearEvents()
        session.start()
        while session.is_running:
            if not handle_keys(session, feed, event.getKeys()):
                logger.info('Session aborted by participant')
                break
            clock.pump()
            renderer.draw_hud(session.snapshot(), config['focus_critical_level'])
            win.flip()

        summary = session.summary or session.build_summary()
        ResultsWriter().save(info, summary)
        if session.summary is not None:
            renderer.show_completion(
                summary_lines(summary),
                colors=['green' if summary.state is SessionState.COMPLETED else 'red'],
            )
        session.reset()
    finally:
        win.close()


if __name__ == '__main__':
    main()
