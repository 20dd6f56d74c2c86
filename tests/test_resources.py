import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
SRC = os.path.join(ROOT, 'src')
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from cues import CueChannel, CueEvent, CueRecorder  # noqa: E402
from resources import ResourceModel  # noqa: E402


class TestResourceModel(unittest.TestCase):
    def setUp(self):
        self.cues = CueChannel()
        self.recorder = CueRecorder(self.cues)
        self.model = ResourceModel(focus_critical_level=15, cues=self.cues)
        self.model.reset(task_seconds=15)

    def test_starts_full(self):
        self.assertEqual(self.model.score, 100)
        self.assertEqual(self.model.focus, 100)
        self.assertEqual(self.model.task_time_remaining, 15)
        self.assertEqual(self.model.focus_ratio, 1.0)

    def test_clamped(self):
        self.assertEqual(self.model.drain_focus(150), 0)
        self.assertEqual(self.model.restore_focus(500), 100)
        self.assertEqual(self.model.count_down_task(20), 0)

    def test_score_depletes_after_five_penalties(self):
        for _ in range(4):
            self.model.apply_timeout_penalty(20)
        self.assertFalse(self.model.score_depleted)
        self.model.apply_timeout_penalty(20)
        self.assertTrue(self.model.score_depleted)
        self.assertEqual(self.model.apply_timeout_penalty(20), 0)

    def test_focus_critical_once_per_crossing(self):
        self.model.drain_focus(90)
        self.model.drain_focus(5)
        self.assertEqual(self.recorder.count(CueEvent.FOCUS_CRITICAL), 1)
        self.model.restore_focus(50)
        self.model.drain_focus(45)
        self.assertEqual(self.model.focus, 10)
        self.assertEqual(self.recorder.count(CueEvent.FOCUS_CRITICAL), 2)

    def test_frozen_ignores_mutations(self):
        self.model.apply_timeout_penalty(20)
        self.model.freeze()
        self.model.apply_timeout_penalty(20)
        self.model.drain_focus(50)
        self.model.add_elapsed(10)
        self.model.reset_task_countdown(99)
        self.assertEqual(self.model.score, 80)
        self.assertEqual(self.model.focus, 100)
        self.assertEqual(self.model.elapsed_seconds, 0)
        self.assertEqual(self.model.task_time_remaining, 15)
        self.model.reset(task_seconds=15)
        self.assertFalse(self.model.frozen)
        self.assertEqual(self.model.score, 100)


if __name__ == '__main__':
    unittest.main()
