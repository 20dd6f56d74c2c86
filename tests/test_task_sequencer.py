import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
SRC = os.path.join(ROOT, 'src')
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from cues import CueChannel, CueEvent, CueRecorder  # noqa: E402
from models import Task, TaskOutcome  # noqa: E402
from resources import ResourceModel  # noqa: E402
from task_sequencer import TaskSequencer  # noqa: E402

CONFIG = {'task_timeout_seconds': 15, 'task_reward': 25, 'timeout_penalty': 20}
TASKS = [Task('cup', 'Find a cup', 'cup'), Task('book', 'Find a book', 'book'), Task('door', 'Find a door', 'door')]


class TestTaskSequencer(unittest.TestCase):
    def setUp(self):
        self.now = 0.0
        self.suspended = False
        cues = CueChannel()
        self.recorder = CueRecorder(cues)
        self.resources = ResourceModel(cues=cues)
        self.resources.reset(task_seconds=15)
        self.sequencer = TaskSequencer(
            CONFIG, self.resources, cues,
            now=lambda: self.now,
            is_suspended=lambda: self.suspended,
        )
        self.sequencer.load(TASKS)

    def test_completion_advances_and_rewards(self):
        self.resources.drain_focus(50)
        self.now = 4.0
        self.assertTrue(self.sequencer.on_label_observed(' CUP '))
        self.assertEqual(self.sequencer.task_index, 1)
        self.assertEqual(self.sequencer.completed_count, 1)
        self.assertEqual(self.resources.focus, 75)
        self.assertEqual(self.resources.task_time_remaining, 15)
        record = self.sequencer.records[0]
        self.assertIs(record.outcome, TaskOutcome.COMPLETED)
        self.assertEqual(record.seconds_used(), 4.0)
        payload = self.recorder.events[-1][1]
        self.assertEqual(self.recorder.names()[-1], CueEvent.TASK_COMPLETED)
        self.assertEqual(payload['next_task_id'], 'book')

    def test_wrong_label_changes_nothing(self):
        self.assertFalse(self.sequencer.on_label_observed('book'))
        self.assertEqual(self.sequencer.task_index, 0)
        self.assertEqual(self.recorder.events, [])

    def test_suspended(self):
        self.suspended = True
        self.assertFalse(self.sequencer.on_label_observed('cup'))
        self.assertEqual(self.sequencer.task_index, 0)

    def test_timeouts_wrap_circularly(self):
        for _ in range(5):
            self.sequencer.on_task_timeout()
        self.assertEqual(self.sequencer.task_index, 5 % 3)
        self.assertEqual(self.sequencer.skipped_count, 5)
        self.assertEqual(self.resources.score, 0)
        self.assertEqual(self.recorder.count(CueEvent.TASK_TIMEOUT), 5)
        self.assertEqual(len(self.sequencer.records), 6)
        self.assertTrue(all(r.outcome is TaskOutcome.SKIPPED for r in self.sequencer.records[:5]))

    def test_progress_ratio(self):
        self.assertEqual(self.sequencer.progress_ratio, 0.0)
        self.sequencer.on_label_observed('cup')
        self.assertAlmostEqual(self.sequencer.progress_ratio, 1 / 3)

    def test_unloaded(self):
        self.sequencer.unload()
        self.assertIsNone(self.sequencer.current_task())
        self.assertFalse(self.sequencer.on_label_observed('cup'))
        self.sequencer.on_task_timeout()
        self.assertEqual(self.sequencer.progress_ratio, 0.0)


if __name__ == '__main__':
    unittest.main()
