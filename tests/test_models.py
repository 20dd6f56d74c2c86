import unittest, os, sys
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
SRC = os.path.join(ROOT, 'src')
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from models import (
    DistractionCatalogEntry,
    DistractionCategory,
    DistractionEvent,
    Resolution,
    SessionState,
    SessionSummary,
    SpecialEffect,
    TaskOutcome,
    TaskRecord,
)


def make_summary(**kwargs):
    values = dict(
        state=SessionState.COMPLETED, chapter_title='Morning fog',
        tasks_completed=3, tasks_skipped=1,
        distractions_triggered=2, distractions_resolved=2, distractions_suppressed=1,
        final_score=80.0, final_focus=95.0,
        elapsed_seconds=90.0, total_distraction_cost=30.0, adjusted_seconds=60.0,
    )
    values.update(kwargs)
    return SessionSummary(**values)


class TestModels(unittest.TestCase):
    def test_task_record_seconds_used(self):
        record = TaskRecord('cup', 'cup', started_at=10.0)
        self.assertIsNone(record.seconds_used())
        record.close(14.5, TaskOutcome.COMPLETED)
        self.assertAlmostEqual(record.seconds_used(), 4.5, places=3)
        self.assertIs(record.outcome, TaskOutcome.COMPLETED)

    def test_summary_rates(self):
        summary = make_summary()
        self.assertEqual(summary.tasks_attempted, 4)
        self.assertAlmostEqual(summary.completion_rate, 0.75)
        self.assertAlmostEqual(summary.tasks_per_minute, 3.0)
        # Nothing attempted / no adjusted time
        empty = make_summary(tasks_completed=0, tasks_skipped=0, adjusted_seconds=0.0)
        self.assertEqual(empty.completion_rate, 0.0)
        self.assertEqual(empty.tasks_per_minute, 0.0)

    def test_summary_to_dict(self):
        data = make_summary().to_dict()
        self.assertEqual(data['state'], 'completed')
        self.assertEqual(data['tasks_completed'], 3)
        self.assertEqual(data['completion_rate'], 0.75)

    def test_distraction_event(self):
        event = DistractionEvent('social-1', DistractionCategory.SOCIAL, 'Call', triggered_at=5.0, cost_seconds=2.0)
        self.assertFalse(event.is_resolved)
        self.assertIsNone(event.to_dict()['resolution'])
        event.resolved_at = 7.25
        event.resolution = Resolution.DISMISSED
        self.assertTrue(event.is_resolved)
        self.assertEqual(event.to_dict()['resolution'], 'dismissed')
        self.assertEqual(event.to_dict()['special_effect'], 'none')

    def test_catalog_entry_is_special(self):
        plain = DistractionCatalogEntry(DistractionCategory.ENVIRONMENT, 't', 'd', 'door', 2.0)
        special = DistractionCatalogEntry(
            DistractionCategory.PSYCHOLOGICAL, 't', 'd', None, 3.0, SpecialEffect.WORKING_MEMORY_FAILURE,
        )
        self.assertFalse(plain.is_special)
        self.assertTrue(special.is_special)

if __name__ == '__main__':
    unittest.main()
