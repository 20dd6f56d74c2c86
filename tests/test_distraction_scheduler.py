import os
import random
import sys
import unittest

sys.path.insert(0, os.path.dirname(__file__))

from session_fixtures import entry_titled, make_session, small_catalog  # noqa: E402
from distraction_scheduler import (  # noqa: E402
    BUCKETS,
    PHYSICAL,
    PSYCHOLOGICAL,
    SOCIAL,
    SPECIAL,
    bucket_of,
    build_schedule,
    category_weights,
    normalize_weights,
    sample_bucket,
)
from models import DistractionCategory  # noqa: E402

PHASE_GAPS = [[14, 20], [8, 12], [4, 7]]


class TestCategoryWeights(unittest.TestCase):
    def test_always_a_distribution(self):
        for p in range(11):
            for f in range(21):
                weights = category_weights(p / 10, f / 20)
                self.assertAlmostEqual(sum(weights.values()), 1.0)
                self.assertTrue(all(w >= 0 for w in weights.values()))
                self.assertEqual(set(weights), set(BUCKETS))

    def test_baseline(self):
        weights = category_weights(0.0, 0.5)
        self.assertAlmostEqual(weights[SPECIAL], 0.5)
        self.assertAlmostEqual(weights[PHYSICAL], 0.2)

    def test_progress_favours_special(self):
        weights = category_weights(1.0, 0.5)
        self.assertAlmostEqual(weights[SPECIAL], 0.65 / 1.15)
        self.assertGreater(weights[SPECIAL], category_weights(0.5, 0.5)[SPECIAL])

    def test_low_focus_favours_physical(self):
        weights = category_weights(0.0, 0.2)
        self.assertAlmostEqual(weights[PHYSICAL], 0.35 / 1.15)

    def test_high_focus_shifts_away_from_physical(self):
        weights = category_weights(0.0, 0.9)
        self.assertAlmostEqual(weights[PHYSICAL], 0.10 / 1.05)
        self.assertAlmostEqual(weights[SPECIAL], 0.60 / 1.05)
        self.assertAlmostEqual(weights[SOCIAL], 0.20 / 1.05)
        self.assertAlmostEqual(weights[PSYCHOLOGICAL], 0.15 / 1.05)

    def test_negative_base_is_clipped(self):
        weights = category_weights(0.0, 0.9, base={PHYSICAL: 0.0})
        self.assertEqual(weights[PHYSICAL], 0.0)
        self.assertAlmostEqual(sum(weights.values()), 1.0)

    def test_normalize(self):
        self.assertEqual(normalize_weights({'a': 0, 'b': 0}), {'a': 0.5, 'b': 0.5})
        self.assertEqual(normalize_weights({'a': -1, 'b': 3}), {'a': 0.0, 'b': 1.0})


class TestSampleBucket(unittest.TestCase):
    WEIGHTS = {SPECIAL: 0.5, PHYSICAL: 0.2, PSYCHOLOGICAL: 0.15, SOCIAL: 0.15}

    def test_cumulative(self):
        self.assertEqual(sample_bucket(self.WEIGHTS, 0.0), SPECIAL)
        self.assertEqual(sample_bucket(self.WEIGHTS, 0.6), PHYSICAL)
        self.assertEqual(sample_bucket(self.WEIGHTS, 0.8), PSYCHOLOGICAL)
        self.assertEqual(sample_bucket(self.WEIGHTS, 0.999999), SOCIAL)

    def test_zero_weight_never_chosen(self):
        weights = {SPECIAL: 0.0, PHYSICAL: 0.0, PSYCHOLOGICAL: 0.0, SOCIAL: 1.0}
        self.assertEqual(sample_bucket(weights, 0.0), SOCIAL)

    def test_nothing_positive(self):
        with self.assertRaises(ValueError):
            sample_bucket({key: 0.0 for key in BUCKETS}, 0.3)


class TestBuildSchedule(unittest.TestCase):
    def test_phases_escalate(self):
        for seed in range(5):
            events = build_schedule(90, random.Random(seed), PHASE_GAPS, random_extras=3)
            times = [e.fire_at_seconds for e in events]
            self.assertEqual(times, sorted(times))
            by_phase = {p: [e.fire_at_seconds for e in events if e.phase == p] for p in (0, 1, 2, 3)}
            self.assertEqual(len(by_phase[0]), 3)
            for phase, (low, high) in enumerate(PHASE_GAPS, start=1):
                start, end = (phase - 1) * 30, phase * 30
                fires = by_phase[phase]
                self.assertTrue(fires)
                self.assertGreaterEqual(fires[0], start + low - 1e-3)
                self.assertTrue(all(start <= t < end for t in fires))
                for a, b in zip(fires, fires[1:]):
                    self.assertGreaterEqual(b - a, low - 1e-2)
                    self.assertLessEqual(b - a, high + 1e-2)
            self.assertGreater(len(by_phase[3]), len(by_phase[1]))
            self.assertTrue(all(0 <= t <= 90 for t in by_phase[0]))

    def test_category_hints(self):
        events = build_schedule(90, random.Random(1), PHASE_GAPS)
        self.assertTrue(all(isinstance(e.category_hint, DistractionCategory) for e in events))


class TestScheduler(unittest.TestCase):
    def test_buckets(self):
        session, _, _ = make_session()
        catalog = session.catalog
        self.assertEqual(bucket_of(entry_titled(catalog, 'Phone notification!')), SPECIAL)
        self.assertEqual(bucket_of(entry_titled(catalog, 'So thirsty!')), PHYSICAL)
        self.assertEqual(bucket_of(entry_titled(catalog, 'The view is too nice')), PHYSICAL)
        self.assertEqual(bucket_of(entry_titled(catalog, 'Feeling down')), PSYCHOLOGICAL)
        self.assertEqual(bucket_of(entry_titled(catalog, 'A friend is calling')), SOCIAL)
        self.assertEqual(len(session.scheduler.pools[SPECIAL]), 2)

    def test_selection_skips_empty_buckets(self):
        session, _, _ = make_session(catalog=small_catalog())
        for _ in range(20):
            entry = session.scheduler.select_entry(progress=0.9, focus_ratio=0.9)
            self.assertIs(entry.category, DistractionCategory.SOCIAL)

    def test_no_pool_no_schedule(self):
        session, clock, _ = make_session(catalog=small_catalog(distractions=[]))
        session.start()
        self.assertFalse(session.scheduler.enabled)
        self.assertEqual(session.scheduler.schedule, [])
        self.assertIsNone(session.scheduler.select_entry(0.0, 1.0))

    def test_suppression_while_active(self):
        session, clock, _ = make_session(distractions_enabled=False, task_timeout_seconds=200)
        session.start()
        scheduler = session.scheduler
        scheduler.activate(entry_titled(session.catalog, 'Someone is calling you'))
        same = build_schedule(90, random.Random(0), PHASE_GAPS)[0]
        self.assertIsNone(scheduler.on_fire(same))
        self.assertEqual(scheduler.suppressed_count, 1)
        self.assertEqual(scheduler.triggered_count, 1)

    def test_fire_activates_when_free(self):
        session, clock, recorder = make_session(distractions_enabled=False, task_timeout_seconds=200)
        session.start()
        scheduled = build_schedule(90, random.Random(0), PHASE_GAPS)[0]
        interruption = session.scheduler.on_fire(scheduled)
        self.assertIsNotNone(interruption)
        self.assertIs(session.active_interruption, interruption)
        self.assertEqual(session.focus, 80)

    def test_activation_requires_running_session(self):
        session, _, _ = make_session()
        self.assertIsNone(session.scheduler.activate(entry_titled(session.catalog, 'So thirsty!')))

    def test_difficulty_scales_cost(self):
        session, _, _ = make_session(distractions_enabled=False, difficulty='hard')
        session.start()
        session.scheduler.activate(entry_titled(session.catalog, 'So thirsty!'))
        self.assertEqual(session.active_interruption.event.cost_seconds, 3.0)


if __name__ == '__main__':
    unittest.main()
