import os, sys
import random
import unittest

# Ensure src/ is on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
SRC = os.path.join(ROOT, 'src')
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from models import StoryChapter, Task
from utils import build_task_sequence, clamp, format_seconds


def tasks(*ids):
    return [Task(tid, tid.title(), tid) for tid in ids]


class TestUtils(unittest.TestCase):
    def test_clamp_and_format(self):
        self.assertEqual(clamp(120), 100)
        self.assertEqual(clamp(-5), 0)
        self.assertEqual(clamp(0.3, 0.0, 1.0), 0.3)
        self.assertEqual(format_seconds(75), '01:15')
        self.assertEqual(format_seconds(-3), '00:00')

    def test_chapter_tasks_come_first(self):
        pool = tasks('cup', 'book', 'bottle', 'door', 'window', 'chair', 'desk', 'mouse', 'laptop')
        chapter = StoryChapter('c', '', '', ('bottle', 'cup', 'book'))
        seq = build_task_sequence(chapter, pool, 8, random.Random(1))
        self.assertEqual([t.id for t in seq[:3]], ['bottle', 'cup', 'book'])
        self.assertEqual(len(seq), 8)
        # Distinct while the pool lasts
        self.assertEqual(len({t.id for t in seq}), 8)

    def test_small_pool_never_repeats_back_to_back(self):
        pool = tasks('cup', 'book')
        chapter = StoryChapter('c', '', '', ('cup',))
        seq = build_task_sequence(chapter, pool, 6, random.Random(3))
        self.assertEqual([t.id for t in seq], ['cup', 'book', 'cup', 'book', 'cup', 'book'])

    def test_unknown_chapter_ids_are_skipped(self):
        pool = tasks('cup', 'book', 'door')
        chapter = StoryChapter('c', '', '', ('ghost', 'door'))
        seq = build_task_sequence(chapter, pool, 3, random.Random(0))
        self.assertEqual(seq[0].id, 'door')
        self.assertEqual(sorted(t.id for t in seq), ['book', 'cup', 'door'])

    def test_empty_pool(self):
        with self.assertRaises(ValueError):
            build_task_sequence(StoryChapter('c', '', '', ()), [], 3, random.Random(0))

if __name__ == '__main__':
    unittest.main()
