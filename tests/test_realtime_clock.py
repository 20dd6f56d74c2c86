"""Unit tests for realtime_clock.py.

Runs without a display: PsychoPy is replaced by a mock module before import.
"""
import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
SRC = os.path.join(ROOT, 'src')
if SRC not in sys.path:
    sys.path.insert(0, SRC)

# Mock psychopy modules to avoid import errors in testing
class MockModule:
    def __getattr__(self, name):
        return MockModule()
    def __call__(self, *args, **kwargs):
        return MockModule()

sys.modules['psychopy'] = MockModule()
sys.modules['psychopy.core'] = MockModule()

from realtime_clock import PsychopyClock  # noqa: E402


class FakeTime:
    def __init__(self, start):
        self.value = start

    def __call__(self):
        return self.value


def test_now_is_relative_to_construction():
    """Clock time starts at zero regardless of the PsychoPy epoch."""
    fake = FakeTime(1000.0)
    clock = PsychopyClock(get_time=fake)
    assert clock.now() == 0.0
    fake.value = 1002.5
    assert clock.now() == 2.5


def test_pump_fires_due_callbacks():
    """pump() runs only the callbacks whose time has come."""
    fake = FakeTime(50.0)
    clock = PsychopyClock(get_time=fake)
    fired = []
    clock.call_later(1.0, lambda: fired.append('a'))
    clock.call_repeating(0.5, lambda: fired.append('tick'))
    assert clock.pump() == 0
    fake.value = 51.0
    assert clock.pump() == 3
    assert fired == ['tick', 'a', 'tick']

