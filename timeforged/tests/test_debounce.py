import unittest
from pathlib import Path

from timeforged.watcher.debounce import Debouncer


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class DebouncerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.debouncer = Debouncer(30, clock=self.clock)
        self.path = Path("/proj/app/a.py")

    def test_first_notification_emits(self) -> None:
        self.assertTrue(self.debouncer.should_emit(self.path))

    def test_second_call_within_window_is_suppressed(self) -> None:
        self.assertTrue(self.debouncer.should_emit(self.path))
        self.clock.now += 29.999
        self.assertFalse(self.debouncer.should_emit(self.path))

    def test_call_at_window_boundary_emits(self) -> None:
        self.assertTrue(self.debouncer.should_emit(self.path))
        self.clock.now += 30
        self.assertTrue(self.debouncer.should_emit(self.path))

    def test_suppression_does_not_extend_window(self) -> None:
        self.assertTrue(self.debouncer.should_emit(self.path))  # t=0
        self.clock.now += 5
        self.assertFalse(self.debouncer.should_emit(self.path))  # t=5
        self.clock.now += 25
        self.assertTrue(self.debouncer.should_emit(self.path))  # t=30

    def test_paths_are_independent(self) -> None:
        other = Path("/proj/app/b.py")
        self.assertTrue(self.debouncer.should_emit(self.path))
        self.assertTrue(self.debouncer.should_emit(other))
        self.assertEqual(len(self.debouncer), 2)

    def test_cleanup_evicts_entries_older_than_three_windows(self) -> None:
        self.debouncer.should_emit(self.path)
        self.clock.now += 60
        self.debouncer.should_emit(Path("/proj/app/recent.py"))
        self.clock.now += 30

        self.assertEqual(self.debouncer.cleanup(), 1)
        self.assertEqual(len(self.debouncer), 1)
        # Evicted path starts fresh.
        self.assertTrue(self.debouncer.should_emit(self.path))


if __name__ == "__main__":
    unittest.main()
