"""
Tests for the simulated clock, timers, timeouts and intervals.
"""

import unittest

from airfieldsim.events import EventChannel, TimerCompleted, TimerStarted
from airfieldsim.timer import ElapsedTime, Scheduler
from airfieldsim.unit import Millisecond, Second


class TestTimers(unittest.TestCase):
    """Test countdown timers driven by update(dt)."""

    def setUp(self):
        self.channel = EventChannel()
        self.scheduler = Scheduler(self.channel)

    def test_progress_and_completion(self):
        """Test that progress reaches exactly 1.0 on the completing tick."""
        progress = []
        completed = []
        timer_id = self.scheduler.create_timer(
            Second(1), on_progress=progress.append, on_complete=lambda: completed.append(True)
        )
        timer = self.scheduler.get_timer(timer_id)

        for _ in range(4):
            self.scheduler.update(0.25)

        self.assertEqual(progress, [0.25, 0.5, 0.75, 1.0])
        self.assertEqual(completed, [True])
        self.assertTrue(timer.complete)
        self.assertFalse(timer.running)

    def test_completed_timer_is_removed(self):
        """Test that completed timers leave the registry."""
        timer_id = self.scheduler.create_timer(Millisecond(500))
        self.scheduler.update(Millisecond(500))
        with self.assertRaises(KeyError):
            self.scheduler.get_timer(timer_id)
        self.assertFalse(self.scheduler.is_running(timer_id))

    def test_completion_fires_once(self):
        """Test that the completion callback runs exactly once."""
        completed = []
        self.scheduler.create_timer(0.5, on_complete=lambda: completed.append(1))
        for _ in range(10):
            self.scheduler.update(0.25)
        self.assertEqual(completed, [1])

    def test_timer_events(self):
        """Test that lifecycle events are published."""
        timer_id = self.scheduler.create_timer(0.25, name="pushback")
        self.scheduler.update(0.25)
        started = self.channel.history(TimerStarted.TOPIC)
        finished = self.channel.history(TimerCompleted.TOPIC)
        self.assertEqual(started[0].payload, TimerStarted(timer_id, "pushback"))
        self.assertEqual(finished[0].payload, TimerCompleted(timer_id, "pushback"))

    def test_pause_and_resume(self):
        """Test that a paused timer keeps its elapsed time."""
        timer_id = self.scheduler.create_timer(1.0)
        self.scheduler.update(0.25)
        self.assertTrue(self.scheduler.pause(timer_id))
        self.scheduler.update(0.5)
        self.assertEqual(self.scheduler.progress(timer_id), 0.25)
        self.assertTrue(self.scheduler.resume(timer_id))
        self.scheduler.update(0.25)
        self.assertEqual(self.scheduler.progress(timer_id), 0.5)
        self.assertEqual(float(self.scheduler.remaining(timer_id)), 0.5)

    def test_stop_rewinds(self):
        """Test that stop halts the timer and resets elapsed time."""
        timer_id = self.scheduler.create_timer(1.0)
        self.scheduler.update(0.5)
        self.assertTrue(self.scheduler.stop(timer_id))
        self.assertEqual(self.scheduler.progress(timer_id), 0.0)
        self.assertFalse(self.scheduler.is_running(timer_id))

    def test_zero_duration_completes_on_next_tick(self):
        """Test that a zero-length timer completes on the first update."""
        completed = []
        self.scheduler.create_timer(0, on_complete=lambda: completed.append(1))
        self.scheduler.update(0.0)
        self.assertEqual(completed, [1])

    def test_callback_error_is_contained(self):
        """Test that a failing callback does not break the scheduler."""
        def broken(_progress):
            raise ValueError("bad")

        timer_id = self.scheduler.create_timer(0.5, on_progress=broken)
        with self.assertLogs("airfieldsim.timer.scheduler", level="ERROR"):
            self.scheduler.update(0.25)
        self.assertEqual(self.scheduler.progress(timer_id), 0.5)


class TestTimeoutsAndIntervals(unittest.TestCase):
    """Test deferred callbacks on the simulated clock."""

    def setUp(self):
        self.scheduler = Scheduler()

    def test_clock_advances(self):
        """Test that update advances the simulated clock."""
        self.scheduler.update(Millisecond(250))
        self.scheduler.update(0.25)
        self.assertEqual(self.scheduler.clock(), 0.5)
        self.assertEqual(self.scheduler.now, Second(0.5))

    def test_negative_dt_rejected(self):
        """Test that time never runs backwards."""
        with self.assertRaises(ValueError):
            self.scheduler.update(-0.25)

    def test_timeout_fires_on_first_tick_at_or_after_due(self):
        """Test that a timeout fires once its due time is reached."""
        fired = []
        self.scheduler.set_timeout(lambda: fired.append(self.scheduler.clock()), 0.6)
        for _ in range(4):
            self.scheduler.update(0.25)
        self.assertEqual(fired, [0.75])

    def test_timeouts_fire_in_due_order(self):
        """Test ordering by due time, then by registration."""
        fired = []
        self.scheduler.set_timeout(lambda: fired.append("late"), 0.5)
        self.scheduler.set_timeout(lambda: fired.append("early"), 0.25)
        self.scheduler.set_timeout(lambda: fired.append("early_second"), 0.25)
        self.scheduler.update(1.0)
        self.assertEqual(fired, ["early", "early_second", "late"])

    def test_clear_timeout(self):
        """Test that a cleared timeout never fires."""
        fired = []
        timeout_id = self.scheduler.set_timeout(lambda: fired.append(1), 0.25)
        self.assertTrue(self.scheduler.clear_timeout(timeout_id))
        self.assertFalse(self.scheduler.clear_timeout(timeout_id))
        self.assertFalse(self.scheduler.clear_timeout(None))
        self.scheduler.update(1.0)
        self.assertEqual(fired, [])

    def test_timeout_can_clear_later_timeout(self):
        """Test that a timeout cleared by an earlier one on the same tick is skipped."""
        fired = []
        later = []

        def first():
            fired.append("first")
            self.scheduler.clear_timeout(later[0])

        self.scheduler.set_timeout(first, 0.25)
        later.append(self.scheduler.set_timeout(lambda: fired.append("second"), 0.5))
        self.scheduler.update(1.0)
        self.assertEqual(fired, ["first"])

    def test_interval_fires_at_most_once_per_tick(self):
        """Test interval cadence and the one-call-per-tick rule."""
        fired = []
        interval_id = self.scheduler.set_interval(lambda: fired.append(self.scheduler.clock()), 0.5)
        for _ in range(4):
            self.scheduler.update(0.25)
        self.assertEqual(fired, [0.5, 1.0])

        self.scheduler.update(5.0)
        self.assertEqual(len(fired), 3)
        self.assertTrue(self.scheduler.clear_interval(interval_id))

    def test_non_positive_interval_rejected(self):
        """Test that an interval must be positive."""
        with self.assertRaises(ValueError):
            self.scheduler.set_interval(lambda: None, 0)

    def test_clear_all(self):
        """Test that clear_all drops every kind of deferred work."""
        self.scheduler.create_timer(1.0)
        self.scheduler.set_timeout(lambda: None, 1.0)
        self.scheduler.set_interval(lambda: None, 1.0)
        self.scheduler.clear_all()
        info = self.scheduler.debug_info()
        self.assertEqual((info["timers"], info["timeouts"], info["intervals"]), (0, 0, 0))


class TestNonBinaryTicks(unittest.TestCase):
    """Test deadlines with a tick length that has no exact float representation."""

    def setUp(self):
        self.scheduler = Scheduler()

    def test_elapsed_time_does_not_drift(self):
        """Test that ten steps of 0.1 add up to exactly one second."""
        total = ElapsedTime()
        for _ in range(10):
            total.add(0.1)
        self.assertEqual(total.value, 1.0)

        for _ in range(10):
            self.scheduler.update(0.1)
        self.assertEqual(self.scheduler.clock(), 1.0)

    def test_timer_completes_on_due_tick(self):
        """Test that a one-second timer completes on the tenth tick of 0.1 s."""
        progress = []
        ticks = []
        self.scheduler.create_timer(Second(1), on_progress=progress.append, on_complete=lambda: ticks.append(tick))
        for tick in range(1, 21):
            self.scheduler.update(0.1)
        self.assertEqual(ticks, [10])
        self.assertEqual(progress[-1], 1.0)
        self.assertEqual(len(progress), 10)
        self.assertTrue(all(a < b for a, b in zip(progress, progress[1:])))

    def test_timeout_fires_on_due_tick(self):
        """Test that a one-second timeout fires on the tenth tick of 0.1 s."""
        ticks = []
        self.scheduler.set_timeout(lambda: ticks.append(tick), Second(1))
        for tick in range(1, 21):
            self.scheduler.update(0.1)
        self.assertEqual(ticks, [10])

    def test_long_timeout_fires_on_due_tick(self):
        """Test an eight-second timeout over eighty ticks of 0.1 s."""
        ticks = []
        self.scheduler.set_timeout(lambda: ticks.append(tick), Second(8))
        for tick in range(1, 101):
            self.scheduler.update(0.1)
        self.assertEqual(ticks, [80])

    def test_interval_cadence(self):
        """Test that a 0.3 s interval fires every third tick of 0.1 s."""
        ticks = []
        self.scheduler.set_interval(lambda: ticks.append(tick), 0.3)
        for tick in range(1, 13):
            self.scheduler.update(0.1)
        self.assertEqual(ticks, [3, 6, 9, 12])


if __name__ == '__main__':
    unittest.main()
