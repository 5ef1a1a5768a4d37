"""
Tests for the synchronous event channel.
"""

import unittest

from airfieldsim.events import (
    WILDCARD,
    EventChannel,
    EventRecord,
    GroundVehicleUnavailable,
    LandingAborted,
)


class TestEventChannel(unittest.TestCase):
    """Test publish/subscribe delivery."""

    def setUp(self):
        self.channel = EventChannel(clock=lambda: 42.0)

    def test_publish_delivers_payload(self):
        """Test that subscribers receive the payload synchronously."""
        received = []
        self.channel.subscribe("demo", received.append)
        delivered = self.channel.publish("demo", {"value": 1})
        self.assertEqual(delivered, 1)
        self.assertEqual(received, [{"value": 1}])

    def test_emit_uses_event_topic(self):
        """Test that typed events are published under their own topic."""
        received = []
        self.channel.subscribe(GroundVehicleUnavailable.TOPIC, received.append)
        self.channel.emit(GroundVehicleUnavailable("c1"))
        self.assertEqual(received, [GroundVehicleUnavailable("c1")])

    def test_unsubscribe_function(self):
        """Test that the returned function removes the subscription."""
        received = []
        unsubscribe = self.channel.subscribe("demo", received.append)
        unsubscribe()
        self.assertEqual(self.channel.publish("demo", 1), 0)
        self.assertEqual(received, [])
        self.assertEqual(self.channel.listener_count("demo"), 0)

    def test_subscribe_once(self):
        """Test that a once-handler only sees the first publish."""
        received = []
        self.channel.subscribe_once("demo", received.append)
        self.channel.publish("demo", 1)
        self.channel.publish("demo", 2)
        self.assertEqual(received, [1])

    def test_wildcard_receives_records(self):
        """Test that wildcard handlers receive an EventRecord for every topic."""
        records = []
        self.channel.subscribe(WILDCARD, records.append)
        self.channel.publish("a", 1)
        self.channel.emit(LandingAborted("c1", "go_around"))
        self.assertEqual(len(records), 2)
        self.assertIsInstance(records[0], EventRecord)
        self.assertEqual(records[0].topic, "a")
        self.assertEqual(records[1].topic, LandingAborted.TOPIC)
        self.assertEqual(records[1].timestamp, 42.0)

    def test_handler_error_does_not_stop_delivery(self):
        """Test that a failing handler is isolated from the others."""
        received = []

        def broken(_payload):
            raise RuntimeError("boom")

        self.channel.subscribe("demo", broken)
        self.channel.subscribe("demo", received.append)
        with self.assertLogs("airfieldsim.events.channel", level="ERROR"):
            delivered = self.channel.publish("demo", "x")
        self.assertEqual(delivered, 2)
        self.assertEqual(received, ["x"])

    def test_handler_may_unsubscribe_later_handler(self):
        """Test that a handler removed during a publish is not called."""
        received = []
        second = received.append

        def first(_payload):
            self.channel.unsubscribe("demo", second)

        self.channel.subscribe("demo", first)
        self.channel.subscribe("demo", second)
        self.channel.publish("demo", 1)
        self.assertEqual(received, [])

    def test_nesting_limit(self):
        """Test that runaway recursive publishing is cut off."""
        channel = EventChannel(max_depth=3)
        calls = []

        def recurse(payload):
            calls.append(payload)
            channel.publish("loop", payload + 1)

        channel.subscribe("loop", recurse)
        with self.assertLogs("airfieldsim.events.channel", level="ERROR"):
            channel.publish("loop", 0)
        self.assertEqual(calls, [0, 1, 2])
        self.assertEqual(channel.debug_info()["dropped"], 1)

    def test_history_filter_and_limit(self):
        """Test history filtering by topic and limit."""
        for i in range(5):
            self.channel.publish("a" if i % 2 else "b", i)
        self.assertEqual([r.payload for r in self.channel.history("a")], [1, 3])
        self.assertEqual([r.payload for r in self.channel.history(limit=2)], [3, 4])
        self.assertEqual(self.channel.history(limit=0), [])

    def test_history_is_bounded(self):
        """Test that old records are evicted."""
        channel = EventChannel(history_size=3)
        for i in range(10):
            channel.publish("t", i)
        self.assertEqual([r.payload for r in channel.history()], [7, 8, 9])

    def test_disabled_channel(self):
        """Test that a disabled channel neither records nor delivers."""
        received = []
        self.channel.subscribe("demo", received.append)
        self.channel.enabled = False
        self.assertEqual(self.channel.publish("demo", 1), 0)
        self.assertEqual(received, [])
        self.assertEqual(self.channel.history(), [])

    def test_clear(self):
        """Test that clear drops subscribers and history."""
        self.channel.subscribe("demo", lambda _p: None)
        self.channel.publish("demo", 1)
        self.channel.clear()
        self.assertEqual(self.channel.listener_count(), 0)
        self.assertEqual(self.channel.history(), [])


if __name__ == '__main__':
    unittest.main()
