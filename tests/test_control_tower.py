"""
Tests for the control tower dispatch and recall cycle.
"""

import unittest

from airfieldsim.geo import Vec3
from airfieldsim.simulator import AirfieldSimulator

DT = 0.25


class TowerTestCase(unittest.TestCase):
    """Shared simulator harness."""

    def setUp(self):
        self.sim = AirfieldSimulator(record_trace=False)
        self.tower = self.sim.tower
        self.cessna = self.sim.add_vehicle("c1", "cessna")
        self.heli = self.sim.add_vehicle("h1", "helicopter")

    def tearDown(self):
        self.sim.dispose()

    def steps(self, count):
        for _ in range(count):
            self.sim.step(DT)

    def run_until_parked(self, vehicle_id, max_ticks):
        for _ in range(max_ticks):
            if not self.tower.is_dispatched(vehicle_id):
                return
            self.sim.step(DT)
        self.fail(f"{vehicle_id} still dispatched after {max_ticks} ticks")

    def assertParked(self, vehicle):
        spot = self.sim.config.parking_for(vehicle.type)
        self.assertEqual(vehicle.position, spot.position)
        self.assertEqual(vehicle.heading, spot.heading)
        self.assertEqual(vehicle.speed, 0.0)
        self.assertFalse(vehicle.is_active)
        self.assertIsNone(vehicle.active_operation)


class TestDispatch(TowerTestCase):
    """Test dispatching vehicles and their full cycle."""

    def test_dispatch_marks_active(self):
        """Test that a dispatch starts the plan and marks the vehicle active."""
        self.assertTrue(self.tower.dispatch("c1"))
        self.assertTrue(self.cessna.is_active)
        self.assertTrue(self.tower.is_dispatched("c1"))
        self.assertEqual(self.tower.dispatch_info("c1").plan.phase_names[0], "taxi_to_runway")
        self.assertFalse(self.tower.dispatch("c1"))

    def test_unknown_vehicle(self):
        """Test that unknown ids are refused everywhere."""
        self.assertFalse(self.tower.dispatch("nobody"))
        self.assertFalse(self.tower.recall("nobody"))
        self.assertFalse(self.tower.complete_recall("nobody"))
        self.assertFalse(self.tower.force_reset_to_parking("nobody"))

    def test_helicopter_cycle_parks(self):
        """Test that a helicopter flies its plan and is parked at the end."""
        self.tower.dispatch("h1")
        self.steps(290)
        self.assertTrue(self.tower.is_dispatched("h1"))
        self.run_until_parked("h1", 40)
        self.assertParked(self.heli)
        self.assertEqual(self.sim.scheduler.clock(), 75.0)

    def test_fixed_wing_cycle_parks(self):
        """Test the full taxi, takeoff, pattern, landing and taxi-in cycle."""
        self.tower.dispatch("c1")
        self.run_until_parked("c1", 1600)
        self.assertParked(self.cessna)
        operations = {c.new_state.operation for c in self.sim.store.state_history("c1")}
        self.assertTrue({"taxi", "flight", "landing"} <= operations)
        self.assertTrue(all(t.available for t in self.sim.ground.vehicles))

    def test_status(self):
        """Test the tower status summary."""
        self.tower.dispatch("c1")
        status = self.tower.status()
        self.assertEqual(status["dispatched_count"], 1)
        self.assertEqual(status["total_vehicles"], 2)
        entry = status["dispatched"][0]
        self.assertEqual((entry["vehicle_id"], entry["phase"], entry["recalling"]), ("c1", "taxi_to_runway", False))


class TestRecall(TowerTestCase):
    """Test recalls, emergency recalls and resets."""

    def test_airborne_helicopter_recall(self):
        """Test that a patrolling helicopter flies straight home when recalled."""
        self.tower.dispatch("h1")
        self.steps(60)
        self.assertGreater(self.heli.position.y, 10.0)

        self.assertTrue(self.tower.recall("h1"))
        record = self.tower.dispatch_info("h1")
        self.assertTrue(record.is_recalling)
        self.assertEqual(record.recall_started_at, 15.0)
        self.assertEqual(record.plan.phase_names, ["return_direct", "vertical_landing"])

        self.steps(47)
        self.assertTrue(self.tower.is_dispatched("h1"))
        self.steps(1)
        self.assertFalse(self.tower.is_dispatched("h1"))
        self.assertParked(self.heli)

    def test_toggle(self):
        """Test that toggle dispatches an idle vehicle and recalls a dispatched one."""
        self.assertTrue(self.tower.toggle("h1"))
        self.steps(60)
        self.assertTrue(self.tower.toggle("h1"))
        self.assertTrue(self.tower.dispatch_info("h1").is_recalling)

    def test_emergency_recall_all(self):
        """Test that every dispatched vehicle ends up parked."""
        self.tower.dispatch("c1")
        self.tower.dispatch("h1")
        self.steps(4)
        self.assertEqual(self.tower.emergency_recall_all(), 2)
        self.run_until_parked("c1", 20)
        self.run_until_parked("h1", 20)
        self.assertParked(self.cessna)
        self.assertParked(self.heli)
        self.assertEqual(self.tower.status()["dispatched_count"], 0)
        self.assertTrue(all(t.available for t in self.sim.ground.vehicles))

    def test_force_reset(self):
        """Test that a reset puts the vehicle back whatever it was doing."""
        self.tower.dispatch("c1")
        self.steps(10)
        self.assertNotEqual(self.cessna.position, Vec3(-20.0, 1.0, 25.0))
        self.assertTrue(self.tower.force_reset_to_parking("c1"))
        self.assertParked(self.cessna)
        self.assertFalse(self.tower.force_reset_to_parking("c1"))
        self.assertIsNone(self.sim.taxi.get_operation("c1"))

    def test_complete_recall_refused_while_flying(self):
        """Test that complete_recall waits for the recall flight."""
        self.tower.dispatch("h1")
        self.steps(60)
        self.assertFalse(self.tower.complete_recall("h1"))
        self.tower.recall("h1")
        self.assertFalse(self.tower.complete_recall("h1"))


if __name__ == '__main__':
    unittest.main()
