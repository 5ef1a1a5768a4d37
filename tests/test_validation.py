"""
Tests for the business-rule validation functions.
"""

import math
import unittest

from airfieldsim.config import default_config
from airfieldsim.errors import ValidationFailure
from airfieldsim.geo import Vec3
from airfieldsim.operations import FlightPhase, FlightPlan
from airfieldsim.types import VehicleType
from airfieldsim.unit import Second
from airfieldsim.validation import (
    operation_validation_summary,
    validate_flight_plan,
    validate_ground_vehicle_operation,
    validate_landing_requirements,
    validate_runway_usage,
    validate_state_transition,
    validate_takeoff_requirements,
    validate_taxi_requirements,
)
from airfieldsim.vehicles import GroundSupportVehicle, Vehicle


class TestTaxiRules(unittest.TestCase):
    """Test taxi preconditions."""

    def setUp(self):
        self.config = default_config()
        self.cessna = Vehicle.at_parking("c1", "cessna", self.config)

    def test_parked_vehicle_may_taxi_out(self):
        """Test the happy path for taxiing to the runway."""
        self.assertTrue(validate_taxi_requirements(self.cessna, "to_runway", self.config).is_valid)

    def test_vehicle_away_from_parking(self):
        """Test that taxiing out requires the parking spot."""
        self.cessna.position = Vec3(0, 1, 0)
        result = validate_taxi_requirements(self.cessna, "to_runway", self.config)
        self.assertIn("not_at_parking_position", result.violations)
        self.assertIn("must_be_at_parking_position", result.requirements)

    def test_taxi_in_requires_runway(self):
        """Test that taxiing back requires being on the runway."""
        result = validate_taxi_requirements(self.cessna, "from_runway", self.config)
        self.assertEqual(result.violations, ("not_on_runway",))
        self.cessna.position = Vec3(-80, 1, 0)
        self.assertTrue(validate_taxi_requirements(self.cessna, "from_runway", self.config).is_valid)

    def test_speed_and_towing(self):
        """Test the speed limit and the towing flag."""
        self.cessna.speed = 7.0
        self.cessna.is_being_towed = True
        result = validate_taxi_requirements(self.cessna, "to_runway", self.config)
        self.assertIn("speed_too_high", result.violations)
        self.assertIn("already_being_towed", result.violations)

    def test_helicopter_never_taxis(self):
        """Test that vertical takeoff vehicles are refused."""
        heli = Vehicle.at_parking("h1", "helicopter", self.config)
        result = validate_taxi_requirements(heli, "to_runway", self.config)
        self.assertEqual(result.violations, ("vertical_takeoff_no_taxi",))

    def test_unknown_inputs(self):
        """Test missing vehicles and bad directions."""
        self.assertEqual(validate_taxi_requirements(None, "to_runway", self.config).violations, ("invalid_vehicle",))
        result = validate_taxi_requirements(self.cessna, "sideways", self.config)
        self.assertEqual(result.violations, ("unknown_taxi_direction",))


class TestFlightRules(unittest.TestCase):
    """Test takeoff, landing and transition rules."""

    def setUp(self):
        self.config = default_config()
        self.cessna = Vehicle.at_parking("c1", "cessna", self.config)

    def test_takeoff_from_threshold(self):
        """Test that a lined-up vehicle on the threshold may take off."""
        self.assertEqual(validate_takeoff_requirements(self.cessna, self.config).violations, ("not_at_runway_threshold",))
        self.cessna.position = Vec3(-90, 1, 0)
        self.assertTrue(validate_takeoff_requirements(self.cessna, self.config).is_valid)

    def test_takeoff_heading(self):
        """Test that takeoff needs the runway heading."""
        self.cessna.position = Vec3(-90, 1, 0)
        self.cessna.rotation = Vec3(0, math.pi / 2, 0)
        self.assertIn("incorrect_heading", validate_takeoff_requirements(self.cessna, self.config).violations)

    def test_landing_rules(self):
        """Test altitude and speed rules for landing."""
        self.assertIn("not_airborne", validate_landing_requirements(self.cessna, self.config).violations)
        self.cessna.position = Vec3(150, 40, 0)
        self.cessna.speed = 20.0
        self.assertTrue(validate_landing_requirements(self.cessna, self.config).is_valid)
        self.cessna.speed = 49.0
        self.assertIn("speed_too_high", validate_landing_requirements(self.cessna, self.config).violations)

    def test_state_transition_table(self):
        """Test lifecycle transitions against the table."""
        ok = validate_state_transition("parked", "taxi_to_runway", self.cessna, self.config)
        self.assertTrue(ok.is_valid)
        bad = validate_state_transition("parked", "landing", self.cessna, self.config)
        self.assertIn("invalid_transition_parked_to_landing", bad.violations)
        self.assertIn("not_airborne", bad.violations)

    def test_runway_usage_conflicts(self):
        """Test conflicts with vehicles on the runway or on approach."""
        on_runway = Vehicle.at_parking("f1", "fighter", self.config)
        on_runway.position = Vec3(0, 1, 0)
        approaching = Vehicle.at_parking("a1", "airliner", self.config)
        approaching.position = Vec3(130, 40, 10)
        result = validate_runway_usage(self.cessna, [self.cessna, on_runway, approaching], self.config)
        self.assertFalse(result.is_valid)
        self.assertEqual(result.warnings, ("runway_occupied_by_f1", "approach_conflict_with_a1"))
        self.assertTrue(validate_runway_usage(self.cessna, [], self.config).is_valid)

    def test_summary(self):
        """Test the flattened summary."""
        summary = operation_validation_summary("takeoff", self.cessna, self.config)
        self.assertFalse(summary["is_valid"])
        self.assertEqual(summary["violations"], ["not_at_runway_threshold"])
        unknown = operation_validation_summary("juggling", self.cessna, self.config)
        self.assertEqual(unknown["violations"], ["unknown_operation_juggling"])


class TestPlanAndSupportRules(unittest.TestCase):
    """Test flight plan and ground vehicle rules."""

    def setUp(self):
        self.config = default_config()

    def test_flight_plan_structure(self):
        """Test empty plans and non-positive durations."""
        empty = FlightPlan(VehicleType.CESSNA, Vec3(), ())
        self.assertEqual(validate_flight_plan(empty, self.config).violations, ("empty_phases",))
        self.assertEqual(validate_flight_plan(None, self.config).violations, ("missing_flight_plan",))
        zero = FlightPlan(VehicleType.CESSNA, Vec3(), (FlightPhase("climb"),))
        self.assertIn("phase_0_non_positive_duration", validate_flight_plan(zero, self.config).violations)

    def test_delegated_phases_need_no_duration(self):
        """Test that delegated phases are valid without a duration."""
        plan = FlightPlan(
            VehicleType.CESSNA,
            Vec3(),
            (FlightPhase("taxi_to_runway"), FlightPhase("takeoff", Second(5), Vec3(0, 30, 0))),
        )
        result = validate_flight_plan(plan, self.config)
        self.assertTrue(result.is_valid)
        self.assertEqual(result.warnings, ())

    def test_questionable_transition_is_warning(self):
        """Test that phases outside the lifecycle table only warn."""
        plan = FlightPlan(
            VehicleType.CESSNA,
            Vec3(),
            (FlightPhase("climb", Second(1)), FlightPhase("patrol_north", Second(1))),
        )
        result = validate_flight_plan(plan, self.config)
        self.assertTrue(result.is_valid)
        self.assertEqual(result.warnings, ("questionable_transition_1",))

    def test_ground_vehicle_operation(self):
        """Test tug suitability."""
        tug = GroundSupportVehicle("tug_1", "pushback_tug", Vec3())
        self.assertTrue(validate_ground_vehicle_operation(tug, "pushback").is_valid)
        fuel = GroundSupportVehicle("fuel_1", "fuel_truck", Vec3())
        self.assertIn("wrong_vehicle_type", validate_ground_vehicle_operation(fuel, "pushback").violations)
        tug.reserve("c1")
        self.assertIn("vehicle_not_available", validate_ground_vehicle_operation(tug, "pushback").violations)
        self.assertEqual(validate_ground_vehicle_operation(None, "pushback").violations, ("invalid_vehicle",))

    def test_validation_failure_message(self):
        """Test that the exception lists every violation."""
        error = ValidationFailure(["a", "b"], "Taxi validation failed")
        self.assertEqual(error.violations, ["a", "b"])
        self.assertEqual(str(error), "Taxi validation failed: a, b")


if __name__ == '__main__':
    unittest.main()
