"""
Tests for local-frame value types, position predicates and kinematics.
"""

import math
import unittest

from airfieldsim.config import default_config
from airfieldsim.geo import (
    GROUND_LEVEL,
    Pose,
    Vec3,
    Waypoint,
    angular_difference,
    calculate_movement_to_waypoint,
    calculate_taxi_movement,
    calculate_turn,
    heading_to,
    interpolate_position,
    normalize_angle,
    smooth_interpolate_position,
)
from airfieldsim.geo.movement import (
    apply_drag,
    calculate_acceleration,
    calculate_bank_angle,
    calculate_pitch_angle,
    forward_direction,
)
from airfieldsim.geo.position import (
    closest_waypoint,
    distance_2d,
    has_reached_waypoint,
    is_airborne,
    is_at_parking_position,
    is_at_runway_end,
    is_at_runway_threshold,
    is_at_safe_altitude,
    is_heading_aligned,
    is_on_runway,
    is_speed_aligned,
    is_within_airport_bounds,
    route_progress,
)
from airfieldsim.types import VehicleType


class TestValueTypes(unittest.TestCase):
    """Test Vec3, Waypoint and Pose."""

    def test_vector_arithmetic(self):
        """Test vector addition, subtraction and scaling."""
        a = Vec3(1, 2, 3)
        b = Vec3(4, 5, 6)
        self.assertEqual(a + b, Vec3(5, 7, 9))
        self.assertEqual(b - a, Vec3(3, 3, 3))
        self.assertEqual(a.scaled(2), Vec3(2, 4, 6))

    def test_vector_is_immutable(self):
        """Test that with_ returns a copy."""
        a = Vec3(1, 2, 3)
        b = a.with_(y=10)
        self.assertEqual(a.y, 2)
        self.assertEqual(b, Vec3(1, 10, 3))

    def test_distances(self):
        """Test 3D and horizontal distance."""
        a = Vec3(0, 0, 0)
        b = Vec3(3, 12, 4)
        self.assertEqual(a.horizontal_distance_to(b), 5.0)
        self.assertEqual(a.distance_to(b), 13.0)

    def test_array_round_trip(self):
        """Test conversion to and from numpy arrays and mappings."""
        v = Vec3(1.5, -2, 3)
        self.assertEqual(Vec3.from_array(v.to_array()), v)
        self.assertEqual(Vec3.from_mapping({"x": 1, "z": 2}), Vec3(1, 0, 2))

    def test_waypoint_position_defaults_to_ground(self):
        """Test that ground waypoints sit at ground level."""
        self.assertEqual(Waypoint(10, 20).position(), Vec3(10, GROUND_LEVEL, 20))
        self.assertEqual(Waypoint(10, 20, y=30).position(), Vec3(10, 30, 20))

    def test_pose_moved(self):
        """Test that moved replaces only the given fields."""
        pose = Pose(Vec3(0, 1, 0), Vec3(0.1, 0.5, 0.2), 3.0)
        moved = pose.moved(heading=1.0)
        self.assertEqual(moved.rotation, Vec3(0.1, 1.0, 0.2))
        self.assertEqual(moved.position, pose.position)
        self.assertEqual(moved.speed, 3.0)
        self.assertEqual(pose.heading, 0.5)


class TestHeadingMath(unittest.TestCase):
    """Test the heading convention and angle helpers."""

    def test_heading_convention(self):
        """Test that heading 0 faces +x and headings grow toward -z."""
        origin = Vec3(0, 1, 0)
        self.assertAlmostEqual(heading_to(origin, Vec3(10, 1, 0)), 0.0)
        self.assertAlmostEqual(heading_to(origin, Vec3(-10, 1, 0)), math.pi)
        self.assertAlmostEqual(heading_to(origin, Vec3(0, 1, -10)), math.pi / 2)
        forward = forward_direction(math.pi / 2)
        self.assertAlmostEqual(forward[0], 0.0)
        self.assertAlmostEqual(forward[1], -1.0)

    def test_normalize_angle(self):
        """Test wrapping into [0, 2pi)."""
        self.assertAlmostEqual(normalize_angle(-math.pi / 2), 3 * math.pi / 2)
        self.assertAlmostEqual(normalize_angle(5 * math.pi), math.pi)
        self.assertEqual(normalize_angle(0.0), 0.0)

    def test_angular_difference_is_shortest(self):
        """Test the shortest signed rotation."""
        self.assertAlmostEqual(angular_difference(0.1, 2 * math.pi - 0.1), -0.2)
        self.assertAlmostEqual(angular_difference(2 * math.pi - 0.1, 0.1), 0.2)

    def test_turn_is_rate_limited(self):
        """Test that a turn moves by at most rate * dt."""
        self.assertAlmostEqual(calculate_turn(0.0, math.pi, 0.1, 1.0), 0.1)

    def test_turn_converges(self):
        """Test that repeated turns snap onto the target."""
        heading = 0.0
        for _ in range(40):
            heading = calculate_turn(heading, math.pi, 0.1, 1.0)
        self.assertEqual(heading, math.pi)

    def test_acceleration(self):
        """Test that speed changes are limited and snap to the target."""
        self.assertEqual(calculate_acceleration(0.0, 10.0, 2.0, 1.0), 2.0)
        self.assertEqual(calculate_acceleration(9.5, 10.0, 2.0, 1.0), 10.0)
        self.assertEqual(calculate_acceleration(10.0, 0.0, 2.0, 1.0), 8.0)

    def test_pitch_angle_clamped(self):
        """Test that the flight-path angle is clamped."""
        self.assertEqual(calculate_pitch_angle(5.0, 0.0), 0.0)
        self.assertEqual(calculate_pitch_angle(100.0, 1.0, max_pitch=0.3), 0.3)

    def test_bank_angle_and_drag(self):
        """Test the bank angle clamp and velocity drag."""
        self.assertEqual(calculate_bank_angle(0.0, 1.0), 0.0)
        self.assertAlmostEqual(calculate_bank_angle(20.0, 0.2), 0.2)
        self.assertEqual(calculate_bank_angle(100.0, -1.0), -0.5)
        self.assertEqual(apply_drag(Vec3(10, 0, -4), 0.5, 1.0), Vec3(5, 0, -2))
        self.assertEqual(apply_drag(Vec3(10, 0, 0), 3.0, 1.0), Vec3(0, 0, 0))


class TestInterpolationAndMovement(unittest.TestCase):
    """Test interpolation and per-tick movement."""

    def test_interpolation_is_clamped(self):
        """Test linear interpolation with clamped progress."""
        a, b = Vec3(0, 0, 0), Vec3(10, 20, 30)
        self.assertEqual(interpolate_position(a, b, 0.5), Vec3(5, 10, 15))
        self.assertEqual(interpolate_position(a, b, 2.0), b)
        self.assertEqual(interpolate_position(a, b, -1.0), a)

    def test_smooth_interpolation_midpoint(self):
        """Test that ease-in-out passes the midpoint at half progress."""
        a, b = Vec3(0, 0, 0), Vec3(10, 0, 0)
        self.assertEqual(smooth_interpolate_position(a, b, 0.5), Vec3(5, 0, 0))
        self.assertLess(smooth_interpolate_position(a, b, 0.25).x, 2.5)

    def test_movement_is_capped_at_distance(self):
        """Test that a step never overshoots its target."""
        step = calculate_movement_to_waypoint(Vec3(0, 10, 0), Vec3(10, 10, 0), speed=100.0, dt=1.0)
        self.assertEqual(step.position, Vec3(10, 10, 0))
        self.assertTrue(step.reached)

    def test_movement_partial_step(self):
        """Test a partial step along a straight line."""
        step = calculate_movement_to_waypoint(Vec3(0, 10, 0), Vec3(10, 10, 0), speed=4.0, dt=0.5)
        self.assertAlmostEqual(step.position.x, 2.0)
        self.assertAlmostEqual(step.distance, 8.0)
        self.assertAlmostEqual(step.heading, 0.0)
        self.assertFalse(step.reached)

    def test_taxi_movement_stays_on_ground(self):
        """Test that taxi steps keep y at ground level and use taxi speed."""
        specs = default_config().specs_for(VehicleType.CESSNA)
        step = calculate_taxi_movement(Vec3(0, 5, 0), Waypoint(30, 0), heading=0.0, specs=specs, dt=1.0)
        self.assertEqual(step.position.y, GROUND_LEVEL)
        self.assertAlmostEqual(step.position.x, specs.taxi_speed)
        self.assertAlmostEqual(step.speed, specs.taxi_speed)

    def test_misaligned_taxi_creeps(self):
        """Test that a vehicle facing away rolls slowly while it turns."""
        specs = default_config().specs_for(VehicleType.CESSNA)
        step = calculate_taxi_movement(Vec3(0, 1, 0), Waypoint(30, 0), heading=math.pi, specs=specs, dt=1.0)
        self.assertLess(step.speed, specs.taxi_speed * 0.5)
        self.assertAlmostEqual(abs(angular_difference(math.pi, step.heading)), 0.3)

    def test_taxi_arrival(self):
        """Test that a vehicle already at the target stops."""
        specs = default_config().specs_for(VehicleType.CESSNA)
        step = calculate_taxi_movement(Vec3(0, 1, 0), Waypoint(0.2, 0), heading=0.0, specs=specs, dt=1.0)
        self.assertTrue(step.reached)
        self.assertEqual(step.speed, 0.0)


class TestPositionPredicates(unittest.TestCase):
    """Test position checks against the default airfield."""

    def setUp(self):
        self.config = default_config()

    def test_runway_checks(self):
        """Test runway threshold and runway rectangle predicates."""
        runway = self.config.runway
        self.assertTrue(is_at_runway_threshold(Vec3(-89, 1, 1), runway))
        self.assertFalse(is_at_runway_threshold(Vec3(-80, 1, 0), runway))
        self.assertTrue(is_on_runway(Vec3(0, 1, 15), runway))
        self.assertFalse(is_on_runway(Vec3(0, 1, 25), runway))
        self.assertFalse(is_on_runway(Vec3(120, 1, 0), runway))

    def test_parking_and_airborne(self):
        """Test the parking spot and airborne predicates."""
        spot = self.config.parking_for(VehicleType.CESSNA)
        specs = self.config.specs_for(VehicleType.CESSNA)
        self.assertTrue(is_at_parking_position(Vec3(-20, 1, 26), spot))
        self.assertFalse(is_at_parking_position(Vec3(-20, 1, 35), spot))
        self.assertFalse(is_airborne(Vec3(0, 5, 0), specs))
        self.assertTrue(is_airborne(Vec3(0, 7, 0), specs))

    def test_envelope_predicates(self):
        """Test runway end, safe altitude, airport bounds and alignment checks."""
        self.assertTrue(is_at_runway_end(Vec3(89, 1, 0), self.config.runway))
        self.assertFalse(is_at_runway_end(Vec3(-90, 1, 0), self.config.runway))
        self.assertTrue(is_at_safe_altitude(Vec3(0, 30, 0)))
        self.assertFalse(is_at_safe_altitude(Vec3(0, 29, 0)))
        self.assertTrue(is_within_airport_bounds(Vec3(-200, 50, 150)))
        self.assertFalse(is_within_airport_bounds(Vec3(0, 50, 201)))
        self.assertTrue(is_heading_aligned(0.05, 2 * math.pi - 0.04))
        self.assertFalse(is_heading_aligned(0.0, 0.2))
        self.assertTrue(is_speed_aligned(10.0, 10.8))
        self.assertFalse(is_speed_aligned(10.0, 11.5))

    def test_waypoint_helpers(self):
        """Test waypoint reach, nearest waypoint and route progress."""
        route = (Waypoint(0, 0), Waypoint(10, 0), Waypoint(20, 0))
        self.assertTrue(has_reached_waypoint(Vec3(9, 1, 1), route[1]))
        self.assertEqual(closest_waypoint(Vec3(18, 1, 0), route)[0], 2)
        self.assertIsNone(closest_waypoint(Vec3(0, 1, 0), ()))
        self.assertAlmostEqual(route_progress(Vec3(15, 1, 0), route, 2), 2 / 3 + 0.5 / 3)
        self.assertEqual(route_progress(Vec3(0, 1, 0), route, 3), 1.0)
        self.assertEqual(distance_2d(Vec3(0, 1, 0), Waypoint(3, 4)), 5.0)


if __name__ == '__main__':
    unittest.main()
