"""
Tests for route generation and route-level geometry.
"""

import math
import unittest

from airfieldsim.config import default_config
from airfieldsim.geo import Obstacle, Vec3, Waypoint
from airfieldsim.geo.route import (
    calculate_direct_route,
    calculate_landing_approach,
    calculate_route_distance,
    calculate_route_time,
    calculate_takeoff_departure,
    generate_flight_pattern,
    get_taxi_route,
    optimize_route_for_obstacles,
    route_positions,
    segment_intersects_circle,
    simplify_route,
    validate_route,
)
from airfieldsim.types import TaxiDirection, VehicleType


class TestRouteGeneration(unittest.TestCase):
    """Test route builders."""

    def test_taxi_route_lookup(self):
        """Test that the configured to-runway route ends on the threshold."""
        route = get_taxi_route(default_config(), "cessna", "toRunway")
        self.assertEqual(route[0].name, "parking")
        self.assertEqual((route[-1].x, route[-1].z), (-90.0, 0.0))
        self.assertEqual(route[-1].heading, 0.0)

    def test_direct_route_spacing(self):
        """Test intermediate waypoints on a straight route."""
        route = calculate_direct_route(Vec3(0, 1, 0), Vec3(100, 1, 0), spacing=20.0)
        self.assertEqual(len(route), 7)
        self.assertEqual(route[0].name, "start")
        self.assertEqual(route[-1].name, "end")
        self.assertAlmostEqual(route[1].x, 100 / 6)

    def test_short_direct_route(self):
        """Test that a short route has only its two ends."""
        route = calculate_direct_route(Vec3(0, 1, 0), Vec3(5, 1, 0))
        self.assertEqual([w.name for w in route], ["start", "end"])

    def test_rectangular_pattern(self):
        """Test the four named corners of a rectangular pattern."""
        route = generate_flight_pattern(Vec3(0, 0, 0), "rectangular", width=100, height=80, altitude=40)
        self.assertEqual([w.name for w in route], ["pattern_sw", "pattern_se", "pattern_ne", "pattern_nw"])
        self.assertEqual((route[0].x, route[0].z, route[0].y), (-50, -40, 40))

    def test_circular_and_oval_patterns(self):
        """Test evenly spaced circular and oval patterns."""
        circle = generate_flight_pattern(Vec3(0, 0, 0), "circular", radius=50, points=4)
        self.assertEqual(len(circle), 4)
        self.assertAlmostEqual(circle[0].x, 50.0)
        oval = generate_flight_pattern(Vec3(0, 0, 0), "oval", radius=50, points=4)
        self.assertAlmostEqual(oval[0].x, 75.0)
        self.assertAlmostEqual(oval[1].z, 50.0)

    def test_unknown_pattern(self):
        """Test that an unknown pattern name is rejected."""
        with self.assertRaises(ValueError):
            generate_flight_pattern(Vec3(), "zigzag")

    def test_landing_approach_descends_onto_runway(self):
        """Test that the approach comes in from behind and ends at touchdown."""
        runway = default_config().runway
        route = calculate_landing_approach(runway.start, runway.heading)
        self.assertEqual(route[0].name, "initial_approach")
        self.assertAlmostEqual(route[0].x, -240.0)
        self.assertEqual(route[-1].name, "touchdown")
        heights = [w.y for w in route]
        self.assertEqual(heights, sorted(heights, reverse=True))

    def test_takeoff_departure_climbs(self):
        """Test that the departure climbs ahead along the runway heading."""
        runway = default_config().runway
        route = calculate_takeoff_departure(runway.start, runway.heading)
        self.assertEqual(route[0].name, "takeoff_start")
        self.assertEqual(route[-1].name, "initial_cruise")
        self.assertAlmostEqual(route[1].x, runway.start.x + 30.0)
        self.assertGreater(route[-1].x, route[-2].x)
        self.assertTrue(all(w.z == 0.0 for w in route))
        self.assertAlmostEqual(route[-2].y, runway.start.y + 50.0)


class TestRouteGeometry(unittest.TestCase):
    """Test route measurements and transformations."""

    def test_distance_and_time(self):
        """Test route length and travel time."""
        route = (Waypoint(0, 0), Waypoint(30, 0), Waypoint(30, 40))
        self.assertEqual(calculate_route_distance(route), 70.0)
        self.assertEqual(calculate_route_time(route, 7.0), 10.0)
        self.assertEqual(calculate_route_time(route, 0.0), math.inf)

    def test_simplify_drops_collinear_points(self):
        """Test that nearly straight waypoints are removed."""
        route = (Waypoint(0, 0), Waypoint(10, 0.5), Waypoint(20, 0), Waypoint(20, 20))
        simplified = simplify_route(route)
        self.assertEqual([(w.x, w.z) for w in simplified], [(0, 0), (20, 0), (20, 20)])

    def test_segment_circle_intersection(self):
        """Test the segment/circle test on hits and misses."""
        obstacle = Obstacle(50, 0, 5)
        self.assertTrue(segment_intersects_circle(Waypoint(0, 0), Waypoint(100, 0), obstacle))
        self.assertFalse(segment_intersects_circle(Waypoint(0, 20), Waypoint(100, 20), obstacle))
        self.assertTrue(segment_intersects_circle(Waypoint(0, 20), Waypoint(100, 20), obstacle, clearance=20))

    def test_obstacle_detour(self):
        """Test that a blocked leg gets a detour waypoint beside the obstacle."""
        route = (Waypoint(0, 0), Waypoint(100, 0))
        result = optimize_route_for_obstacles(route, [Obstacle(50, 1, 5)], clearance=5)
        self.assertEqual(len(result), 3)
        detour = result[1]
        self.assertEqual(detour.name, "obstacle_avoidance")
        self.assertLess(detour.z, 0.0)
        self.assertFalse(segment_intersects_circle(route[0], detour, Obstacle(50, 1, 5)))

    def test_no_obstacles_keeps_route(self):
        """Test that an unobstructed route is unchanged."""
        route = (Waypoint(0, 0), Waypoint(100, 0))
        self.assertEqual(optimize_route_for_obstacles(route, []), route)

    def test_validate_route(self):
        """Test structural route validation."""
        specs = default_config().specs_for(VehicleType.CESSNA)
        self.assertEqual(validate_route((), specs).issues, ("empty_route",))
        check = validate_route((Waypoint(0, 0), Waypoint(0.5, 0)), specs)
        self.assertIn("waypoint_too_close_1", check.issues)
        sharp = validate_route((Waypoint(0, 0), Waypoint(10, 0), Waypoint(0, 0.5)), specs)
        self.assertTrue(sharp.is_valid)
        self.assertEqual(sharp.warnings, ("sharp_turn_at_waypoint_1",))

    def test_default_taxi_routes_are_valid(self):
        """Test that every configured taxi route passes validation."""
        config = default_config()
        for vehicle_type, routes in config.taxi_routes.items():
            for direction in TaxiDirection:
                check = validate_route(routes[direction], config.specs_for(vehicle_type))
                self.assertTrue(check.is_valid, f"{vehicle_type.value} {direction.value}: {check.issues}")

    def test_route_positions(self):
        """Test the coordinate array used for plotting."""
        array = route_positions((Waypoint(1, 2), Waypoint(3, 4, y=10)))
        self.assertEqual(array.shape, (2, 3))
        self.assertEqual(array[0].tolist(), [1.0, 1.0, 2.0])
        self.assertEqual(array[1].tolist(), [3.0, 10.0, 4.0])
        self.assertEqual(route_positions(()).shape, (0, 3))


if __name__ == '__main__':
    unittest.main()
