"""Route generation and route-level geometry.

Routes are tuples of immutable :class:`Waypoint` values. Generators use numpy
to lay out evenly spaced points; everything returns a fresh tuple and leaves
its inputs untouched.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import math
from typing import TYPE_CHECKING

import numpy as np

from .movement import angular_difference, forward_direction, heading_to
from .point import GROUND_LEVEL, Route, Vec3, Waypoint
from .position import distance_2d

if TYPE_CHECKING:
    from airfieldsim.config import AirfieldConfig, VehicleSpecs
    from airfieldsim.types import TaxiDirection, VehicleType

PATTERN_ALTITUDE = 30.0
OBSTACLE_MARGIN = 5.0


@dataclass(frozen=True)
class Obstacle:
    """Circular keep-out area on the ground plane."""

    x: float
    z: float
    radius: float


@dataclass(frozen=True)
class RouteCheck:
    issues: tuple[str, ...]
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.issues


def get_taxi_route(config: AirfieldConfig, vehicle_type: VehicleType | str, direction: TaxiDirection | str) -> Route:
    return config.taxi_route(vehicle_type, direction)


def calculate_direct_route(start: Vec3, end: Vec3, spacing: float = 20.0) -> Route:
    """Straight route with intermediate waypoints every ``spacing`` units."""
    count = int(distance_2d(start, end) // spacing) if spacing > 0 else 0
    route = [Waypoint.at(start, "start")]
    if count > 0:
        a, b = start.to_array(), end.to_array()
        # count intermediate points strictly between the ends
        for i, t in enumerate(np.linspace(0.0, 1.0, count + 2)[1:-1], start=1):
            route.append(Waypoint.at(Vec3.from_array(a + (b - a) * t), f"waypoint_{i}"))
    route.append(Waypoint.at(end, "end"))
    return tuple(route)


def generate_flight_pattern(
    center: Vec3,
    pattern: str = "rectangular",
    width: float = 100.0,
    height: float = 80.0,
    radius: float = 50.0,
    altitude: float = PATTERN_ALTITUDE,
    points: int = 8,
) -> Route:
    """Closed pattern around ``center`` at a fixed altitude.

    Args:
        pattern: ``"rectangular"`` (four named corners), ``"circular"`` or
            ``"oval"`` (``points`` evenly spaced, the oval 1.5x wider in x).

    Raises:
        ValueError: For an unknown pattern name.
    """
    if pattern == "rectangular":
        hw, hh = width / 2, height / 2
        corners = (
            ("pattern_sw", -hw, -hh),
            ("pattern_se", hw, -hh),
            ("pattern_ne", hw, hh),
            ("pattern_nw", -hw, hh),
        )
        return tuple(Waypoint(center.x + dx, center.z + dz, name, y=altitude) for name, dx, dz in corners)

    if pattern in ("circular", "oval"):
        angles = np.linspace(0.0, 2 * math.pi, points, endpoint=False)
        rx = radius * (1.5 if pattern == "oval" else 1.0)
        xs = center.x + rx * np.cos(angles)
        zs = center.z + radius * np.sin(angles)
        return tuple(
            Waypoint(float(x), float(z), f"pattern_{i}", y=altitude) for i, (x, z) in enumerate(zip(xs, zs))
        )

    raise ValueError(f"unknown flight pattern: {pattern!r}")


def calculate_landing_approach(
    runway_end: Vec3,
    runway_heading: float,
    approach_distance: float = 150.0,
    approach_height: float = 30.0,
    final_distance: float = 50.0,
    final_height: float = 10.0,
    waypoints: int = 4,
) -> Route:
    """Descending approach that ends on ``runway_end`` flying ``runway_heading``."""
    back = -forward_direction(runway_heading)
    distances = np.linspace(approach_distance, final_distance, max(waypoints, 2))
    heights = np.linspace(approach_height, final_height, max(waypoints, 2))
    route = []
    last = len(distances) - 1
    for i, (d, h) in enumerate(zip(distances, heights)):
        name = "initial_approach" if i == 0 else "final_approach" if i == last else f"approach_{i}"
        route.append(Waypoint(float(runway_end.x + back[0] * d), float(runway_end.z + back[1] * d), name, y=float(h)))
    route.append(Waypoint(runway_end.x, runway_end.z, "touchdown", y=runway_end.y))
    return tuple(route)


def calculate_takeoff_departure(
    runway_start: Vec3,
    runway_heading: float,
    climb_distance: float = 100.0,
    climb_height: float = 50.0,
    cruise_height: float = 40.0,
    waypoints: int = 4,
    rotation_distance: float = 30.0,
) -> Route:
    """Takeoff roll, rotation, climb and level-off points along the runway heading."""
    ahead = forward_direction(runway_heading)

    def along(distance: float, y: float, name: str) -> Waypoint:
        return Waypoint(float(runway_start.x + ahead[0] * distance), float(runway_start.z + ahead[1] * distance), name, y=y)

    route = [along(0.0, runway_start.y, "takeoff_start"), along(rotation_distance, runway_start.y, "rotation")]
    for i in range(1, waypoints + 1):
        progress = i / waypoints
        route.append(along(climb_distance * progress, runway_start.y + climb_height * progress, f"climb_{i}"))
    route.append(along(climb_distance + 50.0, cruise_height, "initial_cruise"))
    return tuple(route)


def segment_intersects_circle(a, b, obstacle: Obstacle, clearance: float = 0.0) -> bool:
    """Line-circle test for the segment ``a -> b`` on the ground plane."""
    d = np.array([b.x - a.x, b.z - a.z])
    f = np.array([a.x - obstacle.x, a.z - obstacle.z])
    r = obstacle.radius + clearance
    qa = float(d @ d)
    qb = 2 * float(f @ d)
    qc = float(f @ f) - r * r
    if qa == 0:
        return qc <= 0
    disc = qb * qb - 4 * qa * qc
    if disc < 0:
        return False
    root = math.sqrt(disc)
    t1 = (-qb - root) / (2 * qa)
    t2 = (-qb + root) / (2 * qa)
    # endpoint hits, or the whole segment inside the circle
    return 0 <= t1 <= 1 or 0 <= t2 <= 1 or (t1 < 0 and t2 > 1)


def optimize_route_for_obstacles(route: Sequence[Waypoint], obstacles: Sequence[Obstacle], clearance: float = 10.0) -> Route:
    """Insert one detour waypoint beside each obstacle a leg passes through."""
    if not obstacles or len(route) < 2:
        return tuple(route)

    result = [route[0]]
    for start, end in zip(route, route[1:]):
        for obstacle in obstacles:
            if segment_intersects_circle(start, end, obstacle, clearance):
                result.append(_detour(start, end, obstacle, clearance))
                break
        result.append(end)
    return tuple(result)


def _detour(start: Waypoint, end: Waypoint, obstacle: Obstacle, clearance: float) -> Waypoint:
    leg = np.array([end.x - start.x, end.z - start.z])
    length = float(np.linalg.norm(leg))
    normal = np.array([-leg[1], leg[0]]) / length if length else np.array([1.0, 0.0])
    # push to the side of the leg the obstacle centre is not on
    side = np.array([obstacle.x - start.x, obstacle.z - start.z]) @ normal
    if side > 0:
        normal = -normal
    offset = obstacle.radius + clearance + OBSTACLE_MARGIN
    x, z = np.array([obstacle.x, obstacle.z]) + normal * offset
    altitude = None if start.y is None or end.y is None else (start.y + end.y) / 2
    return Waypoint(float(x), float(z), "obstacle_avoidance", y=altitude)


def calculate_route_distance(route: Sequence[Waypoint]) -> float:
    return sum(distance_2d(a, b) for a, b in zip(route, route[1:]))


def calculate_route_time(route: Sequence[Waypoint], average_speed: float) -> float:
    """Seconds needed at ``average_speed``; infinite for a non-positive speed."""
    if average_speed <= 0:
        return math.inf
    return calculate_route_distance(route) / average_speed


def simplify_route(route: Sequence[Waypoint], tolerance: float = 2.0) -> Route:
    """Drop waypoints whose detour cost does not exceed ``tolerance``."""
    if len(route) <= 2:
        return tuple(route)
    kept = [route[0]]
    for current, following in zip(route[1:-1], route[2:]):
        previous = kept[-1]
        detour = distance_2d(previous, current) + distance_2d(current, following) - distance_2d(previous, following)
        if detour > tolerance:
            kept.append(current)
    kept.append(route[-1])
    return tuple(kept)


def validate_route(route: Sequence[Waypoint], specs: VehicleSpecs) -> RouteCheck:
    """Structural checks; sharp turns are reported as warnings only."""
    if not route:
        return RouteCheck(("empty_route",))
    issues = []
    warnings = []
    if len(route) < 2:
        issues.append("insufficient_waypoints")
    for i, (a, b) in enumerate(zip(route, route[1:]), start=1):
        if distance_2d(a, b) < 1.0:
            issues.append(f"waypoint_too_close_{i}")
    max_turn = specs.turn_rate * 10
    for i in range(1, len(route) - 1):
        turn = angular_difference(heading_to(route[i - 1], route[i]), heading_to(route[i], route[i + 1]))
        if abs(turn) > max_turn:
            warnings.append(f"sharp_turn_at_waypoint_{i}")
    return RouteCheck(tuple(issues), tuple(warnings))


def route_positions(route: Sequence[Waypoint], default_y: float = GROUND_LEVEL) -> np.ndarray:
    """``(n, 3)`` array of waypoint coordinates, for plotting and analysis."""
    return np.array([[w.x, default_y if w.y is None else w.y, w.z] for w in route], dtype=float).reshape(-1, 3)
