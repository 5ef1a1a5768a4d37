"""Position predicates and distance helpers.

Pure functions over :class:`Vec3` / :class:`Waypoint` values. Horizontal
("2D") distances use ``x`` and ``z`` only; 3D distances include altitude.
Functions that need airfield geometry take the runway or parking spot as an
argument instead of reaching for global configuration.
"""

from __future__ import annotations

from collections.abc import Sequence
import math
from typing import TYPE_CHECKING

from .movement import angular_difference, heading_to
from .point import GROUND_LEVEL, Vec3, Waypoint

if TYPE_CHECKING:
    from airfieldsim.config import ParkingSpot, RunwayConfig, VehicleSpecs

DEFAULT_POSITION_TOLERANCE = 3.0
AIRBORNE_MARGIN = 5.0


def distance_2d(a, b) -> float:
    return math.hypot(b.x - a.x, b.z - a.z)


def distance_3d(a, b) -> float:
    ay = GROUND_LEVEL if getattr(a, "y", None) is None else a.y
    by = GROUND_LEVEL if getattr(b, "y", None) is None else b.y
    return math.sqrt((b.x - a.x) ** 2 + (by - ay) ** 2 + (b.z - a.z) ** 2)


def is_within_tolerance(position, target, tolerance: float = DEFAULT_POSITION_TOLERANCE) -> bool:
    return distance_3d(position, target) <= tolerance


def is_at_runway_threshold(position: Vec3, runway: RunwayConfig, tolerance: float = DEFAULT_POSITION_TOLERANCE) -> bool:
    return is_within_tolerance(position, runway.start, tolerance)


def is_at_runway_end(position: Vec3, runway: RunwayConfig, tolerance: float = DEFAULT_POSITION_TOLERANCE) -> bool:
    return is_within_tolerance(position, runway.end, tolerance)


def is_on_runway(position: Vec3, runway: RunwayConfig, tolerance: float = 10.0) -> bool:
    """True when inside the runway rectangle grown by ``tolerance``."""
    min_x = min(runway.start.x, runway.end.x)
    max_x = max(runway.start.x, runway.end.x)
    return (
        min_x - tolerance <= position.x <= max_x + tolerance
        and abs(position.z - runway.center_z) <= runway.width / 2 + tolerance
    )


def is_at_parking_position(position: Vec3, parking: ParkingSpot, tolerance: float = DEFAULT_POSITION_TOLERANCE) -> bool:
    return is_within_tolerance(position, parking.position, tolerance)


def is_airborne(position: Vec3, specs: VehicleSpecs) -> bool:
    return position.y > specs.min_flight_height + AIRBORNE_MARGIN


def is_at_safe_altitude(position: Vec3, min_altitude: float = 30.0) -> bool:
    return position.y >= min_altitude


def is_within_airport_bounds(position: Vec3, bounds: float = 200.0) -> bool:
    return abs(position.x) <= bounds and abs(position.z) <= bounds


def distance_to_waypoint(position: Vec3, waypoint: Waypoint) -> float:
    return distance_2d(position, waypoint)


def has_reached_waypoint(position: Vec3, waypoint: Waypoint, tolerance: float = DEFAULT_POSITION_TOLERANCE) -> bool:
    return distance_to_waypoint(position, waypoint) <= tolerance


def closest_waypoint(position: Vec3, route: Sequence[Waypoint]) -> tuple[int, Waypoint] | None:
    """Index and waypoint nearest to ``position`` (horizontal distance)."""
    if not route:
        return None
    index = min(range(len(route)), key=lambda i: distance_to_waypoint(position, route[i]))
    return index, route[index]


def route_progress(position: Vec3, route: Sequence[Waypoint], current_index: int) -> float:
    """Fraction of ``route`` covered, including the partial current segment."""
    if not route:
        return 0.0
    if current_index >= len(route):
        return 1.0
    total = len(route)
    target = route[current_index]
    previous = route[current_index - 1] if current_index > 0 else position
    segment = distance_2d(previous, target)
    partial = 0.0
    if segment > 0:
        partial = min(max(1.0 - distance_to_waypoint(position, target) / segment, 0.0), 1.0)
    return current_index / total + partial / total


def is_heading_aligned(current: float, target: float, tolerance: float = 0.1) -> bool:
    return abs(angular_difference(current, target)) <= tolerance


def is_speed_aligned(current: float, target: float, tolerance: float = 1.0) -> bool:
    return abs(current - target) <= tolerance
