"""Local-frame geometry for airfield operations.

- point: Vec3, Waypoint, Pose value types
- position: distances and position predicates
- movement: heading math and per-tick kinematics
- route: route generation and route-level geometry
"""

from .movement import (
    MovementStep,
    angular_difference,
    calculate_movement_to_waypoint,
    calculate_taxi_movement,
    calculate_turn,
    heading_to,
    interpolate_position,
    normalize_angle,
    smooth_interpolate_position,
)
from .point import GROUND_LEVEL, Pose, Route, Vec3, Waypoint
from .position import distance_2d, distance_3d, has_reached_waypoint
from .route import Obstacle, RouteCheck

__all__ = [
    "GROUND_LEVEL",
    "MovementStep",
    "Obstacle",
    "Pose",
    "Route",
    "RouteCheck",
    "Vec3",
    "Waypoint",
    "angular_difference",
    "calculate_movement_to_waypoint",
    "calculate_taxi_movement",
    "calculate_turn",
    "distance_2d",
    "distance_3d",
    "has_reached_waypoint",
    "heading_to",
    "interpolate_position",
    "normalize_angle",
    "smooth_interpolate_position",
]
