"""Heading math and per-tick kinematics.

Heading convention (used by every module in the package): heading 0 faces +x,
down the runway from the west threshold, and angles grow counter-clockwise seen
from above. The forward unit vector is ``(cos h, -sin h)`` in ``(x, z)`` and
the heading toward a target is ``atan2(-dz, dx)``.

Functions here are pure: they take values and return new values. Nothing
mutates a vehicle.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import TYPE_CHECKING

import numpy as np

from .point import GROUND_LEVEL, Vec3

if TYPE_CHECKING:
    from airfieldsim.config import VehicleSpecs

TWO_PI = 2 * math.pi
TAXI_TURN_RATE = 0.3
TAXI_ARRIVAL_DISTANCE = 0.5
MIN_TAXI_ALIGNMENT = 0.3


def normalize_angle(angle: float) -> float:
    """Map ``angle`` into [0, 2π)."""
    wrapped = math.fmod(angle, TWO_PI)
    if wrapped < 0:
        wrapped += TWO_PI
    # a tiny negative remainder rounds up to exactly 2π
    return 0.0 if wrapped >= TWO_PI else wrapped


def angular_difference(current: float, target: float) -> float:
    """Shortest signed rotation from ``current`` to ``target``, in (-π, π]."""
    diff = normalize_angle(target - current)
    return diff - TWO_PI if diff > math.pi else diff


def heading_to(origin, target) -> float:
    return math.atan2(-(target.z - origin.z), target.x - origin.x)


def forward_direction(heading: float) -> np.ndarray:
    """Unit vector (x, z) the vehicle faces."""
    return np.array([math.cos(heading), -math.sin(heading)])


def interpolate_position(start: Vec3, end: Vec3, progress: float) -> Vec3:
    """Linear interpolation with ``progress`` clamped to [0, 1]."""
    t = min(max(progress, 0.0), 1.0)
    return Vec3.from_array(start.to_array() + (end.to_array() - start.to_array()) * t)


def smooth_interpolate_position(start: Vec3, end: Vec3, progress: float) -> Vec3:
    """Cubic ease-in-out interpolation."""
    t = min(max(progress, 0.0), 1.0)
    return interpolate_position(start, end, t * t * (3 - 2 * t))


def calculate_turn(current: float, target: float, max_rate: float, dt: float) -> float:
    """Rotate ``current`` toward ``target`` by at most ``max_rate * dt``.

    Snaps to ``target`` when it is within the turn budget, so repeated calls
    converge without overshoot.

    Example:
        >>> calculate_turn(0.0, math.pi, 0.1, 1.0)
        0.1
    """
    diff = angular_difference(current, target)
    max_turn = abs(max_rate * dt)
    if abs(diff) <= max_turn:
        return normalize_angle(target)
    return normalize_angle(current + math.copysign(max_turn, diff))


def calculate_acceleration(current_speed: float, target_speed: float, acceleration: float, dt: float) -> float:
    diff = target_speed - current_speed
    max_change = acceleration * dt
    if abs(diff) <= max_change:
        return target_speed
    return current_speed + math.copysign(max_change, diff)


@dataclass(frozen=True)
class MovementStep:
    """Outcome of one kinematic step toward a target."""

    position: Vec3
    heading: float
    speed: float
    distance: float
    reached: bool


def calculate_movement_to_waypoint(position: Vec3, target: Vec3, speed: float, dt: float, arrival: float = 0.1) -> MovementStep:
    """Move straight toward ``target`` by ``min(speed * dt, distance)``.

    Altitude is interpolated along with the horizontal move.
    """
    start = position.to_array()
    delta = target.to_array() - start
    distance = float(np.linalg.norm(delta))
    if distance < arrival:
        return MovementStep(position, heading_to(position, target), speed, distance, True)

    travel = min(max(speed, 0.0) * dt, distance)
    moved = Vec3.from_array(start + delta / distance * travel)
    remaining = distance - travel
    heading = heading_to(position, target) if math.hypot(delta[0], delta[2]) > 1e-9 else 0.0
    return MovementStep(moved, heading, speed, remaining, remaining < arrival)


def calculate_taxi_movement(
    position: Vec3,
    target,
    heading: float,
    specs: VehicleSpecs,
    dt: float,
    turn_rate: float = TAXI_TURN_RATE,
) -> MovementStep:
    """One taxi step toward ``target`` on the ground.

    The vehicle turns toward the target at ``turn_rate`` and rolls at
    ``taxi_speed * max(0.3, 1 - heading_error / π)``, so poorly aligned
    vehicles creep while they turn. Travel goes straight at the target and
    is capped at the remaining distance, and ``y`` is pinned to ground level.
    """
    target_point = Vec3(target.x, GROUND_LEVEL, target.z)
    ground = position.with_(y=GROUND_LEVEL)
    distance = ground.horizontal_distance_to(target_point)
    if distance < TAXI_ARRIVAL_DISTANCE:
        return MovementStep(ground, heading, 0.0, distance, True)

    desired = heading_to(ground, target_point)
    new_heading = calculate_turn(heading, desired, turn_rate, dt)
    alignment = max(MIN_TAXI_ALIGNMENT, 1 - abs(angular_difference(new_heading, desired)) / math.pi)
    speed = specs.taxi_speed * alignment

    travel = min(speed * dt, distance)
    direction = np.array([target_point.x - ground.x, target_point.z - ground.z]) / distance
    x, z = np.array([ground.x, ground.z]) + direction * travel
    remaining = distance - travel
    return MovementStep(
        Vec3(float(x), GROUND_LEVEL, float(z)),
        new_heading,
        speed,
        remaining,
        remaining < TAXI_ARRIVAL_DISTANCE,
    )


def calculate_bank_angle(speed: float, turn_rate: float, max_bank: float = 0.5) -> float:
    if speed == 0:
        return 0.0
    return min(max(turn_rate * speed / 20, -max_bank), max_bank)


def calculate_pitch_angle(vertical_speed: float, horizontal_speed: float, max_pitch: float = 0.5) -> float:
    """Flight-path angle, clamped; positive when climbing."""
    if horizontal_speed == 0:
        return 0.0
    return min(max(math.atan2(vertical_speed, horizontal_speed), -max_pitch), max_pitch)


def apply_drag(velocity: Vec3, drag_coefficient: float, dt: float) -> Vec3:
    return velocity.scaled(max(0.0, 1 - drag_coefficient * dt))

