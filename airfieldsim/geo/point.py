"""Local cartesian value types: points, waypoints and vehicle poses.

The airfield uses a flat local frame. ``x`` runs along the runway (east is
positive), ``z`` is lateral and ``y`` is altitude, with the ground at
``GROUND_LEVEL``. Headings are radians around ``y``; a heading of 0 faces +x
(down the runway) and ``atan2(-dz, dx)`` gives the heading toward a target.

All types are immutable. Movement code produces new values and vehicles
receive them in a single write.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import math

import numpy as np

GROUND_LEVEL = 1.0


@dataclass(frozen=True, slots=True)
class Vec3:
    """Immutable 3D vector (position or Euler rotation)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_array(cls, values) -> Vec3:
        x, y, z = (float(v) for v in np.asarray(values, dtype=float)[:3])
        return cls(x, y, z)

    @classmethod
    def from_mapping(cls, data) -> Vec3:
        """Build from ``{"x": .., "y": .., "z": ..}``; missing axes default to 0."""
        return cls(float(data.get("x", 0.0)), float(data.get("y", 0.0)), float(data.get("z", 0.0)))

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def with_(self, **changes: float) -> Vec3:
        return replace(self, **changes)

    def __add__(self, other: Vec3) -> Vec3:
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def scaled(self, k: float) -> Vec3:
        return Vec3(self.x * k, self.y * k, self.z * k)

    def distance_to(self, other) -> float:
        return math.dist((self.x, self.y, self.z), (other.x, _y(other, self.y), other.z))

    def horizontal_distance_to(self, other) -> float:
        return math.hypot(other.x - self.x, other.z - self.z)

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.x, self.y, self.z))


def _y(point, default: float) -> float:
    y = getattr(point, "y", None)
    return default if y is None else y


@dataclass(frozen=True, slots=True)
class Waypoint:
    """Named navigation target.

    Attributes:
        x, z: Horizontal coordinates.
        name: Label used in logs and route descriptions.
        y: Altitude, or None for ground waypoints.
        heading: Required heading on arrival, if any.
        speed: Speed as a fraction of the vehicle's max speed, if the route
            prescribes one.
    """

    x: float
    z: float
    name: str = ""
    y: float | None = None
    heading: float | None = None
    speed: float | None = None

    @classmethod
    def at(cls, position: Vec3, name: str = "", heading: float | None = None) -> Waypoint:
        return cls(position.x, position.z, name=name, y=position.y, heading=heading)

    def position(self, default_y: float = GROUND_LEVEL) -> Vec3:
        return Vec3(self.x, default_y if self.y is None else self.y, self.z)


Route = tuple[Waypoint, ...]


@dataclass(frozen=True, slots=True)
class Pose:
    """Position, rotation and forward speed of a vehicle at one instant.

    ``rotation.y`` is the heading; ``rotation.x`` is pitch (negative is nose
    up) and ``rotation.z`` is roll.
    """

    position: Vec3
    rotation: Vec3
    speed: float = 0.0

    @property
    def heading(self) -> float:
        return self.rotation.y

    def moved(self, position: Vec3 | None = None, heading: float | None = None, speed: float | None = None) -> Pose:
        """Copy with the given fields replaced; heading replaces ``rotation.y``."""
        rotation = self.rotation if heading is None else self.rotation.with_(y=heading)
        return Pose(
            self.position if position is None else position,
            rotation,
            self.speed if speed is None else speed,
        )
