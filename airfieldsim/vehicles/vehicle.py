"""Vehicle proxy shared between the host loop and the orchestrator.

The host owns vehicle identity and rendering. The orchestrator reads the pose,
computes a new :class:`Pose` value per step and writes it back in one
``apply_pose`` call, so observers never see a half-updated vehicle.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import math
from typing import TYPE_CHECKING, Any

from airfieldsim.errors import ValidationFailure
from airfieldsim.geo import GROUND_LEVEL, Pose, Vec3
from airfieldsim.types import VehicleType

if TYPE_CHECKING:
    from airfieldsim.config import AirfieldConfig, VehicleSpecs


@dataclass(eq=False)
class Vehicle:
    """Mutable aircraft record.

    Attributes:
        id: Unique identifier.
        type: Vehicle class.
        specs: Performance envelope of ``type``.
        position: Current position.
        rotation: Euler angles; ``rotation.y`` is the heading.
        speed: Forward speed in units per second.
        is_being_towed: True only while a tug performs pushback.
        is_active: True while dispatched by the control tower.
        active_operation: The automated flight driving this vehicle, if any.
    """

    id: str
    type: VehicleType
    specs: VehicleSpecs
    position: Vec3 = field(default_factory=lambda: Vec3(0.0, GROUND_LEVEL, 0.0))
    rotation: Vec3 = field(default_factory=Vec3)
    speed: float = 0.0
    is_being_towed: bool = False
    is_active: bool = False
    active_operation: Any = None

    @classmethod
    def at_parking(cls, vehicle_id: str, vehicle_type: VehicleType | str, config: AirfieldConfig) -> Vehicle:
        """Create a vehicle parked on its type's spot."""
        vehicle_type = VehicleType.parse(vehicle_type)
        spot = config.parking_for(vehicle_type)
        return cls(
            vehicle_id,
            vehicle_type,
            config.specs_for(vehicle_type),
            position=spot.position,
            rotation=Vec3(0.0, spot.heading, 0.0),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], config: AirfieldConfig) -> Vehicle:
        """Validate plain data handed in by an external collaborator.

        Expects ``id`` and ``type``; ``position``, ``rotation`` and ``speed``
        are optional (a missing position means the type's parking spot).

        Raises:
            ValidationFailure: Listing every problem found.
        """
        violations = []
        vehicle_id = data.get("id")
        if not isinstance(vehicle_id, str) or not vehicle_id:
            violations.append("invalid_vehicle_id")

        vehicle_type = None
        try:
            vehicle_type = VehicleType.parse(data.get("type"))
        except ValueError:
            violations.append("unknown_vehicle_type")
        if vehicle_type is not None and vehicle_type not in config.vehicle_specs:
            violations.append("unknown_vehicle_type")

        vectors = {}
        for key in ("position", "rotation"):
            raw = data.get(key)
            if raw is None:
                continue
            try:
                vectors[key] = Vec3.from_mapping(raw)
            except (AttributeError, TypeError, ValueError):
                violations.append(f"invalid_{key}")
                continue
            if not vectors[key].is_finite():
                violations.append(f"invalid_{key}")

        speed = data.get("speed", 0.0)
        if not isinstance(speed, (int, float)) or not math.isfinite(speed) or speed < 0:
            violations.append("invalid_speed")

        if violations:
            raise ValidationFailure(violations, "Invalid vehicle data")

        vehicle = cls.at_parking(vehicle_id, vehicle_type, config)
        vehicle.position = vectors.get("position", vehicle.position)
        vehicle.rotation = vectors.get("rotation", vehicle.rotation)
        vehicle.speed = float(speed)
        return vehicle

    @property
    def heading(self) -> float:
        return self.rotation.y

    @property
    def is_vertical_takeoff(self) -> bool:
        return self.type.is_vertical_takeoff

    def pose(self) -> Pose:
        return Pose(self.position, self.rotation, self.speed)

    def apply_pose(self, pose: Pose) -> None:
        """Write a computed pose back in a single step."""
        self.position = pose.position
        self.rotation = pose.rotation
        self.speed = pose.speed

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "position": {"x": self.position.x, "y": self.position.y, "z": self.position.z},
            "rotation": {"x": self.rotation.x, "y": self.rotation.y, "z": self.rotation.z},
            "speed": self.speed,
            "is_being_towed": self.is_being_towed,
            "is_active": self.is_active,
        }
