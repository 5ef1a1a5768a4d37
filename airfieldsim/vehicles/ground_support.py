"""Ground-support vehicles (pushback tugs)."""

from __future__ import annotations

from dataclasses import dataclass

from airfieldsim.errors import ResourceUnavailable
from airfieldsim.geo import Vec3


@dataclass(eq=False)
class GroundSupportVehicle:
    """One tug in the ground operations pool.

    A tug is reserved for exactly one aircraft at a time; ``available`` and
    ``assigned_to`` always change together through ``reserve``/``release``.
    """

    id: str
    type: str
    position: Vec3
    available: bool = True
    assigned_to: str | None = None
    home: Vec3 | None = None

    def __post_init__(self) -> None:
        if self.home is None:
            self.home = self.position

    def reserve(self, vehicle_id: str) -> None:
        if not self.available:
            raise ResourceUnavailable(self.id, f"Already assigned to {self.assigned_to}")
        self.available = False
        self.assigned_to = vehicle_id

    def release(self) -> None:
        self.available = True
        self.assigned_to = None

    def reset(self) -> None:
        self.release()
        self.position = self.home
