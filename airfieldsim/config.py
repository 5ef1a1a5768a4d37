"""Static airfield configuration: vehicle specs, runway, parking, routes, budgets.

All values are read-only lookups for the orchestrator. The defaults describe a
single east-west runway from x=-90 to x=90 with a parallel taxiway at z=15 and
the parking apron north of it. Takeoffs start from the west threshold facing
heading 0; landings from either side roll out along the centerline.

Durations are typed with :mod:`airfieldsim.unit` so a budget written as
``Millisecond(120_000)`` or ``Minute(2)`` means the same thing.

Example:
    >>> config = default_config()
    >>> config.get("vehicle_specs.cessna.taxi_speed")
    3.0
    >>> config.taxi_route(VehicleType.CESSNA, TaxiDirection.TO_RUNWAY)[-1].name
    'runway_position'
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field, fields, is_dataclass, replace
from enum import Enum
from math import pi
from typing import Any

from airfieldsim.errors import ConfigurationError, RouteNotFound
from airfieldsim.geo.point import GROUND_LEVEL, Route, Vec3, Waypoint
from airfieldsim.types import TaxiDirection, VehicleType
from airfieldsim.unit import Millisecond, Radian, Second, Time, UnitFloat, as_seconds

_MISSING = object()


@dataclass(frozen=True)
class VehicleSpecs:
    """Performance envelope of one vehicle class (units per second, radians)."""

    max_speed: float
    acceleration: float
    turn_rate: float
    min_flight_height: float
    length: float
    height: float
    taxi_speed: float
    turn_radius: float


@dataclass(frozen=True)
class RunwayConfig:
    length: float = 180.0
    width: float = 20.0
    start: Vec3 = Vec3(-90.0, GROUND_LEVEL, 0.0)
    end: Vec3 = Vec3(90.0, GROUND_LEVEL, 0.0)
    heading: float = 0.0
    approach_distance: float = 150.0
    approach_height: float = 30.0

    @property
    def center_z(self) -> float:
        return (self.start.z + self.end.z) / 2


@dataclass(frozen=True)
class ParkingSpot:
    x: float
    z: float
    heading: float = 0.0

    @property
    def position(self) -> Vec3:
        return Vec3(self.x, GROUND_LEVEL, self.z)


@dataclass(frozen=True)
class TugSpec:
    """Home position of one pushback tug."""

    id: str
    position: Vec3
    type: str = "pushback_tug"


@dataclass(frozen=True)
class TimingConfig:
    taxi_timeout: Time = Millisecond(120_000)
    pushback_duration: Time = Millisecond(8_000)
    waypoint_tolerance: float = 3.0
    pushback_offset: Vec3 = Vec3(5.0, 0.0, -3.0)
    landing_speed_factor: float = 0.6


@dataclass(frozen=True)
class ValidationConfig:
    position_tolerance: float = 3.0
    altitude_tolerance: float = 2.0
    heading_tolerance: Radian = Radian(0.1)
    speed_tolerance: float = 1.0
    takeoff_heading_tolerance: Radian = Radian(0.2)
    landing_altitude_floor: float = 20.0
    safe_altitude: float = 30.0
    airport_bounds: float = 200.0
    runway_lateral_tolerance: float = 10.0


@dataclass(frozen=True)
class ConfigReport:
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


DEFAULT_VEHICLE_SPECS: dict[VehicleType, VehicleSpecs] = {
    VehicleType.CESSNA: VehicleSpecs(50.0, 2.0, 0.05, 1.0, 8.0, 3.0, 3.0, 5.0),
    VehicleType.FIGHTER: VehicleSpecs(80.0, 4.0, 0.08, 1.0, 12.0, 4.0, 4.0, 8.0),
    VehicleType.AIRLINER: VehicleSpecs(60.0, 1.5, 0.03, 1.0, 30.0, 8.0, 2.5, 15.0),
    VehicleType.CARGO: VehicleSpecs(45.0, 1.0, 0.02, 1.0, 25.0, 10.0, 2.0, 12.0),
    VehicleType.HELICOPTER: VehicleSpecs(40.0, 3.0, 0.1, 1.0, 10.0, 4.0, 1.5, 3.0),
}

DEFAULT_PARKING: dict[VehicleType, ParkingSpot] = {
    VehicleType.CESSNA: ParkingSpot(-20.0, 25.0, 0.0),
    VehicleType.FIGHTER: ParkingSpot(20.0, 25.0, pi / 4),
    VehicleType.AIRLINER: ParkingSpot(0.0, 40.0, 0.0),
    VehicleType.CARGO: ParkingSpot(40.0, 25.0, -pi / 4),
    VehicleType.HELICOPTER: ParkingSpot(-80.0, -30.0, 0.0),
}

DEFAULT_TUGS: tuple[TugSpec, ...] = (
    TugSpec("tug_1", Vec3(-60.0, 0.0, 55.0)),
    TugSpec("tug_2", Vec3(-20.0, 0.0, 55.0)),
)

TAXIWAY_Z = 15.0


def _to_runway(spot: ParkingSpot) -> Route:
    return (
        Waypoint(spot.x, spot.z, "parking"),
        Waypoint(spot.x, TAXIWAY_Z, "taxiway_entry"),
        Waypoint(-60.0, TAXIWAY_Z, "taxiway_main"),
        Waypoint(-90.0, TAXIWAY_Z, "runway_approach"),
        Waypoint(-90.0, 5.0, "runway_threshold"),
        Waypoint(-90.0, 0.0, "runway_position", heading=0.0),
    )


def _from_runway(spot: ParkingSpot) -> Route:
    return (
        Waypoint(90.0, 0.0, "runway_exit", heading=pi),
        Waypoint(90.0, TAXIWAY_Z, "runway_clear"),
        Waypoint(60.0, TAXIWAY_Z, "taxiway_return"),
        Waypoint(spot.x, TAXIWAY_Z, "taxiway_final"),
        Waypoint(spot.x, spot.z, "parking", heading=spot.heading),
    )


def _default_routes() -> dict[VehicleType, dict[TaxiDirection, Route]]:
    return {
        vehicle_type: {
            TaxiDirection.TO_RUNWAY: _to_runway(spot),
            TaxiDirection.FROM_RUNWAY: _from_runway(spot),
        }
        for vehicle_type, spot in DEFAULT_PARKING.items()
        if not vehicle_type.is_vertical_takeoff
    }


@dataclass(frozen=True)
class AirfieldConfig:
    """Complete airfield configuration.

    Instances are immutable; ``with_vehicle_type`` and ``without_vehicle_type``
    return modified copies. Components receive the instance explicitly.
    """

    vehicle_specs: Mapping[VehicleType, VehicleSpecs] = field(
        default_factory=lambda: dict(DEFAULT_VEHICLE_SPECS)
    )
    runway: RunwayConfig = field(default_factory=RunwayConfig)
    parking: Mapping[VehicleType, ParkingSpot] = field(default_factory=lambda: dict(DEFAULT_PARKING))
    taxi_routes: Mapping[VehicleType, Mapping[TaxiDirection, Route]] = field(
        default_factory=_default_routes
    )
    timing: TimingConfig = field(default_factory=TimingConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    tugs: tuple[TugSpec, ...] = DEFAULT_TUGS

    # ------------------------------------------------------------------ lookups

    def get(self, path: str, default: Any = _MISSING) -> Any:
        """Resolve a dotted path such as ``"timing.taxi_timeout"``.

        Mapping levels keyed by enums accept the enum value
        (``"vehicle_specs.cessna.max_speed"``).

        Raises:
            ConfigurationError: If the path does not exist and no default is given.
        """
        node: Any = self
        for part in path.split("."):
            node = _step(node, part)
            if node is _MISSING:
                if default is _MISSING:
                    raise ConfigurationError(path, "Unknown configuration path")
                return default
        return node

    def specs_for(self, vehicle_type: VehicleType | str) -> VehicleSpecs:
        vehicle_type = VehicleType.parse(vehicle_type)
        try:
            return self.vehicle_specs[vehicle_type]
        except KeyError:
            raise ConfigurationError(vehicle_type.value, "Unknown vehicle type") from None

    def parking_for(self, vehicle_type: VehicleType | str) -> ParkingSpot:
        vehicle_type = VehicleType.parse(vehicle_type)
        try:
            return self.parking[vehicle_type]
        except KeyError:
            raise ConfigurationError(vehicle_type.value, "No parking spot") from None

    def taxi_route(self, vehicle_type: VehicleType | str, direction: TaxiDirection | str) -> Route:
        """Return the configured route.

        Raises:
            RouteNotFound: If the type or direction has no route.
        """
        vehicle_type = VehicleType.parse(vehicle_type)
        direction = TaxiDirection.parse(direction)
        route = self.taxi_routes.get(vehicle_type, {}).get(direction, ())
        if not route:
            raise RouteNotFound(vehicle_type.value, direction.value)
        return tuple(route)

    @property
    def vehicle_types(self) -> list[VehicleType]:
        return list(self.vehicle_specs)

    @property
    def taxi_timeout(self) -> Second:
        return as_seconds(self.timing.taxi_timeout)

    @property
    def pushback_duration(self) -> Second:
        return as_seconds(self.timing.pushback_duration)

    # ------------------------------------------------------------------ derived copies

    def with_vehicle_type(
        self,
        vehicle_type: VehicleType,
        specs: VehicleSpecs,
        parking: ParkingSpot | None = None,
        routes: Mapping[TaxiDirection, Route] | None = None,
    ) -> AirfieldConfig:
        vehicle_specs = {**self.vehicle_specs, vehicle_type: specs}
        parking_map = dict(self.parking)
        if parking is not None:
            parking_map[vehicle_type] = parking
        route_map = dict(self.taxi_routes)
        if routes is not None:
            route_map[vehicle_type] = {TaxiDirection.parse(d): tuple(r) for d, r in routes.items()}
        return replace(self, vehicle_specs=vehicle_specs, parking=parking_map, taxi_routes=route_map)

    def without_vehicle_type(self, vehicle_type: VehicleType) -> AirfieldConfig:
        return replace(
            self,
            vehicle_specs={k: v for k, v in self.vehicle_specs.items() if k is not vehicle_type},
            parking={k: v for k, v in self.parking.items() if k is not vehicle_type},
            taxi_routes={k: v for k, v in self.taxi_routes.items() if k is not vehicle_type},
        )

    # ------------------------------------------------------------------ validation

    def validate(self) -> ConfigReport:
        """Check internal consistency; errors make the configuration unusable."""
        errors: list[str] = []
        warnings: list[str] = []

        for vehicle_type, specs in self.vehicle_specs.items():
            name = vehicle_type.value
            if specs.max_speed <= 0:
                errors.append(f"{name}: max_speed must be positive")
            if specs.taxi_speed <= 0:
                errors.append(f"{name}: taxi_speed must be positive")
            elif specs.taxi_speed >= specs.max_speed:
                warnings.append(f"{name}: taxi_speed is not below max_speed")
            if specs.turn_rate <= 0:
                errors.append(f"{name}: turn_rate must be positive")
            if vehicle_type not in self.parking:
                errors.append(f"{name}: no parking spot")
            if vehicle_type.is_vertical_takeoff:
                continue
            routes = self.taxi_routes.get(vehicle_type, {})
            for direction in TaxiDirection:
                route = routes.get(direction, ())
                if len(route) < 2:
                    errors.append(f"{name}: {direction.value} route needs at least 2 waypoints")
            to_runway = routes.get(TaxiDirection.TO_RUNWAY, ())
            if to_runway:
                last = to_runway[-1]
                if Vec3(last.x, GROUND_LEVEL, last.z).distance_to(self.runway.start) > self.validation.position_tolerance:
                    warnings.append(f"{name}: to_runway route does not end at the runway threshold")

        if self.runway.length <= 0 or self.runway.width <= 0:
            errors.append("runway: length and width must be positive")
        if float(self.taxi_timeout) <= 0:
            errors.append("timing: taxi_timeout must be positive")
        if float(self.pushback_duration) <= 0:
            errors.append("timing: pushback_duration must be positive")
        elif self.pushback_duration >= self.taxi_timeout:
            warnings.append("timing: pushback_duration exceeds taxi_timeout")
        if self.validation.position_tolerance <= 0:
            errors.append("validation: position_tolerance must be positive")
        if not self.tugs:
            warnings.append("ground: no pushback tugs configured")

        return ConfigReport(tuple(errors), tuple(warnings))

    # ------------------------------------------------------------------ (de)serialization

    def to_dict(self) -> dict[str, Any]:
        """Plain-data export: enum keys become strings, durations become seconds."""
        return _plain(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AirfieldConfig:
        """Build a configuration from plain data, overlaying the defaults.

        Sections that are missing keep their default values. Durations are read
        as seconds. Routes are lists of ``{"x", "z", "name", "heading"}``.

        Raises:
            ConfigurationError: On unknown sections or malformed entries.
        """
        base = cls()
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(", ".join(sorted(unknown)), "Unknown configuration section")

        try:
            specs = dict(base.vehicle_specs)
            for key, value in data.get("vehicle_specs", {}).items():
                vehicle_type = VehicleType.parse(key)
                current = specs.get(vehicle_type)
                merged = {**(asdict(current) if current else {}), **value}
                specs[vehicle_type] = VehicleSpecs(**{k: float(v) for k, v in merged.items()})

            parking = dict(base.parking)
            for key, value in data.get("parking", {}).items():
                parking[VehicleType.parse(key)] = ParkingSpot(
                    float(value["x"]), float(value["z"]), float(value.get("heading", 0.0))
                )

            routes = {k: dict(v) for k, v in base.taxi_routes.items()}
            for key, by_direction in data.get("taxi_routes", {}).items():
                vehicle_routes = routes.setdefault(VehicleType.parse(key), {})
                for direction, points in by_direction.items():
                    vehicle_routes[TaxiDirection.parse(direction)] = _route_from(points)

            runway = _overlay(base.runway, data.get("runway", {}))
            timing = _overlay(base.timing, data.get("timing", {}))
            validation = _overlay(base.validation, data.get("validation", {}))
            tugs = base.tugs
            if "tugs" in data:
                tugs = tuple(
                    TugSpec(t["id"], Vec3.from_mapping(t.get("position", {})), t.get("type", "pushback_tug"))
                    for t in data["tugs"]
                )
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigurationError(str(exc), "Malformed configuration") from exc

        return cls(specs, runway, parking, routes, timing, validation, tugs)


def default_config() -> AirfieldConfig:
    return AirfieldConfig()


def _step(node: Any, part: str) -> Any:
    if isinstance(node, Mapping):
        if part in node:
            return node[part]
        for key, value in node.items():
            if isinstance(key, Enum) and part in (key.value, key.name.lower()):
                return value
        return _MISSING
    if is_dataclass(node) and part in {f.name for f in fields(node)}:
        return getattr(node, part)
    return _MISSING


def _overlay(section, values: Mapping[str, Any]):
    if not values:
        return section
    changes = {}
    for f in fields(section):
        if f.name not in values:
            continue
        current = getattr(section, f.name)
        value = values[f.name]
        if isinstance(current, Vec3):
            changes[f.name] = Vec3.from_mapping(value)
        elif isinstance(current, UnitFloat):
            changes[f.name] = type(current).from_si(float(value))
        else:
            changes[f.name] = type(current)(value)
    unknown = set(values) - {f.name for f in fields(section)}
    if unknown:
        raise ValueError(f"unknown keys {sorted(unknown)}")
    return replace(section, **changes)


def _route_from(points: Sequence[Mapping[str, Any]]) -> Route:
    return tuple(
        Waypoint(
            float(p["x"]),
            float(p["z"]),
            name=p.get("name", ""),
            y=None if p.get("y") is None else float(p["y"]),
            heading=None if p.get("heading") is None else float(p["heading"]),
        )
        for p in points
    )


def _plain(value: Any) -> Any:
    if isinstance(value, UnitFloat):
        return float(value)
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {_plain(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value
