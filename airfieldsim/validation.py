"""Business-rule validation for airfield operations.

Every function here is a pure predicate: it reads the vehicle and the
configuration and returns a :class:`ValidationResult` listing every violated
rule, never raising and never mutating anything. Callers decide whether a
violation rejects an operation or is only logged.

Example:
    >>> config = default_config()
    >>> cessna = Vehicle.at_parking("c1", "cessna", config)
    >>> validate_taxi_requirements(cessna, "to_runway", config).is_valid
    True
    >>> validate_takeoff_requirements(cessna, config).violations
    ('not_at_runway_threshold',)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from airfieldsim.geo.movement import angular_difference
from airfieldsim.geo.position import (
    is_airborne,
    is_at_parking_position,
    is_at_runway_end,
    is_at_runway_threshold,
    is_at_safe_altitude,
    is_on_runway,
)
from airfieldsim.types import TaxiDirection, VehicleType

if TYPE_CHECKING:
    from airfieldsim.config import AirfieldConfig
    from airfieldsim.vehicles import GroundSupportVehicle, Vehicle

LANDING_SPEED_LIMIT = 0.9
APPROACH_CONFLICT_HALF_WIDTH = 50.0

# parked -> taxi_to_runway -> takeoff -> climb/cruise -> pattern/approach -> landing -> taxi_to_parking
STATE_TRANSITIONS: Mapping[str, tuple[str, ...]] = {
    "parked": ("taxi_to_runway",),
    "taxi_to_runway": ("takeoff",),
    "takeoff": ("climb", "cruise"),
    "climb": ("cruise",),
    "cruise": ("approach", "pattern"),
    "pattern": ("approach", "cruise"),
    "approach": ("landing",),
    "landing": ("taxi_to_parking",),
    "taxi_to_parking": ("parked",),
}

GROUND_VEHICLE_ROLES: Mapping[str, tuple[str, ...]] = {
    "pushback": ("pushback_tug",),
    "towing": ("pushback_tug", "tow_tractor"),
}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a rule check.

    Attributes:
        violations: Rules that failed; any entry makes the result invalid.
        requirements: What the vehicle must do to satisfy the failed rules.
        warnings: Findings that do not invalidate the result.
    """

    violations: tuple[str, ...] = ()
    requirements: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def merged(self, other: ValidationResult) -> ValidationResult:
        return ValidationResult(
            self.violations + other.violations,
            self.requirements + other.requirements,
            self.warnings + other.warnings,
        )


def _result(violations: Iterable[str], requirements: Iterable[str] = (), warnings: Iterable[str] = ()) -> ValidationResult:
    return ValidationResult(tuple(violations), tuple(requirements), tuple(warnings))


def _known_type(vehicle: Vehicle | None, config: AirfieldConfig) -> str | None:
    if vehicle is None or getattr(vehicle, "type", None) is None:
        return "invalid_vehicle"
    if vehicle.type not in config.vehicle_specs:
        return "unknown_vehicle_type"
    return None


def validate_taxi_requirements(vehicle: Vehicle | None, direction: TaxiDirection | str, config: AirfieldConfig) -> ValidationResult:
    """Check that ``vehicle`` may start a taxi in ``direction``.

    A vehicle taxiing to the runway must sit on its parking spot on the
    ground; one taxiing back must be on (or at the end of) the runway. In both
    directions it must be slow enough and not already under tow. Vertical
    takeoff vehicles never taxi.
    """
    problem = _known_type(vehicle, config)
    if problem:
        return _result([problem])
    if vehicle.type.is_vertical_takeoff:
        return _result(["vertical_takeoff_no_taxi"], ["helicopter_no_taxi_needed"])

    try:
        direction = TaxiDirection.parse(direction)
    except ValueError:
        return _result(["unknown_taxi_direction"])

    specs = config.specs_for(vehicle.type)
    rules = config.validation
    violations = []
    requirements = []

    if direction is TaxiDirection.TO_RUNWAY:
        if not is_at_parking_position(vehicle.position, config.parking_for(vehicle.type), rules.position_tolerance):
            violations.append("not_at_parking_position")
            requirements.append("must_be_at_parking_position")
        if is_airborne(vehicle.position, specs):
            violations.append("vehicle_airborne")
            requirements.append("must_be_on_ground")
    else:
        on_runway = is_on_runway(vehicle.position, config.runway, rules.runway_lateral_tolerance)
        if not on_runway and not is_at_runway_end(vehicle.position, config.runway, rules.position_tolerance):
            violations.append("not_on_runway")
            requirements.append("must_be_on_runway")

    if vehicle.speed > specs.taxi_speed * 2:
        violations.append("speed_too_high")
        requirements.append("must_reduce_speed")

    if vehicle.is_being_towed:
        violations.append("already_being_towed")
        requirements.append("must_not_be_towed")

    return _result(violations, requirements)


def validate_takeoff_requirements(vehicle: Vehicle | None, config: AirfieldConfig) -> ValidationResult:
    """Check that ``vehicle`` is lined up on the threshold, grounded and slow."""
    problem = _known_type(vehicle, config)
    if problem:
        return _result([problem])

    specs = config.specs_for(vehicle.type)
    rules = config.validation
    violations = []
    requirements = []

    if not is_at_runway_threshold(vehicle.position, config.runway, rules.position_tolerance):
        violations.append("not_at_runway_threshold")
        requirements.append("must_be_at_runway_threshold")
    if is_airborne(vehicle.position, specs):
        violations.append("already_airborne")
        requirements.append("must_be_on_ground")
    if vehicle.speed > specs.taxi_speed:
        violations.append("speed_too_high_for_takeoff")
        requirements.append("must_reduce_to_taxi_speed")
    if abs(angular_difference(vehicle.heading, config.runway.heading)) > float(rules.takeoff_heading_tolerance):
        violations.append("incorrect_heading")
        requirements.append("must_align_with_runway")

    return _result(violations, requirements)


def validate_landing_requirements(vehicle: Vehicle | None, config: AirfieldConfig) -> ValidationResult:
    """Check that ``vehicle`` is airborne, high enough and below 90% of max speed."""
    problem = _known_type(vehicle, config)
    if problem:
        return _result([problem])

    specs = config.specs_for(vehicle.type)
    violations = []
    requirements = []

    if not is_airborne(vehicle.position, specs):
        violations.append("not_airborne")
        requirements.append("must_be_airborne")
    if not is_at_safe_altitude(vehicle.position, config.validation.landing_altitude_floor):
        violations.append("altitude_too_low")
        requirements.append("must_gain_altitude")
    if vehicle.speed > specs.max_speed * LANDING_SPEED_LIMIT:
        violations.append("speed_too_high")
        requirements.append("must_reduce_speed")

    return _result(violations, requirements)


def validate_state_transition(current: str, desired: str, vehicle: Vehicle | None, config: AirfieldConfig) -> ValidationResult:
    """Check an operational state change against the fixed lifecycle table.

    Besides the table lookup, entering ``taxi_to_runway``, ``takeoff``,
    ``landing`` or ``taxi_to_parking`` re-runs that operation's preconditions
    and reports their violations too.
    """
    violations = []
    if desired not in STATE_TRANSITIONS.get(current, ()):
        violations.append(f"invalid_transition_{current}_to_{desired}")

    result = _result(violations)
    if desired == "taxi_to_runway":
        result = result.merged(validate_taxi_requirements(vehicle, TaxiDirection.TO_RUNWAY, config))
    elif desired == "taxi_to_parking":
        result = result.merged(validate_taxi_requirements(vehicle, TaxiDirection.FROM_RUNWAY, config))
    elif desired == "takeoff":
        result = result.merged(validate_takeoff_requirements(vehicle, config))
    elif desired == "landing":
        result = result.merged(validate_landing_requirements(vehicle, config))
    return result


def validate_runway_usage(vehicle: Vehicle, others: Sequence[Vehicle], config: AirfieldConfig) -> ValidationResult:
    """Report other vehicles on the runway or inside its approach corridor."""
    conflicts = []
    for other in others:
        if other is vehicle:
            continue
        if is_on_runway(other.position, config.runway, config.validation.runway_lateral_tolerance):
            conflicts.append(f"runway_occupied_by_{other.id}")
        elif (
            is_airborne(other.position, other.specs)
            and abs(other.position.x) < config.runway.approach_distance
            and abs(other.position.z) < APPROACH_CONFLICT_HALF_WIDTH
        ):
            conflicts.append(f"approach_conflict_with_{other.id}")
    if conflicts:
        return _result(["runway_conflict"], warnings=conflicts)
    return _result([])


def validate_ground_vehicle_operation(support: GroundSupportVehicle | None, operation: str) -> ValidationResult:
    if support is None:
        return _result(["invalid_vehicle"])
    violations = []
    if not support.available:
        violations.append("vehicle_not_available")
    if support.position is None:
        violations.append("vehicle_missing_position")
    roles = GROUND_VEHICLE_ROLES.get(operation)
    if roles is not None and support.type not in roles:
        violations.append("wrong_vehicle_type")
    return _result(violations)


def validate_flight_plan(plan: Any, config: AirfieldConfig) -> ValidationResult:
    """Structural check of a flight plan.

    Phases must exist and be named. Consecutive phase names that the
    lifecycle table does not connect are only warnings, since dispatch plans
    use finer-grained phase names than the table.
    """
    if plan is None:
        return _result(["missing_flight_plan"])
    phases = getattr(plan, "phases", None)
    if phases is None:
        return _result(["missing_phases"])
    if not phases:
        return _result(["empty_phases"])

    violations = []
    warnings = []
    for i, phase in enumerate(phases):
        if not getattr(phase, "name", None):
            violations.append(f"phase_{i}_missing_name")
            continue
        if i > 0 and phase.name not in STATE_TRANSITIONS.get(getattr(phases[i - 1], "name", ""), ()):
            warnings.append(f"questionable_transition_{i}")
        duration = getattr(phase, "duration", 0)
        if not getattr(phase, "delegated", False) and float(duration) <= 0:
            violations.append(f"phase_{i}_non_positive_duration")

    vehicle_type = getattr(plan, "vehicle_type", None)
    if vehicle_type is not None:
        try:
            known = VehicleType.parse(vehicle_type) in config.vehicle_specs
        except ValueError:
            known = False
        if not known:
            violations.append("unknown_vehicle_type")
    return _result(violations, warnings=warnings)


def operation_validation_summary(
    operation: str,
    vehicle: Vehicle,
    config: AirfieldConfig,
    direction: TaxiDirection | str = TaxiDirection.TO_RUNWAY,
    others: Sequence[Vehicle] = (),
) -> dict[str, Any]:
    """Run every check relevant to ``operation`` and flatten the findings."""
    if operation == "taxi":
        result = validate_taxi_requirements(vehicle, direction, config)
    elif operation == "takeoff":
        result = validate_takeoff_requirements(vehicle, config)
    elif operation == "landing":
        result = validate_landing_requirements(vehicle, config)
    else:
        result = _result([f"unknown_operation_{operation}"])

    if operation in ("takeoff", "landing"):
        result = result.merged(validate_runway_usage(vehicle, others, config))

    return {
        "operation": operation,
        "vehicle_id": vehicle.id,
        "is_valid": result.is_valid,
        "violations": list(result.violations),
        "requirements": list(result.requirements),
        "warnings": list(result.warnings),
    }
