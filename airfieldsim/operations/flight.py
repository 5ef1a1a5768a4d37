"""Automated flights: phase sequencing over time-based and delegated phases.

A :class:`FlightPlan` is an ordered list of :class:`FlightPhase` values. Most
phases are time based: progress is ``elapsed / duration``, with elapsed time
accumulated from the ``dt`` handed to each update, and the vehicle is
interpolated from the pose it had when the phase began toward the phase
target. Three phase names are delegated instead:

- ``taxi_to_runway`` / ``taxi_to_parking`` start a taxi operation and finish
  when its :class:`TaxiResult` succeeds.
- ``landing`` starts a landing sequence (retrying while the runway is
  reserved) and finishes when the landing completes.

Delegated operations are stepped by their own controllers on every tick; this
module only watches their outcome. A refused or failed delegate fails the
whole flight.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
import itertools
import logging
import math
from typing import Any

from airfieldsim.config import AirfieldConfig
from airfieldsim.errors import OperationInProgress, ResourceUnavailable, ValidationFailure
from airfieldsim.events import EventChannel, FlightCompleted, FlightFailed, FlightPhaseChanged
from airfieldsim.geo import GROUND_LEVEL, Pose, Vec3, distance_2d, heading_to, interpolate_position
from airfieldsim.geo.movement import forward_direction
from airfieldsim.state import VehicleStateStore
from airfieldsim.timer import ElapsedTime, Scheduler, reached
from airfieldsim.types import TaxiDirection, VehicleType
from airfieldsim.unit import Millisecond, Second, Time, as_seconds
from airfieldsim.validation import validate_flight_plan, validate_takeoff_requirements
from airfieldsim.vehicles import Vehicle

from .landing import LandingOperation, LandingStateMachine
from .result import ResultState, TaxiResult
from .taxi import TaxiController

logger = logging.getLogger(__name__)

RECALL_AIRBORNE_ALTITUDE = 10.0
TAKEOFF_ROLL_SPEED = 0.8
TAKEOFF_PITCH = 0.15
HELICOPTER_PITCH = -0.1
HOVER_SPEED = 0.1
HOVER_AMPLITUDE = 0.5
HOVER_FREQUENCY = 2.0
DESCENT_AMPLITUDE = 0.2
DESCENT_FREQUENCY = 1.0


class PhaseKind(Enum):
    TAXI = auto()
    LANDING = auto()
    TAKEOFF = auto()
    CRUISE = auto()
    APPROACH = auto()
    VERTICAL_TAKEOFF = auto()
    HELICOPTER_FLIGHT = auto()
    HOVER = auto()
    VERTICAL_LANDING = auto()
    DEFAULT = auto()


PHASE_KINDS: dict[str, PhaseKind] = {
    "taxi_to_runway": PhaseKind.TAXI,
    "taxi_to_parking": PhaseKind.TAXI,
    "landing": PhaseKind.LANDING,
    "takeoff": PhaseKind.TAKEOFF,
    "climb": PhaseKind.CRUISE,
    "cruise_out": PhaseKind.CRUISE,
    "cruise_pattern": PhaseKind.CRUISE,
    "return_leg": PhaseKind.CRUISE,
    "traffic_pattern": PhaseKind.CRUISE,
    "final_approach": PhaseKind.APPROACH,
    "return_pattern": PhaseKind.APPROACH,
    "vertical_takeoff": PhaseKind.VERTICAL_TAKEOFF,
    "departure": PhaseKind.HELICOPTER_FLIGHT,
    "patrol_north": PhaseKind.HELICOPTER_FLIGHT,
    "patrol_east": PhaseKind.HELICOPTER_FLIGHT,
    "patrol_south": PhaseKind.HELICOPTER_FLIGHT,
    "patrol_west": PhaseKind.HELICOPTER_FLIGHT,
    "return_direct": PhaseKind.HELICOPTER_FLIGHT,
    "return_approach": PhaseKind.HOVER,
    "hover_approach": PhaseKind.HOVER,
    "vertical_landing": PhaseKind.VERTICAL_LANDING,
}

TAXI_DIRECTIONS = {
    "taxi_to_runway": TaxiDirection.TO_RUNWAY,
    "taxi_to_parking": TaxiDirection.FROM_RUNWAY,
}


@dataclass(frozen=True)
class FlightPhase:
    """One step of a flight plan.

    Attributes:
        name: Phase name; selects the movement handler.
        duration: Length of a time-based phase. Ignored for delegated phases.
        target: Position reached at the end of the phase.
        speed: Forward speed during the phase; handlers pick a default from
            the vehicle's max speed when omitted.
    """

    name: str
    duration: Time = Second(0)
    target: Vec3 | None = None
    speed: float | None = None

    @property
    def kind(self) -> PhaseKind:
        return PHASE_KINDS.get(self.name, PhaseKind.DEFAULT)

    @property
    def delegated(self) -> bool:
        return self.kind in (PhaseKind.TAXI, PhaseKind.LANDING)

    @property
    def seconds(self) -> float:
        return float(as_seconds(self.duration))


@dataclass(frozen=True)
class FlightPlan:
    vehicle_type: VehicleType
    start_position: Vec3
    phases: tuple[FlightPhase, ...]

    @property
    def phase_names(self) -> list[str]:
        return [phase.name for phase in self.phases]


class FlightStatus(Enum):
    ACTIVE = "active"
    COMPLETE = "complete"
    FAILED = "failed"
    STOPPED = "stopped"


@dataclass(eq=False)
class AutomatedFlight:
    """Operation record of one automated flight."""

    id: str
    vehicle: Vehicle
    plan: FlightPlan
    origin: Pose
    phase_index: int = 0
    phase_elapsed: ElapsedTime = field(default_factory=ElapsedTime)
    phase_progress: float = 0.0
    phase_start_pose: Pose | None = None
    status: FlightStatus = FlightStatus.ACTIVE
    failure_reason: str | None = None
    taxi_result: TaxiResult | None = None
    landing: LandingOperation | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def current_phase(self) -> FlightPhase | None:
        if 0 <= self.phase_index < len(self.plan.phases):
            return self.plan.phases[self.phase_index]
        return None

    @property
    def current_phase_name(self) -> str:
        if self.status is FlightStatus.COMPLETE:
            return "complete"
        phase = self.current_phase
        return phase.name if phase else "complete"

    @property
    def is_complete(self) -> bool:
        return self.status is FlightStatus.COMPLETE

    @property
    def is_failed(self) -> bool:
        return self.status is FlightStatus.FAILED

    @property
    def is_finished(self) -> bool:
        return self.status is not FlightStatus.ACTIVE


class FlightAutomation:
    """Runs automated flights and delegates ground and landing phases."""

    def __init__(
        self,
        channel: EventChannel,
        scheduler: Scheduler,
        store: VehicleStateStore,
        config: AirfieldConfig,
        taxi: TaxiController,
        landing: LandingStateMachine,
    ) -> None:
        self._channel = channel
        self._scheduler = scheduler
        self._store = store
        self._config = config
        self._taxi = taxi
        self._landing = landing
        self._flights: dict[str, AutomatedFlight] = {}
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------ API

    def clock(self) -> float:
        return self._scheduler.clock()

    def start_automated_flight(self, vehicle: Vehicle, plan: FlightPlan) -> AutomatedFlight:
        """Begin flying ``plan`` with ``vehicle``.

        Raises:
            ValidationFailure: The plan has no phases or malformed phases.
            OperationInProgress: The vehicle already flies another active flight.
        """
        check = validate_flight_plan(plan, self._config)
        if not check.is_valid:
            raise ValidationFailure(check.violations, "Invalid flight plan")
        current = vehicle.active_operation
        if isinstance(current, AutomatedFlight) and not current.is_finished:
            raise OperationInProgress(vehicle.id, "flight")

        flight = AutomatedFlight(f"flight_{next(self._ids)}", vehicle, plan, origin=vehicle.pose())
        flight.warnings.extend(check.warnings)
        self._flights[flight.id] = flight
        vehicle.active_operation = flight
        logger.info("Automated flight %s started for %s: %s", flight.id, vehicle.id, " > ".join(plan.phase_names))
        self._enter_phase(flight, None)
        return flight

    def stop_automated_flight(self, flight: AutomatedFlight) -> bool:
        if self._flights.get(flight.id) is not flight:
            return False
        self._release_delegates(flight)
        self._finish(flight, FlightStatus.STOPPED)
        logger.info("Automated flight %s for %s stopped", flight.id, flight.vehicle.id)
        return True

    def update_flight(self, flight: AutomatedFlight, dt: Time | float) -> bool:
        """Advance ``flight`` by one tick.

        Never raises; an unexpected error fails the flight.

        Returns:
            True once the flight is no longer active (complete, failed or
            stopped).
        """
        if flight.is_finished:
            return True
        try:
            phase = flight.current_phase
            if phase is None:
                self._complete(flight)
                return True

            if phase.kind is PhaseKind.TAXI:
                done = self._update_taxi_phase(flight, phase)
            elif phase.kind is PhaseKind.LANDING:
                done = self._update_landing_phase(flight)
            else:
                flight.phase_elapsed.add(as_seconds(dt))
                flight.phase_progress = _phase_progress(flight.phase_elapsed.value, phase.seconds)
                self._fly(flight, phase, flight.phase_progress)
                done = flight.phase_progress >= 1.0

            if done and not flight.is_finished:
                self._advance(flight)
        except Exception:
            logger.exception("Flight %s update failed", flight.id)
            self._fail(flight, "update_failure")
        return flight.is_finished

    def update_all_flights(self, dt: Time | float) -> list[AutomatedFlight]:
        """Advance every active flight; returns the ones that finished this tick."""
        return [flight for flight in list(self._flights.values()) if self.update_flight(flight, dt)]

    def create_recall_flight_plan(self, vehicle: Vehicle) -> FlightPlan:
        """Plan that brings ``vehicle`` back to its parking spot from where it is now.

        Airborne helicopters fly straight back and descend vertically onto
        the spot; airborne fixed-wing vehicles join the pattern, land and taxi
        in. Vehicles on the ground just taxi to parking.
        """
        position = vehicle.position
        spot = self._config.parking_for(vehicle.type)
        max_speed = vehicle.specs.max_speed

        if position.y <= RECALL_AIRBORNE_ALTITUDE:
            phases = (FlightPhase("taxi_to_parking"),)
        elif vehicle.is_vertical_takeoff:
            phases = (
                FlightPhase("return_direct", Millisecond(8_000), Vec3(spot.x, 15.0, spot.z), max_speed * 0.8),
                FlightPhase("vertical_landing", Millisecond(4_000), Vec3(spot.x, GROUND_LEVEL, spot.z), 0.1),
            )
        else:
            phases = (
                FlightPhase("return_pattern", Millisecond(10_000), Vec3(150.0, 40.0, 50.0), max_speed * 0.7),
                FlightPhase("final_approach", Millisecond(8_000), Vec3(120.0, 30.0, 0.0), max_speed * 0.5),
                FlightPhase("landing"),
                FlightPhase("taxi_to_parking"),
            )
        return FlightPlan(vehicle.type, position, phases)

    def flight_status(self, flight_id: str) -> dict[str, Any] | None:
        flight = self._flights.get(flight_id)
        if flight is None:
            return None
        return {
            "id": flight.id,
            "vehicle_id": flight.vehicle.id,
            "vehicle_type": flight.vehicle.type.value,
            "current_phase": flight.current_phase_name,
            "progress": flight.phase_progress,
            "is_complete": flight.is_complete,
        }

    def active_flights(self) -> dict[str, AutomatedFlight]:
        return dict(self._flights)

    def dispose(self) -> None:
        for flight in list(self._flights.values()):
            self.stop_automated_flight(flight)
        logger.info("Flight automation disposed")

    # ------------------------------------------------------------------ delegated phases

    def _update_taxi_phase(self, flight: AutomatedFlight, phase: FlightPhase) -> bool:
        vehicle = flight.vehicle
        if flight.taxi_result is None:
            flight.taxi_result = self._taxi.start_taxi_operation(vehicle, TAXI_DIRECTIONS[phase.name])

        result = flight.taxi_result
        if result.state is ResultState.PENDING:
            operation = self._taxi.get_operation(vehicle.id)
            flight.phase_progress = operation.progress if operation else 0.0
            return False
        if result.ok:
            flight.phase_progress = 1.0
            return True
        self._fail(flight, f"taxi_failed: {result.error}")
        return False

    def _update_landing_phase(self, flight: AutomatedFlight) -> bool:
        vehicle = flight.vehicle
        if flight.landing is None:
            try:
                flight.landing = self._landing.start_landing(vehicle)
            except ResourceUnavailable:
                logger.debug("Runway busy, %s holding for landing", vehicle.id)
                flight.phase_progress = 0.0
                return False
            except OperationInProgress:
                flight.landing = self._landing.landing_state(vehicle)

        operation = flight.landing
        if operation.is_complete:
            flight.phase_progress = 1.0
            return True
        if operation.is_aborted:
            self._fail(flight, f"landing_aborted: {operation.end_reason}")
            return False
        flight.phase_progress = operation.progress
        return False

    # ------------------------------------------------------------------ time-based phases

    def _fly(self, flight: AutomatedFlight, phase: FlightPhase, progress: float) -> None:
        start = flight.phase_start_pose or flight.vehicle.pose()
        target = phase.target or start.position
        handler = self._handlers.get(phase.kind, FlightAutomation._default_phase)
        flight.vehicle.apply_pose(handler(self, flight.vehicle, phase, start, target, progress))

    def _cruise_phase(self, vehicle, phase, start, target, progress) -> Pose:
        position = interpolate_position(start.position, target, progress)
        heading = _course(start, target)
        return Pose(position, Vec3(0.0, heading, start.rotation.z), _speed(phase, vehicle, 1.0))

    def _approach_phase(self, vehicle, phase, start, target, progress) -> Pose:
        position = interpolate_position(start.position, target, progress)
        horizontal = distance_2d(start.position, target)
        descent = (target.y - start.position.y) / horizontal if horizontal > 0 else 0.0
        return Pose(position, Vec3(-descent * 0.5, _course(start, target), 0.0), _speed(phase, vehicle, 0.5))

    def _takeoff_phase(self, vehicle, phase, start, target, progress) -> Pose:
        runway = self._config.runway
        half = runway.length / 2
        forward = forward_direction(runway.heading)
        max_speed = vehicle.specs.max_speed

        if progress < 0.5:
            roll = progress * 2
            along = half * roll
            y = runway.start.y
            pitch = 0.0
            speed = roll * max_speed * TAKEOFF_ROLL_SPEED
        else:
            climb = (progress - 0.5) * 2
            along = half + half * climb
            y = runway.start.y + climb * (target.y - runway.start.y)
            pitch = -climb * TAKEOFF_PITCH
            speed = max_speed * (TAKEOFF_ROLL_SPEED + climb * (1 - TAKEOFF_ROLL_SPEED))

        position = Vec3(runway.start.x + float(forward[0]) * along, y, runway.start.z + float(forward[1]) * along)
        return Pose(position, Vec3(pitch, runway.heading, 0.0), speed)

    def _vertical_takeoff_phase(self, vehicle, phase, start, target, progress) -> Pose:
        position = interpolate_position(start.position, target, progress)
        return Pose(position, Vec3(0.0, start.heading, 0.0), _speed(phase, vehicle, 0.6))

    def _helicopter_phase(self, vehicle, phase, start, target, progress) -> Pose:
        position = interpolate_position(start.position, target, progress)
        return Pose(position, Vec3(HELICOPTER_PITCH, _course(start, target), 0.0), _speed(phase, vehicle, 1.0))

    def _hover_phase(self, vehicle, phase, start, target, progress) -> Pose:
        position = interpolate_position(start.position, target, progress)
        jitter = math.sin(self._scheduler.clock() * HOVER_FREQUENCY) * HOVER_AMPLITUDE
        heading = _course(start, target) if distance_2d(start.position, target) > 0.1 else start.heading
        return Pose(position.with_(y=position.y + jitter), Vec3(0.0, heading, 0.0), HOVER_SPEED)

    def _vertical_landing_phase(self, vehicle, phase, start, target, progress) -> Pose:
        position = interpolate_position(start.position, target, progress)
        # jitter fades out so the final tick lands exactly on the target
        jitter = math.sin(self._scheduler.clock() * DESCENT_FREQUENCY) * DESCENT_AMPLITUDE * (1 - progress)
        y = max(max(position.y, GROUND_LEVEL) + jitter, GROUND_LEVEL)
        speed = phase.speed if phase.speed is not None else HOVER_SPEED
        return Pose(position.with_(y=y), Vec3(0.0, start.heading, 0.0), speed)

    def _default_phase(self, vehicle, phase, start, target, progress) -> Pose:
        position = interpolate_position(start.position, target, progress)
        return Pose(position, start.rotation.with_(y=_course(start, target)), _speed(phase, vehicle, 0.5))

    _handlers = {
        PhaseKind.CRUISE: _cruise_phase,
        PhaseKind.APPROACH: _approach_phase,
        PhaseKind.TAKEOFF: _takeoff_phase,
        PhaseKind.VERTICAL_TAKEOFF: _vertical_takeoff_phase,
        PhaseKind.HELICOPTER_FLIGHT: _helicopter_phase,
        PhaseKind.HOVER: _hover_phase,
        PhaseKind.VERTICAL_LANDING: _vertical_landing_phase,
    }

    # ------------------------------------------------------------------ lifecycle

    def _enter_phase(self, flight: AutomatedFlight, previous: str | None) -> None:
        phase = flight.current_phase
        flight.phase_elapsed = ElapsedTime()
        flight.phase_progress = 0.0
        flight.phase_start_pose = flight.vehicle.pose()
        flight.taxi_result = None
        flight.landing = None

        if phase.kind is PhaseKind.TAKEOFF:
            check = validate_takeoff_requirements(flight.vehicle, self._config)
            if not check.is_valid:
                logger.warning("%s taking off with violations: %s", flight.vehicle.id, ", ".join(check.violations))
                flight.warnings.extend(check.violations)

        self._store.set_state(flight.vehicle.id, operation="flight", phase=phase.name, flight_id=flight.id)
        logger.info("%s entering phase %s", flight.vehicle.id, phase.name)
        self._channel.emit(FlightPhaseChanged(flight.vehicle.id, flight.id, previous, phase.name))

    def _advance(self, flight: AutomatedFlight) -> None:
        previous = flight.current_phase_name
        flight.phase_index += 1
        if flight.phase_index >= len(flight.plan.phases):
            self._complete(flight)
        else:
            self._enter_phase(flight, previous)

    def _complete(self, flight: AutomatedFlight) -> None:
        flight.phase_progress = 1.0
        self._finish(flight, FlightStatus.COMPLETE)
        self._store.set_state(flight.vehicle.id, operation="flight", phase="complete", flight_id=flight.id)
        logger.info("Flight %s for %s complete", flight.id, flight.vehicle.id)
        self._channel.emit(FlightCompleted(flight.vehicle.id, flight.id))

    def _fail(self, flight: AutomatedFlight, reason: str) -> None:
        if flight.is_finished:
            return
        phase = flight.current_phase_name
        self._release_delegates(flight)
        flight.failure_reason = reason
        self._finish(flight, FlightStatus.FAILED)
        self._store.set_state(flight.vehicle.id, operation="flight", phase="failed", flight_id=flight.id, reason=reason)
        logger.error("Flight %s for %s failed in %s: %s", flight.id, flight.vehicle.id, phase, reason)
        self._channel.emit(FlightFailed(flight.vehicle.id, flight.id, phase, reason))

    def _finish(self, flight: AutomatedFlight, status: FlightStatus) -> None:
        flight.status = status
        self._flights.pop(flight.id, None)
        if flight.vehicle.active_operation is flight:
            flight.vehicle.active_operation = None

    def _release_delegates(self, flight: AutomatedFlight) -> None:
        if flight.taxi_result is not None and not flight.taxi_result.done:
            self._taxi.stop_taxi_operation(flight.vehicle.id)
        if flight.landing is not None and self._landing.landing_state(flight.vehicle) is flight.landing:
            self._landing.stop_landing(flight.vehicle)


def _speed(phase: FlightPhase, vehicle: Vehicle, default_factor: float) -> float:
    return phase.speed if phase.speed is not None else vehicle.specs.max_speed * default_factor


def _course(start: Pose, target: Vec3) -> float:
    if distance_2d(start.position, target) > 1e-9:
        return heading_to(start.position, target)
    return start.heading


def _phase_progress(elapsed: float, duration: float) -> float:
    if duration <= 0 or reached(elapsed, duration):
        return 1.0
    return elapsed / duration
