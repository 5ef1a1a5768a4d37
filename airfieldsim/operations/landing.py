"""Landing sequences: approach, glide slope, touchdown and rollout.

Each landing runs its own state machine::

    approach_setup -> approaching -> final_approach -> touchdown -> rollout -> complete

and any in-progress state may go to ``aborted`` (go-around). The runway is a
single slot: while one landing is active, ``start_landing`` refuses others
with :class:`ResourceUnavailable` and callers retry on a later tick.

Approach geometry, for an approach from the east (the west one is mirrored):

    ==================  ==================  ============
    waypoint            position (x, y, z)  speed factor
    ==================  ==================  ============
    initial_approach    (200, 50, 0)        0.6
    outer_marker        (150, 40, 0)        0.5
    final_approach      (120, 30, 0)        0.4
    short_final         (100, 15, 0)        0.35
    touchdown           (60, 1, 0)          0.3
    rollout             (-80, 1, 0)         0.1
    ==================  ==================  ============

Speed factors are fractions of the vehicle's max speed. Movement is scaled by
``dt``; the touchdown and rollout speed decay is applied once per tick.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import math
from typing import Any

from airfieldsim.config import AirfieldConfig
from airfieldsim.errors import OperationInProgress, ResourceUnavailable
from airfieldsim.events import EventChannel, LandingAborted, LandingCompleted, LandingStateChanged
from airfieldsim.geo import GROUND_LEVEL, Pose, Vec3, Waypoint, calculate_movement_to_waypoint, distance_2d, distance_3d
from airfieldsim.state import StateMachine, VehicleStateStore, graph
from airfieldsim.timer import Scheduler
from airfieldsim.types import ApproachDirection
from airfieldsim.unit import Time, as_seconds
from airfieldsim.validation import validate_landing_requirements
from airfieldsim.vehicles import Vehicle

logger = logging.getLogger(__name__)

CAPTURE_RADIUS = 15.0
TOUCHDOWN_RADIUS = 10.0
TOUCHDOWN_ALTITUDE = 5.0
GLIDE_SLOPE = 0.10
DESCENT_PITCH = 0.05
TOUCHDOWN_DECAY = 0.95
ROLLOUT_THRESHOLD = 0.2
ROLLOUT_DECAY = 0.98
ROLLOUT_MIN_SPEED = 0.05
STOPPED_SPEED = 0.1
GO_AROUND_ALTITUDE = 20.0
GO_AROUND_SPEED = 0.7
GO_AROUND_PITCH = -0.1


class LandingState(Enum):
    APPROACH_SETUP = "approach_setup"
    APPROACHING = "approaching"
    FINAL_APPROACH = "final_approach"
    TOUCHDOWN = "touchdown"
    ROLLOUT = "rollout"
    COMPLETE = "complete"
    ABORTED = "aborted"


LANDING_TRANSITIONS = graph(
    {
        LandingState.APPROACH_SETUP: (LandingState.APPROACHING, LandingState.ABORTED),
        LandingState.APPROACHING: (LandingState.FINAL_APPROACH, LandingState.ABORTED),
        LandingState.FINAL_APPROACH: (LandingState.TOUCHDOWN, LandingState.ABORTED),
        LandingState.TOUCHDOWN: (LandingState.ROLLOUT, LandingState.ABORTED),
        LandingState.ROLLOUT: (LandingState.COMPLETE, LandingState.ABORTED),
    }
)

STATE_PROGRESS = {
    LandingState.APPROACH_SETUP: 0.1,
    LandingState.APPROACHING: 0.3,
    LandingState.FINAL_APPROACH: 0.6,
    LandingState.TOUCHDOWN: 0.8,
    LandingState.ROLLOUT: 0.9,
    LandingState.COMPLETE: 1.0,
    LandingState.ABORTED: 0.0,
}

_EAST_APPROACH = (
    ("initial_approach", 200.0, 50.0, 0.6),
    ("outer_marker", 150.0, 40.0, 0.5),
    ("final_approach", 120.0, 30.0, 0.4),
    ("short_final", 100.0, 15.0, 0.35),
    ("touchdown", 60.0, GROUND_LEVEL, 0.3),
    ("rollout", -80.0, GROUND_LEVEL, 0.1),
)


def approach_heading(direction: ApproachDirection) -> float:
    """Heading flown on final: westbound (π) when arriving from the east."""
    return math.pi if direction is ApproachDirection.EAST else 0.0


def landing_waypoints(direction: ApproachDirection | str, centerline_z: float = 0.0) -> tuple[Waypoint, ...]:
    direction = ApproachDirection.parse(direction)
    sign = 1.0 if direction is ApproachDirection.EAST else -1.0
    heading = approach_heading(direction)
    return tuple(
        Waypoint(sign * x, centerline_z, name, y=y, heading=heading, speed=factor)
        for name, x, y, factor in _EAST_APPROACH
    )


@dataclass(eq=False)
class LandingOperation:
    """Live record of one landing."""

    vehicle: Vehicle
    direction: ApproachDirection
    waypoints: tuple[Waypoint, ...]
    machine: StateMachine[LandingState]
    started_at: float
    waypoint_index: int = 0
    end_reason: str | None = None

    @property
    def vehicle_id(self) -> str:
        return self.vehicle.id

    @property
    def state(self) -> LandingState:
        return self.machine.current

    @property
    def is_complete(self) -> bool:
        return self.state is LandingState.COMPLETE

    @property
    def is_aborted(self) -> bool:
        return self.state is LandingState.ABORTED

    @property
    def progress(self) -> float:
        return STATE_PROGRESS[self.state]

    def waypoint(self, name: str) -> Waypoint:
        return next(w for w in self.waypoints if w.name == name)


class LandingStateMachine:
    """Runs landing sequences and owns the runway slot."""

    def __init__(
        self,
        channel: EventChannel,
        scheduler: Scheduler,
        store: VehicleStateStore,
        config: AirfieldConfig,
    ) -> None:
        self._channel = channel
        self._scheduler = scheduler
        self._store = store
        self._config = config
        self._landings: dict[str, LandingOperation] = {}

    # ------------------------------------------------------------------ API

    def start_landing(self, vehicle: Vehicle, direction: ApproachDirection | str | None = None) -> LandingOperation:
        """Reserve the runway and begin a landing sequence.

        Args:
            direction: Side to approach from; defaults to
                :meth:`best_approach_direction`.

        Raises:
            OperationInProgress: ``vehicle`` is already landing.
            ResourceUnavailable: Another vehicle holds the runway.
        """
        if vehicle.id in self._landings:
            raise OperationInProgress(vehicle.id, "landing")
        if not self.is_runway_clear():
            raise ResourceUnavailable("runway", f"Runway reserved by {self.runway_occupant}")

        direction = self.best_approach_direction(vehicle) if direction is None else ApproachDirection.parse(direction)
        check = validate_landing_requirements(vehicle, self._config)
        if not check.is_valid:
            logger.warning("%s starting landing with violations: %s", vehicle.id, ", ".join(check.violations))

        operation = LandingOperation(
            vehicle=vehicle,
            direction=direction,
            waypoints=landing_waypoints(direction, self._config.runway.center_z),
            machine=StateMachine(LandingState.APPROACH_SETUP, LANDING_TRANSITIONS),
            started_at=self._scheduler.clock(),
        )
        self._landings[vehicle.id] = operation
        self._store.set_state(
            vehicle.id, operation="landing", phase=LandingState.APPROACH_SETUP.value, direction=direction.value
        )
        logger.info("Landing of %s from the %s started", vehicle.id, direction.value)
        return operation

    def update_landing(self, operation: LandingOperation, dt: Time | float) -> bool:
        """Advance one landing by one tick.

        Returns:
            True once the landing is complete.
        """
        if operation.state in (LandingState.COMPLETE, LandingState.ABORTED):
            return operation.is_complete
        dt = float(as_seconds(dt))
        try:
            self._handlers[operation.state](self, operation, dt)
        except Exception:
            logger.exception("Landing update failed for %s", operation.vehicle_id)
            self._abort(operation, "update_failure")
        return operation.is_complete

    def update_all_landings(self, dt: Time | float) -> list[LandingOperation]:
        """Advance every active landing; returns the ones that completed this tick."""
        completed = []
        for operation in list(self._landings.values()):
            if self.update_landing(operation, dt):
                completed.append(operation)
        return completed

    def abort_landing(self, vehicle: Vehicle | str, reason: str = "go_around") -> bool:
        """Go around: climb to at least 20, restore forward speed, release the runway."""
        operation = self.landing_state(vehicle)
        if operation is None:
            return False
        self._abort(operation, reason)
        return True

    def stop_landing(self, vehicle: Vehicle | str) -> bool:
        """Drop the landing without touching the vehicle's pose."""
        operation = self.landing_state(vehicle)
        if operation is None:
            return False
        self._end(operation, LandingState.ABORTED, "stopped")
        self._channel.emit(LandingAborted(operation.vehicle_id, "stopped"))
        return True

    def landing_state(self, vehicle: Vehicle | str) -> LandingOperation | None:
        vehicle_id = vehicle if isinstance(vehicle, str) else vehicle.id
        return self._landings.get(vehicle_id)

    def active_landings(self) -> dict[str, LandingOperation]:
        return dict(self._landings)

    @staticmethod
    def best_approach_direction(vehicle: Vehicle) -> ApproachDirection:
        """Approach from the side of the runway the vehicle is already on."""
        return ApproachDirection.EAST if vehicle.position.x > 0 else ApproachDirection.WEST

    def is_runway_clear(self) -> bool:
        return not self._landings

    @property
    def runway_occupant(self) -> str | None:
        return next(iter(self._landings), None)

    def dispose(self) -> None:
        self._landings.clear()

    # ------------------------------------------------------------------ state handlers

    def _approach_setup(self, operation: LandingOperation, dt: float) -> None:
        vehicle = operation.vehicle
        initial = operation.waypoints[0]
        vehicle.apply_pose(
            Pose(initial.position(), Vec3(0.0, approach_heading(operation.direction), 0.0), initial.speed * vehicle.specs.max_speed)
        )
        operation.waypoint_index = 1
        self._transition(operation, LandingState.APPROACHING)

    def _approaching(self, operation: LandingOperation, dt: float) -> None:
        if operation.waypoint_index >= len(operation.waypoints) - 2:
            self._transition(operation, LandingState.FINAL_APPROACH)
            return
        target = operation.waypoints[operation.waypoint_index]
        if distance_3d(operation.vehicle.position, target.position()) < CAPTURE_RADIUS:
            operation.waypoint_index += 1
        else:
            self._fly_toward(operation.vehicle, target, dt)

    def _final_approach(self, operation: LandingOperation, dt: float) -> None:
        vehicle = operation.vehicle
        touchdown = operation.waypoint("touchdown")
        pose = self._fly_toward(vehicle, touchdown, dt, apply=False)

        glide_altitude = max(GROUND_LEVEL, distance_2d(pose.position, touchdown) * GLIDE_SLOPE)
        vehicle.apply_pose(
            Pose(pose.position.with_(y=glide_altitude), pose.rotation.with_(x=DESCENT_PITCH), pose.speed)
        )

        if distance_3d(vehicle.position, touchdown.position()) < TOUCHDOWN_RADIUS and vehicle.position.y < TOUCHDOWN_ALTITUDE:
            logger.info("%s touchdown", vehicle.id)
            self._transition(operation, LandingState.TOUCHDOWN)

    def _touchdown(self, operation: LandingOperation, dt: float) -> None:
        vehicle = operation.vehicle
        rollout = operation.waypoint("rollout")
        speed = vehicle.speed * TOUCHDOWN_DECAY
        grounded = vehicle.position.with_(y=GROUND_LEVEL, z=self._config.runway.center_z)
        step = calculate_movement_to_waypoint(grounded, rollout.position(), speed, dt)
        vehicle.apply_pose(Pose(step.position.with_(y=GROUND_LEVEL), Vec3(0.0, vehicle.heading, 0.0), speed))

        if speed < vehicle.specs.max_speed * ROLLOUT_THRESHOLD:
            self._transition(operation, LandingState.ROLLOUT)

    def _rollout(self, operation: LandingOperation, dt: float) -> None:
        vehicle = operation.vehicle
        rollout = operation.waypoint("rollout")
        pose = self._fly_toward(vehicle, rollout, dt, apply=False)
        speed = max(ROLLOUT_MIN_SPEED, pose.speed * ROLLOUT_DECAY)
        vehicle.apply_pose(Pose(pose.position, pose.rotation, speed))

        if distance_3d(vehicle.position, rollout.position()) < TOUCHDOWN_RADIUS or speed < STOPPED_SPEED:
            vehicle.apply_pose(Pose(rollout.position(), Vec3(0.0, vehicle.heading, 0.0), 0.0))
            self._end(operation, LandingState.COMPLETE, "landed")
            logger.info("%s landing complete", vehicle.id)
            self._channel.emit(LandingCompleted(operation.vehicle_id, operation.direction.value))

    _handlers = {
        LandingState.APPROACH_SETUP: _approach_setup,
        LandingState.APPROACHING: _approaching,
        LandingState.FINAL_APPROACH: _final_approach,
        LandingState.TOUCHDOWN: _touchdown,
        LandingState.ROLLOUT: _rollout,
    }

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def _fly_toward(vehicle: Vehicle, waypoint: Waypoint, dt: float, apply: bool = True) -> Pose:
        speed = (waypoint.speed or 0.0) * vehicle.specs.max_speed
        step = calculate_movement_to_waypoint(vehicle.position, waypoint.position(), speed, dt)
        heading = step.heading if distance_2d(vehicle.position, waypoint) > 1e-6 else vehicle.heading
        pose = Pose(step.position, vehicle.rotation.with_(y=heading), speed)
        if apply:
            vehicle.apply_pose(pose)
        return pose

    def _transition(self, operation: LandingOperation, state: LandingState, **context: Any) -> None:
        previous = operation.state
        operation.machine.request_transition(state)
        self._store.set_state(
            operation.vehicle_id,
            operation="landing",
            phase=state.value,
            direction=operation.direction.value,
            **context,
        )
        logger.debug("%s: landing %s -> %s", operation.vehicle_id, previous.value, state.value)
        self._channel.emit(LandingStateChanged(operation.vehicle_id, previous.value, state.value))

    def _end(self, operation: LandingOperation, state: LandingState, reason: str) -> None:
        operation.end_reason = reason
        if operation.machine.can_transition(state):
            self._transition(operation, state, reason=reason)
        else:
            operation.machine.force(state)
        if self._landings.get(operation.vehicle_id) is operation:
            del self._landings[operation.vehicle_id]

    def _abort(self, operation: LandingOperation, reason: str) -> None:
        vehicle = operation.vehicle
        logger.warning("Aborting landing of %s (%s), going around", vehicle.id, reason)
        vehicle.apply_pose(
            Pose(
                vehicle.position.with_(y=max(vehicle.position.y, GO_AROUND_ALTITUDE)),
                vehicle.rotation.with_(x=GO_AROUND_PITCH),
                vehicle.specs.max_speed * GO_AROUND_SPEED,
            )
        )
        self._end(operation, LandingState.ABORTED, reason)
        self._channel.emit(LandingAborted(operation.vehicle_id, reason))
