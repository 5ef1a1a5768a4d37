"""End-to-end taxi orchestration.

``start_taxi_operation`` validates the vehicle, builds a taxi state machine and
returns a :class:`TaxiResult` right away. Everything after that is event and
tick driven:

- ``to_runway`` asks the ground operations controller for a tug. With one,
  the vehicle is pushed back and then taxis on its own. Without one, it taxis
  on its own straight away.
- ``from_runway`` goes straight to independent taxi.
- ``update_taxi_movement(dt)`` steps every independently taxiing vehicle
  toward its current waypoint and completes the operation after the last one.
- A scheduler timeout forces the machine into ``error`` if the operation runs
  past the configured budget.

Completion and failure are both observed through ``taxi.state.changed``, so
timeouts, cancellations and invalid transitions all settle the result and
release the tug through the same path.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

from airfieldsim.config import AirfieldConfig
from airfieldsim.errors import (
    AirfieldError,
    OperationCancelled,
    OperationInProgress,
    OperationTimeout,
    RouteNotFound,
    ValidationFailure,
)
from airfieldsim.events import (
    EventChannel,
    GroundVehicleAvailable,
    GroundVehicleRelease,
    GroundVehicleRequest,
    GroundVehicleUnavailable,
    PushbackComplete,
    StartPushback,
    TaxiOperationCompleted,
    TaxiOperationError,
    TaxiRequestCompleted,
    TaxiRequested,
    TaxiRequestFailed,
    TaxiStateChanged,
)
from airfieldsim.geo import GROUND_LEVEL, Route, Vec3, calculate_taxi_movement, has_reached_waypoint
from airfieldsim.geo.position import closest_waypoint, route_progress
from airfieldsim.state import VehicleStateStore
from airfieldsim.timer import Scheduler
from airfieldsim.types import TaxiDirection
from airfieldsim.unit import Time, as_seconds
from airfieldsim.validation import validate_taxi_requirements
from airfieldsim.vehicles import Vehicle

from .result import TaxiResult
from .taxi_state_machine import TaxiState, TaxiStateMachine

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class TaxiOperation:
    """Live record of one vehicle's taxi."""

    vehicle: Vehicle
    direction: TaxiDirection
    route: Route
    machine: TaxiStateMachine
    result: TaxiResult
    started_at: float
    waypoint_index: int = 1
    support_vehicle_id: str | None = None
    timeout_id: str | None = None
    pushed_back: bool = False

    @property
    def vehicle_id(self) -> str:
        return self.vehicle.id

    @property
    def progress(self) -> float:
        if self.machine.state is TaxiState.COMPLETE:
            return 1.0
        if self.machine.state is not TaxiState.INDEPENDENT_TAXI:
            return 0.0
        return route_progress(self.vehicle.position, self.route, self.waypoint_index)


class TaxiController:
    """Runs at most one taxi operation per vehicle."""

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
        self._operations: dict[str, TaxiOperation] = {}
        self._unsubscribers = [
            channel.subscribe(TaxiRequested.TOPIC, self._on_taxi_requested),
            channel.subscribe(TaxiStateChanged.TOPIC, self._on_state_changed),
            channel.subscribe(GroundVehicleAvailable.TOPIC, self._on_vehicle_available),
            channel.subscribe(GroundVehicleUnavailable.TOPIC, self._on_vehicle_unavailable),
            channel.subscribe(PushbackComplete.TOPIC, self._on_pushback_complete),
        ]

    # ------------------------------------------------------------------ API

    def start_taxi_operation(self, vehicle: Vehicle, direction: TaxiDirection | str) -> TaxiResult:
        """Begin taxiing ``vehicle`` in ``direction``.

        Never raises: every refusal comes back as a failed result.

        Returns:
            A result that succeeds with the final position, or fails with
            ``ValidationFailure``, ``RouteNotFound``, ``OperationInProgress``,
            ``OperationTimeout``, ``OperationCancelled`` or ``AirfieldError``.
        """
        vehicle_id = vehicle.id
        try:
            direction = TaxiDirection.parse(direction)
        except ValueError:
            return self._refuse(
                vehicle_id, str(direction), "validation_failed", ValidationFailure(["unknown_taxi_direction"])
            )

        if vehicle.is_vertical_takeoff:
            logger.info("%s takes off vertically, no taxi needed", vehicle_id)
            self._store.set_state(vehicle_id, operation="taxi", phase="complete", reason="helicopter_no_taxi_needed")
            return TaxiResult.succeeded(vehicle_id, direction.value, vehicle.position)

        if vehicle_id in self._operations:
            return TaxiResult.failed(vehicle_id, direction.value, OperationInProgress(vehicle_id, "taxi"))

        validation = validate_taxi_requirements(vehicle, direction, self._config)
        if not validation.is_valid:
            logger.error("Taxi validation failed for %s: %s", vehicle_id, ", ".join(validation.violations))
            return self._refuse(
                vehicle_id,
                direction.value,
                "validation_failed",
                ValidationFailure(validation.violations, "Taxi validation failed"),
                violations=list(validation.violations),
            )

        try:
            route = self._config.taxi_route(vehicle.type, direction)
        except RouteNotFound as exc:
            return self._refuse(vehicle_id, direction.value, "route_not_found", exc)

        operation = TaxiOperation(
            vehicle=vehicle,
            direction=direction,
            route=route,
            machine=TaxiStateMachine(vehicle_id, self._channel, self._store),
            result=TaxiResult(vehicle_id, direction.value),
            started_at=self._scheduler.clock(),
        )
        self._operations[vehicle_id] = operation
        operation.timeout_id = self._scheduler.set_timeout(
            lambda: self._on_timeout(operation), self._config.taxi_timeout
        )
        logger.info("Taxi %s for %s started (%d waypoints)", direction.value, vehicle_id, len(route))

        operation.machine.transition(
            TaxiState.REQUESTING_VEHICLE, direction=direction.value, route_length=len(route)
        )
        if direction is TaxiDirection.TO_RUNWAY:
            self._channel.emit(GroundVehicleRequest(vehicle_id, "pushback", vehicle))
        else:
            operation.machine.transition(TaxiState.INDEPENDENT_TAXI, reason="no_pushback_needed")
        return operation.result

    def update_taxi_movement(self, dt: Time | float) -> None:
        """Advance every independently taxiing vehicle by ``dt``."""
        dt = float(as_seconds(dt))
        for operation in list(self._operations.values()):
            if operation.machine.state is not TaxiState.INDEPENDENT_TAXI:
                continue
            try:
                self._step(operation, dt)
            except Exception:
                logger.exception("Taxi step failed for %s", operation.vehicle_id)
                operation.machine.error("movement_failure")

    def stop_taxi_operation(self, vehicle_id: str) -> bool:
        operation = self._operations.get(vehicle_id)
        if operation is None:
            return False
        operation.machine.error("stopped_by_user")
        return True

    def active_operations(self) -> dict[str, TaxiOperation]:
        return dict(self._operations)

    def get_operation(self, vehicle_id: str) -> TaxiOperation | None:
        return self._operations.get(vehicle_id)

    def dispose(self) -> None:
        for vehicle_id in list(self._operations):
            self.stop_taxi_operation(vehicle_id)
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    # ------------------------------------------------------------------ movement

    def _step(self, operation: TaxiOperation, dt: float) -> None:
        vehicle = operation.vehicle
        route = operation.route
        tolerance = self._config.timing.waypoint_tolerance

        if operation.waypoint_index < len(route) and has_reached_waypoint(
            vehicle.position, route[operation.waypoint_index], tolerance
        ):
            operation.waypoint_index += 1
            logger.debug("%s reached waypoint %d/%d", vehicle.id, operation.waypoint_index, len(route))

        if operation.waypoint_index >= len(route):
            self._snap_to_final(operation)
            operation.machine.transition(
                TaxiState.COMPLETE, reason="reached_final_waypoint", final_position=vehicle.position
            )
            return

        target = route[operation.waypoint_index]
        step = calculate_taxi_movement(vehicle.position, target, vehicle.heading, vehicle.specs, dt)
        vehicle.apply_pose(vehicle.pose().moved(step.position, step.heading, step.speed))

    def _snap_to_final(self, operation: TaxiOperation) -> None:
        final = operation.route[-1]
        pose = operation.vehicle.pose()
        operation.vehicle.apply_pose(
            pose.moved(position=Vec3(final.x, GROUND_LEVEL, final.z), heading=final.heading, speed=0.0)
        )

    def _start_index(self, operation: TaxiOperation) -> int:
        route = operation.route
        if operation.direction is TaxiDirection.TO_RUNWAY:
            if operation.pushed_back:
                return max(1, min(2, len(route) - 1))
            return 1
        nearest = closest_waypoint(operation.vehicle.position, route)
        return max(1, nearest[0]) if nearest else 1

    # ------------------------------------------------------------------ event handlers

    def _on_taxi_requested(self, event: TaxiRequested) -> None:
        result = self.start_taxi_operation(event.vehicle, event.direction)

        def report(settled: TaxiResult) -> None:
            if settled.ok:
                self._channel.emit(TaxiRequestCompleted(settled.vehicle_id, settled.direction))
            else:
                self._channel.emit(TaxiRequestFailed(settled.vehicle_id, settled.direction, str(settled.error)))

        result.add_done_callback(report)

    def _on_state_changed(self, event: TaxiStateChanged) -> None:
        operation = self._operations.get(event.vehicle_id)
        if operation is None:
            return
        if event.current_state == TaxiState.INDEPENDENT_TAXI.value:
            operation.waypoint_index = self._start_index(operation)
            logger.info(
                "%s taxiing independently from waypoint %d (%s)",
                event.vehicle_id,
                operation.waypoint_index,
                event.context.get("reason"),
            )
        elif event.current_state == TaxiState.COMPLETE.value:
            self._complete(operation)
        elif event.current_state == TaxiState.ERROR.value:
            self._fail(operation, event.context.get("reason", "unknown_error"), event.context)

    def _on_vehicle_available(self, event: GroundVehicleAvailable) -> None:
        operation = self._operations.get(event.vehicle_id)
        if operation is None or operation.machine.state is not TaxiState.REQUESTING_VEHICLE:
            return
        support = event.support_vehicle
        operation.support_vehicle_id = support.id
        if not operation.machine.transition(TaxiState.VEHICLE_DISPATCHED, support_vehicle_id=support.id):
            return
        self._channel.emit(StartPushback(support.id, operation.vehicle))
        # A refused pushback has already moved the operation on.
        if operation.machine.state is TaxiState.VEHICLE_DISPATCHED:
            operation.machine.transition(TaxiState.BEING_PUSHED, support_vehicle_id=support.id)

    def _on_vehicle_unavailable(self, event: GroundVehicleUnavailable) -> None:
        operation = self._operations.get(event.vehicle_id)
        if operation is None:
            return
        if operation.machine.state is TaxiState.REQUESTING_VEHICLE:
            reason = "no_vehicle_available"
        elif operation.machine.state is TaxiState.VEHICLE_DISPATCHED:
            reason = "pushback_refused"
            operation.support_vehicle_id = None
        else:
            return
        logger.warning("No tug for %s, taxiing independently", event.vehicle_id)
        operation.machine.transition(TaxiState.INDEPENDENT_TAXI, reason=reason)

    def _on_pushback_complete(self, event: PushbackComplete) -> None:
        operation = self._operations.get(event.vehicle_id)
        if operation is None or operation.machine.state is not TaxiState.BEING_PUSHED:
            return
        operation.vehicle.is_being_towed = False
        operation.pushed_back = True
        operation.support_vehicle_id = None
        operation.machine.transition(TaxiState.INDEPENDENT_TAXI, reason="pushback_complete")

    def _on_timeout(self, operation: TaxiOperation) -> None:
        if self._operations.get(operation.vehicle_id) is not operation:
            return
        elapsed = self._scheduler.clock() - operation.started_at
        operation.machine.error("timeout", duration=elapsed)

    # ------------------------------------------------------------------ settlement

    def _complete(self, operation: TaxiOperation) -> None:
        self._discard(operation)
        final_position = operation.vehicle.position
        logger.info("Taxi %s for %s complete", operation.direction.value, operation.vehicle_id)
        operation.result.resolve(final_position)
        self._channel.emit(TaxiOperationCompleted(operation.vehicle_id, operation.direction.value, final_position))

    def _fail(self, operation: TaxiOperation, reason: str, details: dict[str, Any]) -> None:
        self._discard(operation)
        vehicle = operation.vehicle
        vehicle.is_being_towed = False
        if vehicle.speed:
            vehicle.apply_pose(vehicle.pose().moved(speed=0.0))
        self._channel.emit(GroundVehicleRelease(operation.vehicle_id, reason))
        logger.error("Taxi %s for %s failed: %s", operation.direction.value, operation.vehicle_id, reason)
        operation.result.reject(self._error_for(operation, reason))
        self._channel.emit(TaxiOperationError(operation.vehicle_id, reason, dict(details)))

    def _discard(self, operation: TaxiOperation) -> None:
        if operation.timeout_id is not None:
            self._scheduler.clear_timeout(operation.timeout_id)
            operation.timeout_id = None
        if self._operations.get(operation.vehicle_id) is operation:
            del self._operations[operation.vehicle_id]

    def _error_for(self, operation: TaxiOperation, reason: str) -> AirfieldError:
        if reason == "timeout":
            return OperationTimeout("taxi", self._config.taxi_timeout)
        if reason == "stopped_by_user":
            return OperationCancelled(operation.vehicle_id, reason)
        return AirfieldError(f"Taxi operation failed: {reason}")

    def _refuse(self, vehicle_id: str, direction: str, reason: str, error: AirfieldError, **details: Any) -> TaxiResult:
        self._channel.emit(TaxiOperationError(vehicle_id, reason, details))
        return TaxiResult.failed(vehicle_id, direction, error)
