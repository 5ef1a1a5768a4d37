"""Typed payloads for every topic published on the event channel.

Each payload is a frozen dataclass carrying its topic name in ``TOPIC`` so it
can be published with ``EventChannel.emit(payload)``. Subscribers receive the
payload object itself.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from airfieldsim.geo.point import Vec3
    from airfieldsim.state.store import StateSnapshot
    from airfieldsim.vehicles import GroundSupportVehicle, Vehicle


@dataclass(frozen=True)
class Event:
    """Base class for channel payloads."""

    TOPIC: ClassVar[str] = ""


# ---------------------------------------------------------------- vehicle state


@dataclass(frozen=True)
class VehicleStateChanged(Event):
    TOPIC: ClassVar[str] = "aircraft.state.changed"

    vehicle_id: str
    old_state: StateSnapshot | None
    new_state: StateSnapshot
    timestamp: float


@dataclass(frozen=True)
class VehicleRemoved(Event):
    TOPIC: ClassVar[str] = "aircraft.removed"

    vehicle_id: str
    last_state: StateSnapshot | None


@dataclass(frozen=True)
class StateCleared(Event):
    TOPIC: ClassVar[str] = "state.cleared"

    vehicle_count: int


# ---------------------------------------------------------------- timers


@dataclass(frozen=True)
class TimerEvent(Event):
    """Lifecycle notification for a scheduler timer."""

    timer_id: str
    name: str | None = None


@dataclass(frozen=True)
class TimerStarted(TimerEvent):
    TOPIC: ClassVar[str] = "timer.started"


@dataclass(frozen=True)
class TimerPaused(TimerEvent):
    TOPIC: ClassVar[str] = "timer.paused"


@dataclass(frozen=True)
class TimerStopped(TimerEvent):
    TOPIC: ClassVar[str] = "timer.stopped"


@dataclass(frozen=True)
class TimerRemoved(TimerEvent):
    TOPIC: ClassVar[str] = "timer.removed"


@dataclass(frozen=True)
class TimerCompleted(TimerEvent):
    TOPIC: ClassVar[str] = "timer.completed"


@dataclass(frozen=True)
class TimersCleared(Event):
    TOPIC: ClassVar[str] = "timer.all_cleared"

    timer_count: int


# ---------------------------------------------------------------- ground support


@dataclass(frozen=True)
class GroundVehicleRequest(Event):
    TOPIC: ClassVar[str] = "ground.vehicle.request"

    vehicle_id: str
    operation: str
    vehicle: Vehicle


@dataclass(frozen=True)
class GroundVehicleAvailable(Event):
    TOPIC: ClassVar[str] = "ground.vehicle.available"

    vehicle_id: str
    support_vehicle: GroundSupportVehicle


@dataclass(frozen=True)
class GroundVehicleUnavailable(Event):
    TOPIC: ClassVar[str] = "ground.vehicle.unavailable"

    vehicle_id: str


@dataclass(frozen=True)
class StartPushback(Event):
    TOPIC: ClassVar[str] = "ground.vehicle.start.pushback"

    support_vehicle_id: str
    vehicle: Vehicle


@dataclass(frozen=True)
class PushbackComplete(Event):
    TOPIC: ClassVar[str] = "ground.vehicle.pushback.complete"

    support_vehicle_id: str
    vehicle_id: str


@dataclass(frozen=True)
class GroundVehicleRelease(Event):
    TOPIC: ClassVar[str] = "ground.vehicle.release"

    vehicle_id: str
    reason: str


# ---------------------------------------------------------------- taxi


@dataclass(frozen=True)
class TaxiStateChanged(Event):
    TOPIC: ClassVar[str] = "taxi.state.changed"

    vehicle_id: str
    previous_state: str
    current_state: str
    context: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TaxiOperationCompleted(Event):
    TOPIC: ClassVar[str] = "taxi.operation.completed"

    vehicle_id: str
    direction: str
    final_position: Vec3


@dataclass(frozen=True)
class TaxiOperationError(Event):
    TOPIC: ClassVar[str] = "taxi.operation.error"

    vehicle_id: str
    reason: str
    details: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TaxiRequested(Event):
    TOPIC: ClassVar[str] = "taxi.requested"

    vehicle: Vehicle
    direction: str


@dataclass(frozen=True)
class TaxiRequestCompleted(Event):
    TOPIC: ClassVar[str] = "taxi.completed"

    vehicle_id: str
    direction: str


@dataclass(frozen=True)
class TaxiRequestFailed(Event):
    TOPIC: ClassVar[str] = "taxi.error"

    vehicle_id: str
    direction: str
    reason: str


# ---------------------------------------------------------------- landing


@dataclass(frozen=True)
class LandingStateChanged(Event):
    TOPIC: ClassVar[str] = "landing.state.changed"

    vehicle_id: str
    previous_state: str
    current_state: str


@dataclass(frozen=True)
class LandingCompleted(Event):
    TOPIC: ClassVar[str] = "landing.completed"

    vehicle_id: str
    direction: str


@dataclass(frozen=True)
class LandingAborted(Event):
    TOPIC: ClassVar[str] = "landing.aborted"

    vehicle_id: str
    reason: str


# ---------------------------------------------------------------- flight automation


@dataclass(frozen=True)
class FlightPhaseChanged(Event):
    TOPIC: ClassVar[str] = "flight.phase.changed"

    vehicle_id: str
    flight_id: str
    previous_phase: str | None
    current_phase: str


@dataclass(frozen=True)
class FlightCompleted(Event):
    TOPIC: ClassVar[str] = "flight.completed"

    vehicle_id: str
    flight_id: str


@dataclass(frozen=True)
class FlightFailed(Event):
    TOPIC: ClassVar[str] = "flight.failed"

    vehicle_id: str
    flight_id: str
    phase: str
    reason: str
