from .channel import WILDCARD, EventChannel, EventRecord
from .topics import (
    Event,
    FlightCompleted,
    FlightFailed,
    FlightPhaseChanged,
    GroundVehicleAvailable,
    GroundVehicleRelease,
    GroundVehicleRequest,
    GroundVehicleUnavailable,
    LandingAborted,
    LandingCompleted,
    LandingStateChanged,
    PushbackComplete,
    StartPushback,
    StateCleared,
    TaxiOperationCompleted,
    TaxiOperationError,
    TaxiRequestCompleted,
    TaxiRequested,
    TaxiRequestFailed,
    TaxiStateChanged,
    TimerCompleted,
    TimerEvent,
    TimerPaused,
    TimerRemoved,
    TimersCleared,
    TimerStarted,
    TimerStopped,
    VehicleRemoved,
    VehicleStateChanged,
)

__all__ = [
    "WILDCARD",
    "Event",
    "EventChannel",
    "EventRecord",
    "FlightCompleted",
    "FlightFailed",
    "FlightPhaseChanged",
    "GroundVehicleAvailable",
    "GroundVehicleRelease",
    "GroundVehicleRequest",
    "GroundVehicleUnavailable",
    "LandingAborted",
    "LandingCompleted",
    "LandingStateChanged",
    "PushbackComplete",
    "StartPushback",
    "StateCleared",
    "TaxiOperationCompleted",
    "TaxiOperationError",
    "TaxiRequestCompleted",
    "TaxiRequestFailed",
    "TaxiRequested",
    "TaxiStateChanged",
    "TimerCompleted",
    "TimerEvent",
    "TimerPaused",
    "TimerRemoved",
    "TimerStarted",
    "TimerStopped",
    "TimersCleared",
    "VehicleRemoved",
    "VehicleStateChanged",
]
