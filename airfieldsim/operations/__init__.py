from .control_tower import ControlTower, Dispatch
from .flight import (
    AutomatedFlight,
    FlightAutomation,
    FlightPhase,
    FlightPlan,
    FlightStatus,
    PhaseKind,
)
from .ground_ops import GroundOperationsController, PushbackJob
from .landing import LandingOperation, LandingState, LandingStateMachine, landing_waypoints
from .plans import dispatch_plan, fixed_wing_plan, helicopter_plan
from .result import ResultState, TaxiResult
from .taxi import TaxiController, TaxiOperation
from .taxi_state_machine import TaxiState, TaxiStateMachine

__all__ = [
    "AutomatedFlight",
    "ControlTower",
    "Dispatch",
    "FlightAutomation",
    "FlightPhase",
    "FlightPlan",
    "FlightStatus",
    "GroundOperationsController",
    "LandingOperation",
    "LandingState",
    "LandingStateMachine",
    "PhaseKind",
    "PushbackJob",
    "ResultState",
    "TaxiController",
    "TaxiOperation",
    "TaxiResult",
    "TaxiState",
    "TaxiStateMachine",
    "dispatch_plan",
    "fixed_wing_plan",
    "helicopter_plan",
    "landing_waypoints",
]
