from .state_machine import StateMachine, graph
from .store import StateChange, StateSnapshot, VehicleStateStore

__all__ = ["StateChange", "StateMachine", "StateSnapshot", "VehicleStateStore", "graph"]
