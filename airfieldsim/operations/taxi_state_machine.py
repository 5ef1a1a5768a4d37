"""Per-vehicle taxi lifecycle built on the generic state machine.

Accepted transitions are written to the state store and announced on
``taxi.state.changed``. A transition outside the table never raises to the
caller: the machine logs it and drops into ``error`` with reason
``invalid_transition``.
"""

from __future__ import annotations

from enum import Enum
import logging
from typing import Any

from airfieldsim.errors import InvalidTransition
from airfieldsim.events import EventChannel, TaxiStateChanged
from airfieldsim.state import StateMachine, VehicleStateStore, graph

logger = logging.getLogger(__name__)


class TaxiState(Enum):
    IDLE = "idle"
    REQUESTING_VEHICLE = "requesting_vehicle"
    VEHICLE_DISPATCHED = "vehicle_dispatched"
    BEING_PUSHED = "being_pushed"
    INDEPENDENT_TAXI = "independent_taxi"
    COMPLETE = "complete"
    ERROR = "error"


TAXI_TRANSITIONS = graph(
    {
        TaxiState.IDLE: (TaxiState.REQUESTING_VEHICLE,),
        TaxiState.REQUESTING_VEHICLE: (TaxiState.VEHICLE_DISPATCHED, TaxiState.INDEPENDENT_TAXI, TaxiState.ERROR),
        TaxiState.VEHICLE_DISPATCHED: (TaxiState.BEING_PUSHED, TaxiState.INDEPENDENT_TAXI, TaxiState.ERROR),
        TaxiState.BEING_PUSHED: (TaxiState.INDEPENDENT_TAXI, TaxiState.ERROR),
        TaxiState.INDEPENDENT_TAXI: (TaxiState.COMPLETE, TaxiState.ERROR),
        TaxiState.COMPLETE: (TaxiState.IDLE,),
        TaxiState.ERROR: (TaxiState.IDLE,),
    }
)


class TaxiStateMachine:
    """Taxi phases of one vehicle.

    Attributes:
        vehicle_id: Vehicle the machine belongs to.
        reason: Reason given with the last transition into ``error``.
    """

    def __init__(self, vehicle_id: str, channel: EventChannel, store: VehicleStateStore) -> None:
        self.vehicle_id = vehicle_id
        self._channel = channel
        self._store = store
        self._machine: StateMachine[TaxiState] = StateMachine(TaxiState.IDLE, TAXI_TRANSITIONS)
        self.reason: str | None = None

    @property
    def state(self) -> TaxiState:
        return self._machine.current

    @property
    def previous(self) -> TaxiState | None:
        return self._machine.previous

    def is_valid_transition(self, state: TaxiState) -> bool:
        return self._machine.can_transition(state)

    def transition(self, state: TaxiState, **context: Any) -> bool:
        """Move to ``state``.

        Returns:
            True if the transition was accepted. An illegal transition returns
            False after forcing the machine into ``error``.
        """
        try:
            self._machine.request_transition(state)
        except InvalidTransition as exc:
            logger.error("%s: %s", self.vehicle_id, exc)
            self._machine.force(TaxiState.ERROR)
            self._announce(reason="invalid_transition", attempted=state.value)
            return False
        self._announce(**context)
        return True

    def error(self, reason: str, **details: Any) -> bool:
        return self.transition(TaxiState.ERROR, reason=reason, details=details)

    def reset(self) -> bool:
        return self.transition(TaxiState.IDLE, reason="reset")

    @property
    def is_complete(self) -> bool:
        return self.state is TaxiState.COMPLETE

    @property
    def has_error(self) -> bool:
        return self.state is TaxiState.ERROR

    def history(self):
        return self._store.state_history(self.vehicle_id)

    def _announce(self, **context: Any) -> None:
        previous = self._machine.previous
        current = self._machine.current
        if current is TaxiState.ERROR:
            self.reason = context.get("reason", "unknown_error")
        self._store.set_state(self.vehicle_id, operation="taxi", phase=current.value, **context)
        logger.debug("%s: taxi %s -> %s", self.vehicle_id, previous.value if previous else None, current.value)
        self._channel.emit(
            TaxiStateChanged(self.vehicle_id, previous.value if previous else "", current.value, context)
        )
