"""Vehicle state store: latest operational state per vehicle plus bounded history.

The store holds no business logic. Controllers write snapshots, the store
versions them, records the change and publishes ``aircraft.state.changed``.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
import logging
import time
from types import MappingProxyType
from typing import Any

from airfieldsim.events import EventChannel, StateCleared, VehicleRemoved, VehicleStateChanged

logger = logging.getLogger(__name__)

MAX_HISTORY_PER_VEHICLE = 100
REQUIRED_FIELDS = ("operation", "phase")


@dataclass(frozen=True)
class StateSnapshot:
    """Immutable, versioned view of one vehicle's operational state.

    Attributes:
        vehicle_id: Vehicle the snapshot belongs to.
        version: Monotonic per-vehicle counter, starting at 1.
        timestamp: Store clock reading when the snapshot was written.
        operation: Operation kind (``"taxi"``, ``"landing"``, ``"flight"``...).
        phase: Phase within the operation.
        extra: Any further properties written with the snapshot.
    """

    vehicle_id: str
    version: int
    timestamp: float
    operation: str | None = None
    phase: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        if key in ("operation", "phase"):
            value = getattr(self, key)
            return default if value is None else value
        return self.extra.get(key, default)

    def as_dict(self) -> dict[str, Any]:
        return {"operation": self.operation, "phase": self.phase, **self.extra}


@dataclass(frozen=True)
class StateChange:
    """History entry pairing a snapshot with the one it replaced."""

    timestamp: float
    old_state: StateSnapshot | None
    new_state: StateSnapshot


class VehicleStateStore:
    """Single source of truth for per-vehicle operational state."""

    def __init__(
        self,
        channel: EventChannel | None = None,
        clock: Callable[[], float] = time.monotonic,
        max_history: int = MAX_HISTORY_PER_VEHICLE,
    ) -> None:
        self._channel = channel
        self._clock = clock
        self._max_history = max_history
        self._states: dict[str, StateSnapshot] = {}
        self._history: dict[str, deque[StateChange]] = {}

    def set_state(self, vehicle_id: str, state: Mapping[str, Any] | None = None, **fields: Any) -> StateSnapshot:
        """Replace the state of ``vehicle_id``.

        The new state is given as a mapping, keyword fields, or both (keywords
        win). ``operation`` and ``phase`` become snapshot attributes, the rest
        lands in ``extra``.

        Returns:
            The stored snapshot.
        """
        values = {**(state or {}), **fields}
        old = self._states.get(vehicle_id)
        timestamp = self._clock()
        snapshot = StateSnapshot(
            vehicle_id=vehicle_id,
            version=old.version + 1 if old else 1,
            timestamp=timestamp,
            operation=values.pop("operation", None),
            phase=values.pop("phase", None),
            extra=MappingProxyType(values),
        )
        self._states[vehicle_id] = snapshot
        history = self._history.setdefault(vehicle_id, deque(maxlen=self._max_history))
        history.append(StateChange(timestamp, old, snapshot))
        logger.debug("%s: %s/%s (v%d)", vehicle_id, snapshot.operation, snapshot.phase, snapshot.version)

        if self._channel is not None:
            self._channel.emit(VehicleStateChanged(vehicle_id, old, snapshot, timestamp))
        return snapshot

    def get_state(self, vehicle_id: str) -> StateSnapshot | None:
        return self._states.get(vehicle_id)

    def all_states(self) -> dict[str, StateSnapshot]:
        return dict(self._states)

    def update_property(self, vehicle_id: str, name: str, value: Any) -> StateSnapshot:
        """Write a new snapshot equal to the current one except for ``name``."""
        current = self._states.get(vehicle_id)
        values = current.as_dict() if current else {}
        values[name] = value
        return self.set_state(vehicle_id, values)

    def remove_vehicle(self, vehicle_id: str) -> None:
        last = self._states.pop(vehicle_id, None)
        self._history.pop(vehicle_id, None)
        if self._channel is not None:
            self._channel.emit(VehicleRemoved(vehicle_id, last))

    def has_vehicle(self, vehicle_id: str) -> bool:
        return vehicle_id in self._states

    def vehicles_by_operation(self, operation: str) -> list[str]:
        return [vid for vid, snapshot in self._states.items() if snapshot.operation == operation]

    def vehicles_by_property(self, name: str, value: Any) -> list[str]:
        return [vid for vid, snapshot in self._states.items() if snapshot.get(name) == value]

    def state_history(self, vehicle_id: str, limit: int | None = None) -> list[StateChange]:
        history = list(self._history.get(vehicle_id, ()))
        if limit:
            return history[-limit:]
        return history

    def last_state_change(self, vehicle_id: str) -> StateChange | None:
        history = self._history.get(vehicle_id)
        return history[-1] if history else None

    def clear_all(self) -> None:
        count = len(self._states)
        self._states.clear()
        self._history.clear()
        if self._channel is not None:
            self._channel.emit(StateCleared(count))

    @staticmethod
    def validate_state(state: Mapping[str, Any] | None) -> bool:
        """Check that a state mapping carries the fields every snapshot needs."""
        if not isinstance(state, Mapping):
            return False
        for name in REQUIRED_FIELDS:
            if name not in state:
                logger.warning("State is missing required property %r", name)
                return False
        return True

    def debug_info(self) -> dict[str, Any]:
        by_operation: dict[str, list[str]] = {}
        for vid, snapshot in self._states.items():
            by_operation.setdefault(snapshot.operation or "unknown", []).append(vid)
        return {
            "vehicle_count": len(self._states),
            "vehicle_ids": list(self._states),
            "history_entries": sum(len(h) for h in self._history.values()),
            "states_by_operation": by_operation,
        }
