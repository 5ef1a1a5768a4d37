"""Deferred outcome of a taxi operation."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum, auto
import logging
from typing import Any

logger = logging.getLogger(__name__)


class ResultState(Enum):
    PENDING = auto()
    SUCCEEDED = auto()
    FAILED = auto()


class TaxiResult:
    """Settles exactly once, either with a value or with an exception.

    Done-callbacks run synchronously when the result settles, or immediately
    when added to an already settled result. Settling twice is ignored.

    Attributes:
        vehicle_id: Vehicle the operation belongs to.
        direction: Taxi direction value (``"to_runway"`` / ``"from_runway"``).
    """

    def __init__(self, vehicle_id: str, direction: str) -> None:
        self.vehicle_id = vehicle_id
        self.direction = direction
        self._state = ResultState.PENDING
        self._value: Any = None
        self._error: BaseException | None = None
        self._callbacks: list[Callable[[TaxiResult], None]] = []

    @classmethod
    def succeeded(cls, vehicle_id: str, direction: str, value: Any = None) -> TaxiResult:
        result = cls(vehicle_id, direction)
        result.resolve(value)
        return result

    @classmethod
    def failed(cls, vehicle_id: str, direction: str, error: BaseException) -> TaxiResult:
        result = cls(vehicle_id, direction)
        result.reject(error)
        return result

    @property
    def state(self) -> ResultState:
        return self._state

    @property
    def done(self) -> bool:
        return self._state is not ResultState.PENDING

    @property
    def ok(self) -> bool:
        return self._state is ResultState.SUCCEEDED

    @property
    def error(self) -> BaseException | None:
        return self._error

    def value(self) -> Any:
        """Return the success value.

        Raises:
            The rejection error if the operation failed.
            RuntimeError: If the result is still pending.
        """
        if self._state is ResultState.FAILED:
            raise self._error
        if self._state is ResultState.PENDING:
            raise RuntimeError(f"Taxi result for {self.vehicle_id} is still pending")
        return self._value

    def resolve(self, value: Any = None) -> bool:
        if self.done:
            return False
        self._state = ResultState.SUCCEEDED
        self._value = value
        self._settle()
        return True

    def reject(self, error: BaseException) -> bool:
        if self.done:
            return False
        self._state = ResultState.FAILED
        self._error = error
        self._settle()
        return True

    def add_done_callback(self, callback: Callable[[TaxiResult], None]) -> None:
        if self.done:
            self._run(callback)
        else:
            self._callbacks.append(callback)

    def _settle(self) -> None:
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            self._run(callback)

    def _run(self, callback: Callable[[TaxiResult], None]) -> None:
        try:
            callback(self)
        except Exception:
            logger.exception("Taxi result callback failed for %s", self.vehicle_id)

    def __repr__(self) -> str:
        return f"TaxiResult({self.vehicle_id!r}, {self.direction!r}, {self._state.name})"
