"""State machine implementation for managing validated state transitions.

This module provides a finite state machine that enforces transition rules.
Taxi and landing operations each run one instance per vehicle.
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from airfieldsim.errors import InvalidTransition

State = TypeVar("State", bound=Enum)
"""Type variable for state enumerations that extend Enum."""

StateGraph = dict[Any, frozenset[Any]]


def graph(table: dict[State, tuple[State, ...]]) -> StateGraph:
    """Build a transition graph from a plain ``source -> targets`` table."""
    return {source: frozenset(targets) for source, targets in table.items()}


class StateMachine(Generic[State]):
    """A finite state machine that manages state transitions with validation.

    The machine remembers the state it left so observers can report
    ``previous -> current`` pairs.

    Attributes:
        _state: The current state of the state machine.
        _previous: The state before the last transition, if any.
        _allowed: Dictionary mapping states to the states they may move to.
    """

    _allowed: StateGraph
    _state: State
    _previous: State | None

    def __init__(self, initial_state: State, nodes_graph: StateGraph):
        """Initialize the state machine with an initial state and transition rules.

        Args:
            initial_state: The starting state for the state machine.
            nodes_graph: Dictionary mapping each state to its allowed targets.
        """
        self._state = initial_state
        self._previous = None
        self._allowed = nodes_graph

    def request_transition(self, next_state: State) -> None:
        """Request a state transition to the specified next state.

        Args:
            next_state: The target state to transition to.

        Raises:
            InvalidTransition: If the transition from the current state to
                next_state is not allowed by the state machine rules.
        """
        self._validate_transition(self.current, next_state)
        self._previous, self._state = self._state, next_state

    def can_transition(self, next_state: State) -> bool:
        return next_state in self._allowed.get(self._state, ())

    def force(self, state: State) -> None:
        """Jump to ``state`` without consulting the table (error recovery)."""
        self._previous, self._state = self._state, state

    @property
    def current(self) -> State:
        """Get the current state of the state machine."""
        return self._state

    @property
    def previous(self) -> State | None:
        return self._previous

    def allowed_targets(self) -> set[State]:
        return set(self._allowed.get(self._state, ()))

    def _validate_transition(self, frm: State, to: State) -> None:
        """Raise InvalidTransition unless ``frm -> to`` is in the graph."""
        if to not in self._allowed.get(frm, ()):
            raise InvalidTransition(frm, to)
