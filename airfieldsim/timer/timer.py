"""Progress-tracked countdown used by the scheduler.

A Timer does not know about wall-clock time. The owning Scheduler advances it
by the simulated delta of each tick, so pausing is simply "stop advancing" and
resuming continues from the accumulated elapsed time without drift.

Components:
    Timer: Countdown with elapsed/remaining bookkeeping, progress in [0, 1] and
        optional progress/completion callbacks.
    ElapsedTime: Running total of tick deltas with rounding compensation.

Example:
    >>> from airfieldsim.unit import Second
    >>> timer = Timer("timer_1", Second(2.0))
    >>> timer.running = True
    >>> timer._advance(Second(0.5))
    >>> timer.progress
    0.25
    >>> timer.done
    False
"""

from collections.abc import Callable

from airfieldsim.unit import Second, Time, as_seconds

_ZERO_TIME = Second(0.0)

# Totals within this many seconds of a deadline count as having reached it.
TIME_EPSILON = 1e-9

ProgressFn = Callable[[float], None]
CompleteFn = Callable[[], None]


class ElapsedTime:
    """Running sum of simulated seconds.

    Uses Neumaier compensation so that adding a non-binary step such as 0.1
    many times lands on the exact total instead of drifting below it.

    Example:
        >>> total = ElapsedTime()
        >>> for _ in range(10):
        ...     total.add(0.1)
        >>> total.value
        1.0
    """

    __slots__ = ("_sum", "_carry")

    def __init__(self, start: float = 0.0) -> None:
        self._sum = float(start)
        self._carry = 0.0

    def add(self, delta: Time | float) -> None:
        value = float(delta)
        total = self._sum + value
        if abs(self._sum) >= abs(value):
            self._carry += (self._sum - total) + value
        else:
            self._carry += (value - total) + self._sum
        self._sum = total

    @property
    def value(self) -> float:
        return self._sum + self._carry


def reached(elapsed: float, deadline: float) -> bool:
    """True once ``elapsed`` is at ``deadline`` or past it, within TIME_EPSILON."""
    return elapsed >= deadline - TIME_EPSILON


class Timer:
    """Countdown timer with progress reporting.

    Timers are created through ``Scheduler.create_timer`` which assigns the id
    and drives ``_advance``. Completion is latched: once ``complete`` is set
    the timer never advances again until ``reset``.

    Attributes:
        id (str): Scheduler-assigned identifier (``timer_N``).
        name (str | None): Optional label used in logs and events.
        running (bool): Whether the scheduler advances this timer.
        complete (bool): Set once progress reached 1.0.
        on_progress: Called with the current progress on every advance.
        on_complete: Called exactly once when progress reaches 1.0.
    """

    _duration: Second
    _elapsed: ElapsedTime

    def __init__(
        self,
        timer_id: str,
        duration: Time | float,
        on_progress: ProgressFn | None = None,
        on_complete: CompleteFn | None = None,
        name: str | None = None,
    ) -> None:
        self.id = timer_id
        self.name = name
        self.on_progress = on_progress
        self.on_complete = on_complete
        self.running = False
        self.complete = False
        self._duration = as_seconds(duration)
        self._elapsed = ElapsedTime()

    @property
    def duration(self) -> Second:
        """Total countdown length."""
        return self._duration

    @property
    def elapsed(self) -> Second:
        """Simulated time accumulated while running."""
        return Second(self._elapsed.value)

    @property
    def remaining(self) -> Second:
        """Time left before completion, never negative."""
        if self.done:
            return _ZERO_TIME
        return Second(float(self._duration) - self._elapsed.value)

    @property
    def progress(self) -> float:
        """Fraction of the duration elapsed, clamped to [0, 1].

        Exactly 1.0 once the duration is reached. A zero-length timer reports
        1.0 immediately.
        """
        if self.done:
            return 1.0
        return self._elapsed.value / float(self._duration)

    @property
    def done(self) -> bool:
        """True when the full duration has elapsed."""
        return reached(self._elapsed.value, float(self._duration))

    def _advance(self, delta: Time) -> None:
        """Accumulate ``delta`` of simulated time. Internal to the scheduler."""
        self._elapsed.add(as_seconds(delta))

    def reset(self, duration: Time | float | None = None) -> None:
        """Rewind to zero elapsed time, optionally with a new duration."""
        if duration is not None:
            self._duration = as_seconds(duration)
        self._elapsed = ElapsedTime()
        self.running = False
        self.complete = False
