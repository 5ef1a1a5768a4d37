"""Cooperative, tick-driven scheduler for deferred and periodic work.

Nothing here runs on its own. The host loop calls :meth:`Scheduler.update`
once per tick with the elapsed simulated time; the scheduler then advances its
clock, progresses running timers, and fires due timeouts and intervals on the
same call. Because time only moves through ``update``, tests are fully
deterministic.

Callback failures are logged and swallowed at this boundary so one faulty
callback cannot stop the tick.
"""

from collections.abc import Callable
from dataclasses import dataclass
import itertools
import logging
from typing import Any

from airfieldsim.events import (
    EventChannel,
    TimerCompleted,
    TimerPaused,
    TimerRemoved,
    TimersCleared,
    TimerStarted,
    TimerStopped,
)
from airfieldsim.unit import Second, Time, as_seconds

from .timer import CompleteFn, ElapsedTime, ProgressFn, Timer, reached

logger = logging.getLogger(__name__)


@dataclass
class _Deferred:
    callback: Callable[[], None]
    due: float
    interval: float | None = None
    order: int = 0


class Scheduler:
    """Timer, timeout and interval registry advanced by ``update(dt)``.

    Args:
        channel: Optional event channel receiving ``timer.*`` lifecycle events.
        start_time: Initial value of the simulated clock, in seconds.
    """

    def __init__(self, channel: EventChannel | None = None, start_time: float = 0.0) -> None:
        self._channel = channel
        self._clock = ElapsedTime(start_time)
        self._timers: dict[str, Timer] = {}
        self._timeouts: dict[str, _Deferred] = {}
        self._intervals: dict[str, _Deferred] = {}
        self._timer_ids = itertools.count(1)
        self._timeout_ids = itertools.count(1)
        self._interval_ids = itertools.count(1)
        self._order = itertools.count()

    # ------------------------------------------------------------------ clock

    @property
    def now(self) -> Second:
        """Current simulated time."""
        return Second(self._clock.value)

    def clock(self) -> float:
        """Current simulated time as a plain float, for use as a clock callable."""
        return self._clock.value

    # ------------------------------------------------------------------ timers

    def create_timer(
        self,
        duration: Time | float,
        on_progress: ProgressFn | None = None,
        on_complete: CompleteFn | None = None,
        auto_start: bool = True,
        name: str | None = None,
    ) -> str:
        """Register a countdown and return its id.

        Completed timers are removed from the registry on the tick they
        complete. Keep the object from :meth:`get_timer` to inspect it later.
        """
        timer_id = f"timer_{next(self._timer_ids)}"
        self._timers[timer_id] = Timer(timer_id, duration, on_progress, on_complete, name)
        if auto_start:
            self.start(timer_id)
        return timer_id

    def get_timer(self, timer_id: str) -> Timer:
        """Raises KeyError for unknown or already removed ids."""
        return self._timers[timer_id]

    def start(self, timer_id: str) -> bool:
        timer = self._timers.get(timer_id)
        if timer is None or timer.running or timer.complete:
            return False
        timer.running = True
        self._emit(TimerStarted(timer_id, timer.name))
        return True

    def pause(self, timer_id: str) -> bool:
        timer = self._timers.get(timer_id)
        if timer is None or not timer.running:
            return False
        timer.running = False
        self._emit(TimerPaused(timer_id, timer.name))
        return True

    def resume(self, timer_id: str) -> bool:
        """Continue a paused timer from its accumulated elapsed time."""
        return self.start(timer_id)

    def stop(self, timer_id: str) -> bool:
        """Halt and rewind a timer to zero elapsed time."""
        timer = self._timers.get(timer_id)
        if timer is None:
            return False
        timer.reset()
        self._emit(TimerStopped(timer_id, timer.name))
        return True

    def remove(self, timer_id: str) -> bool:
        timer = self._timers.pop(timer_id, None)
        if timer is None:
            return False
        timer.running = False
        self._emit(TimerRemoved(timer_id, timer.name))
        return True

    def progress(self, timer_id: str) -> float:
        return self._timers[timer_id].progress

    def remaining(self, timer_id: str) -> Second:
        return self._timers[timer_id].remaining

    def is_running(self, timer_id: str) -> bool:
        timer = self._timers.get(timer_id)
        return timer is not None and timer.running

    def is_complete(self, timer_id: str) -> bool:
        timer = self._timers.get(timer_id)
        return timer is not None and timer.complete

    def active_timers(self) -> list[Timer]:
        return [t for t in self._timers.values() if t.running]

    # ------------------------------------------------------------------ timeouts / intervals

    def set_timeout(self, callback: Callable[[], None], delay: Time | float) -> str:
        """Run ``callback`` once, on the first tick at or after ``now + delay``."""
        timeout_id = f"timeout_{next(self._timeout_ids)}"
        due = self._clock.value + float(as_seconds(delay))
        self._timeouts[timeout_id] = _Deferred(callback, due, order=next(self._order))
        return timeout_id

    def clear_timeout(self, timeout_id: str | None) -> bool:
        if timeout_id is None:
            return False
        return self._timeouts.pop(timeout_id, None) is not None

    def set_interval(self, callback: Callable[[], None], interval: Time | float) -> str:
        """Run ``callback`` every ``interval``, at most once per tick."""
        period = float(as_seconds(interval))
        if period <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        interval_id = f"interval_{next(self._interval_ids)}"
        self._intervals[interval_id] = _Deferred(
            callback, self._clock.value + period, interval=period, order=next(self._order)
        )
        return interval_id

    def clear_interval(self, interval_id: str | None) -> bool:
        if interval_id is None:
            return False
        return self._intervals.pop(interval_id, None) is not None

    # ------------------------------------------------------------------ driver

    def update(self, dt: Time | float) -> None:
        """Advance the clock by ``dt`` and run everything that became due."""
        delta = as_seconds(dt)
        if float(delta) < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")
        self._clock.add(delta)

        self._update_timers(delta)
        self._fire_timeouts()
        self._fire_intervals()

    def _update_timers(self, delta: Second) -> None:
        for timer in list(self._timers.values()):
            if not timer.running or timer.complete:
                continue
            timer._advance(delta)
            progress = timer.progress
            if timer.on_progress is not None:
                self._guard(timer.on_progress, progress, label=timer.id)
            if timer.done:
                timer.complete = True
                timer.running = False
                self._timers.pop(timer.id, None)
                if timer.on_complete is not None:
                    self._guard(timer.on_complete, label=timer.id)
                self._emit(TimerCompleted(timer.id, timer.name))

    def _fire_timeouts(self) -> None:
        now = self._clock.value
        due = sorted(
            ((tid, d) for tid, d in self._timeouts.items() if reached(now, d.due)),
            key=lambda item: (item[1].due, item[1].order),
        )
        for timeout_id, deferred in due:
            # An earlier callback on this tick may have cleared it.
            if self._timeouts.pop(timeout_id, None) is None:
                continue
            self._guard(deferred.callback, label=timeout_id)

    def _fire_intervals(self) -> None:
        now = self._clock.value
        for interval_id, deferred in list(self._intervals.items()):
            if interval_id not in self._intervals or not reached(now, deferred.due):
                continue
            deferred.due += deferred.interval
            if reached(now, deferred.due):
                deferred.due = now + deferred.interval
            self._guard(deferred.callback, label=interval_id)

    def _guard(self, fn: Callable[..., Any], *args: Any, label: str) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception("Scheduler callback %s failed", label)

    def _emit(self, event) -> None:
        if self._channel is not None:
            self._channel.emit(event)

    # ------------------------------------------------------------------ housekeeping

    def clear_all(self) -> None:
        """Drop every timer, timeout and interval."""
        count = len(self._timers)
        for timer in self._timers.values():
            timer.running = False
        self._timers.clear()
        self._timeouts.clear()
        self._intervals.clear()
        self._emit(TimersCleared(count))

    def debug_info(self) -> dict[str, Any]:
        return {
            "now": self._clock.value,
            "timers": len(self._timers),
            "running": len(self.active_timers()),
            "timeouts": len(self._timeouts),
            "intervals": len(self._intervals),
        }
