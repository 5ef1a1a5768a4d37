"""Time units for airfield operation budgets and the simulated clock.

Classes:
    Second: Base time unit (SI).
    Millisecond: 1/1000 second; the scale operation budgets are usually quoted in.
    Minute: 60 seconds.

Type Aliases:
    Time: Union type for all time units.
"""

from __future__ import annotations

from .unit_float import UnitFloat


class Second(UnitFloat):
    """Time unit: Second (SI base unit for time)."""

    IS_FAMILY_ROOT = True
    SCALE_TO_SI = 1.0
    SYMBOL = "s"


class Millisecond(Second):
    """Time unit: Millisecond (0.001 seconds)."""

    SCALE_TO_SI = 1e-3
    SYMBOL = "ms"


class Minute(Second):
    """Time unit: Minute (60 seconds)."""

    SCALE_TO_SI = 60.0
    SYMBOL = "min"


Time = Second | Millisecond | Minute


def as_seconds(value: Time | float) -> Second:
    """Coerce a duration to Second; plain numbers are read as seconds."""
    if isinstance(value, Second):
        return value.as_unit(Second)
    return Second(float(value))
