"""Type-safe units for airfield timing and orientation.

The unit system keeps durations and angles apart at runtime. Values are stored
in SI (seconds, radians) and converted on demand.

Unit Families:
    - Time Family: Second (root), Millisecond, Minute
    - Angle Family: Radian (root), Degree

Example:
    >>> from airfieldsim.unit import Degree, Millisecond, Second
    >>> taxi_timeout = Millisecond(120_000)
    >>> taxi_timeout.to(Second)
    120.0
    >>> round(float(Degree(180)), 5)
    3.14159
    >>> # taxi_timeout + Degree(1)  raises TypeError: incompatible units
"""

from .unit_angle import Angle, Degree, Radian
from .unit_base import Unit
from .unit_float import UnitFloat
from .unit_time import Millisecond, Minute, Second, Time, as_seconds

__all__ = [
    "Angle",
    "Degree",
    "Millisecond",
    "Minute",
    "Radian",
    "Second",
    "Time",
    "Unit",
    "UnitFloat",
    "as_seconds",
]
