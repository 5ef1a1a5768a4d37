"""Angular units for headings and attitude tolerances.

Headings inside the math layer are plain radians (floats). These classes are
used where an angle is configured or reported, so a tolerance written as
``Degree(11.5)`` is stored as radians.
"""

from __future__ import annotations

from math import pi

from .unit_float import UnitFloat


class Radian(UnitFloat):
    """Angular unit: Radian (SI base unit for angles)."""

    IS_FAMILY_ROOT = True
    SCALE_TO_SI = 1.0
    SYMBOL = "rad"


class Degree(Radian):
    """Angular unit: Degree (pi/180 radians)."""

    SCALE_TO_SI = pi / 180
    SYMBOL = "°"


Angle = Radian | Degree
