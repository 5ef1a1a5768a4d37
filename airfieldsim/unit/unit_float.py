"""Float-based units with automatic SI conversion.

UnitFloat stores its value in the SI unit of its family (seconds, radians) and
keeps the concrete unit type for display. Arithmetic between units is only
allowed inside one family; scaling by plain numbers is always allowed.

Example:
    >>> from airfieldsim.unit import Millisecond, Second
    >>> budget = Millisecond(1500)
    >>> float(budget)
    1.5
    >>> (budget + Second(0.5)).to(Second)
    2.0
"""

from __future__ import annotations

from typing import ClassVar

from .unit_base import Unit

Number = int | float


class UnitFloat(float, Unit):
    """Base class for unit-safe floats stored in SI.

    Attributes:
        SCALE_TO_SI (ClassVar[float]): Conversion factor to SI units.
        IS_FAMILY_ROOT (ClassVar[bool]): Indicates if this class is a root unit.
    """

    SCALE_TO_SI: ClassVar[float] = 1.0
    IS_FAMILY_ROOT: ClassVar[bool] = True

    def __new__(cls, value: Number):
        """Create a new instance from a value in the unit's native scale."""
        si_val = float(value) * cls.SCALE_TO_SI
        return float.__new__(cls, si_val)

    @classmethod
    def from_si(cls, si_value: float) -> UnitFloat:
        """Create an instance directly from an SI value."""
        return float.__new__(cls, si_value)

    def to(self, unit_type: type[UnitFloat]) -> float:
        """Return the plain value expressed in ``unit_type``'s scale.

        Raises:
            TypeError: If ``unit_type`` is from another family.
        """
        self._check_same_root(unit_type)
        return float(self) / unit_type.SCALE_TO_SI

    def as_unit(self, unit_type: type[UnitFloat]) -> UnitFloat:
        """Convert to another unit of the same family, keeping type information."""
        self._check_same_root(unit_type)
        return unit_type.from_si(float(self))

    # -------------------------------- Arithmetic Operations --------------------------------

    def __add__(self, other: UnitFloat) -> UnitFloat:
        self._check_same_root(type(other))
        return type(self).from_si(float(self) + float(other))

    def __radd__(self, other: UnitFloat) -> UnitFloat:
        return self.__add__(other)

    def __sub__(self, other: UnitFloat) -> UnitFloat:
        self._check_same_root(type(other))
        return type(self).from_si(float(self) - float(other))

    def __rsub__(self, other: UnitFloat) -> UnitFloat:
        self._check_same_root(type(other))
        return type(self).from_si(float(other) - float(self))

    def __mul__(self, k: Number) -> UnitFloat:
        """Scale by a plain number.

        Raises:
            TypeError: If ``k`` is not numeric.
        """
        if isinstance(k, Number) and not isinstance(k, Unit):
            return type(self).from_si(float(self) * float(k))
        raise TypeError(f"cannot scale {type(self).__name__} by {type(k).__name__}")

    def __rmul__(self, k: Number) -> UnitFloat:
        return self.__mul__(k)

    def __truediv__(self, k):
        """Divide by a plain number, or by a same-family unit to get a ratio."""
        if isinstance(k, Unit):
            self._check_same_root(type(k))
            return float(self) / float(k)
        if isinstance(k, Number):
            return type(self).from_si(float(self) / float(k))
        raise TypeError(f"cannot divide {type(self).__name__} by {type(k).__name__}")

    def __neg__(self) -> UnitFloat:
        return type(self).from_si(-float(self))

    # -------------------------------- Comparisons --------------------------------

    def __lt__(self, other: UnitFloat) -> bool:
        self._check_same_root(type(other))
        return float(self) < float(other)

    def __le__(self, other: UnitFloat) -> bool:
        self._check_same_root(type(other))
        return float(self) <= float(other)

    def __gt__(self, other: UnitFloat) -> bool:
        self._check_same_root(type(other))
        return float(self) > float(other)

    def __ge__(self, other: UnitFloat) -> bool:
        self._check_same_root(type(other))
        return float(self) >= float(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Unit):
            return NotImplemented
        self._check_same_root(type(other))
        return float(self) == float(other)

    def __ne__(self, other: object) -> bool:
        if not isinstance(other, Unit):
            return NotImplemented
        self._check_same_root(type(other))
        return float(self) != float(other)

    __hash__ = float.__hash__

    def __str__(self) -> str:
        """Human-readable value in the unit's native scale (e.g. ``"1500.0 ms"``)."""
        return f"{self.to(type(self))} {type(self).SYMBOL}".strip()

    def __repr__(self) -> str:
        return f"{self.to(type(self)):g} {type(self).SYMBOL} (= {float(self):g} SI)"
