"""Unit family bookkeeping for typed airfield quantities.

Every unit class belongs to a family identified by its ROOT class. Durations
(Second, Millisecond, Minute) share one family and angles (Radian, Degree)
another. Mixing families raises TypeError at runtime, so a timeout budget can
never be compared against a heading by accident.

Key Concepts:
- ROOT Class: the class that defines a family
- IS_FAMILY_ROOT: marks the base unit of a family
- Automatic Assignment: ROOT is resolved from the MRO when a class is created

Example:
    >>> from airfieldsim.unit import Millisecond, Second
    >>> Second.ROOT is Millisecond.ROOT
    True
"""

from __future__ import annotations

from typing import ClassVar

Number = int | float


class Unit:
    """Base class for all unit types.

    Concrete units inherit from UnitFloat rather than directly from this class.

    Attributes:
        ROOT (ClassVar[type[Unit]]): Root class defining the unit family.
        SYMBOL (ClassVar[str]): Unit symbol for display purposes.
        IS_FAMILY_ROOT (ClassVar[bool]): Indicates if this class is a root unit.
    """

    __slots__ = ()
    __array_priority__ = 1000

    ROOT: ClassVar[type[Unit]]
    SYMBOL: ClassVar[str] = ""
    IS_FAMILY_ROOT: ClassVar[bool] = False

    def __init_subclass__(cls, **kwargs):
        """Resolve the ROOT class of a newly created unit type.

        The first ancestor flagged IS_FAMILY_ROOT becomes the root. A class that
        declares itself a family root is its own root.
        """
        super().__init_subclass__(**kwargs)
        if "ROOT" in cls.__dict__ and cls.ROOT is not None:
            return

        if cls.__dict__.get("IS_FAMILY_ROOT", False):
            cls.ROOT = cls
            return

        for base in cls.mro()[1:]:
            if base.__dict__.get("IS_FAMILY_ROOT", False):
                cls.ROOT = base
                return

        cls.ROOT = cls

    @classmethod
    def _check_same_root(cls, unit_type: type) -> None:
        """Ensure ``unit_type`` belongs to the same family as this class.

        Args:
            unit_type: The other operand's type.

        Raises:
            TypeError: If the families differ or ``unit_type`` is not a unit.
        """
        other_root = getattr(unit_type, "ROOT", None)
        if cls.ROOT is not other_root:
            msg = f"incompatible units: {cls.ROOT.__name__} and {getattr(other_root, '__name__', unit_type.__name__)}"
            raise TypeError(msg)
