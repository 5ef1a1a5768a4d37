"""Core enumerations shared across the airfield orchestrator.

These are the keys the configuration, validation and controllers agree on.
Parsing accepts both the canonical snake_case values and the camelCase
spellings external collaborators tend to send (``"toRunway"``).
"""

from enum import Enum


class _ParsableEnum(Enum):
    @classmethod
    def parse(cls, value):
        """Return the member matching ``value`` (member, value or name).

        Raises:
            ValueError: If nothing matches.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip()
            folded = "".join(ch for ch in key if ch.isalnum()).lower()
            for member in cls:
                if folded in (member.value.replace("_", ""), member.name.replace("_", "").lower()):
                    return member
        raise ValueError(f"unknown {cls.__name__}: {value!r}")


class VehicleType(_ParsableEnum):
    """Vehicle classes known to the airfield.

    Helicopters take off vertically from their pad and never taxi.
    """

    CESSNA = "cessna"
    FIGHTER = "fighter"
    AIRLINER = "airliner"
    CARGO = "cargo"
    HELICOPTER = "helicopter"

    @property
    def is_vertical_takeoff(self) -> bool:
        return self is VehicleType.HELICOPTER


class TaxiDirection(_ParsableEnum):
    TO_RUNWAY = "to_runway"
    FROM_RUNWAY = "from_runway"


class ApproachDirection(_ParsableEnum):
    """Side of the runway a landing approach starts from."""

    EAST = "east"
    WEST = "west"
