"""
Allow-listed ride update.

``updateRide`` accepts a ``RidePatch`` and nothing else, so arbitrary keys
can never reach the ride row.
"""

from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal
from typing import Any, Mapping

from .exceptions import RideValidationError


class _Unset:
    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class RidePatch:
    scheduled_date: date = UNSET
    scheduled_time: str = UNSET
    available_seats: int = UNSET
    needed_seats: int = UNSET
    price: Decimal = UNSET
    departure: str = UNSET
    destination: str = UNSET
    description: str = UNSET
    status: str = UNSET

    # Wire names that differ from the field names
    ALIASES = {"date": "scheduled_date", "time": "scheduled_time"}

    @classmethod
    def allowed_keys(cls) -> set:
        return {f.name for f in fields(cls)} | set(cls.ALIASES)

    @classmethod
    def from_mapping(cls, data: Mapping) -> "RidePatch":
        unknown = set(data) - cls.allowed_keys()
        if unknown:
            raise RideValidationError(f"Invalid updates: {', '.join(sorted(unknown))}")
        values = {cls.ALIASES.get(key, key): value for key, value in data.items()}
        return cls(**values)

    def changes(self) -> dict:
        """Fields actually present in the patch."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def __bool__(self):
        return bool(self.changes())
