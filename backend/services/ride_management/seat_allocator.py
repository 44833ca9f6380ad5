"""
Seat arithmetic for ride capacity.

Pure functions over a ``SeatState`` snapshot. Nothing here touches the
database or mutates its input; the lifecycle engine persists the state these
functions return.
"""

from dataclasses import dataclass, replace
from typing import Optional

from django.conf import settings

from rides.models import Ride
from .exceptions import RideConflictError, RideValidationError


def max_seats() -> int:
    return getattr(settings, "RIDES_MAX_SEATS", 8)


@dataclass(frozen=True)
class SeatState:
    ride_type: str
    original_seats: Optional[int]
    available_seats: Optional[int]
    passenger_count: int = 0

    @classmethod
    def from_ride(cls, ride: Ride, passenger_count: int) -> "SeatState":
        return cls(
            ride_type=ride.ride_type,
            original_seats=ride.original_seats,
            available_seats=ride.available_seats,
            passenger_count=passenger_count,
        )

    @property
    def is_metered(self) -> bool:
        """Only DRIVER rides have a seat inventory."""
        return self.ride_type == Ride.TYPE_DRIVER


def can_accommodate(state: SeatState) -> bool:
    if not state.is_metered:
        return True
    return (state.available_seats or 0) > 0


def reserve(state: SeatState) -> SeatState:
    """Take one seat for a new passenger."""
    if not can_accommodate(state):
        raise RideConflictError("No available seats for this ride")
    if not state.is_metered:
        return replace(state, passenger_count=state.passenger_count + 1)
    return replace(
        state,
        available_seats=state.available_seats - 1,
        passenger_count=state.passenger_count + 1,
    )


def release(state: SeatState) -> SeatState:
    """Give back one seat; never rises above the original capacity."""
    passengers = max(state.passenger_count - 1, 0)
    if not state.is_metered:
        return replace(state, passenger_count=passengers)
    available = min((state.available_seats or 0) + 1, state.original_seats)
    return replace(state, available_seats=available, passenger_count=passengers)


def resize(state: SeatState, available_seats: int) -> SeatState:
    """
    Creator edits the number of free seats.

    Capacity follows so that booked seats still equal the passenger count.
    """
    if not state.is_metered:
        raise RideValidationError("available_seats only applies to DRIVER rides")
    if available_seats is None or available_seats < 0:
        raise RideValidationError("Available seats cannot be negative")
    capacity = available_seats + state.passenger_count
    if capacity > max_seats():
        raise RideValidationError(
            f"Seat capacity cannot exceed {max_seats()} "
            f"({state.passenger_count} already booked)"
        )
    return replace(state, original_seats=capacity, available_seats=available_seats)


def is_consistent(state: SeatState) -> bool:
    if not state.is_metered:
        return True
    if state.original_seats is None or state.available_seats is None:
        return False
    return (
        0 <= state.available_seats <= state.original_seats
        and state.original_seats - state.available_seats == state.passenger_count
    )
