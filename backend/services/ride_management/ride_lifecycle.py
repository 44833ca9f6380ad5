"""
Core ride lifecycle operations.

This module contains all the business logic for moving a ride through its
states (active -> completed / cancelled / expired) and for consuming and
releasing seats, extracted from the views layer for testability and reuse.

Seat changes are never a plain read-modify-write: each operation reads the
row, computes the next seat state with the seat allocator, and persists it
with a version compare-and-set inside one transaction.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Dict, Any

from django.conf import settings
from django.db import transaction

from rides.models import Ride, combine_schedule, parse_scheduled_time
from . import clock, events, guards, repository, seat_allocator
from .exceptions import (
    RideValidationError,
    RideConflictError,
    RideStateError,
)
from .patches import RidePatch
from .seat_allocator import SeatState

logger = logging.getLogger(__name__)


@dataclass
class RideResult:
    """Result object for ride operations."""
    success: bool
    ride: Optional[Ride] = None
    message: str = ""
    error_code: Optional[str] = None
    extra: Optional[Dict[str, Any]] = None


def _max_attempts() -> int:
    return max(1, getattr(settings, "RIDES_JOIN_MAX_ATTEMPTS", 3))


# ===================== Input Coercion =====================

def _coerce_int(value, label: str) -> int:
    if isinstance(value, bool):
        raise RideValidationError(f"{label} must be a whole number")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise RideValidationError(f"{label} must be a whole number")


def _coerce_price(value) -> Decimal:
    if value is None or value == "":
        raise RideValidationError("Price is required for DRIVER rides")
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise RideValidationError("Price must be a number")
    if not price.is_finite():
        raise RideValidationError("Price must be a number")
    if price < 0:
        raise RideValidationError("Price cannot be negative")
    return price


def _coerce_date(value) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise RideValidationError("Date must use the YYYY-MM-DD format")


def _normalize_time(value) -> str:
    try:
        return parse_scheduled_time(value).strftime("%H:%M")
    except ValueError:
        raise RideValidationError("Time must use the HH:MM format")


def _clean_text(value, label: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise RideValidationError(f"{label} cannot be empty")
    return text


def _clean_description(value) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise RideValidationError("Description must be text")
    return value.strip()


def _seat_count(value, label: str) -> int:
    seats = _coerce_int(value, label)
    if seats < 1:
        raise RideValidationError(f"{label} must be at least 1")
    if seats > seat_allocator.max_seats():
        raise RideValidationError(f"{label} cannot exceed {seat_allocator.max_seats()}")
    return seats


# ===================== Creation =====================

def create_ride(
    creator,
    ride_type: Optional[str] = None,
    departure: Optional[str] = None,
    destination: Optional[str] = None,
    scheduled_date=None,
    scheduled_time=None,
    available_seats: Optional[int] = None,
    needed_seats: Optional[int] = None,
    price=None,
    description: Optional[str] = None,
) -> RideResult:
    """
    Create a new ride for ``creator``.

    Validation runs in a fixed order: common fields, the seat field of the
    ride's type, driver capability (DRIVER only), then price (DRIVER only).

    Raises:
        RideValidationError: missing or invalid fields
        RideAuthorizationError: a non-driver tries to offer seats
    """
    common = {
        "type": ride_type,
        "departure": departure,
        "destination": destination,
        "date": scheduled_date,
        "time": scheduled_time,
    }
    missing = [name for name, value in common.items() if value is None or str(value).strip() == ""]
    if missing:
        raise RideValidationError(f"Missing required fields: {', '.join(missing)}")

    if ride_type not in (Ride.TYPE_DRIVER, Ride.TYPE_PASSENGER):
        raise RideValidationError("Type must be either DRIVER or PASSENGER")

    fields = {
        "creator": creator,
        "ride_type": ride_type,
        "departure": _clean_text(departure, "Departure"),
        "destination": _clean_text(destination, "Destination"),
        "scheduled_date": _coerce_date(scheduled_date),
        "scheduled_time": _normalize_time(scheduled_time),
        "description": _clean_description(description),
        "status": Ride.STATUS_ACTIVE,
    }

    # Conditional seat validation based on type
    if ride_type == Ride.TYPE_DRIVER:
        if available_seats is None or available_seats == "":
            raise RideValidationError("Missing required field: available_seats for DRIVER ride")
        seats = _seat_count(available_seats, "Available seats")
    else:
        if needed_seats is None or needed_seats == "":
            raise RideValidationError("Missing required field: needed_seats for PASSENGER ride")
        fields["needed_seats"] = _seat_count(needed_seats, "Needed seats")

    if ride_type == Ride.TYPE_DRIVER:
        guards.require_driver_capability(creator.id)
        fields.update(
            price=_coerce_price(price),
            original_seats=seats,
            available_seats=seats,
        )

    ride = repository.insert_ride(**fields)
    logger.info("Ride %s (%s) created by user %s", ride.id, ride.ride_type, creator.id)

    return RideResult(
        success=True,
        ride=ride,
        message="Ride created successfully",
    )


# ===================== Passenger Operations =====================

def join_ride(ride_id: int, user) -> RideResult:
    """
    Add ``user`` to the ride's passengers, taking one seat on DRIVER rides.

    Raises:
        RideNotFoundError: unknown ride
        RideStateError: ride is not active
        RideConflictError: own ride, already joined, or no seat left
    """
    for attempt in range(_max_attempts()):
        with transaction.atomic():
            ride = repository.get_ride(ride_id, for_update=True)

            if ride.status != Ride.STATUS_ACTIVE:
                raise RideStateError("Cannot join a ride that is not active")
            if ride.creator_id == user.id:
                raise RideConflictError("You cannot join your own ride")
            if repository.has_passenger(ride, user.id):
                raise RideConflictError("You have already joined this ride")

            seats = seat_allocator.reserve(
                SeatState.from_ride(ride, repository.passenger_count(ride))
            )
            changes = {"available_seats": seats.available_seats} if seats.is_metered else {}
            if not repository.compare_and_set(ride, clock.now(), **changes):
                continue
            if not repository.add_passenger(ride, user):
                raise RideConflictError("You have already joined this ride")
        break
    else:
        raise RideConflictError()

    ride.refresh_from_db()
    logger.info("Ride %s joined by user %s", ride.id, user.id)

    events.emit(events.RideEvent(
        event_type=events.PASSENGER_JOINED,
        ride_id=ride.id,
        status=ride.status,
        recipient_ids=(ride.creator_id,),
        message="A new passenger joined your ride.",
        extra={"passenger_id": user.id, "available_seats": ride.available_seats},
    ))

    return RideResult(
        success=True,
        ride=ride,
        message="Successfully joined the ride",
    )


def leave_ride(ride_id: int, user) -> RideResult:
    """
    Remove ``user`` from the ride before it departs, giving the seat back.

    Raises:
        RideNotFoundError: unknown ride
        RideStateError: ride not active, or already departed
        RideConflictError: user is not a passenger
    """
    for attempt in range(_max_attempts()):
        with transaction.atomic():
            ride = repository.get_ride(ride_id, for_update=True)

            if ride.status != Ride.STATUS_ACTIVE:
                raise RideStateError("Cannot leave a ride that is not active")
            if clock.now() >= ride.departs_at:
                raise RideStateError("Cannot leave a past ride")
            if not repository.has_passenger(ride, user.id):
                raise RideConflictError("You are not a passenger in this ride")

            seats = seat_allocator.release(
                SeatState.from_ride(ride, repository.passenger_count(ride))
            )
            changes = {"available_seats": seats.available_seats} if seats.is_metered else {}
            if not repository.compare_and_set(ride, clock.now(), **changes):
                continue
            if not repository.remove_passenger(ride, user):
                raise RideConflictError("You are not a passenger in this ride")
        break
    else:
        raise RideConflictError()

    ride.refresh_from_db()
    logger.info("Ride %s left by user %s", ride.id, user.id)

    events.emit(events.RideEvent(
        event_type=events.PASSENGER_LEFT,
        ride_id=ride.id,
        status=ride.status,
        recipient_ids=(ride.creator_id,),
        message="A passenger left your ride.",
        extra={"passenger_id": user.id, "available_seats": ride.available_seats},
    ))

    return RideResult(
        success=True,
        ride=ride,
        message="You have left the ride",
    )


# ===================== Creator Operations =====================

def cancel_ride(ride_id: int, user) -> RideResult:
    """
    Cancel an active ride (soft delete). Idempotent for cancelled rides.

    Raises:
        RideNotFoundError: unknown ride
        RideAuthorizationError: caller is not the creator
        RideStateError: ride is completed or expired
    """
    with transaction.atomic():
        ride = repository.get_ride(ride_id, for_update=True)
        guards.require_owner(ride, user.id, "Not authorized to cancel this ride")

        if ride.status == Ride.STATUS_CANCELLED:
            return RideResult(
                success=True,
                ride=ride,
                message="Ride already cancelled",
                extra={"already_cancelled": True},
            )
        if ride.status != Ride.STATUS_ACTIVE:
            raise RideStateError(f"Cannot cancel a {ride.status} ride")

        now = clock.now()
        recipients = tuple(repository.passenger_ids(ride))
        if not repository.compare_and_set(ride, now, status=Ride.STATUS_CANCELLED, cancelled_at=now):
            raise RideConflictError()

    ride.refresh_from_db()
    logger.info("Ride %s cancelled by creator %s", ride.id, user.id)

    events.emit(events.RideEvent(
        event_type=events.RIDE_CANCELLED,
        ride_id=ride.id,
        status=ride.status,
        recipient_ids=recipients,
        message="The driver cancelled this ride." if ride.is_driver_ride else "This ride request was cancelled.",
    ))

    return RideResult(
        success=True,
        ride=ride,
        message="Ride cancelled successfully",
        extra={"already_cancelled": False, "notified_passengers": len(recipients)},
    )


def update_ride(ride_id: int, user, patch) -> RideResult:
    """
    Apply an allow-listed patch to an active ride. Only the creator may do so.

    ``status`` may only be set to ``completed``; DRIVER rides can be completed
    once their scheduled instant has passed and someone is on board, demand
    rides at any time.

    Raises:
        RideValidationError: unknown keys, empty patch, or invalid values
        RideNotFoundError: unknown ride
        RideAuthorizationError: caller is not the creator
        RideConflictError: route change after passengers joined
        RideStateError: ride is not active, or completion rules not met
    """
    if not isinstance(patch, RidePatch):
        patch = RidePatch.from_mapping(patch)
    changes = patch.changes()
    if not changes:
        raise RideValidationError("No valid fields provided for update")

    with transaction.atomic():
        ride = repository.get_ride(ride_id, for_update=True)
        guards.require_owner(ride, user.id, "Not authorized to update this ride")

        if ride.status == Ride.STATUS_COMPLETED:
            raise RideStateError("Cannot update a completed ride")
        if ride.status != Ride.STATUS_ACTIVE:
            raise RideStateError(f"Cannot update a {ride.status} ride")

        passenger_count = repository.passenger_count(ride)
        updates = _validated_updates(ride, changes, passenger_count)

        now = clock.now()
        completing = updates.pop("status", None) == Ride.STATUS_COMPLETED
        if completing:
            _ensure_completable(ride, updates.get("departs_at", ride.departs_at), passenger_count, now)
            updates.update(status=Ride.STATUS_COMPLETED, completed_at=now)

        recipients = tuple(repository.passenger_ids(ride))
        if not repository.compare_and_set(ride, now, **updates):
            raise RideConflictError()

    ride.refresh_from_db()
    logger.info("Ride %s updated by creator %s: %s", ride.id, user.id, sorted(changes))

    events.emit(events.RideEvent(
        event_type=events.RIDE_COMPLETED if completing else events.RIDE_UPDATED,
        ride_id=ride.id,
        status=ride.status,
        recipient_ids=recipients,
        message="Ride marked as completed." if completing else "Ride details were updated.",
        extra={"fields": sorted(changes)},
    ))

    return RideResult(
        success=True,
        ride=ride,
        message="Ride marked as completed" if completing else "Ride updated successfully",
    )


# ===================== Helper Functions =====================

def _validated_updates(ride: Ride, changes: Dict[str, Any], passenger_count: int) -> Dict[str, Any]:
    """Turn patch values into column updates, enforcing the ride's rules."""
    updates = {}

    route_changed = False
    for key, label in (("departure", "Departure"), ("destination", "Destination")):
        if key in changes:
            value = _clean_text(changes[key], label)
            route_changed = route_changed or value != getattr(ride, key)
            updates[key] = value
    if route_changed and passenger_count:
        raise RideConflictError("Cannot change departure or destination once passengers have joined")

    if "scheduled_date" in changes or "scheduled_time" in changes:
        new_date = _coerce_date(changes.get("scheduled_date", ride.scheduled_date))
        new_time = _normalize_time(changes.get("scheduled_time", ride.scheduled_time))
        updates.update(
            scheduled_date=new_date,
            scheduled_time=new_time,
            departs_at=combine_schedule(new_date, new_time),
        )

    if "available_seats" in changes:
        seats = seat_allocator.resize(
            SeatState.from_ride(ride, passenger_count),
            _coerce_int(changes["available_seats"], "Available seats"),
        )
        updates.update(original_seats=seats.original_seats, available_seats=seats.available_seats)

    if "needed_seats" in changes:
        if ride.is_driver_ride:
            raise RideValidationError("needed_seats only applies to PASSENGER rides")
        updates["needed_seats"] = _seat_count(changes["needed_seats"], "Needed seats")

    if "price" in changes:
        if not ride.is_driver_ride:
            raise RideValidationError("Price only applies to DRIVER rides")
        updates["price"] = _coerce_price(changes["price"])

    if "description" in changes:
        updates["description"] = _clean_description(changes["description"])

    if "status" in changes:
        target = changes["status"]
        if target not in [value for value, _ in Ride.STATUS_CHOICES]:
            raise RideValidationError("Invalid status")
        if target != Ride.STATUS_COMPLETED:
            raise RideStateError(f"Cannot move a ride to {target}, only to completed")
        updates["status"] = Ride.STATUS_COMPLETED

    return updates


def _ensure_completable(ride: Ride, departs_at, passenger_count: int, now):
    if not ride.is_driver_ride:
        return
    if now < departs_at:
        raise RideStateError("Cannot mark as done before the scheduled date and time")
    if passenger_count == 0:
        raise RideStateError("Cannot complete a ride with no passengers, cancel it instead")
