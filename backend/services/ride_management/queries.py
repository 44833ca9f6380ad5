"""
Read-side ride queries.

Public listings and single-ride reads run the lazy expiry pass first, so an
overdue ride with nobody on board is reported as ``expired`` the moment
anyone looks at it. History queries are pure reads.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Iterable, Dict, Any

from django.contrib.auth import get_user_model
from django.db.models import Count

from rides.models import Ride
from . import clock, directory, events, guards, repository
from .exceptions import PassengerNotFoundError, RideValidationError

logger = logging.getLogger(__name__)

User = get_user_model()


@dataclass
class PassengerDetail:
    user: Any
    ride_history: Dict[str, int]


def _base_queryset():
    return Ride.objects.select_related('creator').annotate(passenger_total=Count('bookings'))


# ===================== Expiry =====================

def _notify_expired(ride_id: int, creator_id: int):
    events.emit(events.RideEvent(
        event_type=events.RIDE_EXPIRED,
        ride_id=ride_id,
        status=Ride.STATUS_EXPIRED,
        recipient_ids=(creator_id,),
        message="Your ride expired without any passengers.",
    ))


def expire_overdue_rides(queryset=None, now=None) -> int:
    """
    Expire every active ride in ``queryset`` whose departure has passed
    and which nobody joined. Returns how many rides were expired.

    Each ride is flipped with its own version-guarded update, so a ride
    that gains a passenger in the meantime stays active.
    """
    now = now or clock.now()
    candidates = repository.overdue_unbooked(now, queryset).values_list('pk', 'version', 'creator_id')

    expired = 0
    for ride_id, version, creator_id in list(candidates):
        if repository.expire_if_unbooked(ride_id, version, now):
            expired += 1
            logger.info("Ride %s expired without passengers", ride_id)
            _notify_expired(ride_id, creator_id)
    return expired


def apply_lazy_expiry(ride: Ride, now=None) -> Ride:
    """Expire ``ride`` in place if it is overdue and unbooked."""
    if ride.status != Ride.STATUS_ACTIVE:
        return ride
    now = now or clock.now()
    if ride.departs_at >= now:
        return ride
    if expire_overdue_rides(Ride.objects.filter(pk=ride.pk), now):
        ride.refresh_from_db()
    return ride


# ===================== Public Reads =====================

def get_ride(ride_id) -> Ride:
    """Fetch one ride, reflecting expiry. Raises RideNotFoundError."""
    return apply_lazy_expiry(repository.get_ride(ride_id))


def list_rides(
    ride_type: Optional[str] = None,
    departure: Optional[str] = None,
    destination: Optional[str] = None,
    date=None,
):
    """
    Active rides matching the filters, newest first.

    ``departure`` and ``destination`` are case-insensitive substring
    matches; ``date`` matches the scheduled date exactly.
    """
    qs = Ride.objects.all()
    if ride_type:
        if ride_type not in (Ride.TYPE_DRIVER, Ride.TYPE_PASSENGER):
            raise RideValidationError("Type must be either DRIVER or PASSENGER")
        qs = qs.filter(ride_type=ride_type)
    if departure:
        qs = qs.filter(departure__icontains=departure)
    if destination:
        qs = qs.filter(destination__icontains=destination)
    if date:
        qs = qs.filter(scheduled_date=date)

    expire_overdue_rides(qs)

    return _base_queryset().filter(
        pk__in=qs.filter(status=Ride.STATUS_ACTIVE).values('pk')
    ).order_by('-created_at')


def list_user_rides(user_id):
    """Active rides created by another user, for their public profile."""
    user = directory.get_user(user_id)
    expire_overdue_rides(Ride.objects.filter(creator=user))
    return list_by_creator(user, statuses=(Ride.STATUS_ACTIVE,))


# ===================== History =====================

def list_by_creator(user, statuses: Optional[Iterable[str]] = None):
    qs = _base_queryset().filter(creator=user)
    if statuses:
        qs = qs.filter(status__in=list(statuses))
    return qs.order_by('-created_at')


def list_by_participant(user, statuses: Optional[Iterable[str]] = None):
    qs = _base_queryset().filter(bookings__passenger=user)
    if statuses:
        qs = qs.filter(status__in=list(statuses))
    return qs.order_by('-created_at')


def list_my_rides(user) -> Dict[str, Any]:
    """Everything the user created or joined, in any status."""
    return {
        "created": list_by_creator(user),
        "joined": list_by_participant(user),
    }


def list_ride_history(user) -> Dict[str, Any]:
    """Completed rides the user hosted and joined."""
    return {
        "hosted": list_by_creator(user, statuses=(Ride.STATUS_COMPLETED,)),
        "joined": list_by_participant(user, statuses=(Ride.STATUS_COMPLETED,)),
    }


# ===================== Passenger Roster =====================

def list_passengers(ride_id, caller):
    """
    Passengers of a driver ride, in join order. Creator only.

    Raises:
        RideNotFoundError, RideAuthorizationError
    """
    ride = repository.get_ride(ride_id)
    guards.require_owner(ride, caller.id)
    guards.require_driver_ride(ride)
    return User.objects.filter(ride_bookings__ride=ride).order_by('ride_bookings__joined_at', 'ride_bookings__id')


def get_passenger_detail(ride_id, passenger_id, caller) -> PassengerDetail:
    """
    Contact details and completed-ride counts for one passenger.

    Raises:
        RideNotFoundError, RideAuthorizationError, PassengerNotFoundError
    """
    ride = repository.get_ride(ride_id)
    guards.require_owner(ride, caller.id)
    guards.require_driver_ride(ride)

    try:
        is_member = repository.has_passenger(ride, passenger_id)
    except (ValueError, TypeError):
        is_member = False
    if not is_member:
        raise PassengerNotFoundError("Passenger not found in this ride")

    user = directory.get_user(passenger_id)
    return PassengerDetail(user=user, ride_history=directory.completed_ride_counts(user))
