"""
Ride persistence.

Rows are created with ``insert_ride``; every later mutation goes through a
compare-and-set on ``version`` so a concurrent writer can never be silently
overwritten.
"""

import logging

from django.db import IntegrityError, transaction
from django.db.models import Exists, F, OuterRef

from rides.models import Ride, RidePassenger
from .exceptions import RideNotFoundError

logger = logging.getLogger(__name__)


def get_ride(ride_id, for_update: bool = False) -> Ride:
    qs = Ride.objects.select_for_update() if for_update else Ride.objects.select_related('creator')
    try:
        return qs.get(pk=ride_id)
    except (Ride.DoesNotExist, ValueError, TypeError):
        raise RideNotFoundError("Ride not found")


def insert_ride(**fields) -> Ride:
    return Ride.objects.create(**fields)


def compare_and_set(ride: Ride, now, **changes) -> bool:
    """
    Write ``changes`` only if the row still has ``ride.version``.

    Returns False when another writer got there first; the caller decides
    whether to re-read and retry.
    """
    rows = Ride.objects.filter(pk=ride.pk, version=ride.version).update(
        version=F('version') + 1,
        updated_at=now,
        **changes,
    )
    if rows != 1:
        logger.warning("Version conflict on ride %s (expected v%s)", ride.pk, ride.version)
    return rows == 1


# ---------------------- Passengers ----------------------

def passenger_count(ride: Ride) -> int:
    return ride.bookings.count()


def has_passenger(ride: Ride, user_id) -> bool:
    return ride.bookings.filter(passenger_id=user_id).exists()


def passenger_ids(ride: Ride) -> list:
    return list(ride.bookings.values_list('passenger_id', flat=True))


def add_passenger(ride: Ride, user) -> bool:
    """Insert the membership row; False if the user is already a passenger."""
    try:
        with transaction.atomic():
            RidePassenger.objects.create(ride=ride, passenger=user)
    except IntegrityError:
        return False
    return True


def remove_passenger(ride: Ride, user) -> bool:
    deleted, _ = RidePassenger.objects.filter(ride=ride, passenger=user).delete()
    return deleted > 0


# ---------------------- Expiry ----------------------

def unbooked(queryset):
    return queryset.filter(~Exists(RidePassenger.objects.filter(ride=OuterRef('pk'))))


def overdue_unbooked(now, queryset=None):
    """Active rides whose departure has passed with nobody on board."""
    qs = Ride.objects.all() if queryset is None else queryset
    return unbooked(qs.filter(status=Ride.STATUS_ACTIVE, departs_at__lt=now))


def expire_if_unbooked(ride_id, version, now) -> bool:
    """
    Atomic ``active -> expired`` transition.

    Guarded by version as well as the business conditions, so a join that
    committed first (and bumped the version) keeps the ride active.
    """
    rows = overdue_unbooked(now, Ride.objects.filter(pk=ride_id, version=version)).update(
        status=Ride.STATUS_EXPIRED,
        expired_at=now,
        updated_at=now,
        version=F('version') + 1,
    )
    return rows == 1
