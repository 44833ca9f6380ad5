"""Ownership and capability checks shared by the engine and the query views."""

from rides.models import Ride
from . import directory
from .exceptions import RideAuthorizationError


def require_driver_capability(user_id):
    """Both a driver license and a vehicle number must be on the profile."""
    if not directory.is_driver(user_id):
        raise RideAuthorizationError(
            "You must have a driver license and vehicle number to create a DRIVER ride"
        )


def require_owner(ride: Ride, user_id, message: str = None):
    if ride.creator_id != user_id:
        raise RideAuthorizationError(
            message or "Access denied. Only the ride creator can perform this action."
        )


def require_driver_ride(ride: Ride):
    """Passenger rosters exist only on driver-type rides."""
    if ride.ride_type != Ride.TYPE_DRIVER:
        raise RideAuthorizationError(
            "Access denied. This feature is only available for driver rides."
        )
