"""
User directory adapter.

Resolves user ids to profiles and the derived driver capability. The ride
services never read user rows any other way.
"""

from django.contrib.auth import get_user_model

from rides.models import Ride
from .exceptions import UserNotFoundError

User = get_user_model()


def get_user(user_id):
    try:
        return User.objects.get(pk=user_id)
    except (User.DoesNotExist, ValueError, TypeError):
        raise UserNotFoundError("User not found")


def is_driver(user_id) -> bool:
    return get_user(user_id).is_driver


def completed_ride_counts(user) -> dict:
    """Number of completed rides the user hosted and joined."""
    completed = Ride.objects.filter(status=Ride.STATUS_COMPLETED)
    return {
        "hosted": completed.filter(creator=user).count(),
        "joined": completed.filter(bookings__passenger=user).distinct().count(),
    }
