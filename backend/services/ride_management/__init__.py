"""
Ride management service - Core ride lifecycle operations.

This module handles:
    - Creating rides (driver offers and passenger requests)
    - Joining and leaving rides
    - Updating, completing and cancelling rides
    - Expiring overdue rides nobody joined
    - Querying rides and passenger rosters
"""

from .ride_lifecycle import (
    RideResult,
    create_ride,
    join_ride,
    leave_ride,
    cancel_ride,
    update_ride,
)

from .queries import (
    PassengerDetail,
    expire_overdue_rides,
    apply_lazy_expiry,
    get_ride,
    list_rides,
    list_user_rides,
    list_by_creator,
    list_by_participant,
    list_my_rides,
    list_ride_history,
    list_passengers,
    get_passenger_detail,
)

from .patches import RidePatch

from .exceptions import (
    RideServiceError,
    RideValidationError,
    RideAuthorizationError,
    NotFoundError,
    RideNotFoundError,
    UserNotFoundError,
    PassengerNotFoundError,
    RideConflictError,
    RideStateError,
)

__all__ = [
    # Lifecycle operations
    "RideResult",
    "create_ride",
    "join_ride",
    "leave_ride",
    "cancel_ride",
    "update_ride",
    # Queries
    "PassengerDetail",
    "expire_overdue_rides",
    "apply_lazy_expiry",
    "get_ride",
    "list_rides",
    "list_user_rides",
    "list_by_creator",
    "list_by_participant",
    "list_my_rides",
    "list_ride_history",
    "list_passengers",
    "get_passenger_detail",
    "RidePatch",
    # Exceptions
    "RideServiceError",
    "RideValidationError",
    "RideAuthorizationError",
    "NotFoundError",
    "RideNotFoundError",
    "UserNotFoundError",
    "PassengerNotFoundError",
    "RideConflictError",
    "RideStateError",
]
