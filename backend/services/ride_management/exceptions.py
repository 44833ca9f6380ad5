"""Custom exceptions for ride management."""


class RideServiceError(Exception):
    """Base class; carries a stable category and a human-readable reason."""
    category = "error"
    default_message = "Ride operation failed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class RideValidationError(RideServiceError):
    """Raised when input is missing or malformed."""
    category = "validation_error"
    default_message = "Invalid ride data"


class RideAuthorizationError(RideServiceError):
    """Raised when the caller lacks ownership or driver capability."""
    category = "authorization_error"
    default_message = "Not authorized to perform this action"


class NotFoundError(RideServiceError):
    category = "not_found"
    default_message = "Not found"


class RideNotFoundError(NotFoundError):
    """Raised when a ride cannot be found."""
    default_message = "Ride not found"


class UserNotFoundError(NotFoundError):
    """Raised when a user cannot be found."""
    default_message = "User not found"


class PassengerNotFoundError(NotFoundError):
    """Raised when a user is not part of the ride's passengers."""
    default_message = "Passenger not found in this ride"


class RideConflictError(RideServiceError):
    """Raised when an action breaks a current-state business rule."""
    category = "conflict"
    default_message = "Ride was modified concurrently, please retry"


class RideStateError(RideServiceError):
    """Raised when an action is invalid for the ride's lifecycle state."""
    category = "invalid_state"
    default_message = "Action not allowed in the ride's current state"
