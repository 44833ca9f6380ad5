"""
Ride event emission.

The engine describes what happened as a ``RideEvent`` and hands it to the
configured hook (``settings.RIDE_NOTIFICATION_HOOK``). Delivery is
best-effort: hook failures are logged and swallowed.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Tuple

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)

PASSENGER_JOINED = "passenger_joined"
PASSENGER_LEFT = "passenger_left"
RIDE_CANCELLED = "ride_cancelled"
RIDE_UPDATED = "ride_updated"
RIDE_COMPLETED = "ride_completed"
RIDE_EXPIRED = "ride_expired"


@dataclass(frozen=True)
class RideEvent:
    event_type: str
    ride_id: int
    status: str
    recipient_ids: Tuple[int, ...] = ()
    message: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)


@lru_cache(maxsize=None)
def _load_hook(path: str):
    return import_string(path)


def get_notification_hook():
    return _load_hook(getattr(settings, "RIDE_NOTIFICATION_HOOK", "realtime.notifications.send_ride_event"))


def emit(event: RideEvent) -> bool:
    """Fire-and-forget; returns whether the hook accepted the event."""
    try:
        hook = get_notification_hook()
        return bool(hook(event))
    except Exception:
        logger.exception("Failed to emit %s for ride %s", event.event_type, event.ride_id)
        return False
