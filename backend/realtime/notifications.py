"""
Notification helpers for sending WebSocket messages to connected clients.

``send_ride_event`` is the default ride notification hook: every ride event
goes to the personal group of each recipient (``user_<id>``) and to the
ride's own group (``ride_<id>``) for clients watching that ride.
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def user_group(user_id: int) -> str:
    return f"user_{user_id}"


def ride_group(ride_id: int) -> str:
    return f"ride_{ride_id}"


def _ride_data(ride_id: int) -> Dict[str, Any] | None:
    from rides.models import Ride
    from rides.serializers import RideSerializer

    ride = Ride.objects.select_related("creator").filter(pk=ride_id).first()
    if ride is None:
        return None
    return RideSerializer(ride).data


def build_payload(event) -> Dict[str, Any]:
    """
    Channel layer message for a ride event.

    ``type`` is the event name, which is also the consumer handler it lands on.
    """
    payload = {
        "type": event.event_type,
        "ride_id": event.ride_id,
        "status": event.status,
        "ride_data": _ride_data(event.ride_id),
        **(event.extra or {}),
    }
    if event.message:
        payload["message"] = event.message
    return payload


def send_ride_event(event) -> bool:
    """
    Deliver a ride event to its recipients and to the ride group.

    Returns:
        True if sent, False when no channel layer is configured
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return False

    payload = build_payload(event)
    send = async_to_sync(channel_layer.group_send)

    for recipient_id in event.recipient_ids:
        logger.debug("WS -> user_%s: %s", recipient_id, payload)
        send(user_group(recipient_id), payload)

    send(ride_group(event.ride_id), payload)
    return True
