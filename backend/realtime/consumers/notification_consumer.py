"""Ride notification WebSocket consumer."""

import logging
from typing import Dict, Any

from channels.db import database_sync_to_async

from .base import BaseConsumer

logger = logging.getLogger(__name__)


class NotificationConsumer(BaseConsumer):
    """
    Relays ride events to the connected user.

    Events addressed to the user arrive through the personal group. A client
    can also watch one of its rides (as creator or passenger) to receive
    every event of that ride via ``ride_<id>``.

    Client messages:
        {"type": "subscribe_ride", "ride_id": 12}
        {"type": "unsubscribe_ride", "ride_id": 12}
        {"type": "ping"}
    """

    async def on_connect(self):
        await self.send_json({
            "type": "connection_established",
            "user_id": self.user_id,
            "message": "Ride notifications connected",
        })

    async def handle_message(self, msg_type: str, data: Dict[str, Any]):
        if msg_type == "subscribe_ride":
            await self._handle_subscribe(data)
        elif msg_type == "unsubscribe_ride":
            await self._handle_unsubscribe(data)
        elif msg_type == "ping":
            await self.send_success("pong")
        else:
            await self.send_error(f"Unknown message type: {msg_type}")

    # ---------------------- Message Handlers ----------------------

    async def _handle_subscribe(self, data: Dict[str, Any]):
        ride_id = data.get("ride_id")
        if ride_id is None:
            await self.send_error("subscribe_ride requires ride_id")
            return

        if not await self._is_ride_participant(ride_id):
            await self.send_error("You are not part of this ride")
            return

        await self._join_group(f"ride_{ride_id}")
        await self.send_success("ride_subscribed", ride_id=ride_id)

    async def _handle_unsubscribe(self, data: Dict[str, Any]):
        ride_id = data.get("ride_id")
        if ride_id is None:
            return

        await self._leave_group(f"ride_{ride_id}")
        await self.send_success("ride_unsubscribed", ride_id=ride_id)

    # ---------------------- Database Helpers ----------------------

    @database_sync_to_async
    def _is_ride_participant(self, ride_id) -> bool:
        """Creator or passenger of the ride."""
        from rides.models import Ride
        try:
            ride = Ride.objects.get(id=ride_id)
        except (Ride.DoesNotExist, ValueError, TypeError):
            return False
        return ride.creator_id == self.user_id or ride.bookings.filter(passenger_id=self.user_id).exists()
