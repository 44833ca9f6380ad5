"""Base WebSocket consumer with shared functionality for all consumers."""

import logging
from typing import Dict, Any, Set

from channels.generic.websocket import AsyncJsonWebsocketConsumer

logger = logging.getLogger(__name__)


class BaseConsumer(AsyncJsonWebsocketConsumer):
    """
    Base consumer with shared connection management and helper methods.
    
    Subclasses should override:
        - on_connect(): greeting / extra groups after accept
        - handle_message(msg_type, data): handle incoming messages
    """

    async def connect(self):
        self.user = self.scope["user"]

        if self.user.is_anonymous:
            await self.close()
            return

        self.user_id = getattr(self.user, "id", None)

        # Track joined groups for cleanup
        self.joined_groups: Set[str] = set()

        # Personal group (targeted server->user messages)
        self.user_group = f"user_{self.user_id}"
        await self._join_group(self.user_group)

        await self.accept()
        await self.on_connect()

    async def on_connect(self):
        """Override in subclass for custom connect logic."""
        await self.send_json({
            "type": "connection_established",
            "user_id": self.user_id,
        })

    async def disconnect(self, close_code):
        """Leave all joined groups on disconnect."""
        try:
            for group in list(getattr(self, "joined_groups", ())):
                await self._leave_group(group)
        except Exception:
            logger.exception("Error during disconnect for user %s", getattr(self, 'user_id', 'unknown'))

    async def receive_json(self, data: Dict[str, Any]):
        """Route incoming messages to appropriate handlers."""
        msg_type = data.get("type") if isinstance(data, dict) else None
        if not msg_type:
            await self.send_error("Message type is required")
            return

        try:
            await self.handle_message(msg_type, data)
        except Exception:
            logger.exception("Error handling message type %s", msg_type)
            await self.send_error(f"Error processing {msg_type}")

    async def handle_message(self, msg_type: str, data: Dict[str, Any]):
        """Override in subclass to handle specific message types."""
        await self.send_error(f"Unknown message type: {msg_type}")

    # ---------------------- Group Management Helpers ----------------------

    async def _join_group(self, group_name: str):
        """Join a channel group and track it."""
        await self.channel_layer.group_add(group_name, self.channel_name)
        self.joined_groups.add(group_name)

    async def _leave_group(self, group_name: str):
        """Leave a channel group and untrack it."""
        await self.channel_layer.group_discard(group_name, self.channel_name)
        self.joined_groups.discard(group_name)

    # ---------------------- Response Helpers ----------------------

    async def send_error(self, message: str):
        """Send an error message to the client."""
        await self.send_json({
            "type": "error",
            "message": message,
        })

    async def send_success(self, event_type: str, **kwargs):
        """Send a success response to the client."""
        await self.send_json({
            "type": event_type,
            **kwargs,
        })

    # ---------------------- Ride Event Handlers ----------------------
    # These handle group_send events from realtime.notifications

    async def relay_ride_event(self, event, default_message: str = ""):
        await self.send_json({
            **event,
            "message": event.get("message", default_message),
        })

    async def passenger_joined(self, event):
        """Sent to the creator when someone joins their ride."""
        await self.relay_ride_event(event, "A new passenger joined your ride.")

    async def passenger_left(self, event):
        """Sent to the creator when a passenger leaves."""
        await self.relay_ride_event(event, "A passenger left your ride.")

    async def ride_cancelled(self, event):
        """Sent to passengers when the creator cancels."""
        await self.relay_ride_event(event, "Ride cancelled")

    async def ride_updated(self, event):
        await self.relay_ride_event(event, "Ride details were updated.")

    async def ride_completed(self, event):
        """Sent to passengers when the ride is marked as done."""
        await self.relay_ride_event(event, "Ride completed")

    async def ride_expired(self, event):
        """Sent to the creator when an unbooked ride passes its departure."""
        await self.relay_ride_event(event, "Ride expired")
