"""
Realtime app for WebSocket delivery of ride events.

Key Components:
    - consumers/: WebSocket consumers (base + notification relay)
    - notifications.py: default ride notification hook (channel layer groups)
    - middleware.py: JWT/Cookie authentication for WebSocket connections

Usage:
    from realtime.consumers import NotificationConsumer
    from realtime.notifications import send_ride_event
"""
