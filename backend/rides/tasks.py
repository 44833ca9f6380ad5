"""Celery tasks for ride-related background processing."""

from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task
def expire_overdue_rides_task():
    """
    Periodic sweep, scheduled by Celery beat.

    Marks every active ride whose departure has passed with no passengers
    as expired and notifies its creator. Reads do the same lazily; the
    sweep just keeps stored statuses fresh for rides nobody looks at.
    """
    from services.ride_management import expire_overdue_rides

    expired = expire_overdue_rides()
    if expired:
        logger.info(f"Expired {expired} overdue ride(s)")
    return expired
