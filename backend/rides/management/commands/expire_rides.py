from django.core.management.base import BaseCommand
from rides.models import Ride
from services.ride_management import clock, expire_overdue_rides
from services.ride_management.repository import overdue_unbooked
import logging

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Expire active rides whose departure has passed with no passengers."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be expired without changing anything.",
        )

    def handle(self, *args, **options):
        now = clock.now()

        if options["dry_run"]:
            overdue = overdue_unbooked(now)
            count = overdue.count()
            self.stdout.write(
                self.style.WARNING(f"DRY RUN: Would expire {count} ride(s).")
            )
            for ride in overdue.order_by("departs_at"):
                self.stdout.write(f"  #{ride.id} {ride.departure} -> {ride.destination} ({ride.departs_at:%Y-%m-%d %H:%M})")
            return

        expired = expire_overdue_rides(now=now)
        logger.info(f"Expired {expired} overdue rides")
        self.stdout.write(
            self.style.SUCCESS(f"Expired {expired} ride(s); {Ride.objects.filter(status=Ride.STATUS_ACTIVE).count()} still active.")
        )
