from datetime import datetime, time

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

TIME_FORMATS = ("%H:%M", "%H:%M:%S")


def parse_scheduled_time(value) -> time:
    """Parse an ``HH:MM`` (or ``HH:MM:SS``) clock string; raises ValueError."""
    if isinstance(value, time):
        return value
    text = str(value).strip()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time: {value!r}")


def combine_schedule(scheduled_date, scheduled_time) -> datetime:
    """Scheduled date + clock time -> aware instant in the current timezone."""
    naive = datetime.combine(scheduled_date, parse_scheduled_time(scheduled_time))
    return timezone.make_aware(naive, timezone.get_current_timezone())


class Ride(models.Model):
    """A trip advertised by a driver (seats offered) or a rider (seats wanted)."""

    TYPE_DRIVER = 'DRIVER'
    TYPE_PASSENGER = 'PASSENGER'
    TYPE_CHOICES = [
        (TYPE_DRIVER, 'Driver offer'),
        (TYPE_PASSENGER, 'Passenger demand'),
    ]

    STATUS_ACTIVE = 'active'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_EXPIRED = 'expired'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_EXPIRED, 'Expired'),
    ]
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED, STATUS_EXPIRED)

    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='created_rides'
    )
    ride_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    # Route
    departure = models.CharField(max_length=255)
    destination = models.CharField(max_length=255)

    # Schedule; departs_at is derived from date + time
    scheduled_date = models.DateField()
    scheduled_time = models.CharField(max_length=8)
    departs_at = models.DateTimeField(db_index=True)

    # DRIVER rides only
    price = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    original_seats = models.IntegerField(null=True, blank=True)
    available_seats = models.IntegerField(null=True, blank=True)

    # PASSENGER rides only (informational)
    needed_seats = models.IntegerField(null=True, blank=True)

    passengers = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through='RidePassenger',
        related_name='joined_rides',
        blank=True,
    )

    description = models.TextField(blank=True, default='')

    # Optimistic concurrency counter, bumped by every committed mutation
    version = models.PositiveIntegerField(default=0)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    expired_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'rides'
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(ride_type='PASSENGER')
                    | Q(available_seats__gte=0, available_seats__lte=F('original_seats'))
                ),
                name='ride_seats_within_capacity',
            ),
            models.CheckConstraint(
                condition=(
                    Q(
                        ride_type='DRIVER',
                        price__isnull=False,
                        price__gte=0,
                        original_seats__isnull=False,
                        available_seats__isnull=False,
                    )
                    | Q(
                        ride_type='PASSENGER',
                        price__isnull=True,
                        original_seats__isnull=True,
                        available_seats__isnull=True,
                    )
                ),
                name='ride_price_and_capacity_for_driver_only',
            ),
        ]

    def __str__(self):
        return f"Ride #{self.id} {self.departure} -> {self.destination} ({self.ride_type}, {self.status})"

    def save(self, *args, **kwargs):
        if self.scheduled_date and self.scheduled_time:
            self.departs_at = combine_schedule(self.scheduled_date, self.scheduled_time)
        super().save(*args, **kwargs)

    @property
    def is_driver_ride(self) -> bool:
        return self.ride_type == self.TYPE_DRIVER


class RidePassenger(models.Model):
    """Membership of a user in a ride's passenger set."""

    ride = models.ForeignKey(
        Ride,
        on_delete=models.CASCADE,
        related_name='bookings'
    )

    passenger = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='ride_bookings'
    )

    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'ride_passengers'
        ordering = ['joined_at']
        constraints = [
            models.UniqueConstraint(
                fields=['ride', 'passenger'],
                name='unique_ride_passenger'
            )
        ]

    def __str__(self):
        return f"Ride {self.ride_id} <- {self.passenger}"
