"""Shared builders for the rides test suite."""

from datetime import datetime, time, timedelta
from decimal import Decimal

from django.utils import timezone

from accounts.models import User
from rides.models import Ride, RidePassenger

# Fixed "current time" the clock is patched to
NOW = timezone.make_aware(datetime(2025, 6, 15, 12, 0))
TOMORROW = (NOW + timedelta(days=1)).date()
YESTERDAY = (NOW - timedelta(days=1)).date()


def make_user(username, **extra):
	return User.objects.create_user(
		username=username,
		password='pass1234',
		full_name=extra.pop('full_name', username.title()),
		**extra
	)


def make_driver(username, **extra):
	extra.setdefault('driver_license', 'DL-%s' % username)
	extra.setdefault('vehicle_number', 'TU-%s' % username)
	return make_user(username, **extra)


def make_driver_ride(creator, seats=2, scheduled_date=TOMORROW, scheduled_time='10:00', **extra):
	extra.setdefault('departure', 'Tunis')
	extra.setdefault('destination', 'Sfax')
	return Ride.objects.create(
		creator=creator,
		ride_type=Ride.TYPE_DRIVER,
		scheduled_date=scheduled_date,
		scheduled_time=scheduled_time,
		price=extra.pop('price', Decimal('15.00')),
		original_seats=seats,
		available_seats=seats,
		**extra
	)


def make_passenger_ride(creator, needed=1, scheduled_date=TOMORROW, scheduled_time='10:00', **extra):
	extra.setdefault('departure', 'Sousse')
	extra.setdefault('destination', 'Monastir')
	return Ride.objects.create(
		creator=creator,
		ride_type=Ride.TYPE_PASSENGER,
		scheduled_date=scheduled_date,
		scheduled_time=scheduled_time,
		needed_seats=needed,
		**extra
	)


def book(ride, user):
	"""Add a passenger row and consume a seat directly, bypassing the engine."""
	RidePassenger.objects.create(ride=ride, passenger=user)
	if ride.is_driver_ride:
		Ride.objects.filter(pk=ride.pk).update(available_seats=ride.available_seats - 1)
	ride.refresh_from_db()
	return ride
