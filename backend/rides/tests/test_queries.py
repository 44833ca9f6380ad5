from datetime import timedelta
from unittest.mock import Mock, patch

from django.test import TestCase

from rides.models import Ride
from services.ride_management import queries, repository
from services.ride_management.exceptions import (
	PassengerNotFoundError,
	RideAuthorizationError,
	RideNotFoundError,
	RideValidationError,
	UserNotFoundError,
)

from .utils import NOW, TOMORROW, YESTERDAY, book, make_driver, make_driver_ride, make_passenger_ride, make_user


class QueryTestCase(TestCase):
	def setUp(self):
		clock_patcher = patch('services.ride_management.clock.now', return_value=NOW)
		clock_patcher.start()
		self.addCleanup(clock_patcher.stop)

		self.hook = Mock(return_value=True)
		hook_patcher = patch('services.ride_management.events.get_notification_hook', return_value=self.hook)
		hook_patcher.start()
		self.addCleanup(hook_patcher.stop)

		self.driver = make_driver('driver')
		self.rider = make_user('rider')
		self.other_rider = make_user('other_rider')


class LazyExpiryTests(QueryTestCase):
	def test_reading_an_overdue_unbooked_ride_expires_it(self):
		ride = make_driver_ride(self.driver, scheduled_date=YESTERDAY)

		fetched = queries.get_ride(ride.id)

		self.assertEqual(fetched.status, Ride.STATUS_EXPIRED)
		self.assertEqual(fetched.expired_at, NOW)
		ride.refresh_from_db()
		self.assertEqual(ride.status, Ride.STATUS_EXPIRED)

		event = self.hook.call_args[0][0]
		self.assertEqual(event.event_type, 'ride_expired')
		self.assertEqual(event.recipient_ids, (self.driver.id,))

	def test_booked_overdue_ride_stays_active(self):
		ride = make_driver_ride(self.driver, scheduled_date=YESTERDAY)
		book(ride, self.rider)

		self.assertEqual(queries.get_ride(ride.id).status, Ride.STATUS_ACTIVE)
		self.hook.assert_not_called()

	def test_future_and_terminal_rides_are_left_alone(self):
		upcoming = make_driver_ride(self.driver)
		cancelled = make_driver_ride(self.driver, scheduled_date=YESTERDAY, status=Ride.STATUS_CANCELLED)

		self.assertEqual(queries.get_ride(upcoming.id).status, Ride.STATUS_ACTIVE)
		self.assertEqual(queries.get_ride(cancelled.id).status, Ride.STATUS_CANCELLED)

	def test_expiry_loses_to_a_join_that_committed_first(self):
		ride = make_driver_ride(self.driver, scheduled_date=YESTERDAY)
		stale_version = ride.version
		book(ride, self.rider)
		Ride.objects.filter(pk=ride.pk).update(version=stale_version + 1)

		self.assertFalse(repository.expire_if_unbooked(ride.id, stale_version, NOW))
		ride.refresh_from_db()
		self.assertEqual(ride.status, Ride.STATUS_ACTIVE)

	def test_stale_version_never_expires(self):
		ride = make_driver_ride(self.driver, scheduled_date=YESTERDAY)
		Ride.objects.filter(pk=ride.pk).update(version=5)

		self.assertFalse(repository.expire_if_unbooked(ride.id, 0, NOW))
		self.assertTrue(repository.expire_if_unbooked(ride.id, 5, NOW))

	def test_sweep_counts_expired_rides(self):
		make_driver_ride(self.driver, scheduled_date=YESTERDAY)
		make_passenger_ride(self.rider, scheduled_date=YESTERDAY)
		booked = make_driver_ride(self.driver, scheduled_date=YESTERDAY)
		book(booked, self.other_rider)
		make_driver_ride(self.driver)

		self.assertEqual(queries.expire_overdue_rides(), 2)
		self.assertEqual(queries.expire_overdue_rides(), 0)
		self.assertEqual(Ride.objects.filter(status=Ride.STATUS_EXPIRED).count(), 2)

	def test_unknown_ride(self):
		with self.assertRaises(RideNotFoundError):
			queries.get_ride(424242)


class ListRidesTests(QueryTestCase):
	def setUp(self):
		super().setUp()
		self.tunis_sfax = make_driver_ride(self.driver, departure='Tunis Centre', destination='Sfax')
		self.tunis_sousse = make_driver_ride(self.driver, departure='tunis marine', destination='Sousse',
											 scheduled_date=TOMORROW + timedelta(days=1))
		self.demand = make_passenger_ride(self.rider, departure='Tunis', destination='Sfax')
		self.overdue = make_driver_ride(self.driver, departure='Tunis', scheduled_date=YESTERDAY)
		self.cancelled = make_driver_ride(self.driver, departure='Tunis', status=Ride.STATUS_CANCELLED)

	def test_board_lists_active_rides_of_one_type(self):
		rides = queries.list_rides(ride_type=Ride.TYPE_DRIVER)

		self.assertEqual(set(rides), {self.tunis_sousse, self.tunis_sfax})
		self.overdue.refresh_from_db()
		self.assertEqual(self.overdue.status, Ride.STATUS_EXPIRED)

	def test_filters_are_case_insensitive_substrings(self):
		rides = queries.list_rides(ride_type=Ride.TYPE_DRIVER, departure='TUNIS', destination='sfa')

		self.assertEqual(list(rides), [self.tunis_sfax])

	def test_date_filter_matches_the_calendar_day(self):
		rides = queries.list_rides(date=TOMORROW)

		self.assertEqual(set(rides), {self.tunis_sfax, self.demand})

	def test_passenger_board(self):
		rides = list(queries.list_rides(ride_type=Ride.TYPE_PASSENGER))

		self.assertEqual(rides, [self.demand])
		self.assertEqual(rides[0].passenger_total, 0)

	def test_unknown_type(self):
		with self.assertRaises(RideValidationError):
			queries.list_rides(ride_type='BUS')

	def test_user_rides_are_active_only(self):
		rides = queries.list_user_rides(self.driver.id)

		self.assertEqual(set(rides), {self.tunis_sfax, self.tunis_sousse})

	def test_user_rides_for_unknown_user(self):
		with self.assertRaises(UserNotFoundError):
			queries.list_user_rides(999)


class HistoryTests(QueryTestCase):
	def test_history_only_contains_completed_rides(self):
		hosted = make_driver_ride(self.driver, scheduled_date=YESTERDAY)
		book(hosted, self.rider)
		Ride.objects.filter(pk=hosted.pk).update(status=Ride.STATUS_COMPLETED)
		make_driver_ride(self.driver)
		joined = make_passenger_ride(self.other_rider)
		book(joined, self.driver)

		history = queries.list_ride_history(self.driver)

		self.assertEqual(list(history['hosted']), [hosted])
		self.assertEqual(list(history['joined']), [])

		rider_history = queries.list_ride_history(self.rider)
		self.assertEqual(list(rider_history['joined']), [hosted])

	def test_my_rides_include_every_status(self):
		active = make_driver_ride(self.driver)
		cancelled = make_driver_ride(self.driver, status=Ride.STATUS_CANCELLED)
		joined = make_passenger_ride(self.rider)
		book(joined, self.driver)

		mine = queries.list_my_rides(self.driver)

		self.assertEqual(set(mine['created']), {active, cancelled})
		self.assertEqual(list(mine['joined']), [joined])

	def test_history_reads_do_not_expire_rides(self):
		overdue = make_driver_ride(self.driver, scheduled_date=YESTERDAY)

		list(queries.list_by_creator(self.driver))

		overdue.refresh_from_db()
		self.assertEqual(overdue.status, Ride.STATUS_ACTIVE)


class PassengerRosterTests(QueryTestCase):
	def setUp(self):
		super().setUp()
		self.ride = make_driver_ride(self.driver, seats=3)
		book(self.ride, self.rider)
		book(self.ride, self.other_rider)

	def test_creator_sees_passengers_in_join_order(self):
		passengers = list(queries.list_passengers(self.ride.id, self.driver))

		self.assertEqual(passengers, [self.rider, self.other_rider])

	def test_roster_is_creator_only(self):
		with self.assertRaises(RideAuthorizationError):
			queries.list_passengers(self.ride.id, self.rider)

	def test_roster_is_driver_rides_only(self):
		demand = make_passenger_ride(self.rider)

		with self.assertRaises(RideAuthorizationError):
			queries.list_passengers(demand.id, self.rider)

	def test_passenger_detail_includes_completed_counts(self):
		make_passenger_ride(self.rider, status=Ride.STATUS_COMPLETED)
		elsewhere = make_driver_ride(make_driver('other_driver'), status=Ride.STATUS_COMPLETED)
		book(elsewhere, self.rider)
		make_passenger_ride(self.rider)

		detail = queries.get_passenger_detail(self.ride.id, self.rider.id, self.driver)

		self.assertEqual(detail.user, self.rider)
		self.assertEqual(detail.ride_history, {'hosted': 1, 'joined': 1})

	def test_passenger_detail_requires_membership(self):
		stranger = make_user('stranger')

		with self.assertRaises(PassengerNotFoundError):
			queries.get_passenger_detail(self.ride.id, stranger.id, self.driver)

	def test_passenger_detail_is_creator_only(self):
		with self.assertRaises(RideAuthorizationError):
			queries.get_passenger_detail(self.ride.id, self.rider.id, self.other_rider)
