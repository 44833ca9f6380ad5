from unittest.mock import Mock, patch

from django.test import TestCase
from rest_framework.test import APIClient, APIRequestFactory, force_authenticate

from rides.models import Ride
from rides import views

from .utils import NOW, TOMORROW, YESTERDAY, book, make_driver, make_driver_ride, make_passenger_ride, make_user


class RideApiTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()

		clock_patcher = patch('services.ride_management.clock.now', return_value=NOW)
		clock_patcher.start()
		self.addCleanup(clock_patcher.stop)

		hook_patcher = patch('services.ride_management.events.get_notification_hook', return_value=Mock())
		hook_patcher.start()
		self.addCleanup(hook_patcher.stop)

		self.driver = make_driver('driver')
		self.rider = make_user('rider')
		self.other_rider = make_user('other_rider')

	def call(self, view, method, user, data=None, **kwargs):
		if method == 'get':
			request = self.factory.get('/api/rides/', data)
		else:
			request = getattr(self.factory, method)('/api/rides/', data or {}, format='json')
		force_authenticate(request, user=user)
		return view(request, **kwargs)

	# ---------------------- Create ----------------------

	def test_create_driver_ride(self):
		response = self.call(views.create_ride, 'post', self.driver, {
			'type': 'DRIVER',
			'departure': 'Tunis',
			'destination': 'Sfax',
			'date': TOMORROW.isoformat(),
			'time': '08:15',
			'available_seats': 3,
			'price': '20.00',
		})

		self.assertEqual(response.status_code, 201)
		self.assertTrue(response.data['success'])
		ride = response.data['ride']
		self.assertEqual(ride['type'], 'DRIVER')
		self.assertEqual(ride['status'], 'active')
		self.assertEqual(ride['original_seats'], 3)
		self.assertEqual(ride['available_seats'], 3)
		self.assertEqual(ride['passenger_count'], 0)
		self.assertEqual(ride['creator']['id'], self.driver.id)
		self.assertNotIn('phone_number', ride['creator'])

	def test_create_driver_ride_without_driver_profile(self):
		response = self.call(views.create_ride, 'post', self.rider, {
			'type': 'DRIVER',
			'departure': 'Tunis',
			'destination': 'Sfax',
			'date': TOMORROW.isoformat(),
			'time': '08:15',
			'available_seats': 3,
			'price': 20,
		})

		self.assertEqual(response.status_code, 403)
		self.assertEqual(response.data, {
			'success': False,
			'error': 'authorization_error',
			'message': 'You must have a driver license and vehicle number to create a DRIVER ride',
		})

	def test_create_with_missing_fields(self):
		response = self.call(views.create_ride, 'post', self.rider, {'type': 'PASSENGER'})

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'validation_error')
		self.assertIn('Missing required fields', response.data['message'])

	def test_create_with_malformed_seat_count(self):
		response = self.call(views.create_ride, 'post', self.driver, {'available_seats': 'many'})

		self.assertEqual(response.status_code, 400)
		self.assertIn('available_seats', response.data)

	# ---------------------- Join / Leave ----------------------

	def test_join_and_conflicts(self):
		ride = make_driver_ride(self.driver, seats=1)

		response = self.call(views.join_ride, 'post', self.rider, ride_id=ride.id)
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['ride']['available_seats'], 0)
		self.assertEqual(response.data['ride']['passenger_count'], 1)

		response = self.call(views.join_ride, 'post', self.other_rider, ride_id=ride.id)
		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['error'], 'conflict')
		self.assertEqual(response.data['message'], 'No available seats for this ride')

	def test_join_missing_ride(self):
		response = self.call(views.join_ride, 'post', self.rider, ride_id=12345)

		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.data['error'], 'not_found')

	def test_leave_past_ride(self):
		ride = make_driver_ride(self.driver, scheduled_date=YESTERDAY)
		book(ride, self.rider)

		response = self.call(views.leave_ride, 'post', self.rider, ride_id=ride.id)

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'invalid_state')
		self.assertEqual(response.data['message'], 'Cannot leave a past ride')

	# ---------------------- Detail / Update / Cancel ----------------------

	def test_get_ride_reports_expiry(self):
		ride = make_passenger_ride(self.rider, scheduled_date=YESTERDAY)

		response = self.call(views.ride_detail, 'get', self.other_rider, ride_id=ride.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['ride']['status'], 'expired')

	def test_patch_with_unknown_field(self):
		ride = make_driver_ride(self.driver)

		response = self.call(views.ride_detail, 'patch', self.driver, {'creator': self.rider.id}, ride_id=ride.id)

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['message'], 'Invalid updates: creator')

	def test_patch_price_and_description(self):
		ride = make_driver_ride(self.driver)

		response = self.call(views.ride_detail, 'patch', self.driver,
							 {'price': '9.5', 'description': 'Two bags max'}, ride_id=ride.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['ride']['price'], '9.50')
		self.assertEqual(response.data['ride']['description'], 'Two bags max')

	def test_patch_with_non_text_description(self):
		ride = make_driver_ride(self.driver)

		response = self.call(views.ride_detail, 'patch', self.driver, {'description': 5}, ride_id=ride.id)

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'validation_error')
		self.assertEqual(response.data['message'], 'Description must be text')

	def test_patch_status_back_to_active(self):
		ride = make_driver_ride(self.driver)

		response = self.call(views.ride_detail, 'patch', self.driver, {'status': 'active'}, ride_id=ride.id)

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'invalid_state')

	def test_patch_by_stranger_is_forbidden(self):
		ride = make_driver_ride(self.driver)

		response = self.call(views.ride_detail, 'patch', self.rider, {'price': '1'}, ride_id=ride.id)

		self.assertEqual(response.status_code, 403)

	def test_cancel_twice(self):
		ride = make_driver_ride(self.driver)

		first = self.call(views.cancel_ride, 'put', self.driver, ride_id=ride.id)
		second = self.call(views.cancel_ride, 'post', self.driver, ride_id=ride.id)

		self.assertEqual(first.status_code, 200)
		self.assertFalse(first.data['already_cancelled'])
		self.assertEqual(second.status_code, 200)
		self.assertTrue(second.data['already_cancelled'])
		self.assertEqual(second.data['ride']['status'], 'cancelled')

	# ---------------------- Lists ----------------------

	def test_driver_board_with_filters(self):
		match = make_driver_ride(self.driver, departure='La Marsa', destination='Nabeul')
		make_driver_ride(self.driver, departure='Bizerte', destination='Nabeul')
		make_passenger_ride(self.rider, departure='La Marsa', destination='Nabeul')

		request = self.factory.get('/api/rides/driver/', {'departure': 'marsa', 'date': TOMORROW.isoformat()})
		force_authenticate(request, user=self.rider)
		response = views.driver_rides(request)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['count'], 1)
		self.assertEqual(response.data['rides'][0]['id'], match.id)

	def test_board_rejects_bad_date(self):
		request = self.factory.get('/api/rides/passenger/', {'date': 'tomorrow'})
		force_authenticate(request, user=self.rider)
		response = views.passenger_rides(request)

		self.assertEqual(response.status_code, 400)
		self.assertIn('date', response.data)

	def test_history_and_mine(self):
		ride = make_driver_ride(self.driver, scheduled_date=YESTERDAY)
		book(ride, self.rider)
		Ride.objects.filter(pk=ride.pk).update(status=Ride.STATUS_COMPLETED)

		history = self.call(views.ride_history, 'get', self.rider)
		mine = self.call(views.my_rides, 'get', self.driver)

		self.assertEqual([r['id'] for r in history.data['joined']], [ride.id])
		self.assertEqual(history.data['hosted'], [])
		self.assertEqual([r['id'] for r in mine.data['created']], [ride.id])

	def test_user_rides(self):
		ride = make_driver_ride(self.driver)

		response = self.call(views.user_rides, 'get', self.rider, user_id=self.driver.id)
		missing = self.call(views.user_rides, 'get', self.rider, user_id=987654)

		self.assertEqual([r['id'] for r in response.data['rides']], [ride.id])
		self.assertEqual(missing.status_code, 404)

	# ---------------------- Passenger Roster ----------------------

	def test_passenger_roster_and_detail(self):
		ride = make_driver_ride(self.driver)
		book(ride, self.rider)

		roster = self.call(views.ride_passengers, 'get', self.driver, ride_id=ride.id)
		detail = self.call(views.passenger_detail, 'get', self.driver, ride_id=ride.id, passenger_id=self.rider.id)
		forbidden = self.call(views.ride_passengers, 'get', self.rider, ride_id=ride.id)
		outsider = self.call(views.passenger_detail, 'get', self.driver, ride_id=ride.id,
							 passenger_id=self.other_rider.id)

		self.assertEqual(roster.status_code, 200)
		self.assertEqual(roster.data['count'], 1)
		self.assertEqual(set(roster.data['passengers'][0]), {'id', 'full_name', 'profile_picture_url', 'is_driver'})

		self.assertEqual(detail.status_code, 200)
		self.assertIn('phone_number', detail.data['passenger'])
		self.assertEqual(detail.data['ride_history'], {'hosted': 0, 'joined': 0})

		self.assertEqual(forbidden.status_code, 403)
		self.assertEqual(outsider.status_code, 404)


class RideUrlTests(TestCase):
	def test_endpoints_require_authentication(self):
		response = APIClient().get('/api/rides/driver/')

		self.assertEqual(response.status_code, 401)

	@patch('services.ride_management.clock.now', return_value=NOW)
	@patch('services.ride_management.events.get_notification_hook', return_value=Mock())
	def test_routes_resolve_to_ride_views(self, mock_hook, mock_now):
		driver = make_driver('url_driver')
		rider = make_user('url_rider')
		ride = make_driver_ride(driver)
		client = APIClient()
		client.force_authenticate(user=rider)

		self.assertEqual(client.post(f'/api/rides/{ride.id}/join/').status_code, 200)
		self.assertEqual(client.get(f'/api/rides/{ride.id}/').data['ride']['passenger_count'], 1)
		self.assertEqual(client.post(f'/api/rides/{ride.id}/leave/').status_code, 200)
