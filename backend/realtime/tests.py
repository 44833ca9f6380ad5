from unittest.mock import patch

from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.test import TestCase, TransactionTestCase, override_settings
from rest_framework_simplejwt.tokens import AccessToken

from rides.models import Ride
from services.ride_management import events, ride_lifecycle
from rides.tests.utils import make_driver, make_driver_ride, make_user

from .middleware import JWTOrCookieAuthMiddleware
from .notifications import send_ride_event
from .routing import websocket_urlpatterns


def exploding_hook(event):
	raise RuntimeError('transport down')


def application():
	return JWTOrCookieAuthMiddleware(URLRouter(websocket_urlpatterns))


class NotificationHookTests(TestCase):
	def setUp(self):
		self.driver = make_driver('driver')
		self.rider = make_user('rider')
		self.ride = make_driver_ride(self.driver)

	def event(self, **overrides):
		fields = {
			'event_type': events.PASSENGER_JOINED,
			'ride_id': self.ride.id,
			'status': Ride.STATUS_ACTIVE,
			'recipient_ids': (self.driver.id,),
			'message': 'A new passenger joined your ride.',
			'extra': {'passenger_id': self.rider.id},
		}
		fields.update(overrides)
		return events.RideEvent(**fields)

	def test_event_reaches_recipient_and_ride_groups(self):
		layer = get_channel_layer()
		user_channel = async_to_sync(layer.new_channel)()
		ride_channel = async_to_sync(layer.new_channel)()
		async_to_sync(layer.group_add)(f'user_{self.driver.id}', user_channel)
		async_to_sync(layer.group_add)(f'ride_{self.ride.id}', ride_channel)

		self.assertTrue(send_ride_event(self.event()))

		for channel in (user_channel, ride_channel):
			message = async_to_sync(layer.receive)(channel)
			self.assertEqual(message['type'], 'passenger_joined')
			self.assertEqual(message['ride_id'], self.ride.id)
			self.assertEqual(message['passenger_id'], self.rider.id)
			self.assertEqual(message['ride_data']['id'], self.ride.id)

	@patch('realtime.notifications.get_channel_layer', return_value=None)
	def test_without_channel_layer_nothing_is_sent(self, mock_layer):
		self.assertFalse(send_ride_event(self.event()))

	@override_settings(RIDE_NOTIFICATION_HOOK='realtime.tests.exploding_hook')
	def test_emit_swallows_hook_failures(self):
		self.assertFalse(events.emit(self.event()))

	@override_settings(RIDE_NOTIFICATION_HOOK='realtime.notifications.send_ride_event')
	def test_emit_uses_configured_hook(self):
		self.assertTrue(events.emit(self.event(event_type=events.RIDE_UPDATED)))


class NotificationConsumerTests(TransactionTestCase):
	def test_anonymous_connection_is_refused(self):
		async def run():
			communicator = WebsocketCommunicator(application(), '/ws/notifications/')
			connected, _ = await communicator.connect()
			self.assertFalse(connected)

		async_to_sync(run)()

	def test_creator_is_told_when_someone_joins(self):
		driver = make_driver('ws_driver')
		rider = make_user('ws_rider')
		ride = make_driver_ride(driver)
		token = str(AccessToken.for_user(driver))

		async def run():
			communicator = WebsocketCommunicator(application(), f'/ws/notifications/?token={token}')
			connected, _ = await communicator.connect()
			self.assertTrue(connected)

			greeting = await communicator.receive_json_from()
			self.assertEqual(greeting['type'], 'connection_established')
			self.assertEqual(greeting['user_id'], driver.id)

			await database_sync_to_async(ride_lifecycle.join_ride)(ride.id, rider)

			message = await communicator.receive_json_from(timeout=2)
			self.assertEqual(message['type'], 'passenger_joined')
			self.assertEqual(message['ride_id'], ride.id)
			self.assertEqual(message['passenger_id'], rider.id)
			self.assertEqual(message['available_seats'], 1)

			await communicator.disconnect()

		async_to_sync(run)()

	def test_subscribing_to_a_ride_requires_participation(self):
		driver = make_driver('sub_driver')
		outsider = make_user('outsider')
		ride = make_driver_ride(driver)

		async def run():
			communicator = WebsocketCommunicator(
				application(), f'/ws/notifications/?token={AccessToken.for_user(outsider)}'
			)
			await communicator.connect()
			await communicator.receive_json_from()

			await communicator.send_json_to({'type': 'subscribe_ride', 'ride_id': ride.id})
			self.assertEqual((await communicator.receive_json_from())['type'], 'error')

			await communicator.send_json_to({'type': 'ping'})
			self.assertEqual((await communicator.receive_json_from())['type'], 'pong')

			await communicator.disconnect()

		async_to_sync(run)()

	def test_invalid_token_is_anonymous(self):
		async def run():
			communicator = WebsocketCommunicator(application(), '/ws/notifications/?token=not-a-jwt')
			connected, _ = await communicator.connect()
			self.assertFalse(connected)

		async_to_sync(run)()
