from unittest.mock import patch

from django.test import TestCase
from rest_framework.test import APIClient


class HealthCheckTests(TestCase):
	@patch('rideshare.views.redis.Redis.from_url')
	def test_healthy_when_all_services_respond(self, mock_redis):
		mock_redis.return_value.ping.return_value = True

		response = APIClient().get('/health/')

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['status'], 'healthy')
		self.assertEqual(response.data['services'], {
			'database': 'healthy',
			'redis': 'healthy',
			'channels': 'healthy',
			'celery': 'healthy',
		})

	@patch('rideshare.views.redis.Redis.from_url')
	def test_unhealthy_when_redis_is_down(self, mock_redis):
		mock_redis.return_value.ping.side_effect = ConnectionError('refused')

		response = APIClient().get('/health/')

		self.assertEqual(response.status_code, 503)
		self.assertEqual(response.data['status'], 'unhealthy')
		self.assertTrue(response.data['services']['redis'].startswith('unhealthy'))
