from django.test import TestCase
from rest_framework.test import APIRequestFactory, APIClient, force_authenticate

from services.ride_management import directory
from services.ride_management.exceptions import UserNotFoundError
from .models import User
from .views import ProfileView


class DriverCapabilityTests(TestCase):
	def test_driver_needs_both_credentials(self):
		rider = User.objects.create_user(username='rider', password='pass1234')
		half = User.objects.create_user(username='half', password='pass1234', driver_license='DL-1')
		blank = User.objects.create_user(username='blank', password='pass1234',
										 driver_license='   ', vehicle_number='TU-1')
		driver = User.objects.create_user(username='driver', password='pass1234',
										  driver_license='DL-2', vehicle_number='TU-2')

		self.assertFalse(rider.is_driver)
		self.assertFalse(half.is_driver)
		self.assertFalse(blank.is_driver)
		self.assertTrue(driver.is_driver)
		self.assertTrue(directory.is_driver(driver.id))

	def test_directory_unknown_user(self):
		with self.assertRaises(UserNotFoundError):
			directory.get_user(404)

	def test_display_name_falls_back_to_username(self):
		user = User.objects.create_user(username='amira', password='pass1234')

		self.assertEqual(user.display_name, 'amira')
		user.full_name = 'Amira Ben Salah'
		self.assertEqual(user.display_name, 'Amira Ben Salah')


class ProfileViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.user = User.objects.create_user(
			username='sami',
			password='pass1234',
			full_name='Sami Trabelsi',
			phone_number='+21620000000'
		)

	def patch_profile(self, data):
		request = self.factory.patch('/api/auth/me/', data, format='json')
		force_authenticate(request, user=self.user)
		return ProfileView.as_view()(request)

	def test_get_own_profile(self):
		request = self.factory.get('/api/auth/me/')
		force_authenticate(request, user=self.user)
		response = ProfileView.as_view()(request)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['user']['full_name'], 'Sami Trabelsi')
		self.assertEqual(response.data['user']['phone_number'], '+21620000000')
		self.assertFalse(response.data['user']['is_driver'])

	def test_adding_credentials_makes_user_a_driver(self):
		response = self.patch_profile({'driver_license': 'DL-77', 'vehicle_number': '200 TU 1234'})

		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.data['user']['is_driver'])
		self.user.refresh_from_db()
		self.assertEqual(self.user.vehicle_number, '200 TU 1234')

	def test_unknown_fields_are_rejected(self):
		response = self.patch_profile({'full_name': 'New Name', 'is_staff': True})

		self.assertEqual(response.status_code, 400)
		self.assertIn('Invalid updates: is_staff', str(response.data))
		self.user.refresh_from_db()
		self.assertEqual(self.user.full_name, 'Sami Trabelsi')
		self.assertFalse(self.user.is_staff)

	def test_empty_update_is_rejected(self):
		response = self.patch_profile({})

		self.assertEqual(response.status_code, 400)

	def test_requires_authentication(self):
		response = APIClient().get('/api/auth/me/')

		self.assertEqual(response.status_code, 401)


class TokenTests(TestCase):
	def test_obtain_token_pair(self):
		User.objects.create_user(username='nour', password='pass1234')

		response = APIClient().post('/api/auth/token/', {'username': 'nour', 'password': 'pass1234'}, format='json')

		self.assertEqual(response.status_code, 200)
		self.assertIn('access', response.data)
		self.assertIn('refresh', response.data)
