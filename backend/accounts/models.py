from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Extended user model; driver capability is derived from two credentials."""

    # Basic info
    full_name = models.CharField(max_length=150, blank=True)
    phone_number = models.CharField(max_length=20, blank=True)
    governorate = models.CharField(max_length=100, blank=True)
    profile_picture = models.ImageField(upload_to='profile_pictures/', null=True, blank=True)

    # Driver credentials (both required to offer seats)
    driver_license = models.CharField(max_length=50, blank=True, default='')
    vehicle_number = models.CharField(max_length=20, blank=True, default='')

    class Meta:
        db_table = 'users'

    @property
    def is_driver(self) -> bool:
        return bool(self.driver_license.strip() and self.vehicle_number.strip())

    @property
    def display_name(self) -> str:
        return self.full_name or self.username

    def __str__(self):
        return f"{self.username} ({'driver' if self.is_driver else 'rider'})"
