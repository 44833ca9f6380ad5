from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from accounts.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin panel for custom User model"""

    list_display = [
        "username",
        "email",
        "full_name",
        "phone_number",
        "vehicle_number",
        "is_driver",
        "is_active",
    ]

    list_filter = [
        "is_active",
        "is_staff",
        "date_joined",
    ]

    search_fields = [
        "username",
        "email",
        "full_name",
        "phone_number",
        "vehicle_number",
    ]

    ordering = ("username",)

    # Extend default Django UserAdmin fieldsets
    fieldsets = BaseUserAdmin.fieldsets + (
        (
            "Profile",
            {
                "fields": (
                    "full_name",
                    "phone_number",
                    "governorate",
                    "profile_picture",
                )
            },
        ),
        (
            "Driver credentials",
            {
                "fields": (
                    "driver_license",
                    "vehicle_number",
                )
            },
        ),
    )

    @admin.display(boolean=True, description="Driver")
    def is_driver(self, obj):
        return obj.is_driver
