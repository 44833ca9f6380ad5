"""Tells what to show in the Django admin interface for rides app"""

from django.contrib import admin
from .models import Ride, RidePassenger


class RidePassengerInline(admin.TabularInline):
    model = RidePassenger
    extra = 0
    readonly_fields = ("passenger", "joined_at")
    can_delete = False


@admin.register(Ride)
class RideAdmin(admin.ModelAdmin):
    """Ride admin"""
    list_display = ['id', 'ride_type', 'creator', 'departure', 'destination', 'departs_at',
                    'status', 'available_seats', 'original_seats', 'created_at']
    list_filter = ['ride_type', 'status', 'scheduled_date']
    search_fields = ['creator__username', 'creator__full_name', 'departure', 'destination']
    readonly_fields = ['departs_at', 'version', 'created_at', 'updated_at',
                       'completed_at', 'cancelled_at', 'expired_at']
    date_hierarchy = 'departs_at'
    inlines = [RidePassengerInline]


@admin.register(RidePassenger)
class RidePassengerAdmin(admin.ModelAdmin):
    list_display = ("ride", "passenger", "joined_at")
    search_fields = ("ride__id", "passenger__username")
