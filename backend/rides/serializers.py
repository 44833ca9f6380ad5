from rest_framework import serializers

from accounts.serializers import PublicUserSerializer
from .models import Ride


class RideSerializer(serializers.ModelSerializer):
    """Serializer for rides (both driver offers and passenger requests)"""
    type = serializers.CharField(source='ride_type', read_only=True)
    creator = PublicUserSerializer(read_only=True)
    date = serializers.DateField(source='scheduled_date', read_only=True)
    time = serializers.CharField(source='scheduled_time', read_only=True)
    passenger_count = serializers.SerializerMethodField()

    class Meta:
        model = Ride
        fields = ['id', 'type', 'status', 'creator', 'departure', 'destination',
                  'date', 'time', 'departs_at', 'price', 'original_seats',
                  'available_seats', 'needed_seats', 'passenger_count',
                  'description', 'created_at', 'updated_at', 'completed_at',
                  'cancelled_at', 'expired_at']
        read_only_fields = fields

    def get_passenger_count(self, obj):
        total = getattr(obj, 'passenger_total', None)
        if total is None:
            total = obj.bookings.count()
        return total


class RideCreateSerializer(serializers.Serializer):
    """
    Shape check for ride creation.

    Every field is optional here; which ones are required depends on the
    ride type and is decided by the lifecycle service, so the error
    messages stay the same whichever layer calls it.
    """
    type = serializers.CharField(required=False, allow_blank=True)
    departure = serializers.CharField(required=False, allow_blank=True)
    destination = serializers.CharField(required=False, allow_blank=True)
    date = serializers.CharField(required=False, allow_blank=True)
    time = serializers.CharField(required=False, allow_blank=True)
    available_seats = serializers.IntegerField(required=False, allow_null=True)
    needed_seats = serializers.IntegerField(required=False, allow_null=True)
    price = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def to_service_kwargs(self):
        data = self.validated_data
        return {
            'ride_type': (data.get('type') or '').strip().upper() or None,
            'departure': data.get('departure'),
            'destination': data.get('destination'),
            'scheduled_date': data.get('date'),
            'scheduled_time': data.get('time'),
            'available_seats': data.get('available_seats'),
            'needed_seats': data.get('needed_seats'),
            'price': data.get('price'),
            'description': data.get('description'),
        }


class RideFilterSerializer(serializers.Serializer):
    """Query-string filters for the public ride boards"""
    departure = serializers.CharField(required=False, allow_blank=True)
    destination = serializers.CharField(required=False, allow_blank=True)
    date = serializers.DateField(required=False)

