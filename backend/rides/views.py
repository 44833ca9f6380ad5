import logging
from functools import wraps

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.serializers import PublicUserSerializer, AuthorizedUserSerializer
from .models import Ride
from .serializers import (
    RideSerializer,
    RideCreateSerializer,
    RideFilterSerializer,
)

# Import from services layer
from services.ride_management import queries, ride_lifecycle
from services.ride_management.exceptions import RideServiceError, RideValidationError
from services.ride_management.patches import RidePatch

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    'validation_error': status.HTTP_400_BAD_REQUEST,
    'authorization_error': status.HTTP_403_FORBIDDEN,
    'not_found': status.HTTP_404_NOT_FOUND,
    'conflict': status.HTTP_409_CONFLICT,
    'invalid_state': status.HTTP_400_BAD_REQUEST,
}


def error_response(exc: RideServiceError):
    return Response(
        {
            'success': False,
            'error': exc.category,
            'message': exc.message,
        },
        status=ERROR_STATUS.get(exc.category, status.HTTP_400_BAD_REQUEST)
    )


def handles_ride_errors(view):
    """Turn service-layer exceptions into the standard error payload."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except RideServiceError as exc:
            logger.info('%s %s rejected: %s (%s)', request.method, request.path, exc.message, exc.category)
            return error_response(exc)
    return wrapper


def _ride_payload(ride, request, **extra):
    return {
        'success': True,
        **extra,
        'ride': RideSerializer(ride, context={'request': request}).data,
    }


def _rides_payload(rides, request):
    data = RideSerializer(rides, many=True, context={'request': request}).data
    return {'success': True, 'count': len(data), 'rides': data}


# ==================== Create ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
@handles_ride_errors
def create_ride(request):
    """
    Create a ride.

    DRIVER rides need available_seats and price (and a driver profile);
    PASSENGER rides need needed_seats.
    """
    serializer = RideCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    result = ride_lifecycle.create_ride(request.user, **serializer.to_service_kwargs())
    return Response(
        _ride_payload(result.ride, request, message=result.message),
        status=status.HTTP_201_CREATED
    )


# ==================== Public Boards ====================

def _board(request, ride_type):
    filters = RideFilterSerializer(data=request.query_params)
    if not filters.is_valid():
        return Response(filters.errors, status=status.HTTP_400_BAD_REQUEST)

    rides = queries.list_rides(ride_type=ride_type, **filters.validated_data)
    return Response(_rides_payload(rides, request))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@handles_ride_errors
def driver_rides(request):
    """Active driver offers. Filters: ?departure=&destination=&date=YYYY-MM-DD"""
    return _board(request, Ride.TYPE_DRIVER)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@handles_ride_errors
def passenger_rides(request):
    """Active passenger requests. Same filters as the driver board."""
    return _board(request, Ride.TYPE_PASSENGER)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@handles_ride_errors
def user_rides(request, user_id):
    """Active rides published by a given user"""
    rides = queries.list_user_rides(user_id)
    return Response(_rides_payload(rides, request))


# ==================== Caller's Rides ====================

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_rides(request):
    """Every ride the caller created or joined, any status"""
    mine = queries.list_my_rides(request.user)
    context = {'request': request}
    return Response({
        'success': True,
        'created': RideSerializer(mine['created'], many=True, context=context).data,
        'joined': RideSerializer(mine['joined'], many=True, context=context).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ride_history(request):
    """Completed rides the caller hosted or joined"""
    history = queries.list_ride_history(request.user)
    context = {'request': request}
    return Response({
        'success': True,
        'hosted': RideSerializer(history['hosted'], many=True, context=context).data,
        'joined': RideSerializer(history['joined'], many=True, context=context).data,
    })


# ==================== Single Ride ====================

@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
@handles_ride_errors
def ride_detail(request, ride_id):
    """
    GET   -> ride details (an overdue ride nobody joined is reported expired)
    PATCH -> creator updates allow-listed fields, or sets status=completed
    """
    if request.method == 'GET':
        ride = queries.get_ride(ride_id)
        return Response(_ride_payload(ride, request))

    if not hasattr(request.data, 'keys'):
        raise RideValidationError("Expected an object of ride updates")
    patch = RidePatch.from_mapping({key: request.data[key] for key in request.data.keys()})

    result = ride_lifecycle.update_ride(ride_id, request.user, patch)
    return Response(_ride_payload(result.ride, request, message=result.message))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@handles_ride_errors
def join_ride(request, ride_id):
    """Join a ride; takes one seat on driver rides"""
    result = ride_lifecycle.join_ride(ride_id, request.user)
    return Response(_ride_payload(result.ride, request, message=result.message))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@handles_ride_errors
def leave_ride(request, ride_id):
    """Leave a ride before its departure time"""
    result = ride_lifecycle.leave_ride(ride_id, request.user)
    return Response(_ride_payload(result.ride, request, message=result.message))


@api_view(['PUT', 'POST'])
@permission_classes([IsAuthenticated])
@handles_ride_errors
def cancel_ride(request, ride_id):
    """
    Cancel ride by its creator.

    Calling it again on a cancelled ride is a no-op that still succeeds.
    """
    result = ride_lifecycle.cancel_ride(ride_id, request.user)
    extra = result.extra or {}
    return Response(_ride_payload(
        result.ride,
        request,
        message=result.message,
        already_cancelled=extra.get('already_cancelled', False),
    ))


# ==================== Passenger Roster ====================

@api_view(['GET'])
@permission_classes([IsAuthenticated])
@handles_ride_errors
def ride_passengers(request, ride_id):
    """Passengers of a driver ride (public fields only). Creator only."""
    passengers = queries.list_passengers(ride_id, request.user)
    data = PublicUserSerializer(passengers, many=True, context={'request': request}).data
    return Response({
        'success': True,
        'count': len(data),
        'passengers': data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@handles_ride_errors
def passenger_detail(request, ride_id, passenger_id):
    """Contact details of one passenger plus their completed-ride counts. Creator only."""
    detail = queries.get_passenger_detail(ride_id, passenger_id, request.user)
    return Response({
        'success': True,
        'passenger': AuthorizedUserSerializer(detail.user, context={'request': request}).data,
        'ride_history': detail.ride_history,
    })
