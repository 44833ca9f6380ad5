from django.urls import path
from . import views

app_name = 'rides'

urlpatterns = [
    path('', views.create_ride, name='create-ride'),

    # Public boards
    path('driver/', views.driver_rides, name='driver-rides'),
    path('passenger/', views.passenger_rides, name='passenger-rides'),
    path('user/<int:user_id>/', views.user_rides, name='user-rides'),

    # Caller's own rides
    path('mine/', views.my_rides, name='my-rides'),
    path('history/', views.ride_history, name='ride-history'),

    # Single ride actions
    path('<int:ride_id>/', views.ride_detail, name='ride-detail'),
    path('<int:ride_id>/join/', views.join_ride, name='join-ride'),
    path('<int:ride_id>/leave/', views.leave_ride, name='leave-ride'),
    path('<int:ride_id>/cancel/', views.cancel_ride, name='cancel-ride'),

    # Passenger roster (driver rides, creator only)
    path('<int:ride_id>/passengers/', views.ride_passengers, name='ride-passengers'),
    path('<int:ride_id>/passengers/<int:passenger_id>/', views.passenger_detail, name='passenger-detail'),
]
