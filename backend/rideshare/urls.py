from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

from .views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check, name="health"), # Health check endpoint

    # Authentication & profile endpoints (at /api/auth/)
    path('api/auth/', include('accounts.urls')),  # accounts.urls have me, token, token refresh endpoints

    # Rides endpoints (at /api/rides/)
    path('api/rides/', include('rides.urls')),      # rides.urls have all the ride-related endpoints
]

# Serve media files in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
