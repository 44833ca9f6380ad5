from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views import ProfileView

app_name = 'accounts'

urlpatterns = [
    path('me/', ProfileView.as_view(), name='profile'),

    # Token issuance is delegated to simplejwt
    path('token/', TokenObtainPairView.as_view(), name='token-obtain'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),
]
