from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from .serializers import UserSerializer, ProfileUpdateSerializer


class ProfileView(APIView):
    """
    GET   -> Retrieve the authenticated user's profile
    PATCH -> Update allow-listed profile fields

    PATCH Body (any subset):
    {
        "full_name": "Amira Ben Salah",
        "phone_number": "+21620000000",
        "governorate": "Sfax",
        "driver_license": "TN-123456",
        "vehicle_number": "123 TU 4567"
    }
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        serializer = UserSerializer(request.user, context={"request": request})
        return Response({"success": True, "user": serializer.data})

    def patch(self, request):
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        return Response({
            "success": True,
            "message": "Profile updated successfully",
            "user": UserSerializer(user, context={"request": request}).data,
        })
