from rest_framework import serializers

from .models import User


class ProfilePictureMixin(serializers.Serializer):
    profile_picture_url = serializers.SerializerMethodField(read_only=True)

    def get_profile_picture_url(self, obj):
        """
        Generate absolute URL for mobile clients.
        If they receive only relative paths, images break.
        """
        if obj.profile_picture:
            request = self.context.get("request")
            if request:
                return request.build_absolute_uri(obj.profile_picture.url)
            return obj.profile_picture.url
        return None


class UserSerializer(ProfilePictureMixin, serializers.ModelSerializer):
    """The caller's own profile."""
    is_driver = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "full_name",
            "phone_number",
            "governorate",
            "driver_license",
            "vehicle_number",
            "is_driver",
            "profile_picture",
            "profile_picture_url",
            "date_joined",
        ]
        read_only_fields = ["id", "username", "email", "date_joined"]
        extra_kwargs = {
            "profile_picture": {"write_only": True, "required": False}
        }


class PublicUserSerializer(ProfilePictureMixin, serializers.ModelSerializer):
    """
    Public view of a user: name, photo and driver flag only.
    Used inside ride payloads and passenger rosters.
    """
    full_name = serializers.CharField(source="display_name", read_only=True)
    is_driver = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "full_name", "profile_picture_url", "is_driver"]


class AuthorizedUserSerializer(ProfilePictureMixin, serializers.ModelSerializer):
    """Contact details, shown only to the creator of a ride the user joined."""
    full_name = serializers.CharField(source="display_name", read_only=True)
    is_driver = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "full_name",
            "profile_picture_url",
            "email",
            "phone_number",
            "governorate",
            "is_driver",
            "driver_license",
            "vehicle_number",
            "date_joined",
        ]


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Allow-listed profile patch."""

    class Meta:
        model = User
        fields = [
            "full_name",
            "phone_number",
            "governorate",
            "profile_picture",
            "driver_license",
            "vehicle_number",
        ]

    def validate(self, attrs):
        unknown = set(self.initial_data) - set(self.fields)
        if unknown:
            raise serializers.ValidationError(
                {"non_field_errors": [f"Invalid updates: {', '.join(sorted(unknown))}"]}
            )
        if not attrs:
            raise serializers.ValidationError("No valid fields provided for update")
        return attrs
