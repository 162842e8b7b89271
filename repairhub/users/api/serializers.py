from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from repairhub.users.models import User


class UserSerializer(serializers.ModelSerializer[User]):
    id = serializers.IntegerField(read_only=True)
    full_name = serializers.CharField(source="name", read_only=True)

    # Identity and role are managed by admins, never self-edited
    username = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True)
    role = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "first_name",
            "last_name",
            "full_name",
            "email",
            "role",
        ]


class RoleTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Adds ``role`` and ``name`` claims so the SPA can route without a lookup."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["role"] = user.role
        token["name"] = user.name or user.username
        return token
