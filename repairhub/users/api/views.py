from django.db.models import Q
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.mixins import RetrieveModelMixin
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from repairhub.users.models import User

from .serializers import UserSerializer


@extend_schema_view(
    retrieve=extend_schema(tags=["Users"]),
    me=extend_schema(tags=["Users"]),
)
class UserViewSet(RetrieveModelMixin, GenericViewSet):
    """User directory.

    Admins can resolve any account. Everyone else can resolve themselves and
    the admin accounts they may open a support conversation with.
    """

    serializer_class = UserSerializer
    queryset = User.objects.all()

    def get_queryset(self, *args, **kwargs):  # type: ignore[override]
        user = self.request.user
        if not getattr(user, "is_authenticated", False):  # pragma: no cover - safety
            return User.objects.none()
        if getattr(user, "is_staff", False) or user.is_admin_role:
            return User.objects.all()
        return User.objects.filter(Q(pk=user.pk) | Q(role=User.Role.ADMIN))

    @action(detail=False)
    def me(self, request):
        serializer = UserSerializer(request.user, context={"request": request})
        return Response(status=status.HTTP_200_OK, data=serializer.data)
