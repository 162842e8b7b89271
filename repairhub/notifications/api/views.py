from __future__ import annotations

from django.conf import settings
from django.db import transaction
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import mixins
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from repairhub.notifications.models import Notification
from repairhub.notifications.services import notify_role
from repairhub.notifications.services import notify_user
from repairhub.users.api.permissions import IsAdminRole
from repairhub.users.models import User

from .serializers import NotificationCreateSerializer
from .serializers import NotificationSerializer


@extend_schema_view(
    list=extend_schema(tags=["Notifications"]),
    create=extend_schema(tags=["Notifications"], request=NotificationCreateSerializer),
    destroy=extend_schema(tags=["Notifications"]),
)
class NotificationViewSet(
    mixins.ListModelMixin,
    mixins.DestroyModelMixin,
    GenericViewSet,
):
    """Notifications for the authenticated user.

    - list: the most recent notifications of request.user
    - create: creates notifications for a user or a whole role (admins)
    - destroy: deletes a notification (recipient only)
    - mark_read / mark_all_read / unread_count
    """

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer
    pagination_class = None

    def get_queryset(self):
        return Notification.objects.filter(recipient=self.request.user)

    def get_permissions(self):
        if self.action == "create":
            return [IsAuthenticated(), IsAdminRole()]
        return [p() for p in self.permission_classes]

    def list(self, request, *args, **kwargs):
        recent = self.get_queryset()[: settings.NOTIFICATION_LIST_LIMIT]
        return Response(self.get_serializer(recent, many=True).data)

    def create(self, request, *args, **kwargs):
        serializer = NotificationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        content = {
            "title": data["title"],
            "message": data["message"],
            "notification_type": data["notification_type"],
            "related_link": data.get("related_link", ""),
        }

        with transaction.atomic():
            if "recipient_id" in data:
                if not User.objects.filter(pk=data["recipient_id"]).exists():
                    return Response(
                        {"detail": "Unknown recipient_id."},
                        status=status.HTTP_400_BAD_REQUEST,
                    )
                created = [notify_user(data["recipient_id"], **content)]
            else:
                created = notify_role(data["role"], **content)

        if not created:
            return Response(
                {"detail": "No recipients resolved from payload."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        # Single object for single-recipient payload.
        if len(created) == 1:
            out = NotificationSerializer(created[0], context={"request": request}).data
            return Response(out, status=status.HTTP_201_CREATED)
        out_many = NotificationSerializer(
            created,
            many=True,
            context={"request": request},
        ).data
        return Response(out_many, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Notifications"])
    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        count = self.get_queryset().filter(is_read=False).count()
        return Response({"count": count})

    @extend_schema(tags=["Notifications"])
    @action(detail=True, methods=["post"], url_path="mark-read")
    def mark_read(self, request, pk=None):
        notification = self.get_object()
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read"])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Notifications"])
    @action(detail=False, methods=["post"], url_path="mark-all-read")
    def mark_all_read(self, request):
        self.get_queryset().filter(is_read=False).update(is_read=True)
        return Response(status=status.HTTP_204_NO_CONTENT)
