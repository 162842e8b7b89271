from __future__ import annotations

from typing import Any

from rest_framework import serializers

from repairhub.notifications.models import Notification
from repairhub.users.models import User


class NotificationSerializer(serializers.ModelSerializer):
    """Read serializer for notifications; also the realtime push payload."""

    class Meta:
        model = Notification
        fields = (
            "id",
            "recipient",
            "title",
            "message",
            "notification_type",
            "is_read",
            "created_at",
            "related_link",
        )
        read_only_fields = fields


class NotificationCreateSerializer(serializers.Serializer):
    """Create serializer.

    Accepted targeting forms (exactly one is required):
    - recipient_id: int
    - role: one of the user roles (one notification per user in that role)
    """

    title = serializers.CharField(max_length=255)
    message = serializers.CharField()
    notification_type = serializers.CharField(
        max_length=50,
        required=False,
        default=Notification.Type.SYSTEM,
    )
    related_link = serializers.CharField(required=False, allow_blank=True, default="")

    # Accept either int or numeric string, and tolerate "" (treated as missing).
    recipient_id = serializers.CharField(required=False, allow_blank=True)
    role = serializers.ChoiceField(
        choices=User.Role.choices,
        required=False,
        allow_blank=True,
    )

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        recipient_id = attrs.get("recipient_id")
        if isinstance(recipient_id, str):
            recipient_id = recipient_id.strip()
            if not recipient_id:
                attrs.pop("recipient_id", None)
            elif recipient_id.isdigit():
                attrs["recipient_id"] = int(recipient_id)
            else:
                msg = "Must be an integer."
                raise serializers.ValidationError({"recipient_id": msg})

        if not attrs.get("role"):
            attrs.pop("role", None)

        if ("recipient_id" in attrs) == ("role" in attrs):
            msg = "Provide exactly one of recipient_id, role."
            raise serializers.ValidationError(msg)
        return attrs
