from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any

if TYPE_CHECKING:  # import for type checking only
    from repairhub.notifications.models import Notification
from repairhub.realtime.publish import publish_notification


def build_notification_payload(notification: Notification) -> dict[str, Any]:
    from repairhub.notifications.api.serializers import (  # noqa: PLC0415
        NotificationSerializer,
    )

    return dict(NotificationSerializer(notification).data)


def publish_notification_created(notification: Notification) -> int:
    """Publish a newly created Notification to the recipient in realtime."""

    payload = build_notification_payload(notification)
    return publish_notification(notification.recipient_id, payload)
