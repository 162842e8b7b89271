from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from .models import Notification

logger = logging.getLogger(__name__)

User = get_user_model()


def notify_user(
    user_id: int,
    *,
    title: str,
    message: str,
    notification_type: str = Notification.Type.SYSTEM,
    related_link: str = "",
) -> Notification:
    """Persist a notification; the post_save signal pushes it after commit."""

    return Notification.objects.create(
        recipient_id=user_id,
        title=title,
        message=message,
        notification_type=notification_type,
        related_link=related_link,
    )


def notify_role(
    role: str,
    *,
    title: str,
    message: str,
    notification_type: str = Notification.Type.SYSTEM,
    related_link: str = "",
) -> list[Notification]:
    """One notification per active user holding ``role``."""

    recipient_ids = User.objects.filter(role=role, is_active=True).values_list(
        "id",
        flat=True,
    )
    with transaction.atomic():
        return [
            notify_user(
                rid,
                title=title,
                message=message,
                notification_type=notification_type,
                related_link=related_link,
            )
            for rid in sorted(recipient_ids)
        ]


def purge_read_notifications(days: int | None = None) -> int:
    if days is None:
        days = settings.NOTIFICATION_RETENTION_DAYS
    cutoff = timezone.now() - timedelta(days=days)
    deleted, _ = Notification.objects.filter(
        is_read=True,
        created_at__lt=cutoff,
    ).delete()
    logger.info("Purged %d read notifications older than %d days", deleted, days)
    return deleted
