from celery import shared_task

from repairhub.notifications.services import purge_read_notifications


@shared_task(name="notifications.purge_read")
def purge_read(days: int | None = None) -> int:
    """Delete read notifications older than the retention window.

    Args:
        days: Retention in days. Defaults to NOTIFICATION_RETENTION_DAYS.

    Returns:
        Number of notifications deleted.
    """
    return purge_read_notifications(days)
