from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Notification(models.Model):
    class Type(models.TextChoices):
        ORDER = "order", _("Order")
        REPAIR = "repair", _("Repair")
        SYSTEM = "system", _("System")
        PROMOTION = "promotion", _("Promotion")
        CHAT = "chat", _("Chat")

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    # Free-form; the choices are the categories the UI has icons for.
    notification_type = models.CharField(
        max_length=50,
        choices=Type.choices,
        default=Type.SYSTEM,
    )
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    related_link = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.title} - {self.recipient}"
