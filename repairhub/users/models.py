from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import CharField
from django.db.models import EmailField
from django.utils.translation import gettext_lazy as _


class User(AbstractUser):
    """
    Default custom user model for repairhub.

    ``role`` drives both REST permissions and the realtime ``role:<role>``
    rooms a socket connection is placed in on handshake.
    """

    class Role(models.TextChoices):
        USER = "user", _("Customer")
        TECHNICIAN = "technician", _("Technician")
        ADMIN = "admin", _("Admin")

    # First and last name do not cover name patterns around the globe
    name = CharField(_("Full Name"), blank=True, max_length=255)
    email = EmailField(_("email address"), unique=True)
    role = CharField(
        _("Role"),
        max_length=20,
        choices=Role.choices,
        default=Role.USER,
        db_index=True,
    )
    # Audit timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if not self.name:
            self.name = f"{self.first_name} {self.last_name}".strip()
        super().save(*args, **kwargs)

    @property
    def is_admin_role(self) -> bool:
        return self.role == self.Role.ADMIN

    def directory_entry(self) -> dict:
        """Public identity used by chat listings and realtime payloads."""
        return {
            "id": self.pk,
            "name": self.name or self.username,
            "email": self.email,
            "role": self.role,
        }
