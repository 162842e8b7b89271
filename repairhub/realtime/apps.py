from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class RealtimeConfig(AppConfig):
    name = "repairhub.realtime"
    verbose_name = _("Realtime")

    def ready(self):
        from repairhub.realtime.server import RealtimeServer  # noqa: PLC0415

        # Process default. Other apps register their socket handlers on it from
        # their own ready(); config.asgi binds it to a transport.
        self.server = RealtimeServer.from_settings()
