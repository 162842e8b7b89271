from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class ChatConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "repairhub.chat"
    verbose_name = _("Chat")

    def ready(self):
        from repairhub.chat.protocol import ChatProtocol  # noqa: PLC0415
        from repairhub.realtime.server import get_server  # noqa: PLC0415

        server = get_server()
        self.protocol = ChatProtocol(server.emitter)
        self.protocol.register(server)
