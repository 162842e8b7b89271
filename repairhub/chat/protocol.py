"""Support-chat protocol over the realtime transport.

Client events handled here:

- ``send_message`` ``{receiver, message, attachments?}``
- ``typing`` / ``stop_typing`` ``{receiver}``

Server events produced:

- ``receive_message`` to ``user:<receiver>``
- ``new_customer_message`` to ``role:admin`` when the receiver is an admin
- ``receive_message`` (full record) to ``role:admin`` when an admin replies
- ``message_sent`` acknowledgement to the sending connection
- ``user_typing`` / ``user_stop_typing`` ``{userId}`` to ``user:<receiver>``
- ``message_error`` to the sending connection on failure
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

from channels.db import database_sync_to_async
from django.apps import apps
from django.db import DatabaseError

from . import services
from .services import MessageValidationError

if TYPE_CHECKING:  # import for type checking only
    from repairhub.chat.models import ChatMessage
    from repairhub.realtime.emitter import EventEmitter
    from repairhub.realtime.identity import Principal
    from repairhub.realtime.server import RealtimeServer

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


def message_payload(message: ChatMessage) -> dict[str, Any]:
    return {
        "id": message.pk,
        "sender": message.sender_id,
        "receiver": message.receiver_id,
        "sender_role": message.sender_role,
        "message": message.message,
        "attachments": message.attachments,
        "is_read": message.is_read,
        "timestamp": message.created_at.isoformat(),
    }


class ChatProtocol:
    def __init__(self, emitter: EventEmitter):
        self.emitter = emitter
        self.server: RealtimeServer | None = None

    def register(self, server: RealtimeServer) -> None:
        self.server = server
        server.on("send_message", self.handle_send_message)
        server.on("typing", self.handle_typing)
        server.on("stop_typing", self.handle_stop_typing)

    @staticmethod
    def validate(
        sender: Principal | None,
        receiver_id: Any,
        body: Any,
    ) -> tuple[int, str]:
        if sender is None:
            msg = "Authentication required"
            raise MessageValidationError(msg)
        text = body.strip() if isinstance(body, str) else ""
        if receiver_id in (None, "") or not text:
            msg = "Receiver and message are required"
            raise MessageValidationError(msg)
        try:
            receiver = int(receiver_id)
        except (TypeError, ValueError) as exc:
            msg = "Invalid receiver"
            raise MessageValidationError(msg) from exc
        if receiver == sender.id:
            msg = "Cannot send a message to yourself"
            raise MessageValidationError(msg)
        return receiver, text

    async def send(
        self,
        sender: Principal | None,
        receiver_id: Any,
        body: Any,
        *,
        sid: str | None = None,
        attachments: list[Any] | None = None,
    ) -> ChatMessage:
        receiver, text = self.validate(sender, receiver_id, body)
        if attachments is not None and not isinstance(attachments, list):
            msg = "Attachments must be a list"
            raise MessageValidationError(msg)
        message = await database_sync_to_async(services.create_message)(
            sender,
            receiver,
            text,
            attachments,
        )
        await self.deliver(message, sid=sid)
        return message

    async def deliver(self, message: ChatMessage, *, sid: str | None = None) -> None:
        """Fan a persisted message out to the receiver, admins and the sender."""
        payload = message_payload(message)
        await self.emitter.publish_to_user(message.receiver_id, "receive_message", payload)

        if message.receiver.role == ADMIN_ROLE:
            await self.emitter.publish_to_role(
                ADMIN_ROLE,
                "new_customer_message",
                {
                    "id": message.pk,
                    "sender": message.sender_id,
                    "message": message.message,
                    "timestamp": payload["timestamp"],
                },
            )
        elif message.sender_role == ADMIN_ROLE:
            # Keep every admin inbox in sync with replies sent by a colleague.
            await self.emitter.publish_to_role(ADMIN_ROLE, "receive_message", payload)

        ack = {
            "id": message.pk,
            "receiver": message.receiver_id,
            "message": message.message,
            "timestamp": payload["timestamp"],
        }
        if sid is not None:
            await self.emitter.publish_to_connection(sid, "message_sent", ack)
        else:
            await self.emitter.publish_to_user(message.sender_id, "message_sent", ack)

    async def typing(self, sender: Principal, receiver_id: Any) -> int:
        return await self.emitter.publish_to_user(
            receiver_id,
            "user_typing",
            {"userId": sender.id},
        )

    async def stop_typing(self, sender: Principal, receiver_id: Any) -> int:
        return await self.emitter.publish_to_user(
            receiver_id,
            "user_stop_typing",
            {"userId": sender.id},
        )

    # Socket handlers
    # --------------------------------------------------------------------------

    def _principal(self, sid: str) -> Principal | None:
        if self.server is None:
            return None
        return self.server.principal_for(sid)

    async def handle_send_message(self, sid: str, data: Any = None) -> dict[str, Any]:
        data = data if isinstance(data, dict) else {}
        try:
            message = await self.send(
                self._principal(sid),
                data.get("receiver"),
                data.get("message"),
                sid=sid,
                attachments=data.get("attachments"),
            )
        except MessageValidationError as exc:
            await self.emitter.publish_to_connection(sid, "message_error", {"error": str(exc)})
            return {"ok": False, "error": str(exc)}
        except DatabaseError:
            logger.exception("Failed to persist chat message from %s", sid)
            error = "Message could not be saved"
            await self.emitter.publish_to_connection(sid, "message_error", {"error": error})
            return {"ok": False, "error": error}
        return {"ok": True, "id": message.pk}

    async def handle_typing(self, sid: str, data: Any = None) -> None:
        principal = self._principal(sid)
        receiver = data.get("receiver") if isinstance(data, dict) else None
        if principal is None or receiver in (None, ""):
            return
        await self.typing(principal, receiver)

    async def handle_stop_typing(self, sid: str, data: Any = None) -> None:
        principal = self._principal(sid)
        receiver = data.get("receiver") if isinstance(data, dict) else None
        if principal is None or receiver in (None, ""):
            return
        await self.stop_typing(principal, receiver)


def get_chat_protocol() -> ChatProtocol:
    return apps.get_app_config("chat").protocol
