"""Persisted chat store operations.

Everything here is synchronous ORM code. The socket handlers reach it via
``database_sync_to_async``; REST views call it directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from typing import Any

from asgiref.sync import async_to_sync
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied
from django.db import transaction
from django.db.models import Count
from django.db.models import Q

from .models import ChatMessage

if TYPE_CHECKING:  # import for type checking only
    from repairhub.chat.protocol import ChatProtocol
    from repairhub.realtime.identity import Principal

logger = logging.getLogger(__name__)

User = get_user_model()


class MessageValidationError(ValueError):
    pass


@dataclass(frozen=True)
class Conversation:
    partner: dict[str, Any]
    last_message: ChatMessage | None
    unread_count: int


def between(user_a: int, user_b: int) -> Q:
    return Q(sender_id=user_a, receiver_id=user_b) | Q(
        sender_id=user_b,
        receiver_id=user_a,
    )


def clamp_limit(limit: int | None) -> int:
    if limit is None or limit <= 0:
        return settings.CHAT_THREAD_DEFAULT_LIMIT
    return min(int(limit), settings.CHAT_THREAD_MAX_LIMIT)


def create_message(
    sender: Principal,
    receiver_id: int,
    body: str,
    attachments: list[Any] | None = None,
) -> ChatMessage:
    if not User.objects.filter(pk=receiver_id).exists():
        msg = "Invalid receiver"
        raise MessageValidationError(msg)
    with transaction.atomic():
        message = ChatMessage.objects.create(
            sender_id=sender.id,
            receiver_id=receiver_id,
            sender_role=sender.role,
            message=body,
            attachments=list(attachments or []),
        )
    # Reload with both parties so callers can read roles without more queries
    return ChatMessage.objects.select_related("sender", "receiver").get(pk=message.pk)


def send_message(
    sender: Principal,
    receiver_id: Any,
    body: Any,
    *,
    attachments: list[Any] | None = None,
    protocol: ChatProtocol | None = None,
) -> ChatMessage:
    """Validate, persist, and push once the write is committed."""
    if protocol is None:
        from repairhub.chat.protocol import get_chat_protocol  # noqa: PLC0415

        protocol = get_chat_protocol()

    receiver, text = protocol.validate(sender, receiver_id, body)
    message = create_message(sender, receiver, text, attachments)
    transaction.on_commit(lambda: async_to_sync(protocol.deliver)(message))
    return message


def mark_read(receiver_id: int, sender_id: int) -> int:
    """Flip every unread sender->receiver message; safe to repeat."""
    return ChatMessage.objects.filter(
        receiver_id=receiver_id,
        sender_id=sender_id,
        is_read=False,
    ).update(is_read=True)


def get_thread(user_id: int, partner_id: int, limit: int | None = None) -> list[ChatMessage]:
    """Latest ``limit`` messages of the pair, oldest first.

    Opening a thread marks the partner's messages to ``user_id`` as read.
    """
    recent = list(
        ChatMessage.objects.filter(between(user_id, partner_id))
        .order_by("-created_at", "-id")[: clamp_limit(limit)],
    )
    recent.reverse()
    updated = mark_read(user_id, partner_id)
    if updated:
        logger.debug("Marked %d messages %s->%s read", updated, partner_id, user_id)
    return recent


def list_conversations(user_id: int) -> list[Conversation]:
    """Conversation partners of ``user_id``, most recent activity first."""
    last_by_partner: dict[int, ChatMessage] = {}
    history = ChatMessage.objects.filter(
        Q(sender_id=user_id) | Q(receiver_id=user_id),
    ).order_by("-created_at", "-id")
    for message in history.iterator():
        partner_id = message.partner_id_for(user_id)
        if partner_id not in last_by_partner:
            last_by_partner[partner_id] = message

    partners = {u.pk: u for u in User.objects.filter(pk__in=last_by_partner)}
    unread = dict(
        ChatMessage.objects.filter(receiver_id=user_id, is_read=False)
        .values("sender_id")
        .annotate(n=Count("id"))
        .values_list("sender_id", "n"),
    )

    conversations = []
    for partner_id, last_message in last_by_partner.items():
        partner = partners.get(partner_id)
        conversations.append(
            Conversation(
                partner=(
                    partner.directory_entry()
                    if partner is not None
                    else {"id": partner_id, "name": "", "email": "", "role": ""}
                ),
                last_message=last_message,
                unread_count=unread.get(partner_id, 0),
            ),
        )
    return conversations


def unread_count(user_id: int) -> int:
    return ChatMessage.objects.filter(receiver_id=user_id, is_read=False).count()


def delete_conversation(actor: Principal, partner_id: int) -> int:
    """Remove every message between ``actor`` and ``partner_id`` (admins only)."""
    if actor.role != User.Role.ADMIN:
        msg = "Only admins can delete conversations."
        raise PermissionDenied(msg)
    deleted, _ = ChatMessage.objects.filter(between(actor.id, partner_id)).delete()
    logger.info(
        "Admin %s deleted conversation with %s (%d messages)",
        actor.id,
        partner_id,
        deleted,
    )
    return deleted


def get_support_admin():
    return (
        User.objects.filter(role=User.Role.ADMIN, is_active=True).order_by("id").first()
    )
