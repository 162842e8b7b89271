"""Typed publish operations used by the rest of the system.

Every operation is fire-and-forget: it resolves target rooms and hands the
payload to the router. Nothing is acknowledged, retried or stored.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

from django.utils import timezone

from .rooms import room_for_entity
from .rooms import room_for_role
from .rooms import room_for_user

if TYPE_CHECKING:  # import for type checking only
    from .router import RoomRouter

logger = logging.getLogger(__name__)

NEW_NOTIFICATION = "new_notification"


def entity_event_name(entity_type: str) -> str:
    return f"{entity_type}_update"


class EventEmitter:
    def __init__(self, router: RoomRouter):
        self.router = router

    async def publish_entity_update(
        self,
        entity_type: str,
        entity_id: int | str,
        status_payload: dict[str, Any],
    ) -> int:
        """Push a status change to ``entity:<type>:<id>`` as ``<type>_update``.

        ``status_payload`` must carry ``status``; any other keys (``note``,
        ``message``...) ride along unchanged.
        """
        if "status" not in status_payload:
            msg = "status_payload requires a 'status' key"
            raise ValueError(msg)
        payload = {
            "timestamp": timezone.now().isoformat(),
            **status_payload,
            "id": str(entity_id),
        }
        return await self.router.multicast(
            room_for_entity(entity_type, entity_id),
            entity_event_name(entity_type),
            payload,
        )

    async def publish_notification(
        self,
        user_id: int | str,
        notification: dict[str, Any],
    ) -> int:
        delivered = await self.router.multicast(
            room_for_user(user_id),
            NEW_NOTIFICATION,
            notification,
        )
        if not delivered:
            logger.debug(
                "Notification %s for user %s not pushed (no live connection)",
                notification.get("id"),
                user_id,
            )
        return delivered

    async def publish_to_role(self, role: str, event: str, payload: Any) -> int:
        return await self.router.multicast(room_for_role(role), event, payload)

    async def publish_to_user(self, user_id: int | str, event: str, payload: Any) -> int:
        return await self.router.multicast(room_for_user(user_id), event, payload)

    async def publish_to_connection(self, sid: str, event: str, payload: Any) -> bool:
        return await self.router.send_to(sid, event, payload)

    async def broadcast_all(self, event: str, payload: Any) -> int:
        return await self.router.broadcast(event, payload)
