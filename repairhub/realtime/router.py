from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import Protocol

from .rooms import is_principal_scoped

if TYPE_CHECKING:  # import for type checking only
    from .identity import Principal
    from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """The subset of ``socketio.AsyncServer`` the router drives."""

    async def enter_room(self, sid: str, room: str) -> None: ...

    async def leave_room(self, sid: str, room: str) -> None: ...

    async def emit(
        self,
        event: str,
        data: Any = None,
        to: str | None = None,
        room: str | None = None,
    ) -> None: ...


class RoomAccessDenied(PermissionError):  # noqa: N818
    pass


class RoomRouter:
    """Room membership and multicast over a bound Socket.IO transport.

    Membership is mirrored into the transport so that ``emit(room=...)``
    fans out natively. While no transport is bound every delivery is a
    no-op: callers persist first and treat the push as best effort.
    """

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry
        self.transport: Transport | None = None

    @property
    def is_bound(self) -> bool:
        return self.transport is not None

    def bind(self, transport: Transport) -> None:
        self.transport = transport

    def unbind(self) -> None:
        self.transport = None

    async def attach(self, sid: str, principal: Principal) -> list[str]:
        rooms = self.registry.attach_principal(sid, principal)
        if self.transport is not None:
            for room in rooms:
                await self.transport.enter_room(sid, room)
        return rooms

    async def join(self, sid: str, room: str) -> None:
        connection = self.registry.get(sid)
        if connection is None:
            msg = "connection is not registered"
            raise RoomAccessDenied(msg)
        # user:/role: rooms are capabilities of the principal, never requestable
        if is_principal_scoped(room) and not connection.owns_room(room):
            msg = f"room {room} requires the matching principal"
            raise RoomAccessDenied(msg)
        if room in connection.rooms:
            return
        self.registry.add_membership(sid, room)
        if self.transport is not None:
            await self.transport.enter_room(sid, room)
        logger.debug("Connection %s joined %s", sid, room)

    async def leave(self, sid: str, room: str) -> None:
        if not self.registry.discard_membership(sid, room):
            return
        if self.transport is not None:
            await self.transport.leave_room(sid, room)
        logger.debug("Connection %s left %s", sid, room)

    def drop(self, sid: str) -> None:
        """Forget a disconnected connection; the transport clears its own rooms."""
        self.registry.deregister(sid)

    async def multicast(self, room: str, event: str, payload: Any) -> int:
        """Deliver ``event`` to every connection currently in ``room``.

        Returns the number of recipients; an empty room delivers nothing.
        """
        if self.transport is None:
            logger.debug("Realtime transport not bound; dropping %s to %s", event, room)
            return 0
        members = self.registry.members(room)
        if not members:
            logger.debug("No live members in %s; skipping %s", room, event)
            return 0
        await self.transport.emit(event, payload, room=room)
        return len(members)

    async def send_to(self, sid: str, event: str, payload: Any) -> bool:
        if self.transport is None or sid not in self.registry:
            return False
        await self.transport.emit(event, payload, to=sid)
        return True

    async def broadcast(self, event: str, payload: Any) -> int:
        if self.transport is None:
            logger.debug("Realtime transport not bound; dropping broadcast %s", event)
            return 0
        await self.transport.emit(event, payload)
        return len(self.registry)
