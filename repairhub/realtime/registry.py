from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from dataclasses import field

from .identity import Principal
from .rooms import room_for_role
from .rooms import room_for_user

logger = logging.getLogger(__name__)


@dataclass
class Connection:
    sid: str
    principal: Principal | None = None
    rooms: set[str] = field(default_factory=set)

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None

    def owns_room(self, room: str) -> bool:
        """Whether this connection's principal entitles it to ``room``."""
        if self.principal is None:
            return False
        return room in {
            room_for_user(self.principal.id),
            room_for_role(self.principal.role),
        }


class ConnectionRegistry:
    """Process-local map of live connections and their room memberships.

    Every mutation is keyed by a single connection id, so concurrent
    connections never contend on the same entry.
    """

    def __init__(self, roles: tuple[str, ...] | list[str] = ()):
        self.roles = frozenset(roles)
        self._connections: dict[str, Connection] = {}
        self._members: dict[str, set[str]] = defaultdict(set)

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, sid: object) -> bool:
        return sid in self._connections

    def register(self, sid: str) -> Connection:
        connection = self._connections.get(sid)
        if connection is None:
            connection = Connection(sid=sid)
            self._connections[sid] = connection
        return connection

    def get(self, sid: str) -> Connection | None:
        return self._connections.get(sid)

    def connections(self) -> list[Connection]:
        return list(self._connections.values())

    def attach_principal(self, sid: str, principal: Principal) -> list[str]:
        """Bind ``principal`` to the connection and return its automatic rooms."""
        connection = self.register(sid)
        connection.principal = principal

        rooms = [room_for_user(principal.id)]
        if principal.role in self.roles:
            rooms.append(room_for_role(principal.role))
        for room in rooms:
            self.add_membership(sid, room)
        return rooms

    def deregister(self, sid: str) -> Connection | None:
        connection = self._connections.pop(sid, None)
        if connection is None:
            return None
        for room in connection.rooms:
            members = self._members.get(room)
            if members is None:
                continue
            members.discard(sid)
            if not members:
                del self._members[room]
        connection.rooms.clear()
        return connection

    def add_membership(self, sid: str, room: str) -> None:
        connection = self._connections.get(sid)
        if connection is None:
            msg = f"unknown connection {sid}"
            raise KeyError(msg)
        connection.rooms.add(room)
        self._members[room].add(sid)

    def discard_membership(self, sid: str, room: str) -> bool:
        connection = self._connections.get(sid)
        if connection is None or room not in connection.rooms:
            return False
        connection.rooms.discard(room)
        members = self._members.get(room)
        if members is not None:
            members.discard(sid)
            if not members:
                del self._members[room]
        return True

    def members(self, room: str) -> frozenset[str]:
        return frozenset(self._members.get(room, ()))

    def clear(self) -> None:
        self._connections.clear()
        self._members.clear()
