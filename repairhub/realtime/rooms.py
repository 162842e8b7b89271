"""Room naming scheme.

- ``user:<id>``: private channel, joined automatically on authenticated connect
- ``role:<role>``: joined automatically when the principal holds a known role
- ``entity:<type>:<id>``: joined only on explicit client request
"""

from __future__ import annotations

USER_PREFIX = "user"
ROLE_PREFIX = "role"
ENTITY_PREFIX = "entity"


def _normalize_room_suffix(value: object) -> str:
    return "_".join(str(value).strip().split())


def room_for_user(user_id: int | str) -> str:
    return f"{USER_PREFIX}:{_normalize_room_suffix(user_id)}"


def room_for_role(role: str) -> str:
    return f"{ROLE_PREFIX}:{_normalize_room_suffix(role).lower()}"


def room_for_entity(entity_type: str, entity_id: int | str) -> str:
    return (
        f"{ENTITY_PREFIX}:{_normalize_room_suffix(entity_type).lower()}"
        f":{_normalize_room_suffix(entity_id)}"
    )


def is_principal_scoped(room: str) -> bool:
    """True for rooms that only the matching principal may sit in."""
    prefix = room.split(":", 1)[0]
    return prefix in {USER_PREFIX, ROLE_PREFIX}
