"""Publish helpers callable from sync Django code (views, signals, tasks).

Each one wraps the matching :class:`~repairhub.realtime.emitter.EventEmitter`
coroutine with ``async_to_sync``. Call them only after the durable write has
succeeded; if nobody is connected, or the socket server was never started in
this process, they are effectively no-ops.
"""

from __future__ import annotations

from typing import Any

from asgiref.sync import async_to_sync

from .server import get_emitter


def publish_entity_update(
    entity_type: str,
    entity_id: int | str,
    status_payload: dict[str, Any],
) -> int:
    return async_to_sync(get_emitter().publish_entity_update)(
        entity_type,
        entity_id,
        status_payload,
    )


def publish_notification(user_id: int | str, notification: dict[str, Any]) -> int:
    return async_to_sync(get_emitter().publish_notification)(user_id, notification)


def publish_to_role(role: str, event: str, payload: Any) -> int:
    return async_to_sync(get_emitter().publish_to_role)(role, event, payload)


def publish_to_user(user_id: int | str, event: str, payload: Any) -> int:
    return async_to_sync(get_emitter().publish_to_user)(user_id, event, payload)


def broadcast_all(event: str, payload: Any) -> int:
    return async_to_sync(get_emitter().broadcast_all)(event, payload)
