"""Client side of the realtime contract.

:class:`RealtimeClient` is what a Python consumer (a kiosk, an integration
test, a support bot) uses instead of the SPA's socket hook. It speaks the
same events and applies the same local safety net for typing indicators:
an indicator with no ``user_stop_typing`` clears itself after
``TYPING_TIMEOUT`` seconds.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING
from typing import Any

import socketio

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Callable

logger = logging.getLogger(__name__)

TYPING_TIMEOUT = 3.0


class TypingTracker:
    def __init__(
        self,
        timeout: float = TYPING_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.timeout = timeout
        self.clock = clock
        self._started: dict[str, float] = {}

    def mark_typing(self, user_id: Any) -> None:
        self._started[str(user_id)] = self.clock()

    def mark_stopped(self, user_id: Any) -> None:
        self._started.pop(str(user_id), None)

    def is_typing(self, user_id: Any) -> bool:
        key = str(user_id)
        started = self._started.get(key)
        if started is None:
            return False
        if self.clock() - started >= self.timeout:
            del self._started[key]
            return False
        return True

    def active(self) -> list[str]:
        return [user_id for user_id in list(self._started) if self.is_typing(user_id)]


class RealtimeClient:
    def __init__(
        self,
        url: str,
        token: str | None = None,
        *,
        socketio_path: str = "ws/socket.io",
        sio: socketio.AsyncClient | None = None,
        typing: TypingTracker | None = None,
    ):
        self.url = url
        self.token = token
        self.socketio_path = socketio_path
        self.sio = sio or socketio.AsyncClient(
            reconnection=True,
            reconnection_attempts=5,
            reconnection_delay=1,
        )
        self.typing_tracker = typing or TypingTracker()
        self.messages: list[dict[str, Any]] = []
        self.errors: list[str] = []
        self._listeners: dict[str, list[Callable[[Any], Any]]] = {}

        self.sio.on("user_typing", self._on_user_typing)
        self.sio.on("user_stop_typing", self._on_user_stop_typing)
        self.sio.on("receive_message", self._on_message)
        self.sio.on("new_customer_message", self._on_message)
        self.sio.on("message_error", self._on_message_error)

    async def connect(self) -> None:
        auth = {"token": self.token} if self.token else None
        await self.sio.connect(
            self.url,
            auth=auth,
            socketio_path=self.socketio_path,
            transports=["websocket", "polling"],
        )

    async def disconnect(self) -> None:
        await self.sio.disconnect()

    def on(self, event: str, callback: Callable[[Any], Any]) -> None:
        """Subscribe to any server event (``repair_update``, ``new_notification``...)."""
        if event not in self._listeners:
            self._listeners[event] = []
            self.sio.on(event, self._fan_out(event))
        self._listeners[event].append(callback)

    def _fan_out(self, event: str):
        async def handler(data: Any = None):
            for callback in self._listeners.get(event, []):
                callback(data)

        return handler

    async def join(self, entity_type: str, entity_id: Any) -> Any:
        return await self.sio.call(f"join_{entity_type}", str(entity_id))

    async def leave(self, entity_type: str, entity_id: Any) -> Any:
        return await self.sio.call(f"leave_{entity_type}", str(entity_id))

    async def send_message(self, receiver: Any, message: str) -> None:
        await self.sio.emit("send_message", {"receiver": receiver, "message": message})

    async def typing(self, receiver: Any) -> None:
        await self.sio.emit("typing", {"receiver": receiver})

    async def stop_typing(self, receiver: Any) -> None:
        await self.sio.emit("stop_typing", {"receiver": receiver})

    def _on_user_typing(self, data: Any = None) -> None:
        if isinstance(data, dict) and data.get("userId") is not None:
            self.typing_tracker.mark_typing(data["userId"])

    def _on_user_stop_typing(self, data: Any = None) -> None:
        if isinstance(data, dict) and data.get("userId") is not None:
            self.typing_tracker.mark_stopped(data["userId"])

    def _on_message(self, data: Any = None) -> None:
        if isinstance(data, dict):
            self.messages.append(data)
            # A delivered message implies the sender finished typing.
            if data.get("sender") is not None:
                self.typing_tracker.mark_stopped(data["sender"])

    def _on_message_error(self, data: Any = None) -> None:
        error = data.get("error") if isinstance(data, dict) else None
        self.errors.append(error or "Message error")
        logger.warning("Chat message rejected: %s", error)
