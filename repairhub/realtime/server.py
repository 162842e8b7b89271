"""Socket.IO server context.

One explicitly constructed :class:`RealtimeServer` owns the connection
registry, the room router, the event emitter and the table of event
handlers. ``init()`` binds all of it to a ``socketio.AsyncServer`` (or any
object with the same ``on``/``enter_room``/``leave_room``/``emit`` surface)
and ``shutdown()`` tears the state down again, so independent instances can
live side by side in tests.

Frontend convention:
- URL base: ws://<host>:8000
- Socket.IO path: settings.REALTIME_SOCKETIO_PATH
- Auth: ``auth.token`` (or ``query.token``), a simplejwt access token
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

import socketio
from channels.db import database_sync_to_async
from django.apps import apps
from django.conf import settings
from socketio import exceptions as sio_exceptions

from .emitter import EventEmitter
from .identity import HandshakeRejected
from .identity import IdentityVerifier
from .identity import extract_token
from .registry import ConnectionRegistry
from .rooms import room_for_entity
from .router import RoomAccessDenied
from .router import RoomRouter

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Callable

    from .identity import Principal

logger = logging.getLogger(__name__)

DEFAULT_ROLES = ("user", "technician", "admin")
DEFAULT_ENTITY_TYPES = ("repair", "order")


class RealtimeServer:
    def __init__(  # noqa: PLR0913
        self,
        *,
        cors_allowed_origins: list[str] | str = "*",
        socketio_path: str = "socket.io",
        roles: tuple[str, ...] = DEFAULT_ROLES,
        entity_types: tuple[str, ...] = DEFAULT_ENTITY_TYPES,
        entity_join_requires_auth: bool = False,
        verifier: IdentityVerifier | None = None,
    ):
        self.cors_allowed_origins = cors_allowed_origins
        self.socketio_path = socketio_path
        self.entity_types = tuple(entity_types)
        self.entity_join_requires_auth = entity_join_requires_auth
        self.verifier = verifier or IdentityVerifier()

        self.registry = ConnectionRegistry(roles)
        self.router = RoomRouter(self.registry)
        self.emitter = EventEmitter(self.router)

        self.sio: Any | None = None
        self._handlers: dict[str, Callable[..., Any]] = {}
        self._register_core_handlers()

    @classmethod
    def from_settings(cls) -> RealtimeServer:
        return cls(
            cors_allowed_origins=list(settings.REALTIME_CORS_ALLOWED_ORIGINS),
            socketio_path=settings.REALTIME_SOCKETIO_PATH,
            roles=tuple(settings.REALTIME_ROLES),
            entity_types=tuple(settings.REALTIME_ENTITY_TYPES),
            entity_join_requires_auth=settings.REALTIME_ENTITY_JOIN_REQUIRES_AUTH,
        )

    # Lifecycle
    # --------------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self.sio is not None

    def init(self, transport: Any | None = None) -> Any:
        """Create (or adopt) the transport and bind every registered handler."""
        if self.sio is not None:
            return self.sio
        if transport is None:
            transport = socketio.AsyncServer(
                async_mode="asgi",
                cors_allowed_origins=self.cors_allowed_origins,
                logger=False,
                engineio_logger=False,
            )
        for event, handler in self._handlers.items():
            transport.on(event, handler)
        self.router.bind(transport)
        self.sio = transport
        logger.info("Realtime server initialised (%d handlers)", len(self._handlers))
        return transport

    def shutdown(self) -> None:
        self.router.unbind()
        self.registry.clear()
        self.sio = None
        logger.info("Realtime server shut down")

    def asgi_app(self, other_asgi_app: Any | None = None) -> socketio.ASGIApp:
        # Socket.IO must sit above Django because it uses BOTH HTTP long-polling
        # (Engine.IO) and WebSocket upgrades on the same path.
        return socketio.ASGIApp(
            self.init(),
            other_asgi_app=other_asgi_app,
            socketio_path=self.socketio_path,
            on_shutdown=self.shutdown,
        )

    # Handler table
    # --------------------------------------------------------------------------

    def on(self, event: str, handler: Callable[..., Any] | None = None):
        """Register ``handler`` for a client event; usable as a decorator."""

        def set_handler(fn: Callable[..., Any]) -> Callable[..., Any]:
            self._handlers[event] = fn
            if self.sio is not None:
                self.sio.on(event, fn)
            return fn

        if handler is None:
            return set_handler
        return set_handler(handler)

    @property
    def events(self) -> list[str]:
        return sorted(self._handlers)

    def _register_core_handlers(self) -> None:
        self.on("connect", self.handle_connect)
        self.on("disconnect", self.handle_disconnect)
        for entity_type in self.entity_types:
            join, leave = self._entity_handlers(entity_type)
            self.on(f"join_{entity_type}", join)
            self.on(f"leave_{entity_type}", leave)

    def _entity_handlers(self, entity_type: str):
        async def join(sid: str, entity_id: Any = None):
            return await self.handle_join_entity(entity_type, sid, entity_id)

        async def leave(sid: str, entity_id: Any = None):
            return await self.handle_leave_entity(entity_type, sid, entity_id)

        return join, leave

    def principal_for(self, sid: str) -> Principal | None:
        connection = self.registry.get(sid)
        return connection.principal if connection is not None else None

    # Core handlers
    # --------------------------------------------------------------------------

    async def handle_connect(
        self,
        sid: str,
        environ: dict[str, Any],
        auth: Any | None = None,
    ) -> None:
        token = extract_token(environ, auth)
        try:
            principal = await database_sync_to_async(self.verifier.verify)(token)
        except HandshakeRejected as exc:
            logger.info("Socket.IO handshake rejected for %s: %s", sid, exc.reason)
            raise sio_exceptions.ConnectionRefusedError(exc.reason) from exc
        except Exception as exc:
            logger.exception("Socket.IO connect error")
            msg = "server_error"
            raise sio_exceptions.ConnectionRefusedError(msg) from exc

        self.registry.register(sid)
        if principal is None:
            logger.info("Anonymous connection %s", sid)
            return
        rooms = await self.router.attach(sid, principal)
        logger.info("User %s connected as %s (rooms: %s)", principal.id, sid, rooms)

    async def handle_disconnect(self, sid: str, reason: Any = None) -> None:
        principal = self.principal_for(sid)
        self.router.drop(sid)
        logger.info(
            "Connection %s disconnected (user=%s, reason=%s)",
            sid,
            principal.id if principal else None,
            reason,
        )

    async def handle_join_entity(
        self,
        entity_type: str,
        sid: str,
        entity_id: Any,
    ) -> dict[str, Any]:
        if entity_id is None or not str(entity_id).strip():
            return {"ok": False, "error": f"{entity_type} id is required"}
        if self.entity_join_requires_auth and self.principal_for(sid) is None:
            return {"ok": False, "error": "authentication required"}

        room = room_for_entity(entity_type, entity_id)
        try:
            await self.router.join(sid, room)
        except RoomAccessDenied as exc:
            logger.warning("Join of %s refused for %s: %s", room, sid, exc)
            return {"ok": False, "error": str(exc)}
        return {"ok": True, "room": room}

    async def handle_leave_entity(
        self,
        entity_type: str,
        sid: str,
        entity_id: Any,
    ) -> dict[str, Any]:
        if entity_id is None or not str(entity_id).strip():
            return {"ok": False, "error": f"{entity_type} id is required"}
        room = room_for_entity(entity_type, entity_id)
        await self.router.leave(sid, room)
        return {"ok": True, "room": room}


def get_server() -> RealtimeServer:
    """The process-wide server built by the ``realtime`` app."""
    return apps.get_app_config("realtime").server


def get_emitter() -> EventEmitter:
    return get_server().emitter
