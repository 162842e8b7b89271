"""Handshake identity verification.

A connection may present a simplejwt access token either as ``auth.token``
(socket.io-client ``auth`` option) or as a ``token`` query parameter. The
rules are asymmetric:

- no token: the connection proceeds anonymously (``None`` principal)
- a token that fails validation: the handshake is refused outright

The principal is resolved once, at handshake, and trusted until disconnect.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs

from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import TokenError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    id: int
    role: str

    @classmethod
    def from_user(cls, user) -> Principal:
        return cls(id=int(user.pk), role=str(user.role))


class HandshakeRejected(Exception):  # noqa: N818
    """A credential was presented and did not validate."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def _query_string(environ: dict[str, Any]) -> str:
    # ASGI servers nest the scope; WSGI servers expose QUERY_STRING directly
    scope = environ.get("asgi.scope") if isinstance(environ, dict) else None
    if isinstance(scope, dict):
        raw = scope.get("query_string", b"")
    elif isinstance(environ, dict):
        raw = environ.get("QUERY_STRING", "")
    else:
        raw = ""
    if isinstance(raw, (bytes, bytearray)):
        return raw.decode(errors="ignore")
    return str(raw)


def extract_token(environ: dict[str, Any], auth: Any | None) -> str | None:
    """Bearer token from the Socket.IO ``auth`` payload, else the query string."""

    candidates = []
    if isinstance(auth, dict):
        candidates.append(auth.get("token"))
    candidates.extend(parse_qs(_query_string(environ)).get("token", []))

    for candidate in candidates:
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


class IdentityVerifier:
    """Turns a handshake credential into a :class:`Principal`.

    ``verify`` is synchronous because resolving the user hits the ORM; the
    socket server calls it through ``database_sync_to_async``.
    """

    def __init__(self, authenticator: JWTAuthentication | None = None):
        self.authenticator = authenticator or JWTAuthentication()

    def verify(self, token: str | None) -> Principal | None:
        if not token:
            return None

        try:
            validated = self.authenticator.get_validated_token(token)
            user = self.authenticator.get_user(validated)
        except TokenError as exc:
            raise HandshakeRejected(self._reason(exc)) from exc
        except AuthenticationFailed as exc:  # invalid token, unknown/inactive user
            raise HandshakeRejected(self._reason(exc)) from exc

        return Principal.from_user(user)

    @staticmethod
    def _reason(exc: Exception) -> str:
        # The SPA refreshes its access token when it sees this exact string.
        if "token is expired" in str(exc).lower():
            return "jwt_expired"
        return "unauthorized"
