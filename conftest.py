from __future__ import annotations

import pytest
from asgiref.sync import async_to_sync

from repairhub.realtime.identity import Principal
from repairhub.realtime.server import get_server
from repairhub.realtime.tests.fakes import FakeTransport
from repairhub.users.models import User
from repairhub.users.tests.factories import create_user


@pytest.fixture
def user(db) -> User:
    return create_user("customer")


@pytest.fixture
def technician(db) -> User:
    return create_user("tech", role=User.Role.TECHNICIAN)


@pytest.fixture
def support_admin(db) -> User:
    return create_user("support", role=User.Role.ADMIN, name="Support Desk")


@pytest.fixture
def realtime():
    """Bind the process-wide realtime server to a fake transport."""
    server = get_server()
    transport = FakeTransport()
    server.init(transport)
    yield transport
    server.shutdown()


@pytest.fixture
def connect_as(realtime):
    """Register a live connection for ``user`` without a handshake round-trip."""
    server = get_server()

    def connect(sid: str, user: User) -> str:
        async_to_sync(server.router.attach)(sid, Principal.from_user(user))
        realtime.connected.add(sid)
        return sid

    return connect
