import pytest

from repairhub.realtime.emitter import EventEmitter
from repairhub.realtime.identity import Principal
from repairhub.realtime.registry import ConnectionRegistry
from repairhub.realtime.router import RoomRouter

from .fakes import FakeTransport


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def emitter(transport):
    router = RoomRouter(ConnectionRegistry(roles=("user", "technician", "admin")))
    router.bind(transport)
    return EventEmitter(router)


async def _attach(emitter, transport, sid, principal=None):
    emitter.router.registry.register(sid)
    transport.connected.add(sid)
    if principal is not None:
        await emitter.router.attach(sid, principal)


@pytest.mark.asyncio
async def test_entity_update_reaches_watchers_only(emitter, transport):
    for sid in ("c1", "c2", "c3"):
        await _attach(emitter, transport, sid)
    await emitter.router.join("c1", "entity:repair:R42")
    await emitter.router.join("c2", "entity:repair:R42")

    delivered = await emitter.publish_entity_update(
        "repair",
        "R42",
        {"status": "in_progress", "note": "Parts ordered"},
    )

    assert delivered == 2
    for sid in ("c1", "c2"):
        (payload,) = transport.received(sid, "repair_update")
        assert payload["id"] == "R42"
        assert payload["status"] == "in_progress"
        assert payload["note"] == "Parts ordered"
        assert "timestamp" in payload
    assert transport.received("c3") == []


@pytest.mark.asyncio
async def test_entity_update_requires_status(emitter):
    with pytest.raises(ValueError, match="status"):
        await emitter.publish_entity_update("order", 1, {"message": "shipped"})


@pytest.mark.asyncio
async def test_entity_id_is_not_overridable(emitter, transport):
    await _attach(emitter, transport, "c1")
    await emitter.router.join("c1", "entity:order:7")

    await emitter.publish_entity_update("order", 7, {"status": "shipped", "id": "x"})

    (payload,) = transport.received("c1", "order_update")
    assert payload["id"] == "7"


@pytest.mark.asyncio
async def test_notification_goes_to_every_connection_of_user(emitter, transport):
    principal = Principal(id=4, role="user")
    await _attach(emitter, transport, "tab1", principal)
    await _attach(emitter, transport, "tab2", principal)
    await _attach(emitter, transport, "other", Principal(id=5, role="user"))

    delivered = await emitter.publish_notification(4, {"id": 1, "title": "Hi"})

    assert delivered == 2
    assert transport.received("tab1", "new_notification") == [{"id": 1, "title": "Hi"}]
    assert transport.received("tab2", "new_notification") == [{"id": 1, "title": "Hi"}]
    assert transport.received("other") == []


@pytest.mark.asyncio
async def test_notification_for_offline_user_is_dropped(emitter, transport):
    assert await emitter.publish_notification(99, {"id": 1}) == 0
    assert transport.emitted == []


@pytest.mark.asyncio
async def test_role_and_connection_targets(emitter, transport):
    await _attach(emitter, transport, "adm", Principal(id=1, role="admin"))
    await _attach(emitter, transport, "cust", Principal(id=2, role="user"))

    assert await emitter.publish_to_role("admin", "new_order", {"id": 3}) == 1
    assert await emitter.publish_to_connection("cust", "message_sent", {"id": 4})
    assert await emitter.broadcast_all("maintenance", {"in": 5}) == 2

    assert transport.received("adm") == [{"id": 3}, {"in": 5}]
    assert transport.received("cust") == [{"id": 4}, {"in": 5}]
