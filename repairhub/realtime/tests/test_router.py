import pytest

from repairhub.realtime.identity import Principal
from repairhub.realtime.registry import ConnectionRegistry
from repairhub.realtime.router import RoomAccessDenied
from repairhub.realtime.router import RoomRouter

from .fakes import FakeTransport


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def router(transport):
    router = RoomRouter(ConnectionRegistry(roles=("user", "admin")))
    router.bind(transport)
    return router


def _connect(router, transport, sid):
    router.registry.register(sid)
    transport.connected.add(sid)


@pytest.mark.asyncio
async def test_attach_mirrors_rooms_into_transport(router, transport):
    await router.attach("s1", Principal(id=1, role="admin"))
    assert transport.rooms["user:1"] == {"s1"}
    assert transport.rooms["role:admin"] == {"s1"}


@pytest.mark.asyncio
async def test_join_and_leave_are_idempotent(router, transport):
    _connect(router, transport, "s1")

    await router.join("s1", "entity:repair:1")
    await router.join("s1", "entity:repair:1")
    assert router.registry.members("entity:repair:1") == {"s1"}

    await router.leave("s1", "entity:repair:1")
    await router.leave("s1", "entity:repair:1")
    assert router.registry.members("entity:repair:1") == frozenset()
    assert transport.rooms["entity:repair:1"] == set()


@pytest.mark.asyncio
async def test_principal_rooms_cannot_be_requested(router, transport):
    _connect(router, transport, "anon")
    await router.attach("s1", Principal(id=1, role="user"))

    with pytest.raises(RoomAccessDenied):
        await router.join("anon", "user:1")
    with pytest.raises(RoomAccessDenied):
        await router.join("s1", "user:2")
    with pytest.raises(RoomAccessDenied):
        await router.join("s1", "role:admin")
    # Rejoining an owned room is harmless
    await router.join("s1", "user:1")


@pytest.mark.asyncio
async def test_unregistered_connection_cannot_join(router):
    with pytest.raises(RoomAccessDenied):
        await router.join("ghost", "entity:repair:1")


@pytest.mark.asyncio
async def test_multicast_reaches_only_members(router, transport):
    for sid in ("a", "b", "c"):
        _connect(router, transport, sid)
    await router.join("a", "entity:order:5")
    await router.join("b", "entity:order:5")

    delivered = await router.multicast("entity:order:5", "order_update", {"id": "5"})

    assert delivered == 2
    assert transport.received("a", "order_update") == [{"id": "5"}]
    assert transport.received("b", "order_update") == [{"id": "5"}]
    assert transport.received("c") == []


@pytest.mark.asyncio
async def test_multicast_to_empty_room_is_silent(router, transport):
    assert await router.multicast("user:99", "new_notification", {}) == 0
    assert transport.emitted == []


@pytest.mark.asyncio
async def test_unbound_router_drops_everything():
    router = RoomRouter(ConnectionRegistry())
    router.registry.attach_principal("s1", Principal(id=1, role="user"))

    assert await router.multicast("user:1", "x", {}) == 0
    assert await router.send_to("s1", "x", {}) is False
    assert await router.broadcast("x", {}) == 0


@pytest.mark.asyncio
async def test_send_to_and_broadcast(router, transport):
    _connect(router, transport, "a")
    _connect(router, transport, "b")

    assert await router.send_to("a", "ping", 1) is True
    assert await router.send_to("zz", "ping", 1) is False
    assert await router.broadcast("maintenance", {"at": "now"}) == 2

    assert transport.received("a") == [1, {"at": "now"}]
    assert transport.received("b") == [{"at": "now"}]


@pytest.mark.asyncio
async def test_drop_forgets_connection(router, transport):
    await router.attach("s1", Principal(id=1, role="user"))
    router.drop("s1")
    assert "s1" not in router.registry
    assert await router.multicast("user:1", "x", {}) == 0
