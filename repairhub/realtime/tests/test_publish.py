import pytest
from asgiref.sync import async_to_sync

from repairhub.realtime import publish
from repairhub.realtime.events.entities import publish_order_update
from repairhub.realtime.events.entities import publish_repair_update
from repairhub.realtime.server import get_server

pytestmark = pytest.mark.django_db


def test_publish_is_noop_before_server_starts(user):
    assert publish.publish_to_user(user.pk, "anything", {}) == 0
    assert publish.broadcast_all("anything", {}) == 0


def test_repair_update_helper(realtime, connect_as, user, technician):
    connect_as("watcher", user)
    connect_as("tech", technician)
    async_to_sync(get_server().router.join)("watcher", "entity:repair:15")

    assert publish_repair_update(15, "ready", note="Pick up at desk") == 1

    (payload,) = realtime.received("watcher", "repair_update")
    assert payload["id"] == "15"
    assert payload["status"] == "ready"
    assert payload["note"] == "Pick up at desk"
    assert realtime.received("tech") == []


def test_order_update_without_watchers(realtime):
    assert publish_order_update(3, "shipped", message="On its way") == 0
    assert realtime.emitted == []


def test_role_and_user_helpers(realtime, connect_as, user, support_admin):
    connect_as("cust", user)
    connect_as("adm", support_admin)

    assert publish.publish_to_role("admin", "new_repair", {"id": 1}) == 1
    assert publish.publish_to_user(user.pk, "order_placed", {"id": 2}) == 1
    assert publish.broadcast_all("maintenance", {"at": "22:00"}) == 2

    assert realtime.received("adm") == [{"id": 1}, {"at": "22:00"}]
    assert realtime.received("cust") == [{"id": 2}, {"at": "22:00"}]
