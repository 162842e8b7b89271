from repairhub.realtime.rooms import is_principal_scoped
from repairhub.realtime.rooms import room_for_entity
from repairhub.realtime.rooms import room_for_role
from repairhub.realtime.rooms import room_for_user


def test_room_names():
    assert room_for_user(7) == "user:7"
    assert room_for_role("Admin") == "role:admin"
    assert room_for_entity("repair", 42) == "entity:repair:42"
    assert room_for_entity("Order", " 9 ") == "entity:order:9"


def test_principal_scoped_rooms():
    assert is_principal_scoped("user:1")
    assert is_principal_scoped("role:admin")
    assert not is_principal_scoped("entity:repair:1")
