import pytest

from repairhub.users.models import User
from repairhub.users.tests.factories import create_user

pytestmark = pytest.mark.django_db


def test_name_defaults_from_first_and_last():
    user = create_user("jd", first_name="Jane", last_name="Doe")
    assert user.name == "Jane Doe"
    assert user.role == User.Role.USER


def test_directory_entry_falls_back_to_username(user):
    assert user.directory_entry() == {
        "id": user.pk,
        "name": "customer",
        "email": "customer@example.com",
        "role": "user",
    }


def test_admin_role_flag(support_admin, technician):
    assert support_admin.is_admin_role
    assert not technician.is_admin_role
