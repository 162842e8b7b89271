import pytest
from rest_framework import status
from rest_framework.test import APIClient

from repairhub.chat.models import ChatMessage
from repairhub.chat.services import create_message
from repairhub.realtime.identity import Principal

pytestmark = pytest.mark.django_db


def api_for(user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=user)
    return client


def test_send_persists_and_pushes_after_commit(
    realtime,
    connect_as,
    user,
    support_admin,
    django_capture_on_commit_callbacks,
):
    connect_as("admin-tab", support_admin)
    connect_as("customer-tab", user)

    with django_capture_on_commit_callbacks(execute=True):
        res = api_for(user).post(
            "/api/v1/chat/send/",
            {"receiver": support_admin.pk, "message": "Is my laptop ready?"},
            format="json",
        )

    assert res.status_code == status.HTTP_201_CREATED
    assert res.data["message"]["sender_role"] == "user"
    assert ChatMessage.objects.count() == 1
    (pushed,) = realtime.received("admin-tab", "receive_message")
    assert pushed["id"] == res.data["message"]["id"]
    assert len(realtime.received("admin-tab", "new_customer_message")) == 1
    # No socket sid on the REST path, so the ack goes to the sender's user room
    assert len(realtime.received("customer-tab", "message_sent")) == 1


def test_send_without_listeners_still_persists(user, support_admin):
    res = api_for(user).post(
        "/api/v1/chat/send/",
        {"receiver": support_admin.pk, "message": "hello"},
        format="json",
    )
    assert res.status_code == status.HTTP_201_CREATED
    assert ChatMessage.objects.count() == 1


def test_send_validation_errors(user):
    client = api_for(user)

    res = client.post("/api/v1/chat/send/", {"receiver": user.pk, "message": "x"})
    assert res.status_code == status.HTTP_400_BAD_REQUEST
    assert res.data["detail"] == "Cannot send a message to yourself"

    res = client.post("/api/v1/chat/send/", {"receiver": 9999, "message": "x"})
    assert res.status_code == status.HTTP_400_BAD_REQUEST
    assert res.data["detail"] == "Invalid receiver"

    res = client.post("/api/v1/chat/send/", {"receiver": 2})
    assert res.status_code == status.HTTP_400_BAD_REQUEST


def test_send_requires_authentication(support_admin):
    res = APIClient().post(
        "/api/v1/chat/send/",
        {"receiver": support_admin.pk, "message": "x"},
    )
    assert res.status_code == status.HTTP_401_UNAUTHORIZED


def test_thread_and_unread_count(user, support_admin):
    create_message(Principal.from_user(user), support_admin.pk, "one")
    create_message(Principal.from_user(user), support_admin.pk, "two")
    client = api_for(support_admin)

    assert client.get("/api/v1/chat/unread-count/").data == {"count": 2}

    res = client.get(f"/api/v1/chat/messages/{user.pk}/", {"limit": 1})
    assert res.status_code == status.HTTP_200_OK
    assert [m["message"] for m in res.data["messages"]] == ["two"]

    # Opening the thread marked both as read
    assert client.get("/api/v1/chat/unread-count/").data == {"count": 0}


def test_thread_rejects_bad_limit(user, support_admin):
    res = api_for(user).get(f"/api/v1/chat/messages/{support_admin.pk}/?limit=x")
    assert res.status_code == status.HTTP_400_BAD_REQUEST


def test_conversations_listing(user, support_admin):
    create_message(Principal.from_user(user), support_admin.pk, "hi")

    res = api_for(support_admin).get("/api/v1/chat/conversations/")

    assert res.status_code == status.HTTP_200_OK
    (conversation,) = res.data["conversations"]
    assert conversation["partner"]["id"] == user.pk
    assert conversation["last_message"]["message"] == "hi"
    assert conversation["unread_count"] == 1


def test_support_admin_lookup(user):
    client = api_for(user)
    assert client.get("/api/v1/chat/support-admin/").status_code == 404


def test_support_admin_found(user, support_admin):
    res = api_for(user).get("/api/v1/chat/support-admin/")
    assert res.data == {"admin": {"id": support_admin.pk, "name": "Support Desk"}}


def test_delete_conversation_permissions(user, support_admin):
    create_message(Principal.from_user(user), support_admin.pk, "hi")
    url = f"/api/v1/chat/conversations/{user.pk}/"

    assert api_for(user).delete(url).status_code == status.HTTP_403_FORBIDDEN
    assert api_for(support_admin).delete(url).status_code == status.HTTP_204_NO_CONTENT
    assert ChatMessage.objects.count() == 0
    # Repeating the delete is a no-op
    assert api_for(support_admin).delete(url).status_code == status.HTTP_204_NO_CONTENT
    assert ChatMessage.objects.count() == 0
