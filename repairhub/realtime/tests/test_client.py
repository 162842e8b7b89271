import pytest

from repairhub.realtime.client import TYPING_TIMEOUT
from repairhub.realtime.client import RealtimeClient
from repairhub.realtime.client import TypingTracker


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class RecordingSio:
    """Captures what a ``socketio.AsyncClient`` would be asked to do."""

    def __init__(self):
        self.handlers = {}
        self.connected_with = None
        self.emitted = []
        self.calls = []

    def on(self, event, handler=None):
        self.handlers[event] = handler

    async def connect(self, url, **kwargs):
        self.connected_with = (url, kwargs)

    async def disconnect(self):
        self.connected_with = None

    async def emit(self, event, data=None):
        self.emitted.append((event, data))

    async def call(self, event, data=None):
        self.calls.append((event, data))
        return {"ok": True}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return TypingTracker(clock=clock)


@pytest.fixture
def client(tracker):
    return RealtimeClient(
        "http://localhost:8000",
        token="access",  # noqa: S106
        sio=RecordingSio(),
        typing=tracker,
    )


def test_typing_indicator_expires_without_stop(tracker, clock):
    tracker.mark_typing(7)
    clock.now += TYPING_TIMEOUT - 1
    assert tracker.is_typing(7)
    clock.now += 1
    assert not tracker.is_typing(7)
    assert tracker.active() == []


def test_typing_restarts_the_timer(tracker, clock):
    tracker.mark_typing(7)
    clock.now += 2
    tracker.mark_typing(7)
    clock.now += 2
    assert tracker.is_typing("7")


def test_stop_typing_clears_immediately(tracker):
    tracker.mark_typing(7)
    tracker.mark_stopped(7)
    assert not tracker.is_typing(7)
    tracker.mark_stopped(8)


def test_typing_events_drive_tracker(client, tracker):
    client.sio.handlers["user_typing"]({"userId": 3})
    assert tracker.active() == ["3"]
    client.sio.handlers["user_stop_typing"]({"userId": 3})
    assert tracker.active() == []


def test_incoming_message_clears_sender_typing(client, tracker):
    client.sio.handlers["user_typing"]({"userId": 3})
    client.sio.handlers["receive_message"]({"id": 1, "sender": 3, "message": "hi"})

    assert client.messages == [{"id": 1, "sender": 3, "message": "hi"}]
    assert not tracker.is_typing(3)


def test_admin_inbox_events_are_collected(client):
    client.sio.handlers["new_customer_message"]({"id": 2, "sender": 9})
    assert client.messages[-1]["id"] == 2


def test_message_error_is_recorded(client):
    client.sio.handlers["message_error"]({"error": "Invalid receiver"})
    client.sio.handlers["message_error"](None)
    assert client.errors == ["Invalid receiver", "Message error"]


def test_listeners_share_one_socket_handler(client):
    client.on("repair_update", print)
    handler = client.sio.handlers["repair_update"]
    client.on("repair_update", repr)
    assert client.sio.handlers["repair_update"] is handler


@pytest.mark.asyncio
async def test_custom_listener_handler_invokes_callbacks(client):
    seen = []
    client.on("new_notification", seen.append)
    await client.sio.handlers["new_notification"]({"id": 1})
    assert seen == [{"id": 1}]


@pytest.mark.asyncio
async def test_connect_passes_token_and_path(client):
    await client.connect()
    url, kwargs = client.sio.connected_with
    assert url == "http://localhost:8000"
    assert kwargs["auth"] == {"token": "access"}
    assert kwargs["socketio_path"] == "ws/socket.io"


@pytest.mark.asyncio
async def test_outgoing_events(client):
    assert await client.join("repair", 42) == {"ok": True}
    await client.leave("repair", 42)
    await client.send_message(2, "hello")
    await client.typing(2)
    await client.stop_typing(2)

    assert client.sio.calls == [("join_repair", "42"), ("leave_repair", "42")]
    assert client.sio.emitted == [
        ("send_message", {"receiver": 2, "message": "hello"}),
        ("typing", {"receiver": 2}),
        ("stop_typing", {"receiver": 2}),
    ]
