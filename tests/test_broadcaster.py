import pytest

from acto_chat.server.broadcaster import Broadcaster
from acto_chat.server.models import ChatKind
from conftest import BrokenConnection, FakeConnection


@pytest.fixture()
def broadcaster(presence, chats):
    return Broadcaster(presence, chats)


@pytest.fixture()
def room(presence, chats):
    connections = {}
    for user_id in ["alice", "bob", "carol"]:
        connections[user_id] = FakeConnection(f"conn-{user_id}")
        presence.set_online(user_id, connections[user_id], user_id, user_id.title())
    chats.create_chat("c1", ChatKind.GROUP, "Room", None, ["alice", "bob", "dave"], None, "alice")
    return connections


def test_to_participants_excludes_sender_and_skips_offline(broadcaster, room):
    delivered = broadcaster.to_participants("c1", "new-message", {"content": "hi"}, exclude_user_id="alice")

    assert delivered == 1
    assert room["bob"].sent == [("new-message", {"content": "hi"})]
    assert room["alice"].sent == []
    # carol is online but not a participant
    assert room["carol"].sent == []


def test_to_participants_unknown_chat_reaches_nobody(broadcaster, room):
    assert broadcaster.to_participants("missing", "new-message", {}) == 0
    assert all(conn.sent == [] for conn in room.values())


def test_to_user(broadcaster, room):
    assert broadcaster.to_user("carol", "ping", {"n": 1}) is True
    assert broadcaster.to_user("dave", "ping", {"n": 1}) is False
    assert room["carol"].sent == [("ping", {"n": 1})]


def test_broadcast_reaches_every_online_connection(broadcaster, room, presence):
    presence.set_offline(room["carol"])

    assert broadcaster.broadcast("users-online", ["alice", "bob"]) == 2
    assert room["alice"].names() == ["users-online"]
    assert room["bob"].names() == ["users-online"]
    assert room["carol"].sent == []


def test_superseded_connection_gets_no_targeted_events(broadcaster, room, presence):
    replacement = FakeConnection("conn-bob-2")
    presence.set_online("bob", replacement, "bob", "Bob")

    broadcaster.to_participants("c1", "new-message", {"content": "hi"}, exclude_user_id="alice")
    broadcaster.broadcast("users-online", [])

    assert room["bob"].sent == []
    assert replacement.names() == ["new-message", "users-online"]


def test_failing_connection_does_not_stop_fan_out(broadcaster, room, presence):
    presence.set_online("alice", BrokenConnection("conn-broken"), "alice", "Alice")

    assert broadcaster.to_participants("c1", "new-message", {"content": "hi"}) == 1
    assert room["bob"].names() == ["new-message"]
