import asyncio

import pytest

from acto_chat.server.models import ChatKind, Message
from acto_chat.server.reaper import Reaper
from conftest import FakeConnection


@pytest.fixture()
def reaper(presence, chats, store, clock):
    return Reaper(presence, chats, store, asyncio.Lock(), interval=600, idle_threshold=600, clock=clock)


def test_reaps_idle_offline_users_only(reaper, presence, clock):
    alice, bob = FakeConnection("c1"), FakeConnection("c2")
    presence.set_online("alice", alice, "alice", "Alice")
    presence.set_online("bob", bob, "bob", "Bob")
    presence.set_offline(bob)

    clock.advance(599)
    assert reaper.sweep().users == []

    clock.advance(2)
    report = reaper.sweep()
    assert report.users == ["bob"]
    assert presence.lookup("bob") is None
    assert presence.lookup("alice") is not None
    assert presence.search("bob") == []


def test_user_cleanup_leaves_membership_untouched(reaper, presence, chats, clock):
    conn = FakeConnection("c2")
    presence.set_online("bob", conn, "bob", "Bob")
    chats.create_chat("c1", ChatKind.GROUP, "Room", None, ["alice", "bob"], None, "alice")
    presence.set_offline(conn)
    clock.advance(601)

    reaper.sweep()
    assert "bob" in chats.participants_of("c1")


def test_reaps_orphaned_chats_with_their_logs(reaper, chats, store):
    chats.create_chat("c1", ChatKind.GROUP, "Room", None, ["alice"], None, "alice")
    chats.create_chat("c2", ChatKind.GROUP, "Other", None, ["bob"], None, "bob")
    store.open("c1")
    store.open("c2")
    store.append("c1", Message(id="m1", chat_id="c1", sender_id="alice", content="hi"))
    chats.leave("c1", "alice")

    report = reaper.sweep()
    assert report.chats == ["c1"]
    assert "c1" not in chats
    assert "c1" not in store
    assert "c2" in chats


def test_sweep_emits_no_events(reaper, presence, clock):
    watcher, leaver = FakeConnection("c1"), FakeConnection("c2")
    presence.set_online("alice", watcher, "alice", "Alice")
    presence.set_online("bob", leaver, "bob", "Bob")
    presence.set_offline(leaver)
    clock.advance(601)

    reaper.sweep()
    assert watcher.sent == []


@pytest.mark.anyio
async def test_background_loop_sweeps_on_interval(presence, chats, store, clock):
    chats.create_chat("c1", ChatKind.GROUP, "Room", None, ["alice"], None, "alice")
    chats.leave("c1", "alice")
    reaper = Reaper(presence, chats, store, asyncio.Lock(), interval=0.01, idle_threshold=600, clock=clock)

    reaper.start()
    for _ in range(100):
        if "c1" not in chats:
            break
        await asyncio.sleep(0.01)
    await reaper.stop()

    assert "c1" not in chats
