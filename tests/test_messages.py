import pytest

from acto_chat.server.errors import UnknownChat
from acto_chat.server.models import Message


def make_message(message_id, chat_id="c1", sender="alice", content="hi"):
    return Message(id=message_id, chat_id=chat_id, sender_id=sender, content=content)


def test_append_requires_open_log(store):
    with pytest.raises(UnknownChat):
        store.append("c1", make_message("m1"))


def test_history_keeps_append_order(store):
    store.open("c1")
    for index in range(5):
        store.append("c1", make_message(f"m{index}", content=str(index)))

    history = store.history("c1")
    assert [message.id for message in history] == ["m0", "m1", "m2", "m3", "m4"]
    assert store.count("c1") == 5


def test_history_of_unknown_chat_is_empty(store):
    assert store.history("nope") == []


def test_history_is_a_copy(store):
    store.open("c1")
    store.append("c1", make_message("m1"))
    store.history("c1").clear()
    assert store.count("c1") == 1


def test_mark_read(store):
    store.open("c1")
    store.append("c1", make_message("m1"))

    assert store.mark_read("c1", "m1", "bob") is True
    assert store.mark_read("c1", "m1", "bob") is True
    assert store.history("c1")[0].read_by == {"bob"}
    assert store.mark_read("c1", "missing", "bob") is False
    assert store.mark_read("missing", "m1", "bob") is False


def test_discard_drops_log(store):
    store.open("c1")
    store.open("c2")
    store.append("c1", make_message("m1"))
    store.append("c2", make_message("m2", chat_id="c2"))

    assert store.total() == 2
    assert store.discard("c1") == 1
    assert store.history("c1") == []
    assert store.total() == 1
    with pytest.raises(UnknownChat):
        store.append("c1", make_message("m3"))
