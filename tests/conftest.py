import os
import tempfile
from datetime import datetime, timedelta, timezone

os.environ.setdefault("ACTO_LOG_FILE", os.path.join(tempfile.gettempdir(), "acto_chat_test.log"))

import pytest
from fastapi.testclient import TestClient

from acto_chat.server.chats import ChatDirectory
from acto_chat.server.engine import ChatEngine
from acto_chat.server.main import create_app
from acto_chat.server.messages import MessageStore
from acto_chat.server.presence import PresenceRegistry


class FakeConnection:
    """Connection handle that records every event handed to it."""

    def __init__(self, conn_id):
        self.id = conn_id
        self.sent = []

    def send(self, event, payload):
        self.sent.append((event, payload))

    def events(self, name=None):
        return [payload for event, payload in self.sent if name is None or event == name]

    def names(self):
        return [event for event, _ in self.sent]

    def clear(self):
        self.sent.clear()


class BrokenConnection(FakeConnection):
    def send(self, event, payload):
        raise ConnectionResetError("peer went away")


class Clock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def clock():
    return Clock()


@pytest.fixture()
def presence(clock):
    return PresenceRegistry(clock)


@pytest.fixture()
def chats(clock):
    return ChatDirectory(clock)


@pytest.fixture()
def store():
    return MessageStore()


@pytest.fixture()
def engine(clock):
    return ChatEngine(clock=clock, cleanup_interval=600, idle_threshold=600)



@pytest.fixture()
def client(engine):
    with TestClient(create_app(engine, run_reaper=False)) as test_client:
        yield test_client
