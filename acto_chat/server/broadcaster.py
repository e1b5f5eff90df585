"""Fan-out of events to the live connections of chat participants."""
from typing import Any, Iterable, Optional

from .chats import ChatDirectory
from .logging_config import configure_logging
from .models import Connection
from .presence import PresenceRegistry

logger = configure_logging()


class Broadcaster:
    """Resolves a logical target into connection handles and delivers to them.

    Resolution is always chat directory -> presence registry -> handle.
    Participants without a live connection are skipped; nothing is queued
    for them and nothing is retried. Each method returns how many handles
    the event was handed to.
    """

    def __init__(self, presence: PresenceRegistry, chats: ChatDirectory) -> None:
        self.presence = presence
        self.chats = chats

    def to_participants(
        self, chat_id: str, event: str, payload: Any, exclude_user_id: Optional[str] = None
    ) -> int:
        recipients = [user_id for user_id in self.chats.participants_of(chat_id) if user_id != exclude_user_id]
        return self.to_users(recipients, event, payload)

    def to_users(self, user_ids: Iterable[str], event: str, payload: Any) -> int:
        delivered = 0
        for user_id in user_ids:
            if self.to_user(user_id, event, payload):
                delivered += 1
        return delivered

    def to_user(self, user_id: str, event: str, payload: Any) -> bool:
        connection = self.presence.connection_of(user_id)
        if connection is None:
            return False
        return self.deliver(connection, event, payload)

    def broadcast(self, event: str, payload: Any) -> int:
        delivered = 0
        for connection in self.presence.online_connections():
            if self.deliver(connection, event, payload):
                delivered += 1
        return delivered

    def deliver(self, connection: Connection, event: str, payload: Any) -> bool:
        try:
            connection.send(event, payload)
        except Exception:
            logger.exception("DELIVERY_FAIL connection=%s event=%s", connection.id, event)
            return False
        return True
