"""Append-only per-chat message logs."""
from typing import Dict, List

from .errors import UnknownChat
from .models import Message


class MessageStore:
    def __init__(self) -> None:
        self._logs: Dict[str, List[Message]] = {}
        self._index: Dict[str, Dict[str, Message]] = {}

    def __contains__(self, chat_id: str) -> bool:
        return chat_id in self._logs

    def open(self, chat_id: str) -> None:
        """Initialize an empty log; a chat must be opened before anything is appended."""
        self._logs.setdefault(chat_id, [])
        self._index.setdefault(chat_id, {})

    def append(self, chat_id: str, message: Message) -> None:
        log = self._logs.get(chat_id)
        if log is None:
            raise UnknownChat(chat_id)
        log.append(message)
        self._index[chat_id][message.id] = message

    def history(self, chat_id: str) -> List[Message]:
        # Unknown chats yield an empty history: a reader may race the reaper.
        return list(self._logs.get(chat_id, ()))

    def mark_read(self, chat_id: str, message_id: str, reader_id: str) -> bool:
        message = self._index.get(chat_id, {}).get(message_id)
        if message is None:
            return False
        message.read_by.add(reader_id)
        return True

    def count(self, chat_id: str) -> int:
        return len(self._logs.get(chat_id, ()))

    def total(self) -> int:
        return sum(len(log) for log in self._logs.values())

    def discard(self, chat_id: str) -> int:
        """Drop a chat's log; returns how many messages went with it."""
        self._index.pop(chat_id, None)
        return len(self._logs.pop(chat_id, ()))
