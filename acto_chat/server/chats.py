"""Chat directory: chat metadata and membership."""
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from ..shared.utils import utc_now
from .errors import InvalidChat, UnknownChat
from .models import Chat, ChatKind, ChatSummary


class ChatDirectory:
    """Owns chat metadata only; message bodies live in ``MessageStore``.

    Emptying a chat never deletes it. The chat stays in the directory as
    orphaned until the reaper removes it, so an in-flight send or read that
    raced the last ``leave`` still finds it.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self._chats: Dict[str, Chat] = {}

    def __len__(self) -> int:
        return len(self._chats)

    def __contains__(self, chat_id: str) -> bool:
        return chat_id in self._chats

    def create_chat(
        self,
        chat_id: str,
        kind: ChatKind,
        name: str,
        description: Optional[str],
        participant_ids: Iterable[str],
        admin_ids: Optional[Iterable[str]],
        owner_id: str,
    ) -> Chat:
        if chat_id in self._chats:
            raise InvalidChat(f"Chat {chat_id!r} already exists")
        participants = dict.fromkeys(participant_ids)
        if not participants:
            raise InvalidChat("A chat needs at least one participant")
        participants.setdefault(owner_id)
        try:
            kind = ChatKind(kind)
        except ValueError:
            raise InvalidChat(f"Unknown chat type {kind!r}") from None
        if kind is ChatKind.DIRECT and len(participants) != 2:
            raise InvalidChat("A direct chat has exactly two participants")

        admins = dict.fromkeys(admin_ids) if admin_ids else {}
        admins.setdefault(owner_id)

        chat = Chat(
            id=chat_id,
            kind=kind,
            name=name,
            owner=owner_id,
            description=description,
            participants=participants,
            admins=admins,
            created_at=self._clock(),
        )
        self._chats[chat_id] = chat
        return chat

    def get(self, chat_id: str) -> Optional[Chat]:
        return self._chats.get(chat_id)

    def require(self, chat_id: str) -> Chat:
        chat = self._chats.get(chat_id)
        if chat is None:
            raise UnknownChat(chat_id)
        return chat

    def participants_of(self, chat_id: str) -> List[str]:
        chat = self._chats.get(chat_id)
        return chat.participant_ids() if chat else []

    def join(self, chat_id: str, user_id: str) -> bool:
        chat = self._chats.get(chat_id)
        if chat is None or user_id in chat.participants:
            return False
        chat.participants[user_id] = None
        return True

    def leave(self, chat_id: str, user_id: str) -> bool:
        chat = self._chats.get(chat_id)
        if chat is None or user_id not in chat.participants:
            return False
        del chat.participants[user_id]
        return True

    def orphaned(self) -> List[str]:
        return [chat_id for chat_id, chat in self._chats.items() if chat.orphaned]

    def remove(self, chat_id: str) -> Optional[Chat]:
        return self._chats.pop(chat_id, None)

    def list_chats(self, count_messages: Callable[[str], int] = lambda chat_id: 0) -> List[ChatSummary]:
        return [
            ChatSummary(
                id=chat.id,
                kind=chat.kind,
                name=chat.name,
                participant_count=len(chat.participants),
                message_count=count_messages(chat.id),
            )
            for chat in list(self._chats.values())
        ]
