"""In-memory domain models for the chat server."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Set

from ..shared.utils import to_iso, utc_now


class Connection(Protocol):
    """A live, addressable client connection.

    ``send`` must not block: it hands the event to the transport and returns.
    """

    id: str

    def send(self, event: str, payload: Any) -> None:
        ...


class ChatKind(str, Enum):
    DIRECT = "direct"
    GROUP = "group"


@dataclass
class User:
    id: str
    username: str
    display_name: str
    connection: Optional[Connection] = None
    is_online: bool = False
    last_seen: datetime = field(default_factory=utc_now)

    def public(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "displayName": self.display_name,
            "isOnline": self.is_online,
        }


@dataclass
class Chat:
    id: str
    kind: ChatKind
    name: str
    owner: str
    description: Optional[str] = None
    # dicts keep insertion order and uniqueness for membership sets
    participants: Dict[str, None] = field(default_factory=dict)
    admins: Dict[str, None] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)

    @property
    def orphaned(self) -> bool:
        return not self.participants

    def participant_ids(self) -> List[str]:
        return list(self.participants)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind.value,
            "name": self.name,
            "description": self.description,
            "participants": list(self.participants),
            "admins": list(self.admins),
            "owner": self.owner,
            "createdAt": to_iso(self.created_at),
        }


@dataclass
class Message:
    id: str
    chat_id: str
    sender_id: str
    content: str
    sender_username: Optional[str] = None
    sent_at: datetime = field(default_factory=utc_now)
    read_by: Set[str] = field(default_factory=set)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "chatId": self.chat_id,
            "senderId": self.sender_id,
            "senderUsername": self.sender_username,
            "content": self.content,
            "timestamp": to_iso(self.sent_at),
            "readBy": sorted(self.read_by),
        }


@dataclass
class ChatSummary:
    id: str
    kind: ChatKind
    name: str
    participant_count: int
    message_count: int
