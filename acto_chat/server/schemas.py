"""Pydantic schemas for WebSocket event payloads and HTTP report bodies."""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import ChatKind


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class UserOnline(CamelModel):
    user_id: str = Field(..., alias="userId", min_length=1)
    username: str
    display_name: str = Field(..., alias="displayName")


class SendMessage(CamelModel):
    chat_id: str = Field(..., alias="chatId")
    sender_id: str = Field(..., alias="senderId")
    sender_username: Optional[str] = Field(default=None, alias="senderUsername")
    content: str
    id: Optional[str] = None


class CreateChat(CamelModel):
    id: str = Field(..., min_length=1)
    kind: ChatKind = Field(..., alias="type")
    name: str
    description: Optional[str] = None
    participants: List[str]
    admins: Optional[List[str]] = None
    creator_id: str = Field(..., alias="creatorId")


class Membership(CamelModel):
    chat_id: str = Field(..., alias="chatId")
    user_id: str = Field(..., alias="userId")


class SearchUsers(CamelModel):
    query: str = ""


class GetMessages(CamelModel):
    chat_id: str = Field(..., alias="chatId")


class MarkAsRead(CamelModel):
    chat_id: str = Field(..., alias="chatId")
    user_id: str = Field(..., alias="userId")
    message_id: str = Field(..., alias="messageId")


class Typing(CamelModel):
    chat_id: str = Field(..., alias="chatId")
    user_id: str = Field(..., alias="userId")
    is_typing: bool = Field(..., alias="isTyping")


class Frame(BaseModel):
    """Envelope of every client frame."""

    event: str
    data: Any = None
    ack: Optional[int] = None


class UserOut(CamelModel):
    id: str
    username: str
    display_name: str = Field(..., alias="displayName")
    is_online: bool = Field(..., alias="isOnline")
    last_seen: datetime = Field(..., alias="lastSeen")


class ChatSummaryOut(CamelModel):
    id: str
    kind: ChatKind = Field(..., alias="type")
    name: str
    participant_count: int = Field(..., alias="participantCount")
    message_count: int = Field(..., alias="messageCount")


class StatsOut(CamelModel):
    total_users: int = Field(..., alias="totalUsers")
    online_users: int = Field(..., alias="onlineUsers")
    total_chats: int = Field(..., alias="totalChats")
    total_messages: int = Field(..., alias="totalMessages")


class HealthOut(BaseModel):
    status: str
    uptime: int
    timestamp: datetime
    memory: dict
    connections: int


class BannerOut(CamelModel):
    message: str
    version: str
    users: int
    chats: int
    online_users: int = Field(..., alias="onlineUsers")
    endpoints: dict
