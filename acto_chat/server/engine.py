"""Chat engine: applies inbound events to the registries and fans out the results.

Every mutation, and every reaper sweep, runs under a single ``asyncio.Lock``
in arrival order, so each fan-out sees a state no other event has half
applied. Delivery never awaits a client (``Connection.send`` only enqueues),
which keeps the lock hold time independent of slow peers.
"""
import asyncio
import uuid
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel

from ..shared import events
from ..shared.utils import to_iso, utc_now
from . import schemas
from .broadcaster import Broadcaster
from .chats import ChatDirectory
from .config import CLEANUP_INTERVAL_SECONDS, IDLE_THRESHOLD_SECONDS, SEARCH_LIMIT
from .logging_config import configure_logging
from .messages import MessageStore
from .models import Chat, ChatSummary, Connection, Message, User
from .presence import PresenceRegistry
from .reaper import Reaper

logger = configure_logging()

Handler = Callable[[Connection, Any], Awaitable[Any]]


class ChatEngine:
    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        cleanup_interval: float = CLEANUP_INTERVAL_SECONDS,
        idle_threshold: float = IDLE_THRESHOLD_SECONDS,
    ) -> None:
        self.clock = clock
        self.started_at = clock()
        self.lock = asyncio.Lock()
        self.presence = PresenceRegistry(clock)
        self.chats = ChatDirectory(clock)
        self.store = MessageStore()
        self.broadcaster = Broadcaster(self.presence, self.chats)
        self.reaper = Reaper(
            self.presence,
            self.chats,
            self.store,
            self.lock,
            interval=cleanup_interval,
            idle_threshold=idle_threshold,
            clock=clock,
        )
        self._routes: Dict[str, Tuple[Type[BaseModel], Handler]] = {
            events.USER_ONLINE: (schemas.UserOnline, self._user_online_from),
            events.SEND_MESSAGE: (schemas.SendMessage, self._send_message_from),
            events.CREATE_CHAT: (schemas.CreateChat, self._create_chat_from),
            events.JOIN_CHAT: (schemas.Membership, self._join_chat_from),
            events.LEAVE_CHAT: (schemas.Membership, self._leave_chat_from),
            events.SEARCH_USERS: (schemas.SearchUsers, self._search_users_from),
            events.GET_MESSAGES: (schemas.GetMessages, self._get_messages_from),
            events.MARK_AS_READ: (schemas.MarkAsRead, self._mark_read_from),
            events.TYPING: (schemas.Typing, self._typing_from),
        }

    # -- dispatch -------------------------------------------------------

    def knows(self, event: str) -> bool:
        return event in self._routes

    async def dispatch(self, connection: Connection, event: str, data: Any) -> Any:
        """Validate ``data`` for ``event`` and run its handler.

        Raises ``KeyError`` for unknown events, pydantic's ``ValidationError``
        for malformed payloads and ``ChatError`` subclasses for domain failures.
        """
        schema, handler = self._routes[event]
        # search-users and get-messages accept a bare string as their payload
        if isinstance(data, str) and event == events.SEARCH_USERS:
            data = {"query": data}
        elif isinstance(data, str) and event == events.GET_MESSAGES:
            data = {"chatId": data}
        payload = schema.model_validate(data if data is not None else {})
        return await handler(connection, payload)

    # -- presence -------------------------------------------------------

    async def user_online(self, connection: Connection, payload: schemas.UserOnline) -> User:
        async with self.lock:
            displaced = self.presence.owner_of(connection)
            user = self.presence.set_online(payload.user_id, connection, payload.username, payload.display_name)
            logger.info("USER_ONLINE user_id=%s username=%s", user.id, user.username)
            if displaced is not None and displaced != user.id:
                # the connection switched identity, so its previous user is now offline
                logger.info("USER_OFFLINE user_id=%s reason=connection_rebound", displaced)
                self._announce_offline(displaced)
            self.broadcaster.broadcast(events.USERS_ONLINE, self.presence.online_ids())
            return user

    async def disconnect(self, connection: Connection) -> Optional[str]:
        async with self.lock:
            user_id = self.presence.set_offline(connection)
            if user_id is None:
                return None
            user = self.presence.lookup(user_id)
            logger.info("USER_OFFLINE user_id=%s username=%s", user_id, user.username)
            self.broadcaster.broadcast(events.USERS_ONLINE, self.presence.online_ids())
            self._announce_offline(user_id)
            return user_id

    def _announce_offline(self, user_id: str) -> None:
        user = self.presence.require(user_id)
        self.broadcaster.broadcast(events.USER_OFFLINE, {"userId": user_id, "lastSeen": to_iso(user.last_seen)})

    # -- messages -------------------------------------------------------

    async def send_message(self, payload: schemas.SendMessage) -> Message:
        async with self.lock:
            message = Message(
                id=payload.id or uuid.uuid4().hex,
                chat_id=payload.chat_id,
                sender_id=payload.sender_id,
                sender_username=payload.sender_username or self.presence.username_of(payload.sender_id),
                content=payload.content,
                sent_at=self.clock(),
            )
            self.store.append(payload.chat_id, message)
            logger.info(
                "MESSAGE_SENT chat_id=%s sender_id=%s message_id=%s", message.chat_id, message.sender_id, message.id
            )
            self.broadcaster.to_participants(
                message.chat_id, events.NEW_MESSAGE, message.to_payload(), exclude_user_id=message.sender_id
            )
            return message

    async def get_messages(self, chat_id: str) -> List[Message]:
        async with self.lock:
            return self.store.history(chat_id)

    async def mark_read(self, payload: schemas.MarkAsRead) -> bool:
        async with self.lock:
            if not self.store.mark_read(payload.chat_id, payload.message_id, payload.user_id):
                return False
            self.broadcaster.to_participants(
                payload.chat_id,
                events.MESSAGE_READ,
                {"chatId": payload.chat_id, "messageId": payload.message_id, "readBy": payload.user_id},
                exclude_user_id=payload.user_id,
            )
            return True

    async def typing(self, payload: schemas.Typing) -> int:
        async with self.lock:
            typist = self.presence.require(payload.user_id)
            return self.broadcaster.to_participants(
                payload.chat_id,
                events.USER_TYPING,
                {
                    "chatId": payload.chat_id,
                    "userId": payload.user_id,
                    "username": typist.username,
                    "isTyping": payload.is_typing,
                },
                exclude_user_id=payload.user_id,
            )

    # -- chats ----------------------------------------------------------

    async def create_chat(self, payload: schemas.CreateChat) -> Chat:
        async with self.lock:
            chat = self.chats.create_chat(
                payload.id,
                payload.kind,
                payload.name,
                payload.description,
                payload.participants,
                payload.admins,
                payload.creator_id,
            )
            self.store.open(chat.id)
            logger.info("CHAT_CREATED chat_id=%s name=%s type=%s", chat.id, chat.name, chat.kind.value)
            self.broadcaster.to_participants(chat.id, events.CHAT_CREATED, chat.to_payload())
            return chat

    async def join_chat(self, chat_id: str, user_id: str) -> bool:
        async with self.lock:
            if not self.chats.join(chat_id, user_id):
                return False
            logger.info("CHAT_JOIN chat_id=%s user_id=%s", chat_id, user_id)
            self.broadcaster.to_participants(chat_id, events.USER_JOINED_CHAT, self._membership(chat_id, user_id))
            return True

    async def leave_chat(self, chat_id: str, user_id: str) -> bool:
        async with self.lock:
            if not self.chats.leave(chat_id, user_id):
                return False
            logger.info("CHAT_LEAVE chat_id=%s user_id=%s", chat_id, user_id)
            payload = self._membership(chat_id, user_id)
            self.broadcaster.to_participants(chat_id, events.USER_LEFT_CHAT, payload)
            self.broadcaster.to_user(user_id, events.USER_LEFT_CHAT, payload)
            if self.chats.require(chat_id).orphaned:
                logger.info("CHAT_ORPHANED chat_id=%s", chat_id)
            return True

    def _membership(self, chat_id: str, user_id: str) -> Dict[str, Any]:
        return {"chatId": chat_id, "userId": user_id, "username": self.presence.username_of(user_id)}

    # -- users ----------------------------------------------------------

    async def search_users(self, query: str, limit: int = SEARCH_LIMIT) -> List[User]:
        async with self.lock:
            return self.presence.search(query, limit)

    # -- reports (snapshots, no lock needed on a single event loop) -----

    def users_snapshot(self) -> List[User]:
        return self.presence.snapshot()

    def chat_summaries(self) -> List[ChatSummary]:
        return self.chats.list_chats(self.store.count)

    def stats(self) -> Dict[str, int]:
        return {
            "total_users": len(self.presence),
            "online_users": len(self.presence.online_ids()),
            "total_chats": len(self.chats),
            "total_messages": self.store.total(),
        }

    def uptime_seconds(self) -> int:
        return int((self.clock() - self.started_at).total_seconds())

    # -- frame adapters -------------------------------------------------

    async def _user_online_from(self, connection: Connection, payload: schemas.UserOnline) -> Dict[str, Any]:
        return (await self.user_online(connection, payload)).public()

    async def _send_message_from(self, connection: Connection, payload: schemas.SendMessage) -> Dict[str, Any]:
        return (await self.send_message(payload)).to_payload()

    async def _create_chat_from(self, connection: Connection, payload: schemas.CreateChat) -> Dict[str, Any]:
        return (await self.create_chat(payload)).to_payload()

    async def _join_chat_from(self, connection: Connection, payload: schemas.Membership) -> bool:
        return await self.join_chat(payload.chat_id, payload.user_id)

    async def _leave_chat_from(self, connection: Connection, payload: schemas.Membership) -> bool:
        return await self.leave_chat(payload.chat_id, payload.user_id)

    async def _search_users_from(self, connection: Connection, payload: schemas.SearchUsers) -> List[Dict[str, Any]]:
        return [user.public() for user in await self.search_users(payload.query)]

    async def _get_messages_from(self, connection: Connection, payload: schemas.GetMessages) -> List[Dict[str, Any]]:
        return [message.to_payload() for message in await self.get_messages(payload.chat_id)]

    async def _mark_read_from(self, connection: Connection, payload: schemas.MarkAsRead) -> bool:
        return await self.mark_read(payload)

    async def _typing_from(self, connection: Connection, payload: schemas.Typing) -> int:
        return await self.typing(payload)
