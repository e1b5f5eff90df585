"""Presence registry: which users exist, which are online and through which connection."""
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from ..shared.utils import match_rank, utc_now
from .config import SEARCH_LIMIT
from .errors import UnknownUser
from .logging_config import configure_logging
from .models import Connection, User

logger = configure_logging()


class PresenceRegistry:
    """Owns every ``User``; other components refer to users by id only.

    A user has at most one live connection. A second ``set_online`` for the
    same id supersedes the previous handle, which from then on receives no
    targeted events and whose later disconnect is ignored.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self._users: Dict[str, User] = {}
        # connection id -> user id, only for connections currently bound to a user
        self._bindings: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._users)

    def set_online(self, user_id: str, connection: Connection, username: str, display_name: str) -> User:
        previous_owner = self._bindings.get(connection.id)
        if previous_owner is not None and previous_owner != user_id:
            self._mark_offline(previous_owner)

        user = self._users.get(user_id)
        if user is None:
            user = User(id=user_id, username=username, display_name=display_name)
            self._users[user_id] = user
        else:
            user.username = username
            user.display_name = display_name
            if user.connection is not None and user.connection.id != connection.id:
                self._bindings.pop(user.connection.id, None)
                logger.info(
                    "CONNECTION_SUPERSEDED user_id=%s old=%s new=%s", user_id, user.connection.id, connection.id
                )

        user.connection = connection
        user.is_online = True
        user.last_seen = self._clock()
        self._bindings[connection.id] = user_id
        return user

    def owner_of(self, connection: Connection) -> Optional[str]:
        """Id of the user currently bound to ``connection``, if any."""
        return self._bindings.get(connection.id)

    def set_offline(self, connection: Connection) -> Optional[str]:
        user_id = self._bindings.get(connection.id)
        if user_id is None:
            return None
        self._mark_offline(user_id)
        return user_id

    def _mark_offline(self, user_id: str) -> None:
        user = self._users[user_id]
        if user.connection is not None:
            self._bindings.pop(user.connection.id, None)
        user.connection = None
        user.is_online = False
        user.last_seen = self._clock()

    def is_online(self, user_id: str) -> bool:
        user = self._users.get(user_id)
        return bool(user and user.is_online)

    def lookup(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def require(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise UnknownUser(user_id)
        return user

    def username_of(self, user_id: str) -> Optional[str]:
        user = self._users.get(user_id)
        return user.username if user else None

    def connection_of(self, user_id: str) -> Optional[Connection]:
        user = self._users.get(user_id)
        if user is None or not user.is_online:
            return None
        return user.connection

    def search(self, query: str, limit: int = SEARCH_LIMIT) -> List[User]:
        """Case-insensitive substring search over username and display name.

        Prefix matches sort before inner matches; ties are broken by user id.
        """
        ranked = []
        for user in self._users.values():
            rank = match_rank(query, user.username, user.display_name)
            if rank is not None:
                ranked.append((rank, user.id, user))
        ranked.sort(key=lambda item: (item[0], item[1]))
        return [user for _, _, user in ranked[:limit]]

    def online_ids(self) -> List[str]:
        return sorted(user_id for user_id, user in self._users.items() if user.is_online)

    def online_connections(self) -> List[Connection]:
        return [user.connection for user in self._users.values() if user.is_online and user.connection is not None]

    def snapshot(self) -> List[User]:
        """Copies of every user, safe to hand to readers outside the lock."""
        return [
            User(
                id=user.id,
                username=user.username,
                display_name=user.display_name,
                is_online=user.is_online,
                last_seen=user.last_seen,
            )
            for user in self._users.values()
        ]

    def idle_users(self, threshold: timedelta, now: Optional[datetime] = None) -> List[str]:
        now = now or self._clock()
        return [
            user_id
            for user_id, user in self._users.items()
            if not user.is_online and now - user.last_seen > threshold
        ]

    def remove(self, user_id: str) -> Optional[User]:
        user = self._users.pop(user_id, None)
        if user is not None and user.connection is not None:
            self._bindings.pop(user.connection.id, None)
        return user
