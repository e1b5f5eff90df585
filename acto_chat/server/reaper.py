"""Periodic cleanup of idle users and orphaned chats."""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from ..shared.utils import utc_now
from .chats import ChatDirectory
from .config import CLEANUP_INTERVAL_SECONDS, IDLE_THRESHOLD_SECONDS
from .logging_config import configure_logging
from .messages import MessageStore
from .presence import PresenceRegistry

logger = configure_logging()


@dataclass
class SweepReport:
    users: List[str] = field(default_factory=list)
    chats: List[str] = field(default_factory=list)


class Reaper:
    """Deletes offline users past the idle threshold and chats without participants.

    Deletions are silent: no event reaches any client. Chat membership is
    untouched by user cleanup, so a reaped user stays a participant until an
    explicit leave.
    """

    def __init__(
        self,
        presence: PresenceRegistry,
        chats: ChatDirectory,
        store: MessageStore,
        lock: asyncio.Lock,
        interval: float = CLEANUP_INTERVAL_SECONDS,
        idle_threshold: float = IDLE_THRESHOLD_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.presence = presence
        self.chats = chats
        self.store = store
        self.lock = lock
        self.interval = interval
        self.idle_threshold = timedelta(seconds=idle_threshold)
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    def sweep(self) -> SweepReport:
        """Run one cleanup pass. Callers must hold ``lock``."""
        report = SweepReport()
        now = self._clock()

        for user_id in self.presence.idle_users(self.idle_threshold, now):
            user = self.presence.remove(user_id)
            report.users.append(user_id)
            logger.info("USER_REAPED user_id=%s username=%s", user_id, user.username if user else None)

        for chat_id in self.chats.orphaned():
            chat = self.chats.remove(chat_id)
            dropped = self.store.discard(chat_id)
            report.chats.append(chat_id)
            logger.info(
                "CHAT_REAPED chat_id=%s name=%s messages=%s", chat_id, chat.name if chat else None, dropped
            )
        return report

    async def sweep_locked(self) -> SweepReport:
        async with self.lock:
            return self.sweep()

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep_locked()
            except Exception:
                logger.exception("SWEEP_FAIL")

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())
            logger.info("REAPER_STARTED interval=%s threshold=%s", self.interval, self.idle_threshold)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
