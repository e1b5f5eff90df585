"""WebSocket connection handles with a non-blocking outbound queue."""
import asyncio
import uuid
from typing import Any, Dict, Optional

from fastapi import WebSocket

from ..shared import events
from .config import OUTBOX_SIZE
from .logging_config import configure_logging

logger = configure_logging()


class WebSocketConnection:
    """Connection handle handed to the presence registry.

    ``send`` only enqueues; a per-connection writer task drains the queue to
    the socket. A client that stops reading fills its queue and loses events
    instead of stalling the engine.
    """

    def __init__(self, websocket: WebSocket, outbox_size: int = OUTBOX_SIZE) -> None:
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self._outbox: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue(maxsize=outbox_size)
        self._writer: Optional[asyncio.Task] = None

    def send(self, event: str, payload: Any) -> None:
        self._enqueue({"event": event, "data": payload})

    def reply(self, ack: int, payload: Any) -> None:
        self._enqueue({"event": events.ACK, "ack": ack, "data": payload})

    def error(self, event: Optional[str], code: str, detail: Any) -> None:
        self.send(events.ERROR, {"event": event, "code": code, "detail": detail})

    def _enqueue(self, frame: Dict[str, Any]) -> None:
        try:
            self._outbox.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning("OUTBOX_FULL connection=%s event=%s dropped", self.id, frame["event"])

    def start(self) -> None:
        self._writer = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while True:
            frame = await self._outbox.get()
            try:
                await self.websocket.send_json(frame)
            except Exception:
                logger.warning("SEND_FAIL connection=%s event=%s", self.id, frame["event"])
                return

    async def close(self) -> None:
        if self._writer is None:
            return
        self._writer.cancel()
        try:
            await self._writer
        except asyncio.CancelledError:
            pass
        self._writer = None
