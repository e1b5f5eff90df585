"""WebSocket endpoint that feeds client frames into the chat engine."""
from fastapi import APIRouter, Depends, WebSocket
from pydantic import ValidationError

from .connections import WebSocketConnection
from .dependencies import get_engine
from .engine import ChatEngine
from .errors import ChatError
from .logging_config import configure_logging
from .schemas import Frame

router = APIRouter(tags=["realtime"])
logger = configure_logging()


async def handle_frame(engine: ChatEngine, connection: WebSocketConnection, raw: str) -> None:
    """Process one client frame; failures are reported to that client only."""
    try:
        frame = Frame.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning("BAD_FRAME connection=%s", connection.id)
        connection.error(None, "bad_frame", exc.errors(include_url=False, include_context=False))
        return

    if not engine.knows(frame.event):
        logger.warning("UNKNOWN_EVENT connection=%s event=%s", connection.id, frame.event)
        connection.error(frame.event, "unknown_event", f"Unsupported event {frame.event!r}")
        return

    try:
        result = await engine.dispatch(connection, frame.event, frame.data)
    except ValidationError as exc:
        logger.warning("INVALID_PAYLOAD connection=%s event=%s", connection.id, frame.event)
        connection.error(frame.event, "invalid_payload", exc.errors(include_url=False, include_context=False))
        return
    except ChatError as exc:
        logger.warning("EVENT_REJECTED connection=%s event=%s reason=%s", connection.id, frame.event, exc.code)
        connection.error(frame.event, exc.code, exc.detail)
        return
    except Exception:
        logger.exception("EVENT_FAIL connection=%s event=%s", connection.id, frame.event)
        connection.error(frame.event, "internal_error", "Event could not be processed")
        return

    if frame.ack is not None:
        connection.reply(frame.ack, result)


@router.websocket("/ws")
async def chat_socket(websocket: WebSocket, engine: ChatEngine = Depends(get_engine)):
    await websocket.accept()
    connection = WebSocketConnection(websocket)
    connection.start()
    logger.info("CONNECT connection=%s", connection.id)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info("DISCONNECT connection=%s", connection.id)
                break
            raw = message.get("text")
            if raw is None:
                logger.warning("BAD_FRAME connection=%s reason=binary", connection.id)
                connection.error(None, "bad_frame", "Only text frames are accepted")
                continue
            await handle_frame(engine, connection, raw)
    finally:
        await engine.disconnect(connection)
        await connection.close()
