"""Read-only reporting routes over the engine's registries."""
import resource
import sys
from typing import Dict, List

from fastapi import APIRouter, Depends

from ..shared.utils import utc_now
from . import schemas
from .config import SERVER_NAME, SERVER_VERSION
from .dependencies import get_engine
from .engine import ChatEngine

router = APIRouter(tags=["reports"])


@router.get("/", response_model=schemas.BannerOut)
def root(engine: ChatEngine = Depends(get_engine)):
    stats = engine.stats()
    return schemas.BannerOut(
        message=f"{SERVER_NAME} is running!",
        version=SERVER_VERSION,
        users=stats["total_users"],
        chats=stats["total_chats"],
        online_users=stats["online_users"],
        endpoints={"health": "/health", "stats": "/stats", "users": "/users", "chats": "/chats", "socket": "/ws"},
    )


def memory_usage() -> Dict[str, int]:
    """Peak resident set size of the server process, in bytes."""
    usage = resource.getrusage(resource.RUSAGE_SELF)
    # ru_maxrss is reported in kilobytes on Linux and in bytes on macOS
    scale = 1 if sys.platform == "darwin" else 1024
    return {"maxRss": usage.ru_maxrss * scale}


@router.get("/health", response_model=schemas.HealthOut)
def health(engine: ChatEngine = Depends(get_engine)):
    return schemas.HealthOut(
        status="healthy",
        uptime=engine.uptime_seconds(),
        timestamp=utc_now(),
        memory=memory_usage(),
        connections=engine.stats()["online_users"],
    )


@router.get("/stats", response_model=schemas.StatsOut)
def stats(engine: ChatEngine = Depends(get_engine)):
    return schemas.StatsOut(**engine.stats())


@router.get("/users", response_model=List[schemas.UserOut])
def list_users(engine: ChatEngine = Depends(get_engine)):
    return [
        schemas.UserOut(
            id=user.id,
            username=user.username,
            display_name=user.display_name,
            is_online=user.is_online,
            last_seen=user.last_seen,
        )
        for user in engine.users_snapshot()
    ]


@router.get("/chats", response_model=List[schemas.ChatSummaryOut])
def list_chats(engine: ChatEngine = Depends(get_engine)):
    return [
        schemas.ChatSummaryOut(
            id=summary.id,
            kind=summary.kind,
            name=summary.name,
            participant_count=summary.participant_count,
            message_count=summary.message_count,
        )
        for summary in engine.chat_summaries()
    ]
