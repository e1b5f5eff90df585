"""FastAPI application entrypoint for the ACTO chat server."""
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import gateway, reports
from .config import HOST, PORT, SERVER_NAME, SERVER_VERSION
from .engine import ChatEngine
from .logging_config import configure_logging

logger = configure_logging()


def create_app(engine: Optional[ChatEngine] = None, run_reaper: bool = True) -> FastAPI:
    engine = engine or ChatEngine()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if run_reaper:
            engine.reaper.start()
        logger.info("SERVER_START name=%s version=%s", SERVER_NAME, SERVER_VERSION)
        try:
            yield
        finally:
            await engine.reaper.stop()
            logger.info("SERVER_STOP")

    app = FastAPI(title=SERVER_NAME, version=SERVER_VERSION, lifespan=lifespan)
    app.state.engine = engine
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(reports.router)
    app.include_router(gateway.router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("acto_chat.server.main:app", host=HOST, port=PORT, reload=False)
