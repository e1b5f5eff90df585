"""FastAPI dependencies shared by routers."""
from starlette.requests import HTTPConnection

from .engine import ChatEngine


def get_engine(connection: HTTPConnection) -> ChatEngine:
    """Return the engine attached to the running application."""
    return connection.app.state.engine
