"""
FastAPI application for Habit Tracker.

PURPOSE: Build the ASGI app and run it under uvicorn.
AI CONTEXT: All endpoints live on the router in routes.py; this module only
wires them into an app and owns the startup/shutdown log lines.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from ..__version__ import __version__
from ..config import Config
from .routes import router

__all__ = ["create_app", "run_server"]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:  # noqa: ARG001
    """
    Log the version and data directory around the server's lifetime.

    Business context: When a user reports missing habits, the startup line
    tells which storage directory the server actually read.
    """
    logger.info(
        "Habit Tracker starting (v%s, storage: %s)", __version__, Config.get_storage_dir()
    )
    yield
    logger.info("Habit Tracker shutting down")


def create_app() -> FastAPI:
    """
    Build a new Habit Tracker application.

    Returns:
        FastAPI app serving the JSON API under /api, the tracker page and
        its htmx partials, and the year heat-map under /charts.

    Example:
        >>> from fastapi.testclient import TestClient
        >>> client = TestClient(create_app())
        >>> client.get('/api/habits', params={'userId': 'u1'}).status_code
        200
    """
    app = FastAPI(
        title="Habit Tracker",
        description="Habit tracking with week, month and year calendar views",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 8000,
    reload: bool = False,
    log_level: str = "info",
) -> None:
    """
    Serve the app with uvicorn until interrupted.

    uvicorn imports create_app by path (factory=True) so that --reload can
    rebuild the app in its worker process.

    Args:
        host: Bind address; '0.0.0.0' exposes the tracker on the network.
        port: TCP port.
        reload: Restart on source changes.
        log_level: uvicorn log level name.

    Raises:
        OSError: Port already in use.
    """
    uvicorn.run(
        "habit_tracker.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


if __name__ == "__main__":
    run_server()
