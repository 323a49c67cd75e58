"""FastAPI application serving the task, session, and stats API."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from focustools import __version__
from focustools.core.config import Config, get_config
from focustools.storage.database import Database
from focustools.storage.session_store import SessionStore
from focustools.storage.stats import StatsAggregator
from focustools.storage.task_store import TaskStore
from focustools.web.errors import register_exception_handlers

logger = logging.getLogger(__name__)


def get_db(request: Request) -> Database:
    """Database connection opened by the lifespan handler."""
    return request.app.state.db


def get_task_store(request: Request) -> TaskStore:
    return TaskStore(get_db(request))


def get_session_store(request: Request) -> SessionStore:
    return SessionStore(get_db(request))


def get_stats_aggregator(request: Request) -> StatsAggregator:
    return StatsAggregator(get_db(request))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    config: Config = app.state.config
    logger.info("Starting FocusTools API...")

    db = Database(config.db_path)
    await db.connect()
    app.state.db = db

    yield

    await db.close()
    logger.info("API shutdown complete")


def create_app(config: Config | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or get_config()

    app = FastAPI(
        title="FocusTools",
        description="Task list and Pomodoro session API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    from focustools.web.routes import info, sessions, stats, tasks

    prefix = config.web.api_prefix
    app.include_router(info.router)
    app.include_router(tasks.router, prefix=prefix)
    app.include_router(sessions.router, prefix=prefix)
    app.include_router(stats.router, prefix=prefix)

    return app


def run_server(
    config: Config | None = None, host: str | None = None, port: int | None = None
) -> None:
    """Run the API server."""
    import uvicorn

    config = config or get_config()
    host = host or config.web.host
    port = port or config.web.port

    logger.info(f"Starting API at http://{host}:{port}")

    uvicorn.run(create_app(config), host=host, port=port, log_level="info")
