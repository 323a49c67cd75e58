"""Service info and health check."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from focustools import __version__
from focustools.storage.database import Database
from focustools.web.app import get_db

router = APIRouter(tags=["info"])


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database_connected: bool
    database_size_mb: float
    integrity_ok: bool


@router.get("/")
async def root(request: Request) -> dict[str, Any]:
    prefix = request.app.state.config.web.api_prefix
    return {
        "message": "FocusTools API",
        "version": __version__,
        "status": "Running",
        "endpoints": {
            "tasks": f"{prefix}/tasks",
            "sessions": f"{prefix}/sessions",
            "stats": f"{prefix}/stats",
            "search": f"{prefix}/tasks/search?q=keyword",
        },
    }


@router.get("/health", response_model=HealthResponse)
async def health(db: Database = Depends(get_db)) -> HealthResponse:
    """API health check."""
    if not db.is_connected:
        return HealthResponse(
            status="unhealthy",
            database_connected=False,
            database_size_mb=0.0,
            integrity_ok=False,
        )

    integrity_ok = await db.check_integrity()
    return HealthResponse(
        status="ok" if integrity_ok else "degraded",
        database_connected=True,
        database_size_mb=round(await db.get_size_mb(), 3),
        integrity_ok=integrity_ok,
    )
