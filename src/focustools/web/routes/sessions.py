"""Session log routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from focustools.storage.models import Session, SessionCreate
from focustools.storage.session_store import SessionStore
from focustools.web.app import get_session_store

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=Session, status_code=201)
async def create_session(
    data: SessionCreate,
    sessions: SessionStore = Depends(get_session_store),
) -> Session:
    """Log a finished or aborted focus interval."""
    return await sessions.create(data)


@router.get("", response_model=list[Session])
async def list_sessions(
    sort_by: str | None = Query(None, alias="sortBy", description="Field name, or 'date'"),
    order: str | None = Query(None, description="asc or desc"),
    sessions: SessionStore = Depends(get_session_store),
) -> list[Session]:
    """All sessions, each joined with its task."""
    return await sessions.list(sort_by=sort_by, order=order)
