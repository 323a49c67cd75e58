"""Productivity stats route."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from focustools.storage.models import Stats
from focustools.storage.stats import StatsAggregator
from focustools.web.app import get_stats_aggregator

router = APIRouter(tags=["stats"])


@router.get("/stats", response_model=Stats)
async def get_stats(stats: StatsAggregator = Depends(get_stats_aggregator)) -> Stats:
    """Session totals and task completion counts."""
    return await stats.compute()
