"""Statistics API router."""

from fastapi import APIRouter

from flashdeck.errors import SchedulingError
from flashdeck.models import DeckStats, HeatmapData, Timeframe
from flashdeck.routers.errors import http_error
from flashdeck.services import StatsAggregator
from flashdeck.store import get_store

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/heatmap", response_model=HeatmapData)
async def get_heatmap(timeframe: Timeframe = "week", deckId: str | None = None) -> HeatmapData:
    """Reviews per day over the last week, month or year."""
    return StatsAggregator(get_store()).get_heatmap(timeframe=timeframe, deck_id=deckId)


@router.get("", response_model=DeckStats)
async def get_stats(deckId: str | None = None) -> DeckStats:
    """Card totals per state and today's activity, for one deck or all."""
    try:
        return StatsAggregator(get_store()).get_deck_stats(deck_id=deckId)
    except SchedulingError as exc:
        raise http_error(exc)
