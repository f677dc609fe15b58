from fastapi import APIRouter, Depends, Query
from typing import List

from ...config import get_settings
from ...database import get_match_store
from ...schemas.scores import LeaderboardRowResponse
from ...services.match_store import MatchRecordStore

router = APIRouter()
settings = get_settings()


@router.get("/", response_model=List[LeaderboardRowResponse])
async def get_leaderboard(
    limit: int = Query(settings.default_list_limit, ge=1, description="Maximum players"),
    store: MatchRecordStore = Depends(get_match_store),
):
    """Aggregate standings, one row per player."""
    return await store.list_leaderboard(limit)
