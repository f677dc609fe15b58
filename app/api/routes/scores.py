from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List

from ...config import get_settings
from ...database import get_match_store
from ...schemas.scores import ScoreSubmission, ScoreSubmitResponse, MatchScoreResponse
from ...services.errors import TransientPersistenceError, ValidationError
from ...services.match_store import MatchRecordStore

router = APIRouter()
settings = get_settings()


@router.get("/", response_model=List[MatchScoreResponse])
async def list_scores(
    limit: int = Query(settings.default_list_limit, ge=1, description="Maximum rows"),
    store: MatchRecordStore = Depends(get_match_store),
):
    """List individual match scores, best first."""
    return await store.list_top_scores(limit)


@router.get("/player/{player_name}", response_model=List[MatchScoreResponse])
async def list_player_scores(
    player_name: str,
    store: MatchRecordStore = Depends(get_match_store),
):
    """List every match of one player, newest first."""
    return await store.list_player_scores(player_name)


@router.post("/", response_model=ScoreSubmitResponse)
async def submit_score(
    submission: ScoreSubmission,
    store: MatchRecordStore = Depends(get_match_store),
):
    """Save a finished match (every game is saved, regardless of score)."""
    try:
        receipt = await store.submit(submission.to_match_result())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TransientPersistenceError:
        raise HTTPException(status_code=500, detail="Failed to save score")

    return ScoreSubmitResponse(player_id=receipt.player_id, match_id=receipt.match_id)
