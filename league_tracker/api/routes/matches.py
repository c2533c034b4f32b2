"""Match result route handlers."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from league_tracker.api.routes import limiter, WRITE_RATE_LIMIT, GENERIC_ERROR_DETAIL
from league_tracker.core.exceptions import InvalidMatchResult, MatchNotFound
from league_tracker.database.db import get_db_session
from league_tracker.models.schemas import MatchResultRequest, MatchResultResponse, MatchResponse
from league_tracker.services import data_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/matches", response_model=MatchResultResponse)
@limiter.limit(WRITE_RATE_LIMIT)
async def submit_match_result(
    request: Request,
    result_request: MatchResultRequest,
    session: AsyncSession = Depends(get_db_session),
):
    """
    Record or edit the result of a match.

    Request body:
        {
            "match_id": 1,
            "league_id": 1,
            "game1_winner_id": 3,
            "game1_winner_rounds": 3,
            "game1_loser_rounds": 1,
            "game2_winner_id": 4,
            "game2_winner_rounds": 3,
            "game2_loser_rounds": 2
        }

    Both winners must be one of the match's two players. Both players'
    standings are recomputed in the same transaction.
    """
    try:
        match = await data_service.submit_match_result(
            session=session,
            match_id=result_request.match_id,
            league_id=result_request.league_id,
            game1_winner_id=result_request.game1_winner_id,
            game1_winner_rounds=result_request.game1_winner_rounds,
            game1_loser_rounds=result_request.game1_loser_rounds,
            game2_winner_id=result_request.game2_winner_id,
            game2_winner_rounds=result_request.game2_winner_rounds,
            game2_loser_rounds=result_request.game2_loser_rounds,
        )
        return {
            "status": "success",
            "message": "Match result recorded successfully!",
            "match": match,
        }
    except MatchNotFound:
        raise HTTPException(status_code=404, detail="Match not found.")
    except InvalidMatchResult as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error submitting match result: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_DETAIL)


@router.get("/api/matches/{match_id}", response_model=MatchResponse)
async def get_match(match_id: int, session: AsyncSession = Depends(get_db_session)):
    """Get a match with its recorded games."""
    try:
        match = await data_service.get_match(session, match_id)
        if not match:
            raise HTTPException(status_code=404, detail="Match not found.")
        return match
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error getting match: {str(e)}")
