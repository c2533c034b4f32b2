"""Standings and recalculation route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from league_tracker.api.routes import limiter, WRITE_RATE_LIMIT, GENERIC_ERROR_DETAIL
from league_tracker.core.exceptions import LeagueNotFound
from league_tracker.database.db import get_db_session
from league_tracker.models.schemas import RecalculateResponse, StandingsRow
from league_tracker.services import data_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/leagues/{league_id}/standings", response_model=List[StandingsRow])
async def get_league_standings(league_id: int, session: AsyncSession = Depends(get_db_session)):
    """
    League standings, "Bye" excluded.

    Ordered by points, then total rounds won, round differential, games won
    (all descending), then games lost (ascending) and name.
    """
    try:
        return await data_service.get_league_standings(session, league_id)
    except LeagueNotFound:
        raise HTTPException(status_code=404, detail="League not found")
    except Exception as e:
        logger.error(f"Error getting standings for league {league_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error getting standings: {str(e)}")


@router.get("/api/standings", response_model=List[StandingsRow])
async def get_global_standings(session: AsyncSession = Depends(get_db_session)):
    """Standings across all leagues, same ordering as league standings."""
    try:
        return await data_service.get_global_standings(session)
    except Exception as e:
        logger.error(f"Error getting global standings: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error getting standings: {str(e)}")


@router.post("/api/leagues/{league_id}/recalculate", response_model=RecalculateResponse)
@limiter.limit(WRITE_RATE_LIMIT)
async def recalculate_league(
    request: Request,
    league_id: int,
    session: AsyncSession = Depends(get_db_session),
):
    """Recompute league and global stats for every participant of the league."""
    try:
        return await data_service.recalculate_league_stats(session, league_id)
    except LeagueNotFound:
        raise HTTPException(status_code=404, detail="League not found")
    except Exception as e:
        logger.error(f"Error recalculating league {league_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_DETAIL)
