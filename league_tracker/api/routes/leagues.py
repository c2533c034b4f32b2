"""League route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from league_tracker.api.routes import limiter, WRITE_RATE_LIMIT, GENERIC_ERROR_DETAIL
from league_tracker.core.exceptions import (
    DuplicateLeagueName,
    InvalidLeagueInput,
    LeagueNotFound,
    LeagueSlugTaken,
)
from league_tracker.database.db import get_db_session
from league_tracker.models.schemas import (
    LeagueCreate,
    LeagueCreateResponse,
    LeagueResponse,
    MatchResponse,
)
from league_tracker.services import data_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/leagues", response_model=LeagueCreateResponse, status_code=201)
@limiter.limit(WRITE_RATE_LIMIT)
async def create_league(
    request: Request,
    payload: LeagueCreate,
    session: AsyncSession = Depends(get_db_session),
):
    """
    Create a league and its full round-robin schedule.

    Request body:
        {
            "name": "Tekken Night",
            "participants": "Alice\\nBob\\nCharlie"   // one name per line
        }

    An odd participant count gets a "Bye" placeholder; its pairings are not
    scheduled. The client redirects to /league/{slug} on success.
    """
    try:
        return await data_service.create_league(
            session=session,
            name=payload.name,
            participants_text=payload.participants,
        )
    except InvalidLeagueInput as e:
        raise HTTPException(status_code=400, detail=f"Error: {str(e)}")
    except DuplicateLeagueName:
        raise HTTPException(status_code=409, detail="Error: A league with this name already exists.")
    except LeagueSlugTaken:
        raise HTTPException(
            status_code=409,
            detail="Error: A league with a similar name was just created. Please try again.",
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create league: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_DETAIL)


@router.get("/api/leagues", response_model=List[LeagueResponse])
async def list_leagues(session: AsyncSession = Depends(get_db_session)):
    """List leagues, newest first."""
    try:
        return await data_service.list_leagues(session)
    except Exception as e:
        logger.error(f"Error listing leagues: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error listing leagues: {str(e)}")


@router.get("/api/leagues/slug/{slug}", response_model=LeagueResponse)
async def get_league_by_slug(slug: str, session: AsyncSession = Depends(get_db_session)):
    """Get a league by its URL slug."""
    try:
        league = await data_service.get_league_by_slug(session, slug)
        if not league:
            raise HTTPException(status_code=404, detail="League not found")
        return league
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error getting league: {str(e)}")


@router.get("/api/leagues/{league_id}", response_model=LeagueResponse)
async def get_league(league_id: int, session: AsyncSession = Depends(get_db_session)):
    """Get a league by id."""
    try:
        league = await data_service.get_league(session, league_id)
        if not league:
            raise HTTPException(status_code=404, detail="League not found")
        return league
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error getting league: {str(e)}")


@router.get("/api/leagues/{league_id}/matches", response_model=List[MatchResponse])
async def get_league_matches(league_id: int, session: AsyncSession = Depends(get_db_session)):
    """
    Get the league's match schedule, ordered by day.

    Each match carries both players, any recorded games (for pre-filling an
    edit form) and the series score.
    """
    try:
        return await data_service.get_league_matches(session, league_id)
    except LeagueNotFound:
        raise HTTPException(status_code=404, detail="League not found")
    except Exception as e:
        logger.error(f"Error getting matches for league {league_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error getting matches: {str(e)}")
