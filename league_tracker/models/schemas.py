"""
Pydantic models for API request/response validation.
"""

from typing import Optional, List
from pydantic import BaseModel, Field


class LeagueCreate(BaseModel):
    """Request to create a league."""

    name: str = Field(..., max_length=200)
    participants: str  # One participant name per line


class LeagueResponse(BaseModel):
    """League response."""

    id: int
    name: str
    slug: str
    created_at: Optional[str] = None


class LeagueCreateResponse(LeagueResponse):
    """Response from creating a league."""

    participant_count: int
    match_count: int


class PlayerRef(BaseModel):
    """Player id and name."""

    id: int
    name: str


class GameResponse(BaseModel):
    """One recorded game of a match."""

    game_number: int
    winner_id: int
    loser_id: int
    winner_rounds: int
    loser_rounds: int


class MatchResponse(BaseModel):
    """Scheduled or completed match."""

    id: int
    league_id: int
    day: int
    home_player: PlayerRef
    away_player: PlayerRef
    is_completed: bool
    home_match_points: int
    away_match_points: int
    home_score: int  # Games won by the home player (2-0, 1-1, 0-2)
    away_score: int
    match_date: Optional[str] = None
    games: List[GameResponse] = []


class MatchResultRequest(BaseModel):
    """Request to record (or edit) the result of a match."""

    match_id: int
    league_id: int
    game1_winner_id: int
    game1_winner_rounds: int = Field(..., ge=0)
    game1_loser_rounds: int = Field(..., ge=0)
    game2_winner_id: int
    game2_winner_rounds: int = Field(..., ge=0)
    game2_loser_rounds: int = Field(..., ge=0)


class MatchResultResponse(BaseModel):
    """Response from recording a match result."""

    status: str
    message: str
    match: MatchResponse


class StandingsRow(BaseModel):
    """One player's line in a standings table."""

    rank: int
    player_id: int
    name: str
    points: int
    match_wins: int
    match_losses: int
    match_draws: int
    games_won: int
    games_lost: int
    total_rounds_won: int
    total_rounds_lost: int
    round_differential: int


class RecalculateResponse(BaseModel):
    """Result of a full league recalculation."""

    league_id: int
    player_count: int
    match_count: int
