"""
Data service layer for league, match and standings operations.

Every function takes the request's AsyncSession explicitly. Writes that must
land together (league + stats rows + schedule; games + match + stats) run
under @transactional.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from league_tracker.core.exceptions import (
    DuplicateLeagueName,
    InvalidLeagueInput,
    InvalidMatchResult,
    LeagueNotFound,
    LeagueSlugTaken,
    MatchNotFound,
)
from league_tracker.database.db import transactional
from league_tracker.database.models import Game, League, Match, Player, PlayerLeagueStats
from league_tracker.services import calculation_service
from league_tracker.services.calculation_service import StatLine
from league_tracker.services.scheduling_service import generate_round_robin, pad_with_bye
from league_tracker.utils.constants import BYE_PLAYER_NAME
from league_tracker.utils.datetime_utils import isoformat_or_none, utcnow
from league_tracker.utils.slugify import slugify, unique_slug

logger = logging.getLogger(__name__)


# ============================================================================
# Serialization helpers
# ============================================================================

def _league_to_dict(league: League) -> Dict:
    return {
        "id": league.id,
        "name": league.name,
        "slug": league.slug,
        "created_at": isoformat_or_none(league.created_at),
    }


def _player_ref(player: Optional[Player]) -> Optional[Dict]:
    if player is None:
        return None
    return {"id": player.id, "name": player.name}


def _game_to_dict(game: Game) -> Dict:
    return {
        "game_number": game.game_number,
        "winner_id": game.winner_id,
        "loser_id": game.loser_id,
        "winner_rounds": game.winner_rounds,
        "loser_rounds": game.loser_rounds,
    }


def _match_to_dict(match: Match) -> Dict:
    """Match payload with both players, recorded games and the series score."""
    home_score, away_score = calculation_service.series_score(
        match.is_completed, match.home_match_points, match.away_match_points
    )
    return {
        "id": match.id,
        "league_id": match.league_id,
        "day": match.day,
        "home_player": _player_ref(match.home_player),
        "away_player": _player_ref(match.away_player),
        "is_completed": match.is_completed,
        "home_match_points": match.home_match_points,
        "away_match_points": match.away_match_points,
        "home_score": home_score,
        "away_score": away_score,
        "match_date": isoformat_or_none(match.match_date),
        "games": [_game_to_dict(game) for game in match.games],
    }


def _standings_row(player: Player, stats) -> Dict:
    """Standings row from a player and a stats-bearing row (Player or PlayerLeagueStats)."""
    row = {"player_id": player.id, "name": player.name}
    for field in StatLine.FIELDS:
        row[field] = getattr(stats, field)
    return row


def _ranked(rows: List[Dict]) -> List[Dict]:
    ordered = calculation_service.sort_standings(rows)
    for rank, row in enumerate(ordered, 1):
        row["rank"] = rank
    return ordered


# ============================================================================
# Players
# ============================================================================

async def get_or_create_player(session: AsyncSession, name: str) -> Player:
    """Get player by name, or create if doesn't exist. Flushes but does not commit."""
    result = await session.execute(select(Player).where(Player.name == name))
    player = result.scalar_one_or_none()
    if player:
        return player

    player = Player(name=name)
    session.add(player)
    await session.flush()  # Get the player ID
    logger.debug(f"Created player {player.id} ({name})")
    return player


# ============================================================================
# Leagues
# ============================================================================

def parse_participants(participants_text: str) -> List[str]:
    """
    Split a newline-separated participant list into trimmed, non-empty names.

    Raises:
        InvalidLeagueInput: fewer than two names, a repeated name, or a name
            reserved for the Bye placeholder.
    """
    names = [line.strip() for line in (participants_text or "").splitlines()]
    names = [name for name in names if name]

    if len(names) < 2:
        raise InvalidLeagueInput("At least two participants are required")

    seen = set()
    for name in names:
        if name.lower() == BYE_PLAYER_NAME.lower():
            raise InvalidLeagueInput(f"'{name}' is reserved and cannot be a participant")
        if name in seen:
            raise InvalidLeagueInput(f"Participant '{name}' is listed more than once")
        seen.add(name)

    return names


@transactional
async def create_league(session: AsyncSession, name: str, participants_text: str) -> Dict:
    """
    Create a league with its participants and full round-robin schedule.

    Players are fetched or created by name, one stats row is created per
    participant (the Bye placeholder included, when the roster is odd) and
    every fixture is inserted as an uncompleted match. All of it commits
    together or not at all.

    Args:
        session: Database session
        name: League name (must be unique)
        participants_text: Newline-separated participant names

    Returns:
        League dict (id, name, slug, created_at) plus participant and match counts

    Raises:
        InvalidLeagueInput: empty name or bad participant list
        DuplicateLeagueName: a league with this name already exists
        LeagueSlugTaken: a concurrent create with a different name took the slug
    """
    name = (name or "").strip()
    if not name:
        raise InvalidLeagueInput("League name cannot be empty")
    names = parse_participants(participants_text)

    existing = await session.execute(select(League.id).where(League.name == name))
    if existing.scalar_one_or_none() is not None:
        raise DuplicateLeagueName(name)

    roster = pad_with_bye(names)
    players = [await get_or_create_player(session, player_name) for player_name in roster]
    bye_id = next((p.id for p in players if p.name == BYE_PLAYER_NAME), None)

    base_slug = slugify(name)
    taken = await session.execute(
        select(League.slug).where(League.slug.like(f"{base_slug}%"))
    )
    slug = unique_slug(base_slug, taken.scalars().all())

    try:
        league = League(name=name, slug=slug)
        session.add(league)
        await session.flush()  # Get the league ID

        session.add_all(
            PlayerLeagueStats(player_id=player.id, league_id=league.id) for player in players
        )

        fixtures = generate_round_robin([player.id for player in players], bye=bye_id)
        session.add_all(
            Match(
                league_id=league.id,
                home_player_id=fixture.home,
                away_player_id=fixture.away,
                day=fixture.day,
                is_completed=False,
                home_match_points=0,
                away_match_points=0,
            )
            for fixture in fixtures
        )
        await session.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent create; the name or the slug collided
        await session.rollback()
        existing = await session.execute(select(League.id).where(League.name == name))
        if existing.scalar_one_or_none() is not None:
            raise DuplicateLeagueName(name) from e
        raise LeagueSlugTaken(slug) from e

    await session.refresh(league)
    logger.info(
        f"Created league {league.id} '{name}' ({slug}): {len(names)} players, "
        f"{len(fixtures)} matches over {len(roster) - 1} days"
    )

    result = _league_to_dict(league)
    result["participant_count"] = len(names)
    result["match_count"] = len(fixtures)
    return result


async def list_leagues(session: AsyncSession) -> List[Dict]:
    """List all leagues, newest first."""
    result = await session.execute(
        select(League).order_by(League.created_at.desc(), League.id.desc())
    )
    return [_league_to_dict(league) for league in result.scalars().all()]


async def get_league(session: AsyncSession, league_id: int) -> Optional[Dict]:
    """Get a league by ID, or None."""
    result = await session.execute(select(League).where(League.id == league_id))
    league = result.scalar_one_or_none()
    return _league_to_dict(league) if league else None


async def get_league_by_slug(session: AsyncSession, slug: str) -> Optional[Dict]:
    """Get a league by slug, or None."""
    result = await session.execute(select(League).where(League.slug == slug))
    league = result.scalar_one_or_none()
    return _league_to_dict(league) if league else None


async def _require_league(session: AsyncSession, league_id: int) -> League:
    result = await session.execute(select(League).where(League.id == league_id))
    league = result.scalar_one_or_none()
    if not league:
        raise LeagueNotFound(league_id)
    return league


# ============================================================================
# Matches
# ============================================================================

def _match_query():
    return select(Match).options(
        selectinload(Match.home_player),
        selectinload(Match.away_player),
        selectinload(Match.games),
    )


async def get_league_matches(session: AsyncSession, league_id: int) -> List[Dict]:
    """
    Get a league's schedule ordered by day.

    Raises:
        LeagueNotFound: league does not exist
    """
    await _require_league(session, league_id)
    result = await session.execute(
        _match_query().where(Match.league_id == league_id).order_by(Match.day, Match.id)
    )
    return [_match_to_dict(match) for match in result.scalars().all()]


async def get_match(session: AsyncSession, match_id: int) -> Optional[Dict]:
    """Get a specific match with its games, or None."""
    result = await session.execute(_match_query().where(Match.id == match_id))
    match = result.scalar_one_or_none()
    return _match_to_dict(match) if match else None


def _validate_game(game_number: int, winner_id: int, winner_rounds: int, loser_rounds: int, player_ids) -> None:
    if winner_id not in player_ids:
        raise InvalidMatchResult(
            f"Invalid winner ID for game {game_number}. Must be one of the match players."
        )
    if winner_rounds < 0 or loser_rounds < 0:
        raise InvalidMatchResult(f"Round counts for game {game_number} cannot be negative")
    if winner_rounds <= loser_rounds:
        raise InvalidMatchResult(
            f"Game {game_number} winner must have won more rounds than the loser "
            f"({winner_rounds}-{loser_rounds})"
        )


def _upsert_game(
    match: Match, game_number: int, winner_id: int, winner_rounds: int, loser_rounds: int
) -> Game:
    """Create or overwrite the match's game with this number."""
    home_id, away_id = match.player_ids
    loser_id = away_id if winner_id == home_id else home_id

    game = next((g for g in match.games if g.game_number == game_number), None)
    if game is None:
        game = Game(game_number=game_number)
        match.games.append(game)

    game.winner_id = winner_id
    game.loser_id = loser_id
    game.winner_rounds = winner_rounds
    game.loser_rounds = loser_rounds
    return game


@transactional
async def submit_match_result(
    session: AsyncSession,
    match_id: int,
    league_id: int,
    game1_winner_id: int,
    game1_winner_rounds: int,
    game1_loser_rounds: int,
    game2_winner_id: int,
    game2_winner_rounds: int,
    game2_loser_rounds: int,
) -> Dict:
    """
    Record (or re-record) the result of a match.

    Validates everything before writing. Then upserts both games, sets the
    match points and completion flag, and recomputes league and global stats
    for both players. Editing a result goes through the same path; since stats
    are recomputed from scratch, the old result is never double counted.

    Returns:
        Updated match dict

    Raises:
        MatchNotFound: match does not exist
        InvalidMatchResult: match is not in the league, a winner is not a match
            player, or the round counts are invalid
    """
    result = await session.execute(_match_query().where(Match.id == match_id))
    match = result.scalar_one_or_none()
    if not match:
        raise MatchNotFound(match_id)
    if match.league_id != league_id:
        raise InvalidMatchResult(f"Match {match_id} does not belong to league {league_id}")

    player_ids = match.player_ids
    _validate_game(1, game1_winner_id, game1_winner_rounds, game1_loser_rounds, player_ids)
    _validate_game(2, game2_winner_id, game2_winner_rounds, game2_loser_rounds, player_ids)

    _upsert_game(match, 1, game1_winner_id, game1_winner_rounds, game1_loser_rounds)
    _upsert_game(match, 2, game2_winner_id, game2_winner_rounds, game2_loser_rounds)

    was_completed = match.is_completed
    match.home_match_points, match.away_match_points = calculation_service.calculate_match_points(
        match.home_player_id, game1_winner_id, game2_winner_id
    )
    match.is_completed = True
    match.match_date = utcnow()
    await session.flush()

    logger.info(
        f"{'Updated' if was_completed else 'Recorded'} result for match {match_id} "
        f"(league {league_id}): {match.home_match_points}-{match.away_match_points}"
    )

    for player_id in player_ids:
        await recalculate_player_stats(session, player_id, league_id)
        await recalculate_player_stats(session, player_id)

    return _match_to_dict(match)


# ============================================================================
# Standings
# ============================================================================

async def _load_completed_matches(
    session: AsyncSession, player_id: int, league_id: Optional[int] = None
) -> List[Match]:
    query = (
        select(Match)
        .options(selectinload(Match.games))
        .where(
            Match.is_completed.is_(True),
            or_(Match.home_player_id == player_id, Match.away_player_id == player_id),
        )
    )
    if league_id is not None:
        query = query.where(Match.league_id == league_id)
    result = await session.execute(query)
    return list(result.scalars().all())


async def recalculate_player_stats(
    session: AsyncSession, player_id: int, league_id: Optional[int] = None
) -> StatLine:
    """
    Recompute one player's statistics line and overwrite the stored row.

    With a league_id the player's PlayerLeagueStats row for that league is
    written; without one the Player's global columns are. Runs inside the
    caller's transaction (flushes, never commits).

    Args:
        session: Database session
        player_id: Player to recompute
        league_id: League scope, or None for all leagues

    Returns:
        The recomputed StatLine
    """
    matches = await _load_completed_matches(session, player_id, league_id)
    stats = calculation_service.accumulate_player_stats(player_id, matches)

    if league_id is not None:
        result = await session.execute(
            select(PlayerLeagueStats).where(
                PlayerLeagueStats.player_id == player_id,
                PlayerLeagueStats.league_id == league_id,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = PlayerLeagueStats(player_id=player_id, league_id=league_id)
            session.add(row)
    else:
        result = await session.execute(select(Player).where(Player.id == player_id))
        row = result.scalar_one_or_none()
        if row is None:
            raise ValueError(f"Player {player_id} not found")

    for field, value in stats.as_dict().items():
        setattr(row, field, value)
    await session.flush()

    logger.debug(
        f"Recalculated {'league ' + str(league_id) if league_id is not None else 'global'} "
        f"stats for player {player_id}: {stats.as_dict()}"
    )
    return stats


@transactional
async def recalculate_league_stats(session: AsyncSession, league_id: int) -> Dict:
    """
    Recompute league and global stats for every participant of a league.

    Returns:
        {"league_id", "player_count", "match_count"}

    Raises:
        LeagueNotFound: league does not exist
    """
    await _require_league(session, league_id)

    result = await session.execute(
        select(PlayerLeagueStats.player_id).where(PlayerLeagueStats.league_id == league_id)
    )
    player_ids = list(result.scalars().all())
    for player_id in player_ids:
        await recalculate_player_stats(session, player_id, league_id)
        await recalculate_player_stats(session, player_id)

    completed = await session.execute(
        select(Match.id).where(Match.league_id == league_id, Match.is_completed.is_(True))
    )
    match_count = len(completed.scalars().all())

    logger.info(
        f"Recalculated league {league_id}: {len(player_ids)} players, {match_count} completed matches"
    )
    return {"league_id": league_id, "player_count": len(player_ids), "match_count": match_count}


async def get_league_standings(session: AsyncSession, league_id: int) -> List[Dict]:
    """
    Get league standings, Bye excluded, ordered by the tie-break rules.

    Raises:
        LeagueNotFound: league does not exist
    """
    await _require_league(session, league_id)
    result = await session.execute(
        select(PlayerLeagueStats, Player)
        .join(Player, PlayerLeagueStats.player_id == Player.id)
        .where(PlayerLeagueStats.league_id == league_id, Player.name != BYE_PLAYER_NAME)
    )
    rows = [_standings_row(player, stats) for stats, player in result.all()]
    return _ranked(rows)


async def get_global_standings(session: AsyncSession) -> List[Dict]:
    """Get all-league standings from each player's global stats, Bye excluded."""
    result = await session.execute(select(Player).where(Player.name != BYE_PLAYER_NAME))
    rows = [_standings_row(player, player) for player in result.scalars().all()]
    return _ranked(rows)
