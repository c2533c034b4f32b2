"""
Standings calculation service.
Derives match points from game winners and recomputes a player's statistics
line from that player's completed matches.
"""

import logging
from typing import Dict, Iterable, Tuple

from league_tracker.utils.constants import (
    MATCH_POINTS_WIN,
    MATCH_POINTS_DRAW,
    MATCH_POINTS_LOSS,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Match Result Helpers
# ============================================================================

def calculate_match_points(
    home_player_id: int, game1_winner_id: int, game2_winner_id: int
) -> Tuple[int, int]:
    """
    Derive (home, away) match points from the winners of the two games.

    Both games to one player -> 3/0 for that player; one game each -> 1/1.
    A match is always two games, so there is no other outcome.

    Args:
        home_player_id: ID of the match's home player
        game1_winner_id: Winner of game 1 (home or away player)
        game2_winner_id: Winner of game 2 (home or away player)

    Returns:
        Tuple of (home_match_points, away_match_points)
    """
    home_won_game1 = game1_winner_id == home_player_id
    home_won_game2 = game2_winner_id == home_player_id

    if home_won_game1 and home_won_game2:
        return MATCH_POINTS_WIN, MATCH_POINTS_LOSS
    if not home_won_game1 and not home_won_game2:
        return MATCH_POINTS_LOSS, MATCH_POINTS_WIN
    return MATCH_POINTS_DRAW, MATCH_POINTS_DRAW


def series_score(is_completed: bool, home_match_points: int, away_match_points: int) -> Tuple[int, int]:
    """Games won by each side (2-0, 1-1, 0-2), or 0-0 for a match without a result."""
    if not is_completed:
        return 0, 0
    if home_match_points == MATCH_POINTS_WIN:
        return 2, 0
    if away_match_points == MATCH_POINTS_WIN:
        return 0, 2
    return 1, 1


# ============================================================================
# StatLine Class
# ============================================================================

class StatLine:
    """One player's cumulative statistics over a set of completed matches."""

    FIELDS = (
        "points",
        "match_wins",
        "match_losses",
        "match_draws",
        "games_won",
        "games_lost",
        "total_rounds_won",
        "total_rounds_lost",
        "round_differential",
    )

    def __init__(self, player_id: int):
        self.player_id = player_id
        self.points = 0
        self.match_wins = 0
        self.match_losses = 0
        self.match_draws = 0
        self.games_won = 0
        self.games_lost = 0
        self.total_rounds_won = 0
        self.total_rounds_lost = 0

    @property
    def round_differential(self) -> int:
        """Total rounds won minus total rounds lost."""
        return self.total_rounds_won - self.total_rounds_lost

    def record_match_points(self, match_points: int, match_id=None) -> None:
        """Add match points and classify the match as a win, draw or loss."""
        self.points += match_points
        if match_points == MATCH_POINTS_WIN:
            self.match_wins += 1
        elif match_points == MATCH_POINTS_DRAW:
            self.match_draws += 1
        elif match_points == MATCH_POINTS_LOSS:
            self.match_losses += 1
        else:
            logger.warning(
                f"Match {match_id} has unexpected match points {match_points} for player "
                f"{self.player_id}; counted in points only"
            )

    def record_game(self, game) -> bool:
        """
        Credit one game to this player.

        Returns False when the player is neither the recorded winner nor the
        recorded loser; such a game contributes nothing.
        """
        if game.winner_id == self.player_id:
            self.games_won += 1
            self.total_rounds_won += game.winner_rounds
            self.total_rounds_lost += game.loser_rounds
            return True
        if game.loser_id == self.player_id:
            self.games_lost += 1
            self.total_rounds_won += game.loser_rounds
            self.total_rounds_lost += game.winner_rounds
            return True
        return False

    def as_dict(self) -> Dict[str, int]:
        """Column values to write back to a stats row."""
        return {field: getattr(self, field) for field in self.FIELDS}

    def __repr__(self) -> str:
        return f"StatLine(player_id={self.player_id}, {self.as_dict()})"


def accumulate_player_stats(player_id: int, matches: Iterable) -> StatLine:
    """
    Recompute a player's statistics from scratch.

    Args:
        player_id: Player to compute for
        matches: Match objects (home_player_id, away_player_id, home/away
            match points, is_completed, games). Matches that are not completed
            or do not involve the player are ignored.

    Returns:
        The full StatLine; nothing is carried over from earlier results.
    """
    stats = StatLine(player_id)

    for match in matches:
        if not match.is_completed:
            continue
        if match.home_player_id == player_id:
            stats.record_match_points(match.home_match_points, match.id)
        elif match.away_player_id == player_id:
            stats.record_match_points(match.away_match_points, match.id)
        else:
            continue

        for game in match.games:
            if not stats.record_game(game):
                # Known gap: a game whose winner/loser ids don't name this
                # player is dropped from the totals rather than repaired.
                logger.warning(
                    f"Game {game.id} (match {match.id}) winner/loser "
                    f"{game.winner_id}/{game.loser_id} does not match player {player_id}; "
                    f"excluded from stats"
                )

    return stats


# ============================================================================
# Standings Ordering
# ============================================================================

def standings_sort_key(row: Dict) -> tuple:
    """
    Sort key for standings rows.
    Sort by: Points (desc) -> Rounds Won (desc) -> Round Diff (desc)
    -> Games Won (desc) -> Games Lost (asc) -> Name (asc)
    """
    return (
        -(row.get("points") or 0),
        -(row.get("total_rounds_won") or 0),
        -(row.get("round_differential") or 0),
        -(row.get("games_won") or 0),
        row.get("games_lost") or 0,
        row.get("name") or "",
    )


def sort_standings(rows: Iterable[Dict]) -> list:
    """Order standings rows by the league tie-break rules."""
    return sorted(rows, key=standings_sort_key)
