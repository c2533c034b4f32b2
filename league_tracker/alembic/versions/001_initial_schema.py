"""001_initial_schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 12:00:00.000000

Creates players, leagues, player_league_stats, matches and games.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _stat_columns():
    return [
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("match_wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("match_losses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("match_draws", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("games_won", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("games_lost", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_rounds_won", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_rounds_lost", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("round_differential", sa.Integer(), nullable=False, server_default="0"),
    ]


def upgrade() -> None:
    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False, unique=True),
        *_stat_columns(),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "leagues",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False, unique=True),
        sa.Column("slug", sa.String(200), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "player_league_stats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("player_id", sa.Integer(), sa.ForeignKey("players.id"), nullable=False),
        sa.Column(
            "league_id", sa.Integer(), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False
        ),
        *_stat_columns(),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("player_id", "league_id"),
    )
    op.create_index("idx_player_league_stats_player", "player_league_stats", ["player_id"])
    op.create_index("idx_player_league_stats_league", "player_league_stats", ["league_id"])

    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "league_id", sa.Integer(), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("home_player_id", sa.Integer(), sa.ForeignKey("players.id"), nullable=False),
        sa.Column("away_player_id", sa.Integer(), sa.ForeignKey("players.id"), nullable=False),
        sa.Column("day", sa.Integer(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("home_match_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("away_match_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("match_date", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("home_player_id <> away_player_id", name="ck_matches_distinct_players"),
        sa.CheckConstraint(
            "home_match_points IN (0, 1, 3) AND away_match_points IN (0, 1, 3)",
            name="ck_matches_match_points",
        ),
    )
    op.create_index("idx_matches_league_day", "matches", ["league_id", "day"])
    op.create_index("idx_matches_home_player", "matches", ["home_player_id"])
    op.create_index("idx_matches_away_player", "matches", ["away_player_id"])

    op.create_table(
        "games",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "match_id", sa.Integer(), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("game_number", sa.Integer(), nullable=False),
        sa.Column("winner_id", sa.Integer(), sa.ForeignKey("players.id"), nullable=False),
        sa.Column("loser_id", sa.Integer(), sa.ForeignKey("players.id"), nullable=False),
        sa.Column("winner_rounds", sa.Integer(), nullable=False),
        sa.Column("loser_rounds", sa.Integer(), nullable=False),
        sa.UniqueConstraint("match_id", "game_number", name="uq_games_match_game_number"),
        sa.CheckConstraint("game_number IN (1, 2)", name="ck_games_game_number"),
        sa.CheckConstraint("winner_rounds >= 0 AND loser_rounds >= 0", name="ck_games_rounds"),
    )
    op.create_index("idx_games_match", "games", ["match_id"])


def downgrade() -> None:
    op.drop_table("games")
    op.drop_table("matches")
    op.drop_table("player_league_stats")
    op.drop_table("leagues")
    op.drop_table("players")
