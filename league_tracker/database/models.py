"""
SQLAlchemy ORM models for the round-robin league tracker.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from league_tracker.database.db import Base


class StatLineColumns:
    """Cumulative statistics columns shared by Player (global) and PlayerLeagueStats (per league).

    Written only by the standings recalculation, always as a full overwrite.
    """

    points = Column(Integer, default=0, nullable=False)
    match_wins = Column(Integer, default=0, nullable=False)
    match_losses = Column(Integer, default=0, nullable=False)
    match_draws = Column(Integer, default=0, nullable=False)
    games_won = Column(Integer, default=0, nullable=False)
    games_lost = Column(Integer, default=0, nullable=False)
    total_rounds_won = Column(Integer, default=0, nullable=False)
    total_rounds_lost = Column(Integer, default=0, nullable=False)
    round_differential = Column(Integer, default=0, nullable=False)


class Player(StatLineColumns, Base):
    """Player profiles with global (all leagues) statistics."""

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    league_stats = relationship("PlayerLeagueStats", back_populates="player")


class League(Base):
    """Round-robin leagues."""

    __tablename__ = "leagues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    slug = Column(String(200), nullable=False, unique=True)  # URL-safe form of the name
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    participants = relationship(
        "PlayerLeagueStats", back_populates="league", cascade="all, delete-orphan"
    )
    matches = relationship(
        "Match",
        back_populates="league",
        cascade="all, delete-orphan",
        order_by="(Match.day, Match.id)",
    )


class PlayerLeagueStats(StatLineColumns, Base):
    """League-specific player stats (one row per participant, including the Bye placeholder)."""

    __tablename__ = "player_league_stats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    league_id = Column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    player = relationship("Player", back_populates="league_stats")
    league = relationship("League", back_populates="participants")

    __table_args__ = (
        UniqueConstraint("player_id", "league_id"),
        Index("idx_player_league_stats_player", "player_id"),
        Index("idx_player_league_stats_league", "league_id"),
    )


class Match(Base):
    """Scheduled round-robin fixtures. Completed once a result is recorded."""

    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    league_id = Column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False)
    home_player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    away_player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    day = Column(Integer, nullable=False)  # 1-indexed schedule round
    is_completed = Column(Boolean, default=False, nullable=False)
    home_match_points = Column(Integer, default=0, nullable=False)
    away_match_points = Column(Integer, default=0, nullable=False)
    match_date = Column(DateTime(timezone=True), nullable=True)  # When the result was recorded

    # Relationships
    league = relationship("League", back_populates="matches")
    home_player = relationship("Player", foreign_keys=[home_player_id])
    away_player = relationship("Player", foreign_keys=[away_player_id])
    games = relationship(
        "Game",
        back_populates="match",
        cascade="all, delete-orphan",
        order_by="Game.game_number",
    )

    @property
    def player_ids(self) -> tuple:
        """(home_player_id, away_player_id)."""
        return (self.home_player_id, self.away_player_id)

    __table_args__ = (
        CheckConstraint("home_player_id <> away_player_id", name="ck_matches_distinct_players"),
        CheckConstraint(
            "home_match_points IN (0, 1, 3) AND away_match_points IN (0, 1, 3)",
            name="ck_matches_match_points",
        ),
        Index("idx_matches_league_day", "league_id", "day"),
        Index("idx_matches_home_player", "home_player_id"),
        Index("idx_matches_away_player", "away_player_id"),
    )


class Game(Base):
    """One of the two games of a match, decided by rounds."""

    __tablename__ = "games"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    game_number = Column(Integer, nullable=False)  # 1 or 2
    winner_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    loser_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    winner_rounds = Column(Integer, nullable=False)
    loser_rounds = Column(Integer, nullable=False)

    # Relationships
    match = relationship("Match", back_populates="games")
    winner = relationship("Player", foreign_keys=[winner_id])
    loser = relationship("Player", foreign_keys=[loser_id])

    __table_args__ = (
        UniqueConstraint("match_id", "game_number", name="uq_games_match_game_number"),
        CheckConstraint("game_number IN (1, 2)", name="ck_games_game_number"),
        CheckConstraint("winner_rounds >= 0 AND loser_rounds >= 0", name="ck_games_rounds"),
        Index("idx_games_match", "match_id"),
    )
