"""
Tests for data_service operations against a real database.
Covers league creation and scheduling, match results, and standings recompute.
"""
import pytest
from sqlalchemy import select, func, update

from league_tracker.core.exceptions import (
    DuplicateLeagueName,
    InvalidLeagueInput,
    InvalidMatchResult,
    LeagueNotFound,
    LeagueSlugTaken,
    MatchNotFound,
)
from league_tracker.database.models import Game, League, Match, Player, PlayerLeagueStats
from league_tracker.services import data_service
from league_tracker.utils.constants import BYE_PLAYER_NAME

# db_session fixture is provided by conftest.py


async def count(session, model, *criteria):
    result = await session.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def player_id(session, name):
    result = await session.execute(select(Player.id).where(Player.name == name))
    return result.scalar_one()


async def submit(session, match, game1, game2):
    """Submit a result where each game is (winner_id, winner_rounds, loser_rounds)."""
    return await data_service.submit_match_result(
        session=session,
        match_id=match["id"],
        league_id=match["league_id"],
        game1_winner_id=game1[0],
        game1_winner_rounds=game1[1],
        game1_loser_rounds=game1[2],
        game2_winner_id=game2[0],
        game2_winner_rounds=game2[1],
        game2_loser_rounds=game2[2],
    )


async def find_match(session, league_id, home_name, away_name):
    """The scheduled match between two players, whichever of them is home."""
    for match in await data_service.get_league_matches(session, league_id):
        if {match["home_player"]["name"], match["away_player"]["name"]} == {home_name, away_name}:
            return match
    raise AssertionError(f"No match between {home_name} and {away_name}")


def standings_by_name(rows):
    return {row["name"]: row for row in rows}


# ============================================================================
# League creation
# ============================================================================

@pytest.mark.asyncio
async def test_create_league_even_roster(db_session):
    league = await data_service.create_league(
        session=db_session,
        name="Tekken Night",
        participants_text="Alice\nBob\nCharlie\nDiana",
    )

    assert league["id"] > 0
    assert league["name"] == "Tekken Night"
    assert league["slug"] == "tekken-night"
    assert league["participant_count"] == 4
    assert league["match_count"] == 6

    assert await count(db_session, PlayerLeagueStats, PlayerLeagueStats.league_id == league["id"]) == 4
    assert await count(db_session, Match, Match.league_id == league["id"]) == 6

    matches = await data_service.get_league_matches(db_session, league["id"])
    assert [m["day"] for m in matches] == [1, 1, 2, 2, 3, 3]
    assert all(not m["is_completed"] for m in matches)
    assert all(m["home_score"] == 0 and m["away_score"] == 0 for m in matches)

    pairs = {frozenset((m["home_player"]["name"], m["away_player"]["name"])) for m in matches}
    assert len(pairs) == 6


@pytest.mark.asyncio
async def test_create_league_trims_and_skips_blank_lines(db_session):
    league = await data_service.create_league(
        session=db_session,
        name="  Friday Fights  ",
        participants_text="  Alice \n\n   \nBob\n",
    )

    assert league["name"] == "Friday Fights"
    assert league["participant_count"] == 2
    assert league["match_count"] == 1
    assert await count(db_session, Player, Player.name.in_(["Alice", "Bob"])) == 2


@pytest.mark.asyncio
async def test_create_league_odd_roster_adds_bye(db_session):
    league = await data_service.create_league(
        session=db_session,
        name="Odd League",
        participants_text="A\nB\nC\nD\nE",
    )

    assert league["participant_count"] == 5
    assert league["match_count"] == 10

    bye_id = await player_id(db_session, BYE_PLAYER_NAME)
    assert await count(db_session, PlayerLeagueStats, PlayerLeagueStats.league_id == league["id"]) == 6
    assert await count(
        db_session,
        PlayerLeagueStats,
        PlayerLeagueStats.league_id == league["id"],
        PlayerLeagueStats.player_id == bye_id,
    ) == 1

    matches = await data_service.get_league_matches(db_session, league["id"])
    assert sorted({m["day"] for m in matches}) == [1, 2, 3, 4, 5]
    assert all(BYE_PLAYER_NAME not in (m["home_player"]["name"], m["away_player"]["name"]) for m in matches)

    standings = await data_service.get_league_standings(db_session, league["id"])
    assert sorted(row["name"] for row in standings) == ["A", "B", "C", "D", "E"]


@pytest.mark.asyncio
async def test_existing_players_are_reused_across_leagues(db_session):
    await data_service.create_league(session=db_session, name="First", participants_text="Alice\nBob")
    await data_service.create_league(session=db_session, name="Second", participants_text="Alice\nCharlie")

    assert await count(db_session, Player, Player.name == "Alice") == 1
    assert await count(db_session, Player) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name, participants, message",
    [
        ("", "Alice\nBob", "League name cannot be empty"),
        ("   ", "Alice\nBob", "League name cannot be empty"),
        ("Solo", "Alice", "At least two participants"),
        ("Blank", "\n \n", "At least two participants"),
        ("Dupes", "Alice\nBob\nAlice", "listed more than once"),
        ("Reserved", "Alice\nbye", "reserved"),
    ],
)
async def test_create_league_invalid_input_writes_nothing(db_session, name, participants, message):
    with pytest.raises(InvalidLeagueInput, match=message):
        await data_service.create_league(session=db_session, name=name, participants_text=participants)

    assert await count(db_session, League) == 0
    assert await count(db_session, Match) == 0
    assert await count(db_session, Player) == 0


@pytest.mark.asyncio
async def test_create_league_duplicate_name(db_session):
    await data_service.create_league(session=db_session, name="Spring Cup", participants_text="A\nB")

    with pytest.raises(DuplicateLeagueName):
        await data_service.create_league(session=db_session, name="Spring Cup", participants_text="C\nD")

    assert await count(db_session, League) == 1
    assert await count(db_session, Player, Player.name.in_(["C", "D"])) == 0


@pytest.mark.asyncio
async def test_create_league_slug_collision_gets_suffix(db_session):
    first = await data_service.create_league(session=db_session, name="Spring Cup", participants_text="A\nB")
    second = await data_service.create_league(session=db_session, name="Spring-Cup!", participants_text="A\nB")
    third = await data_service.create_league(session=db_session, name="spring cup", participants_text="A\nB")

    assert first["slug"] == "spring-cup"
    assert second["slug"] == "spring-cup-2"
    assert third["slug"] == "spring-cup-3"


@pytest.mark.asyncio
async def test_league_lookups(db_session):
    older = await data_service.create_league(session=db_session, name="Older", participants_text="A\nB")
    newer = await data_service.create_league(session=db_session, name="Newer", participants_text="A\nB")

    leagues = await data_service.list_leagues(db_session)
    assert [league["id"] for league in leagues] == [newer["id"], older["id"]]

    assert (await data_service.get_league(db_session, older["id"]))["name"] == "Older"
    assert (await data_service.get_league_by_slug(db_session, "newer"))["id"] == newer["id"]
    assert await data_service.get_league(db_session, 9999) is None
    assert await data_service.get_league_by_slug(db_session, "missing") is None

    with pytest.raises(LeagueNotFound):
        await data_service.get_league_matches(db_session, 9999)


# ============================================================================
# Match results
# ============================================================================

async def two_player_league(session, name="Duel"):
    league = await data_service.create_league(session=session, name=name, participants_text="Alice\nBob")
    matches = await data_service.get_league_matches(session, league["id"])
    return league, matches[0]


@pytest.mark.asyncio
async def test_submit_draw_result(db_session):
    league, match = await two_player_league(db_session)
    home_id = match["home_player"]["id"]
    away_id = match["away_player"]["id"]

    updated = await submit(db_session, match, (home_id, 3, 1), (away_id, 3, 2))

    assert updated["is_completed"] is True
    assert updated["home_match_points"] == 1
    assert updated["away_match_points"] == 1
    assert (updated["home_score"], updated["away_score"]) == (1, 1)
    assert updated["match_date"] is not None
    assert [g["game_number"] for g in updated["games"]] == [1, 2]
    assert updated["games"][1]["loser_id"] == home_id

    standings = standings_by_name(await data_service.get_league_standings(db_session, league["id"]))
    home = standings[match["home_player"]["name"]]
    away = standings[match["away_player"]["name"]]

    assert (home["points"], home["match_draws"]) == (1, 1)
    assert (home["total_rounds_won"], home["total_rounds_lost"], home["round_differential"]) == (5, 4, 1)
    assert (away["points"], away["match_draws"]) == (1, 1)
    assert (away["total_rounds_won"], away["total_rounds_lost"], away["round_differential"]) == (4, 5, -1)


@pytest.mark.asyncio
async def test_edit_result_does_not_double_count(db_session):
    league, match = await two_player_league(db_session)
    home_id = match["home_player"]["id"]
    away_id = match["away_player"]["id"]

    await submit(db_session, match, (home_id, 3, 1), (away_id, 3, 2))
    updated = await submit(db_session, match, (home_id, 3, 0), (home_id, 3, 1))

    assert (updated["home_match_points"], updated["away_match_points"]) == (3, 0)
    assert (updated["home_score"], updated["away_score"]) == (2, 0)
    assert await count(db_session, Game, Game.match_id == match["id"]) == 2

    standings = await data_service.get_league_standings(db_session, league["id"])
    winner, loser = standings
    assert winner["player_id"] == home_id
    assert (winner["points"], winner["match_wins"], winner["match_draws"]) == (3, 1, 0)
    assert (winner["games_won"], winner["games_lost"]) == (2, 0)
    assert (winner["total_rounds_won"], winner["total_rounds_lost"]) == (6, 1)
    assert (loser["points"], loser["match_losses"], loser["match_draws"]) == (0, 1, 0)

    global_rows = standings_by_name(await data_service.get_global_standings(db_session))
    assert global_rows[winner["name"]]["points"] == 3
    assert global_rows[loser["name"]]["points"] == 0


@pytest.mark.asyncio
async def test_submit_invalid_winner_writes_nothing(db_session):
    league, match = await two_player_league(db_session)
    home_id = match["home_player"]["id"]
    await data_service.create_league(session=db_session, name="Other", participants_text="Carol\nDave")
    outsider_id = await player_id(db_session, "Carol")

    with pytest.raises(InvalidMatchResult, match="Invalid winner ID for game 2"):
        await submit(db_session, match, (home_id, 3, 1), (outsider_id, 3, 2))

    completed = await db_session.execute(select(Match.is_completed).where(Match.id == match["id"]))
    assert completed.scalar_one() is False
    assert await count(db_session, Game) == 0
    points = await db_session.execute(
        select(PlayerLeagueStats.points).where(PlayerLeagueStats.league_id == league["id"])
    )
    assert set(points.scalars().all()) == {0}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "game1, message",
    [
        ((3, 3), "must have won more rounds"),
        ((1, 2), "must have won more rounds"),
        ((-1, 0), "cannot be negative"),
    ],
)
async def test_submit_invalid_rounds(db_session, game1, message):
    _, match = await two_player_league(db_session)
    home_id = match["home_player"]["id"]

    with pytest.raises(InvalidMatchResult, match=message):
        await submit(db_session, match, (home_id, *game1), (home_id, 3, 0))

    assert await count(db_session, Game) == 0


@pytest.mark.asyncio
async def test_submit_missing_match(db_session):
    league, match = await two_player_league(db_session)
    home_id = match["home_player"]["id"]

    with pytest.raises(MatchNotFound):
        await submit(db_session, {"id": 9999, "league_id": league["id"]}, (home_id, 3, 0), (home_id, 3, 0))


@pytest.mark.asyncio
async def test_submit_match_from_another_league(db_session):
    _, match = await two_player_league(db_session, name="First")
    other, _ = await two_player_league(db_session, name="Second")
    home_id = match["home_player"]["id"]

    with pytest.raises(InvalidMatchResult, match="does not belong"):
        await submit(
            db_session,
            {"id": match["id"], "league_id": other["id"]},
            (home_id, 3, 0),
            (home_id, 3, 0),
        )


@pytest.mark.asyncio
async def test_get_match(db_session):
    _, match = await two_player_league(db_session)
    home_id = match["home_player"]["id"]
    await submit(db_session, match, (home_id, 2, 0), (home_id, 2, 1))

    fetched = await data_service.get_match(db_session, match["id"])
    assert fetched["is_completed"] is True
    assert len(fetched["games"]) == 2
    assert await data_service.get_match(db_session, 9999) is None


# ============================================================================
# Standings
# ============================================================================

@pytest.mark.asyncio
async def test_league_standings_ordering(db_session):
    league = await data_service.create_league(
        session=db_session, name="Ranked", participants_text="Alice\nBob\nCharlie\nDiana"
    )
    ids = {name: await player_id(db_session, name) for name in ["Alice", "Bob", "Charlie", "Diana"]}

    # Alice beats everyone 3-0 3-0; Bob beats Charlie and Diana 3-2 3-2;
    # Charlie and Diana draw
    results = {
        ("Alice", "Bob"): ((ids["Alice"], 3, 0), (ids["Alice"], 3, 0)),
        ("Alice", "Charlie"): ((ids["Alice"], 3, 0), (ids["Alice"], 3, 0)),
        ("Alice", "Diana"): ((ids["Alice"], 3, 0), (ids["Alice"], 3, 0)),
        ("Bob", "Charlie"): ((ids["Bob"], 3, 2), (ids["Bob"], 3, 2)),
        ("Bob", "Diana"): ((ids["Bob"], 3, 2), (ids["Bob"], 3, 2)),
        ("Charlie", "Diana"): ((ids["Charlie"], 3, 0), (ids["Diana"], 3, 1)),
    }
    for (a, b), (game1, game2) in results.items():
        match = await find_match(db_session, league["id"], a, b)
        await submit(db_session, match, game1, game2)

    standings = await data_service.get_league_standings(db_session, league["id"])

    # Charlie and Diana tie on points; Charlie has more rounds won (8 vs 7)
    assert [row["name"] for row in standings] == ["Alice", "Bob", "Charlie", "Diana"]
    assert standings[2]["total_rounds_won"] == 8
    assert standings[3]["total_rounds_won"] == 7
    assert [row["rank"] for row in standings] == [1, 2, 3, 4]
    assert standings[0]["points"] == 9
    assert standings[1]["points"] == 6
    assert standings[2]["points"] == standings[3]["points"] == 1
    for row in standings:
        assert row["points"] == 3 * row["match_wins"] + row["match_draws"]
        assert row["round_differential"] == row["total_rounds_won"] - row["total_rounds_lost"]


@pytest.mark.asyncio
async def test_global_standings_span_leagues(db_session):
    first, first_match = await two_player_league(db_session, name="First")
    second, second_match = await two_player_league(db_session, name="Second")
    alice = await player_id(db_session, "Alice")
    bob = await player_id(db_session, "Bob")

    await submit(db_session, first_match, (alice, 3, 0), (alice, 3, 0))
    await submit(db_session, second_match, (alice, 3, 1), (bob, 3, 1))

    rows = standings_by_name(await data_service.get_global_standings(db_session))
    assert rows["Alice"]["points"] == 4
    assert (rows["Alice"]["match_wins"], rows["Alice"]["match_draws"]) == (1, 1)
    assert rows["Bob"]["points"] == 1
    assert rows["Alice"]["rank"] == 1

    first_rows = standings_by_name(await data_service.get_league_standings(db_session, first["id"]))
    assert first_rows["Alice"]["points"] == 3
    second_rows = standings_by_name(await data_service.get_league_standings(db_session, second["id"]))
    assert second_rows["Alice"]["points"] == 1


@pytest.mark.asyncio
async def test_recalculate_league_stats_repairs_stored_rows(db_session):
    league, match = await two_player_league(db_session)
    home_id = match["home_player"]["id"]
    await submit(db_session, match, (home_id, 3, 0), (home_id, 3, 0))

    await db_session.execute(
        update(PlayerLeagueStats)
        .where(PlayerLeagueStats.league_id == league["id"])
        .values(points=99, match_wins=7)
    )
    await db_session.execute(update(Player).values(points=42))
    await db_session.commit()

    summary = await data_service.recalculate_league_stats(db_session, league["id"])
    assert summary == {"league_id": league["id"], "player_count": 2, "match_count": 1}

    rows = standings_by_name(await data_service.get_league_standings(db_session, league["id"]))
    home = rows[match["home_player"]["name"]]
    away = rows[match["away_player"]["name"]]
    assert (home["points"], home["match_wins"]) == (3, 1)
    assert (away["points"], away["match_wins"]) == (0, 0)

    global_rows = standings_by_name(await data_service.get_global_standings(db_session))
    assert global_rows[home["name"]]["points"] == 3


@pytest.mark.asyncio
async def test_recalculate_is_idempotent(db_session):
    league, match = await two_player_league(db_session)
    home_id = match["home_player"]["id"]
    away_id = match["away_player"]["id"]
    await submit(db_session, match, (home_id, 3, 1), (away_id, 3, 2))

    before = await data_service.get_league_standings(db_session, league["id"])
    await data_service.recalculate_league_stats(db_session, league["id"])
    await data_service.recalculate_league_stats(db_session, league["id"])
    after = await data_service.get_league_standings(db_session, league["id"])

    assert before == after


@pytest.mark.asyncio
async def test_recalculate_missing_league(db_session):
    with pytest.raises(LeagueNotFound):
        await data_service.recalculate_league_stats(db_session, 9999)

    with pytest.raises(LeagueNotFound):
        await data_service.get_league_standings(db_session, 9999)


# ============================================================================
# Rollback after partial writes
# ============================================================================

@pytest.mark.asyncio
async def test_create_league_failure_after_flush_rolls_back(db_session, monkeypatch):
    def failing_schedule(*args, **kwargs):
        raise RuntimeError("scheduler exploded")

    monkeypatch.setattr(data_service, "generate_round_robin", failing_schedule)

    with pytest.raises(RuntimeError, match="scheduler exploded"):
        await data_service.create_league(
            session=db_session, name="Doomed", participants_text="Alice\nBob\nCharlie"
        )

    # Players and the league were flushed before the failure
    assert await count(db_session, League) == 0
    assert await count(db_session, Player) == 0
    assert await count(db_session, PlayerLeagueStats) == 0
    assert await count(db_session, Match) == 0


@pytest.mark.asyncio
async def test_submit_failure_during_recalculation_rolls_back(db_session, monkeypatch):
    league, match = await two_player_league(db_session)
    home_id = match["home_player"]["id"]
    away_id = match["away_player"]["id"]

    real_recalculate = data_service.recalculate_player_stats
    calls = []

    async def failing_on_third_call(session, player_id, league_id=None):
        calls.append((player_id, league_id))
        if len(calls) == 3:
            raise RuntimeError("stats write failed")
        return await real_recalculate(session, player_id, league_id)

    monkeypatch.setattr(data_service, "recalculate_player_stats", failing_on_third_call)

    with pytest.raises(RuntimeError, match="stats write failed"):
        await submit(db_session, match, (home_id, 3, 0), (home_id, 3, 1))

    # Games, match completion and the first player's stats had been flushed
    assert len(calls) == 3
    assert await count(db_session, Game) == 0
    completed = await db_session.execute(select(Match.is_completed).where(Match.id == match["id"]))
    assert completed.scalar_one() is False

    league_points = await db_session.execute(
        select(PlayerLeagueStats.points).where(PlayerLeagueStats.league_id == league["id"])
    )
    assert set(league_points.scalars().all()) == {0}
    global_points = await db_session.execute(
        select(Player.points).where(Player.id.in_([home_id, away_id]))
    )
    assert set(global_points.scalars().all()) == {0}


# ============================================================================
# Slugs
# ============================================================================

@pytest.mark.asyncio
async def test_long_names_keep_slug_within_column(db_session):
    first = await data_service.create_league(
        session=db_session, name="a" * 200, participants_text="Alice\nBob"
    )
    second = await data_service.create_league(
        session=db_session, name="A" + "a" * 199, participants_text="Alice\nBob"
    )
    # NFKD turns each ligature into two letters
    ligatures = await data_service.create_league(
        session=db_session, name="ﬀ" * 200, participants_text="Alice\nBob"
    )

    assert first["slug"] == "a" * 190
    assert second["slug"] == "a" * 190 + "-2"
    assert ligatures["slug"] == "f" * 190
    assert all(len(league["slug"]) <= 200 for league in (first, second, ligatures))


@pytest.mark.asyncio
async def test_slug_race_with_different_name_is_not_a_duplicate_name(db_session, monkeypatch):
    await data_service.create_league(session=db_session, name="Spring Cup", participants_text="A\nB")

    # A concurrent create took the slug after this one picked it
    monkeypatch.setattr(data_service, "unique_slug", lambda base, taken: "spring-cup")

    with pytest.raises(LeagueSlugTaken):
        await data_service.create_league(session=db_session, name="Spring Cup!", participants_text="C\nD")

    assert await count(db_session, League) == 1
    assert await count(db_session, Player, Player.name.in_(["C", "D"])) == 0
