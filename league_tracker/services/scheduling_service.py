"""
Round-robin schedule generation (circle method).

Every entrant meets every other entrant exactly once over N-1 days. Entry 0
is the fixed anchor; the rest rotate one step per day. An odd roster is padded
by the caller with one Bye placeholder, whose pairings are simply not emitted,
so each day has one fixture fewer than N/2.

The output depends only on the input order: the same roster yields the same
schedule.
"""

from typing import Hashable, List, NamedTuple, Optional, Sequence

from league_tracker.utils.constants import BYE_PLAYER_NAME


class Fixture(NamedTuple):
    """One scheduled pairing: 1-indexed day, home entrant, away entrant."""

    day: int
    home: Hashable
    away: Hashable


def pad_with_bye(names: Sequence[str], bye: str = BYE_PLAYER_NAME) -> List[str]:
    """Return a copy of ``names`` with ``bye`` appended when the count is odd."""
    padded = list(names)
    if len(padded) % 2 != 0:
        padded.append(bye)
    return padded


def generate_round_robin(
    entrants: Sequence[Hashable], bye: Optional[Hashable] = None
) -> List[Fixture]:
    """
    Generate the full round-robin fixture list.

    Args:
        entrants: Even-length sequence of entrant identifiers (player ids or names).
        bye: The placeholder identifier, if the roster was padded. Any pairing
            involving it is skipped.

    Returns:
        Fixtures ordered by day, then by ring position.

    Raises:
        ValueError: fewer than two entrants, or an odd count.
    """
    n = len(entrants)
    if n < 2:
        raise ValueError(f"At least two entrants are required to schedule, got {n}")
    if n % 2 != 0:
        raise ValueError(f"Entrant count must be even (pad with a bye first), got {n}")

    ring = list(entrants)
    fixtures: List[Fixture] = []

    for round_index in range(n - 1):
        for i in range(n // 2):
            home, away = ring[i], ring[n - 1 - i]
            if bye is not None and (home == bye or away == bye):
                continue
            fixtures.append(Fixture(round_index + 1, home, away))
        # Position 0 is the anchor; last entrant moves to position 1
        ring.insert(1, ring.pop())

    return fixtures
