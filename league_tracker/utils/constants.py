"""
Constants used across the league tracker.
"""

# Placeholder entrant that balances an odd participant count
BYE_PLAYER_NAME = "Bye"

# Match points awarded per side of a two-game match
MATCH_POINTS_WIN = 3  # won both games
MATCH_POINTS_DRAW = 1  # one game each
MATCH_POINTS_LOSS = 0  # lost both games
