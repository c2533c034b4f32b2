"""
Domain exceptions.

Services raise these; the API layer maps them to HTTP status codes.
"""


class LeagueTrackerError(Exception):
    """Base class for all league tracker errors."""
    pass


# ============ Not found ============

class LeagueNotFound(LeagueTrackerError):
    """League does not exist."""
    def __init__(self, league_id):
        self.league_id = league_id
        super().__init__(f"League {league_id} not found")


class MatchNotFound(LeagueTrackerError):
    """Match does not exist."""
    def __init__(self, match_id):
        self.match_id = match_id
        super().__init__(f"Match {match_id} not found")


# ============ Validation ============

class InvalidLeagueInput(LeagueTrackerError, ValueError):
    """League name or participant list rejected."""
    pass


class InvalidMatchResult(LeagueTrackerError, ValueError):
    """Submitted match result rejected (winner not a match player, bad round counts)."""
    pass


# ============ Conflicts ============

class DuplicateLeagueName(LeagueTrackerError):
    """A league with this name already exists."""
    def __init__(self, name):
        self.name = name
        super().__init__(f"A league named '{name}' already exists")


class LeagueSlugTaken(LeagueTrackerError):
    """Another league claimed the same slug while this one was being created."""
    def __init__(self, slug):
        self.slug = slug
        super().__init__(f"League slug '{slug}' was taken by a concurrent create")
