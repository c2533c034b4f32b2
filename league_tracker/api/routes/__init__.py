"""
API routes - combined router from all domain modules.

Shared infrastructure (limiter, constants) lives here; every sub-router
imports what it needs from this package.
"""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import APIRouter

# ---------------------------------------------------------------------------
# Shared rate limiter
# ---------------------------------------------------------------------------
IS_TEST_ENV = os.getenv("ENV", "").lower() == "test"
limiter = Limiter(key_func=get_remote_address, enabled=not IS_TEST_ENV)

# ---------------------------------------------------------------------------
# Shared constants
# ---------------------------------------------------------------------------
WRITE_RATE_LIMIT = "30/minute"
GENERIC_ERROR_DETAIL = "Database Error: the operation failed and no changes were saved."

# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from league_tracker.api.routes.leagues import router as leagues_router  # noqa: E402
from league_tracker.api.routes.matches import router as matches_router  # noqa: E402
from league_tracker.api.routes.standings import router as standings_router  # noqa: E402

router = APIRouter()
router.include_router(leagues_router)
router.include_router(matches_router)
router.include_router(standings_router)
