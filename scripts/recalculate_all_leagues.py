#!/usr/bin/env python3
"""
Recalculate standings for all leagues in the database.

This script:
1. Fetches all leagues from the database
2. Runs recalculate_league_stats for each league (league rows + global rows)
3. Provides progress feedback and summary statistics

Each league is its own transaction; a failure in one league leaves the
others intact.
"""

import asyncio

from league_tracker.database.db import AsyncSessionLocal
from league_tracker.services import data_service


async def recalculate_all_leagues():
    """Recalculate stats for all leagues."""
    async with AsyncSessionLocal() as session:
        print("=" * 60)
        print("📊 Fetching all leagues...")
        print("=" * 60)

        leagues = await data_service.list_leagues(session)

        if not leagues:
            print("❌ No leagues found in the database.")
            return

        print(f"✓ Found {len(leagues)} league(s)\n")

        successful = 0
        failed = []

        for idx, league in enumerate(leagues, 1):
            print(f"[{idx}/{len(leagues)}] Recalculating league: {league['name']} (ID: {league['id']})")
            try:
                result = await data_service.recalculate_league_stats(session, league["id"])
                print(f"   ✓ Success: {result['player_count']} players, {result['match_count']} completed matches")
                successful += 1
            except Exception as e:
                print(f"   ❌ Error: {str(e)}")
                failed.append((league, str(e)))
            print()

        print("=" * 60)
        print("📊 Summary")
        print("=" * 60)
        print(f"Total leagues: {len(leagues)}")
        print(f"✅ Successful: {successful}")
        print(f"❌ Failed: {len(failed)}")

        if failed:
            print("\nFailed leagues:")
            for league, error in failed:
                print(f"  - {league['name']} (ID: {league['id']}): {error}")

        print("\n✅ All calculations complete!")


if __name__ == "__main__":
    asyncio.run(recalculate_all_leagues())
