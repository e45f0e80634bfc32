#!/usr/bin/env python3
"""
Backfill scores for completed workouts that have none.

This script scores completed workouts whose final_score is still empty
(e.g. logged before scoring existed) and stores the result on each workout.

Usage:
    python scripts/backfill_workout_scores.py [--dry-run] [--limit N] [--user-id ID]

Options:
    --dry-run      Calculate scores without updating database
    --limit N      Process at most N workouts (default 20)
    --user-id ID   Only process this user's workouts
"""
import os
import sys
import argparse
import logging

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from supabase import create_client

from application.use_cases.backfill_workout_scores import (
    DEFAULT_BACKFILL_LIMIT,
    BackfillWorkoutScoresUseCase,
)
from backend.core.workout_score_service import WorkoutScoreService
from backend.settings import get_settings
from infrastructure.db import SupabaseScoringRepository


def get_supabase_client():
    """Create Supabase client with service role key."""
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

    if not url or not key:
        print("ERROR: SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        sys.exit(1)

    return create_client(url, key)


def backfill_workout_scores(dry_run: bool = False, limit: int = DEFAULT_BACKFILL_LIMIT, user_id: str = None) -> int:
    """
    Score unscored workouts.

    Args:
        dry_run: If True, calculate without updating
        limit: Maximum number of workouts to process
        user_id: Restrict to one user

    Returns:
        Process exit code
    """
    repository = SupabaseScoringRepository(get_supabase_client())
    use_case = BackfillWorkoutScoresUseCase(
        scoring_repo=repository,
        score_service=WorkoutScoreService(repository, tz=get_settings().scoring_tz),
    )

    result = use_case.execute(user_id=user_id, limit=limit, dry_run=dry_run)

    if result.error and not result.processed:
        print(f"ERROR: {result.error}")
        return 1

    for workout_id, final_score in result.scores.items():
        prefix = "[DRY RUN] Would save" if dry_run else "Saved"
        print(f"  {prefix} {workout_id}: {final_score}")
    for workout_id in result.skipped:
        print(f"  Skipped {workout_id}: no sets")
    for workout_id in result.failed:
        print(f"  ERROR processing {workout_id}")

    print()
    print("=" * 50)
    print("Backfill complete:")
    print(f"  Total processed: {result.processed}")
    print(f"  {'Would score' if dry_run else 'Scored'}: {len(result.scores)}")
    print(f"  Skipped: {len(result.skipped)}")
    print(f"  Errors: {len(result.failed)}")

    return 0 if result.success else 1


def main():
    parser = argparse.ArgumentParser(
        description="Backfill scores for completed workouts"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Calculate scores without updating database"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_BACKFILL_LIMIT,
        help="Process at most N workouts"
    )
    parser.add_argument(
        "--user-id",
        help="Only process this user's workouts"
    )

    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("Backfill workout scores")
    print("=" * 50)

    if args.dry_run:
        print("DRY RUN MODE - No changes will be made")

    sys.exit(backfill_workout_scores(dry_run=args.dry_run, limit=args.limit, user_id=args.user_id))


if __name__ == "__main__":
    main()
