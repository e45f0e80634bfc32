"""
Best-set calendar.

For one exercise, picks the best set of each calendar day ranked by the
Brzycki E1RM. This ranking is for display only; scoring uses Epley.
"""
from datetime import date, datetime, time, timezone, tzinfo
from typing import Dict, List

from application.ports.scoring_repository import ScoringRepository
from backend.core.one_rep_max import brzycki_1rm
from backend.utils.numbers import round_to
from domain.models import BestSet


class BestSetService:
    """Builds per-day best sets for an exercise."""

    def __init__(self, repository: ScoringRepository, *, tz: tzinfo = timezone.utc):
        self.repository = repository
        self.tz = tz

    def best_sets_by_day(
        self,
        user_id: str,
        exercise_id: str,
        start_date: date,
        end_date: date,
    ) -> List[BestSet]:
        """
        Best set per day in [start_date, end_date], ordered by day.

        Sets without weight or reps are skipped. E1RM is rounded to 1 decimal.
        """
        start = datetime.combine(start_date, time.min, tzinfo=self.tz)
        end = datetime.combine(end_date, time(23, 59, 59, 999000), tzinfo=self.tz)
        sets = self.repository.fetch_exercise_sets(
            user_id,
            exercise_id,
            start=start.astimezone(timezone.utc),
            end=end.astimezone(timezone.utc),
        )

        best: Dict[date, BestSet] = {}
        raw: Dict[date, float] = {}
        for s in sets:
            if not s.weight_kg or s.reps <= 0:
                continue
            e1rm = brzycki_1rm(s.weight_kg, s.reps)
            day = s.completed_at.astimezone(self.tz).date()
            if day not in raw or e1rm > raw[day]:
                raw[day] = e1rm
                best[day] = BestSet(
                    day=day,
                    workout_id=s.workout_id,
                    weight_kg=s.weight_kg,
                    reps=s.reps,
                    e1rm=round_to(e1rm, 1),
                )

        return [best[day] for day in sorted(best)]
