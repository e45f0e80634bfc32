"""
Distinct training days per canonical muscle group.

MuscleDayCounter keeps its groups in canonical order and has an explicit
serialize/deserialize boundary (to_dict/from_dict) so stored breakdowns
round-trip without runtime type sniffing.
"""

from collections import OrderedDict
from datetime import date
from typing import Dict, Iterable, Iterator, Mapping, Set, Tuple


MUSCLE_GROUPS: Tuple[str, ...] = (
    "chest",
    "upper back",
    "lower back",
    "shoulders",
    "biceps",
    "triceps",
    "forearms",
    "core",
    "quads",
    "hamstrings",
    "glutes",
    "calves",
)


class MuscleDayCounter:
    """
    Ordered mapping of muscle group -> set of calendar days it was trained.

    Groups outside the canonical list are ignored on record().

    Examples:
        >>> counter = MuscleDayCounter()
        >>> counter.record("Chest", date(2024, 1, 15))
        True
        >>> counter.record("chest", date(2024, 1, 15))
        True
        >>> counter.days_hit("chest")
        1
        >>> counter.record("neck", date(2024, 1, 15))
        False
    """

    def __init__(self, groups: Iterable[str] = MUSCLE_GROUPS):
        self._days: "OrderedDict[str, Set[date]]" = OrderedDict(
            (g, set()) for g in groups
        )

    def record(self, muscle_group: str, day: date) -> bool:
        """Record a training day. Returns False if the group is not tracked."""
        key = (muscle_group or "").strip().lower()
        days = self._days.get(key)
        if days is None:
            return False
        days.add(day)
        return True

    def days_hit(self, muscle_group: str) -> int:
        return len(self._days.get(muscle_group, ()))

    @property
    def groups(self) -> Tuple[str, ...]:
        return tuple(self._days.keys())

    @property
    def groups_hit(self) -> int:
        return sum(1 for days in self._days.values() if days)

    def coverage(self, target_days: int) -> float:
        """Average over all groups of min(days_hit / target_days, 1)."""
        if not self._days or target_days <= 0:
            return 0.0
        total = sum(min(len(days) / target_days, 1.0) for days in self._days.values())
        return total / len(self._days)

    def __iter__(self) -> Iterator[str]:
        return iter(self._days)

    def __len__(self) -> int:
        return len(self._days)

    def to_dict(self) -> Dict[str, int]:
        """Serialize to {group: days_hit}, preserving canonical order."""
        return {group: len(days) for group, days in self._days.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, int]) -> "MuscleDayCounter":
        """
        Rebuild a counter from to_dict() output.

        Only counts survive serialization, so days are restored as
        placeholder ordinals; days_hit() and coverage() are preserved.
        """
        counter = cls()
        for group, count in data.items():
            key = group.strip().lower()
            if key not in counter._days:
                continue
            counter._days[key] = {date.fromordinal(i + 1) for i in range(int(count))}
        return counter
