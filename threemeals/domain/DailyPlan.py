"""DailyPlan entity: one numbered day with three main meals and an ordered list of snacks."""
from typing import List, Optional
from threemeals.domain.Meal import Meal
from threemeals.utilities.constants import MAIN_SLOTS, DAYS_PER_WEEK


class DailyPlan:
    def __init__(self, day: int, breakfast: Meal, lunch: Meal, dinner: Meal,
                 snacks: Optional[List[Meal]] = None):
        self.day = day
        self.breakfast = breakfast
        self.lunch = lunch
        self.dinner = dinner
        self.snacks = snacks[:] if snacks else []

    @property
    def week(self) -> int:
        """Calendar week this day falls into (ceil(day / 7))."""
        return -(-self.day // DAYS_PER_WEEK)

    def get_meal(self, slot: str, snack_index: Optional[int] = None) -> Optional[Meal]:
        if slot in MAIN_SLOTS:
            return getattr(self, slot)
        if snack_index is not None and 0 <= snack_index < len(self.snacks):
            return self.snacks[snack_index]
        return None

    def main_titles(self) -> List[str]:
        return [self.breakfast.title, self.lunch.title, self.dinner.title]

    def content(self):
        '''Meal content without the day number (used to compare plans across shuffles).'''
        return (self.breakfast, self.lunch, self.dinner, tuple(self.snacks))

    def copy(self, day: Optional[int] = None) -> "DailyPlan":
        return DailyPlan(self.day if day is None else day, self.breakfast, self.lunch, self.dinner, self.snacks)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DailyPlan):
            return NotImplemented
        return self.day == other.day and self.content() == other.content()

    def __str__(self) -> str:
        snacks = ", ".join(s.title for s in self.snacks) or "-"
        return (f"Day {self.day}: {self.breakfast.title} / {self.lunch.title} / "
                f"{self.dinner.title} - Snacks: {snacks}")

    __repr__ = __str__

    @staticmethod
    def from_dict(data) -> "DailyPlan":
        '''Builds a DailyPlan from an already-normalized dict (plural "snacks" only).'''
        d = dict(data)
        return DailyPlan(
            day=int(d["day"]),
            breakfast=Meal.from_dict(d.get("breakfast")),
            lunch=Meal.from_dict(d.get("lunch")),
            dinner=Meal.from_dict(d.get("dinner")),
            snacks=[Meal.from_dict(s) for s in (d.get("snacks") or [])],
        )

    def to_dict(self):
        return {
            "day": self.day,
            "breakfast": self.breakfast.to_dict(),
            "lunch": self.lunch.to_dict(),
            "dinner": self.dinner.to_dict(),
            "snacks": [s.to_dict() for s in self.snacks],
        }
