"""FullMealPlan aggregate: ordered days plus per-week grocery/prep data."""
from typing import List, Optional
from threemeals.domain.DailyPlan import DailyPlan
from threemeals.domain.WeeklyData import WeeklyData


class FullMealPlan:
    def __init__(self, days: Optional[List[DailyPlan]] = None, weeks: Optional[List[WeeklyData]] = None):
        self.days = days[:] if days else []
        self.weeks = weeks[:] if weeks else []

    def find_day(self, day: int) -> Optional[DailyPlan]:
        for d in self.days:
            if d.day == day:
                return d
        return None

    def index_of(self, day: int) -> int:
        for i, d in enumerate(self.days):
            if d.day == day:
                return i
        return -1

    def find_week(self, week: int) -> Optional[WeeklyData]:
        for w in self.weeks:
            if w.week == week:
                return w
        return None

    def days_in_week(self, week: int) -> List[DailyPlan]:
        return [d for d in self.days if d.week == week]

    def week_count(self) -> int:
        """Number of calendar weeks covered by the days or described by the weekly data."""
        from_days = max((d.week for d in self.days), default=0)
        from_weeks = max((w.week for w in self.weeks), default=0)
        return max(from_days, from_weeks)

    def main_titles(self) -> List[str]:
        titles = []
        for d in self.days:
            titles.extend(d.main_titles())
        return titles

    def copy(self) -> "FullMealPlan":
        return FullMealPlan([d.copy() for d in self.days], list(self.weeks))

    def __eq__(self, other) -> bool:
        if not isinstance(other, FullMealPlan):
            return NotImplemented
        return self.days == other.days and self.weeks == other.weeks

    def __str__(self) -> str:
        return f"FullMealPlan({len(self.days)} days, {len(self.weeks)} weeks)"

    __repr__ = __str__

    @staticmethod
    def from_dict(data) -> "FullMealPlan":
        d = dict(data)
        return FullMealPlan(
            days=[DailyPlan.from_dict(day) for day in d["days"]],
            weeks=[WeeklyData.from_dict(week) for week in d["weeks"]],
        )

    def to_dict(self):
        return {
            "days": [d.to_dict() for d in self.days],
            "weeks": [w.to_dict() for w in self.weeks],
        }
