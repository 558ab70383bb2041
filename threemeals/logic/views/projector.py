"""Read-side projections of the working copy: the "today" view and the weekly calendar view.

The projector keeps only navigation state (index, week, mode, snack visibility, grocery
check marks). It never mutates the plan it is given.
"""
from typing import Dict, List, Optional

from threemeals.domain.DailyPlan import DailyPlan
from threemeals.domain.FullMealPlan import FullMealPlan

TODAY = "today"
CALENDAR = "calendar"


def default_view_mode(cooking_situation: Optional[str]) -> str:
    """Caregivers who are just surviving start on today's meals; everyone else on the calendar."""
    return TODAY if cooking_situation == "surviving" else CALENDAR


def _day_view(day: DailyPlan, show_snacks: bool) -> dict:
    d = day.to_dict()
    d["week"] = day.week
    if not show_snacks:
        d["snacks"] = []
    d["hiddenSnacks"] = 0 if show_snacks else len(day.snacks)
    return d


class TodayView:
    def __init__(self, index: int, total: int, day: DailyPlan, show_snacks: bool):
        self.index = index
        self.total = total
        self.day = day
        self.show_snacks = show_snacks

    @property
    def has_prev(self) -> bool:
        return self.index > 0

    @property
    def has_next(self) -> bool:
        return self.index < self.total - 1

    @property
    def snacks(self):
        return self.day.snacks if self.show_snacks else []

    def to_dict(self):
        return {
            "index": self.index,
            "total": self.total,
            "hasPrev": self.has_prev,
            "hasNext": self.has_next,
            "day": _day_view(self.day, self.show_snacks),
        }


class CalendarView:
    def __init__(self, week: int, week_count: int, days: List[DailyPlan], grocery_list: List[str],
                 batch_prep_tips: List[str], show_snacks: bool, checked: Dict[str, bool]):
        self.week = week
        self.week_count = week_count
        self.days = days
        self.grocery_list = grocery_list
        self.batch_prep_tips = batch_prep_tips
        self.show_snacks = show_snacks
        self.checked = checked

    def to_dict(self):
        return {
            "week": self.week,
            "weekCount": self.week_count,
            "days": [_day_view(d, self.show_snacks) for d in self.days],
            "groceryList": [{"item": i, "checked": bool(self.checked.get(i))} for i in self.grocery_list],
            "batchPrepTips": list(self.batch_prep_tips),
        }


class ViewProjector:
    def __init__(self, cooking_situation: Optional[str] = None):
        self.view_mode = default_view_mode(cooking_situation)
        self.current_day_index = 0
        self.selected_week = 1
        self.show_snacks = True
        self.checked_items: Dict[str, bool] = {}

    def reset(self, cooking_situation: Optional[str] = None):
        self.__init__(cooking_situation)

    def set_view_mode(self, mode: str):
        if mode not in (TODAY, CALENDAR):
            raise ValueError(f"Unknown view mode: {mode}")
        self.view_mode = mode

    def set_show_snacks(self, show: bool):
        self.show_snacks = bool(show)

    def toggle_snacks(self) -> bool:
        self.show_snacks = not self.show_snacks
        return self.show_snacks

    def toggle_check(self, item: str) -> bool:
        self.checked_items[item] = not self.checked_items.get(item, False)
        return self.checked_items[item]

    # ---------------- today ----------------
    def _clamp(self, plan: Optional[FullMealPlan]) -> int:
        if plan is None or not plan.days:
            return 0
        return min(max(self.current_day_index, 0), len(plan.days) - 1)

    def today(self, plan: Optional[FullMealPlan]) -> Optional[TodayView]:
        """Day at the current position in ``plan.days`` (position, not day number)."""
        if plan is None or not plan.days:
            return None
        index = self._clamp(plan)
        return TodayView(index, len(plan.days), plan.days[index], self.show_snacks)

    def next_day(self, plan: Optional[FullMealPlan]) -> int:
        self.current_day_index = self._clamp(plan)
        if plan is not None and self.current_day_index < len(plan.days) - 1:
            self.current_day_index += 1
        return self.current_day_index

    def prev_day(self, plan: Optional[FullMealPlan]) -> int:
        self.current_day_index = self._clamp(plan)
        if self.current_day_index > 0:
            self.current_day_index -= 1
        return self.current_day_index

    # ---------------- calendar ----------------
    def select_week(self, week: int) -> int:
        if week < 1:
            raise ValueError("Weeks are numbered from 1")
        self.selected_week = week
        return week

    def calendar(self, plan: Optional[FullMealPlan]) -> Optional[CalendarView]:
        """Days whose ceil(day/7) equals the selected week, plus that week's lists (empty if none)."""
        if plan is None:
            return None
        week = self.selected_week
        week_data = plan.find_week(week)
        return CalendarView(
            week=week,
            week_count=plan.week_count(),
            days=plan.days_in_week(week),
            grocery_list=list(week_data.grocery_list) if week_data else [],
            batch_prep_tips=list(week_data.batch_prep_tips) if week_data else [],
            show_snacks=self.show_snacks,
            checked=self.checked_items,
        )

    def to_dict(self):
        return {
            "viewMode": self.view_mode,
            "currentDayIndex": self.current_day_index,
            "selectedWeek": self.selected_week,
            "showSnacks": self.show_snacks,
        }


__all__ = ["ViewProjector", "TodayView", "CalendarView", "default_view_mode", "TODAY", "CALENDAR"]
