"""WeeklyData entity: grocery list and batch prep tips for one 7-day block."""
from typing import List, Optional


class WeeklyData:
    def __init__(self, week: int, grocery_list: Optional[List[str]] = None,
                 batch_prep_tips: Optional[List[str]] = None):
        self.week = week
        # Grocery items are distinct; first occurrence wins
        seen = set()
        self.grocery_list = []
        for item in grocery_list or []:
            if item not in seen:
                seen.add(item)
                self.grocery_list.append(item)
        self.batch_prep_tips = batch_prep_tips[:] if batch_prep_tips else []

    def __eq__(self, other) -> bool:
        if not isinstance(other, WeeklyData):
            return NotImplemented
        return (self.week, self.grocery_list, self.batch_prep_tips) == \
            (other.week, other.grocery_list, other.batch_prep_tips)

    def __str__(self) -> str:
        return f"Week {self.week} - {len(self.grocery_list)} grocery items - {len(self.batch_prep_tips)} tips"

    __repr__ = __str__

    @staticmethod
    def from_dict(data) -> "WeeklyData":
        d = dict(data)
        return WeeklyData(
            week=int(d["week"]),
            grocery_list=[str(i) for i in d.get("groceryList") or []],
            batch_prep_tips=[str(t) for t in d.get("batchPrepTips") or []],
        )

    def to_dict(self):
        return {
            "week": self.week,
            "groceryList": list(self.grocery_list),
            "batchPrepTips": list(self.batch_prep_tips),
        }
