"""Expansion of a short template plan into a full multi-week plan.

In template mode the model only writes 7 distinct days. They are repeated to fill the
requested weeks, and the weekly grocery/prep data is padded or trimmed to match.
"""
import copy
from typing import Any, Dict

from threemeals.utilities.constants import DAYS_PER_WEEK, TEMPLATE_WEEKS


def expand_template(base: Dict[str, Any], weeks: int = TEMPLATE_WEEKS) -> Dict[str, Any]:
    """Return a plan dict with ``weeks * 7`` days numbered 1..N and exactly ``weeks`` week entries.

    Missing weeks copy the lists of the last available week; extra weeks are dropped.
    """
    template_days = base.get("days") or []
    if not template_days:
        raise ValueError("Template plan has no days")

    expanded = []
    for week in range(weeks):
        for i in range(DAYS_PER_WEEK):
            template_day = copy.deepcopy(template_days[i % len(template_days)])
            template_day["day"] = week * DAYS_PER_WEEK + i + 1
            expanded.append(template_day)

    week_entries = [dict(w) for w in (base.get("weeks") or [])]
    while len(week_entries) < weeks:
        source = week_entries[-1] if week_entries else {"groceryList": [], "batchPrepTips": []}
        week_entries.append({
            "week": len(week_entries) + 1,
            "groceryList": list(source.get("groceryList", [])),
            "batchPrepTips": list(source.get("batchPrepTips", [])),
        })
    week_entries = week_entries[:weeks]
    for idx, w in enumerate(week_entries):
        w["week"] = idx + 1

    return {"days": expanded, "weeks": week_entries}


__all__ = ["expand_template"]
