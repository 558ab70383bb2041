"""Input adapter for plans written before days carried a list of snacks.

Older plans carry a singular ``snack`` per day. The adapter runs once when a plan enters the
editor; everything downstream only ever sees ``snacks``.
"""
from typing import Any, Dict


def upgrade_day(day: Dict[str, Any]) -> Dict[str, Any]:
    d = dict(day)
    legacy = d.pop("snack", None)
    snacks = d.get("snacks")
    if snacks is None:
        snacks = [legacy] if legacy else []
    d["snacks"] = list(snacks)
    return d


def upgrade_plan(plan: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``plan`` whose days all use the plural ``snacks`` field."""
    upgraded = dict(plan)
    upgraded["days"] = [upgrade_day(d) for d in plan.get("days", [])]
    upgraded["weeks"] = list(plan.get("weeks", []))
    return upgraded


__all__ = ["upgrade_day", "upgrade_plan"]
