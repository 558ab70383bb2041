"""SessionRecord: the unit persisted by the Session Store.

The plan is kept as a serialized snapshot (plain dict) so the record never holds a
live reference to the editor's working copy.
"""
from typing import Optional
from threemeals.domain.UserPreferences import UserPreferences


class SessionRecord:
    def __init__(self, meal_plan: Optional[dict] = None, email: str = "", email_captured: bool = False,
                 prefs: Optional[UserPreferences] = None):
        self.meal_plan = meal_plan
        self.email = email or ""
        self.email_captured = bool(email_captured)
        self.prefs = prefs or UserPreferences()

    def is_empty(self) -> bool:
        return self.meal_plan is None and not self.email_captured

    @staticmethod
    def from_dict(data) -> "SessionRecord":
        '''Tolerates absent fields (records carry no version field).'''
        d = dict(data) if isinstance(data, dict) else {}
        plan = d.get("mealPlan")
        return SessionRecord(
            meal_plan=plan if isinstance(plan, dict) else None,
            email=d.get("email") or "",
            email_captured=d.get("emailCaptured", False),
            prefs=UserPreferences.from_dict(d.get("prefs") or {}),
        )

    def to_dict(self):
        return {
            "mealPlan": self.meal_plan,
            "email": self.email,
            "emailCaptured": self.email_captured,
            "prefs": self.prefs.to_dict(),
        }
