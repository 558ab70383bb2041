"""Meal value object: title, prep notes and optional prep/cook time labels."""
from typing import Optional


class Meal:
    """Immutable meal. Edits and swaps build a new Meal instead of patching this one."""

    __slots__ = ("_title", "_prep_notes", "_prep_time", "_cook_time")

    def __init__(self, title: str, prep_notes: str = "", prep_time: Optional[str] = None,
                 cook_time: Optional[str] = None):
        object.__setattr__(self, "_title", title)
        object.__setattr__(self, "_prep_notes", prep_notes or "")
        object.__setattr__(self, "_prep_time", prep_time or None)
        object.__setattr__(self, "_cook_time", cook_time or None)

    def __setattr__(self, name, value):
        raise AttributeError("Meal is immutable; build a new one instead")

    @property
    def title(self) -> str:
        return self._title

    @property
    def prep_notes(self) -> str:
        return self._prep_notes

    @property
    def prep_time(self) -> Optional[str]:
        return self._prep_time

    @property
    def cook_time(self) -> Optional[str]:
        return self._cook_time

    def with_text(self, title: str, prep_notes: str) -> "Meal":
        '''Returns a copy with new title/notes, keeping prep and cook times.'''
        return Meal(title, prep_notes, self._prep_time, self._cook_time)

    def time_label(self) -> str:
        parts = []
        if self._prep_time:
            parts.append(f"Prep: {self._prep_time}")
        if self._cook_time:
            parts.append(f"Cook: {self._cook_time}")
        return " | ".join(parts)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Meal):
            return NotImplemented
        return self.to_tuple() == other.to_tuple()

    def __hash__(self) -> int:
        return hash(self.to_tuple())

    def to_tuple(self):
        return (self._title, self._prep_notes, self._prep_time, self._cook_time)

    def __str__(self) -> str:
        label = self.time_label()
        return f"{self._title} ({label})" if label else self._title

    def __repr__(self) -> str:
        return f"Meal({self._title!r}, prep_time={self._prep_time!r}, cook_time={self._cook_time!r})"

    @staticmethod
    def from_dict(data) -> "Meal":
        '''Creates a Meal from its wire form (camelCase keys). Ignores unknown keys.'''
        d = dict(data) if isinstance(data, dict) else {}
        return Meal(
            title=str(d.get("title") or "").strip(),
            prep_notes=str(d.get("prepNotes") or ""),
            prep_time=d.get("prepTime"),
            cook_time=d.get("cookTime"),
        )

    def to_dict(self):
        d = {"title": self._title, "prepNotes": self._prep_notes}
        if self._prep_time:
            d["prepTime"] = self._prep_time
        if self._cook_time:
            d["cookTime"] = self._cook_time
        return d
