"""UserPreferences entity: caregiver answers collected by the wizard."""
from typing import List
from threemeals.utilities.constants import NONE_SENTINEL

# Fields stored as comma-joined token sets
TOKEN_FIELDS = ("favorites", "wants_more_of", "allergies", "hates_gags", "dietary_preferences")

_WIRE_NAMES = {
    "age": "age",
    "eating_style": "eatingStyle",
    "favorites": "favorites",
    "wants_more_of": "wantsMoreOf",
    "allergies": "allergies",
    "hates_gags": "hatesGags",
    "cooking_situation": "cookingSituation",
    "dietary_preferences": "dietaryPreferences",
}


def split_tokens(value: str) -> List[str]:
    """Split a comma-joined field into distinct, trimmed, non-empty tokens (order kept)."""
    tokens = []
    for raw in (value or "").split(","):
        token = raw.strip()
        if token and token != NONE_SENTINEL and token not in tokens:
            tokens.append(token)
    return tokens


def join_tokens(tokens: List[str]) -> str:
    return ", ".join(tokens)


class UserPreferences:
    def __init__(self, age: str = "", eating_style: str = "mixed", favorites: str = "",
                 wants_more_of: str = "", allergies: str = "", hates_gags: str = "",
                 cooking_situation: str = "mixed", dietary_preferences: str = ""):
        self.age = (age or "").strip()
        self.eating_style = eating_style or "mixed"
        self.favorites = join_tokens(split_tokens(favorites))
        self.wants_more_of = join_tokens(split_tokens(wants_more_of))
        self.allergies = join_tokens(split_tokens(allergies))
        self.hates_gags = join_tokens(split_tokens(hates_gags))
        self.cooking_situation = cooking_situation or "mixed"
        self.dietary_preferences = join_tokens(split_tokens(dietary_preferences))

    def tokens(self, field: str) -> List[str]:
        return split_tokens(getattr(self, field))

    def describe(self, field: str) -> str:
        '''Field value for prompts: "none" when the set is empty.'''
        return getattr(self, field) or "none"

    def __eq__(self, other) -> bool:
        if not isinstance(other, UserPreferences):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __str__(self) -> str:
        return f"{self.age or '?'} - {self.eating_style} - {self.cooking_situation}"

    __repr__ = __str__

    @staticmethod
    def field_name(wire_name: str) -> str:
        for attr, wire in _WIRE_NAMES.items():
            if wire == wire_name or attr == wire_name:
                return attr
        raise KeyError(wire_name)

    @staticmethod
    def from_dict(data) -> "UserPreferences":
        '''Creates UserPreferences from wire form; absent fields fall back to defaults.'''
        d = dict(data) if isinstance(data, dict) else {}
        kwargs = {attr: d[wire] for attr, wire in _WIRE_NAMES.items() if d.get(wire) is not None}
        return UserPreferences(**kwargs)

    def to_dict(self):
        return {wire: getattr(self, attr) for attr, wire in _WIRE_NAMES.items()}
