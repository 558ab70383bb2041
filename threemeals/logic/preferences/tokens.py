"""Toggle helpers for the comma-joined preference fields (favorites, allergies, ...)."""
from threemeals.domain.UserPreferences import UserPreferences, TOKEN_FIELDS, split_tokens, join_tokens
from threemeals.utilities.constants import NONE_SENTINEL


def toggle_token(value: str, item: str) -> str:
    """Add ``item`` to the set if absent, remove it if present. "None" clears the set."""
    item = (item or "").strip()
    if item == NONE_SENTINEL:
        return ""
    tokens = split_tokens(value)
    if not item:
        return join_tokens(tokens)
    if item in tokens:
        tokens.remove(item)
    else:
        tokens.append(item)
    return join_tokens(tokens)


def toggle_item(prefs: UserPreferences, field: str, item: str) -> UserPreferences:
    """Return new preferences with ``item`` toggled in ``field`` (wire or attribute name)."""
    attr = UserPreferences.field_name(field)
    if attr not in TOKEN_FIELDS:
        raise KeyError(f"{field} is not a multi-select field")
    updated = UserPreferences.from_dict(prefs.to_dict())
    setattr(updated, attr, toggle_token(getattr(prefs, attr), item))
    return updated


__all__ = ["toggle_token", "toggle_item"]
