"""
Input validation schemas using Pydantic for better data integrity.
"""
import re
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from threemeals.errors import InvalidPlanError
from threemeals.utilities.constants import EMAIL_PATTERN, MAX_AVOID_TITLES

_EMAIL_RE = re.compile(EMAIL_PATTERN)


def is_valid_email(email: str) -> bool:
    """local-part@domain with at least one dot in the domain, no whitespace."""
    return bool(email) and bool(_EMAIL_RE.match(email.strip()))


def email_error(email: str) -> Optional[str]:
    """Return the inline message for an unusable email, or None when it is fine."""
    if not (email or "").strip():
        return "Please enter your email address"
    if not is_valid_email(email.strip()):
        return "Please enter a valid email address"
    return None


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MealInput(_WireModel):
    """Schema for a single meal on the wire."""
    title: str = Field(..., min_length=1)
    prep_notes: str = Field("", alias="prepNotes")
    prep_time: Optional[str] = Field(None, alias="prepTime")
    cook_time: Optional[str] = Field(None, alias="cookTime")

    @field_validator('title')
    @classmethod
    def strip_title(cls, v):
        if not v.strip():
            raise ValueError('Meal title cannot be empty')
        return v.strip()

    @field_validator('prep_notes', mode='before')
    @classmethod
    def default_notes(cls, v):
        return v or ""


class DailyPlanInput(_WireModel):
    """Schema for one day; accepts the legacy singular snack as well as the snacks list."""
    day: int = Field(..., ge=1)
    breakfast: MealInput
    lunch: MealInput
    dinner: MealInput
    snack: Optional[MealInput] = None
    snacks: Optional[List[MealInput]] = None


class WeeklyDataInput(_WireModel):
    week: int = Field(..., ge=1)
    grocery_list: List[str] = Field(default_factory=list, alias="groceryList")
    batch_prep_tips: List[str] = Field(default_factory=list, alias="batchPrepTips")

    @field_validator('grocery_list', 'batch_prep_tips')
    @classmethod
    def drop_blank(cls, v):
        return [item.strip() for item in v if item and item.strip()]


class MealPlanInput(_WireModel):
    """Schema for a FullMealPlan payload (generator output, stored plans, request bodies)."""
    days: List[DailyPlanInput] = Field(..., min_length=1)
    weeks: List[WeeklyDataInput]

    @model_validator(mode='after')
    def unique_days(self):
        numbers = [d.day for d in self.days]
        if len(numbers) != len(set(numbers)):
            raise ValueError('Day numbers must be unique within a plan')
        return self


class PreferencesInput(_WireModel):
    """Schema for the wizard answers."""
    age: str = ""
    eating_style: Literal["purees", "finger-foods", "table-food", "mixed"] = Field("mixed", alias="eatingStyle")
    favorites: str = ""
    wants_more_of: str = Field("", alias="wantsMoreOf")
    allergies: str = ""
    hates_gags: str = Field("", alias="hatesGags")
    cooking_situation: Literal["surviving", "batching", "mixed"] = Field("mixed", alias="cookingSituation")
    dietary_preferences: str = Field("", alias="dietaryPreferences")


class AlternativesRequest(_WireModel):
    prefs: PreferencesInput
    meal_type: str = Field(..., alias="mealType", pattern=r'^(breakfast|lunch|dinner|snack)$')
    current_meal: MealInput = Field(..., alias="currentMeal")
    existing_titles: List[str] = Field(default_factory=list, alias="existingTitles")

    @field_validator('existing_titles')
    @classmethod
    def cap_titles(cls, v):
        return v[:MAX_AVOID_TITLES]


class EmailInput(_WireModel):
    email: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        message = email_error(v)
        if message:
            raise ValueError(message)
        return v.strip()


class SaveEmailRequest(EmailInput):
    meal_plan: Optional[MealPlanInput] = Field(None, alias="mealPlan")
    prefs: Optional[PreferencesInput] = None


class ExportRequest(_WireModel):
    meal_plan: MealPlanInput = Field(..., alias="mealPlan")
    prefs: PreferencesInput = Field(default_factory=PreferencesInput)


class EditMealInput(_WireModel):
    day: int
    slot: str = Field(..., pattern=r'^(breakfast|lunch|dinner|snack)$')
    snack_index: Optional[int] = Field(None, alias="snackIndex", ge=0)
    title: str = Field(..., min_length=1)
    prep_notes: str = Field("", alias="prepNotes")


class AddSnackInput(_WireModel):
    day: int
    title: str = Field(..., min_length=1)
    prep_notes: str = Field("", alias="prepNotes")
    prep_time: Optional[str] = Field(None, alias="prepTime")
    cook_time: Optional[str] = Field(None, alias="cookTime")


class SwapInput(_WireModel):
    day: int
    slot: str = Field(..., pattern=r'^(breakfast|lunch|dinner|snack)$')
    snack_index: Optional[int] = Field(None, alias="snackIndex", ge=0)


class ApplySwapInput(_WireModel):
    ticket: int
    meal: MealInput


class TogglePreferenceInput(_WireModel):
    field: str
    item: str = Field(..., min_length=1)


class ViewInput(_WireModel):
    mode: Optional[Literal["today", "calendar"]] = None
    show_snacks: Optional[bool] = Field(None, alias="showSnacks")
    week: Optional[int] = Field(None, ge=1)


class GroceryToggleInput(_WireModel):
    item: str = Field(..., min_length=1)


def validate_plan_payload(data) -> dict:
    """Validate a raw plan dict and return it in wire form (camelCase keys).

    Raises:
        InvalidPlanError: when required fields are missing or malformed.
    """
    if not isinstance(data, dict):
        raise InvalidPlanError("Meal plan must be a JSON object")
    try:
        parsed = MealPlanInput.model_validate(data)
    except ValidationError as e:
        raise InvalidPlanError(f"Meal plan failed validation: {e.error_count()} error(s)") from e
    return parsed.model_dump(by_alias=True, exclude_none=True)


class EmailSubmitInput(_WireModel):
    """Raw email as typed; the session reports format problems inline."""
    email: str = ""
