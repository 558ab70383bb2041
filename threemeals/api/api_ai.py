import re
import json
import logging
from json import JSONDecodeError
from typing import Any, List, Optional

from openai import OpenAI
from fastapi import APIRouter, HTTPException, Request

from threemeals.domain.FullMealPlan import FullMealPlan
from threemeals.domain.Meal import Meal
from threemeals.domain.UserPreferences import UserPreferences
from threemeals.errors import AIUnavailableError, AlternativesError, InvalidPlanError, PlanGenerationError
from threemeals.logic.editing.legacy import upgrade_plan
from threemeals.logic.planning.template import expand_template
from threemeals.utilities import config
from threemeals.utilities.constants import (
    TEMPLATE_PLAN_PROMPT, FULL_PLAN_PROMPT, PLAN_JSON_FORMAT,
    ALTERNATIVES_PROMPT, ALTERNATIVES_JSON_FORMAT, ALTERNATIVES_COUNT, MAX_AVOID_TITLES
)
from threemeals.utilities.validators import AlternativesRequest, MealInput, PreferencesInput, validate_plan_payload

logger = logging.getLogger(__name__)


class OpenAIPlanClient:
    """Plan generator and alternatives provider backed by the OpenAI Responses API.

    Built once at startup and handed to whoever needs it. Without an API key the object still
    exists, but every call raises AIUnavailableError.
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 plan_mode: Optional[str] = None, plan_days: Optional[int] = None, client: Optional[OpenAI] = None):
        self.api_key = api_key if api_key is not None else config.OPENAI_API_KEY
        self.model = model or config.OPENAI_MODEL
        self.plan_mode = (plan_mode or config.PLAN_MODE).lower()
        self.plan_days = plan_days or config.PLAN_DAYS
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not self.api_key:
                raise AIUnavailableError("API key not configured. Please set OPENAI_API_KEY.")
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def _complete(self, prompt: str) -> str:
        response = self.client.responses.create(model=self.model, input=prompt)
        return (response.output_text or "").strip()

    # === Plan Generation ===
    def generate_plan(self, prefs: UserPreferences) -> FullMealPlan:
        """Ask the model for a plan and return it validated.

        Raises PlanGenerationError on call failure, empty output or malformed JSON.
        """
        fields = dict(
            age=prefs.age,
            eating_style=prefs.eating_style,
            favorites=prefs.describe("favorites"),
            wants_more_of=prefs.describe("wants_more_of"),
            allergies=prefs.describe("allergies"),
            hates_gags=prefs.describe("hates_gags"),
            dietary_preferences=prefs.describe("dietary_preferences"),
            cooking_situation=prefs.cooking_situation,
        )
        if self.plan_mode == "full":
            prompt = FULL_PLAN_PROMPT.format(days=self.plan_days, **fields)
        else:
            prompt = TEMPLATE_PLAN_PROMPT.format(**fields)

        try:
            raw_text = self._complete(prompt + PLAN_JSON_FORMAT)
        except AIUnavailableError:
            raise
        except Exception as e:
            logger.exception("Meal plan generation call failed")
            raise PlanGenerationError(f"Meal plan generation failed: {e}") from e
        if not raw_text:
            raise PlanGenerationError("Empty response from AI. Please try again.")

        parsed = self._parse_json(raw_text, expect=dict)
        if parsed is None:
            logger.error("AI output is not valid JSON (length %d): %s", len(raw_text), raw_text[:500])
            raise PlanGenerationError(
                "Failed to parse meal plan. The response may have been too large. Please try again."
            )

        try:
            if self.plan_mode != "full":
                parsed = expand_template(upgrade_plan(parsed))
            return FullMealPlan.from_dict(upgrade_plan(validate_plan_payload(parsed)))
        except (InvalidPlanError, ValueError, KeyError, TypeError) as e:
            raise PlanGenerationError(f"AI returned an incomplete meal plan: {e}") from e

    # === Swap Alternatives ===
    def get_alternatives(self, prefs: UserPreferences, meal_type: str, current_meal: Meal,
                         existing_titles: List[str]) -> List[Meal]:
        avoid = list(existing_titles)[:MAX_AVOID_TITLES]
        prompt = ALTERNATIVES_PROMPT.format(
            meal_type=meal_type,
            age=prefs.age,
            current_title=current_meal.title,
            eating_style=prefs.eating_style,
            cooking_situation=prefs.cooking_situation,
            avoid=", ".join(avoid) or "none",
            dietary_preferences=prefs.describe("dietary_preferences"),
            allergies=prefs.describe("allergies"),
        )
        try:
            raw_text = self._complete(prompt + ALTERNATIVES_JSON_FORMAT)
        except AIUnavailableError:
            raise
        except Exception as e:
            logger.exception("Alternatives call failed")
            raise AlternativesError(f"Could not load alternatives: {e}") from e

        parsed = self._parse_json(raw_text, expect=list) if raw_text else None
        if parsed is None:
            raise AlternativesError("AI did not return a list of alternatives")

        avoided = {t.strip().lower() for t in avoid}
        meals = []
        for entry in parsed:
            try:
                meal = MealInput.model_validate(entry)
            except Exception:
                logger.warning("Skipping malformed alternative: %r", entry)
                continue
            if meal.title.lower() in avoided:
                continue
            meals.append(Meal(meal.title, meal.prep_notes, meal.prep_time, meal.cook_time))
        if not meals:
            raise AlternativesError("AI returned no usable alternatives")
        return meals[:ALTERNATIVES_COUNT]

    # === JSON Parsing ===
    def _parse_json(self, text: str, expect: type) -> Optional[Any]:
        for candidate in _json_candidates(text):
            try:
                parsed = json.loads(candidate)
            except JSONDecodeError:
                continue
            if isinstance(parsed, expect):
                return parsed

        fixed = _request_json_fix(self.client, text, self.model)
        if fixed:
            try:
                parsed = json.loads(_remove_trailing_commas(_strip_code_fences(fixed)))
                if isinstance(parsed, expect):
                    return parsed
            except JSONDecodeError:
                logger.exception("Fixed AI output still could not be decoded")
        return None


def create_ai_client() -> OpenAIPlanClient:
    """Build the model client from configuration (one per process)."""
    return OpenAIPlanClient()


# === Text Cleaning Helpers ===
def _json_candidates(text: str):
    yield text
    stripped = _remove_trailing_commas(_strip_code_fences(text))
    yield stripped
    balanced = _extract_json_by_balancing(stripped)
    if balanced:
        yield _remove_trailing_commas(balanced)


def _strip_code_fences(text: str) -> str:
    """Remove common markdown code fences and leading/trailing whitespace."""
    text = re.sub(r"```(?:json)?\n(.*?)```", r"\1", text, flags=re.S)
    text = re.sub(r"^```|```$", "", text.strip())
    return text.strip()


def _remove_trailing_commas(text: str) -> str:
    """Remove trailing commas before a closing brace/bracket."""
    return re.sub(r",\s*(\}|\])", r"\1", text)


def _extract_json_by_balancing(text: str) -> Optional[str]:
    """Extract the first JSON object/array by balancing braces/brackets."""
    start = None
    stack = []
    in_string = False
    escape = False

    for i, ch in enumerate(text):
        if escape:
            escape = False
            continue
        if in_string:
            if ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            if start is None:
                start = i
            stack.append(ch)
        elif ch in "}]":
            if not stack:
                continue
            opening = stack.pop()
            if (opening == "{" and ch != "}") or (opening == "[" and ch != "]"):
                return None
            if not stack and start is not None:
                return text[start:i + 1]
    return None


def _request_json_fix(client: OpenAI, previous_output: str, model: str) -> Optional[str]:
    """Ask the model to reformat previous_output as strict JSON."""
    try:
        prompt = (
            "Your last answer described toddler meals but could not be read as JSON. "
            "Return the same meal plan days, weekly grocery lists and batch prep tips "
            "(or the same list of alternative meals) as strict JSON only, keeping the keys "
            "title, prepNotes, prepTime, cookTime, day, week, groceryList and batchPrepTips "
            "exactly as written. No markdown, no commentary.\n\nYour last answer:\n\n" + previous_output
        )
        resp = client.responses.create(model=model, input=prompt)
        return (resp.output_text or "").strip()
    except Exception:
        logger.exception("Error while requesting AI to fix JSON formatting")
        return None


# === FastAPI Endpoints (stateless) ===
router = APIRouter()


def _prefs(model: PreferencesInput) -> UserPreferences:
    return UserPreferences.from_dict(model.model_dump(by_alias=True))


@router.post("/api/generate-plan")
def generate_plan(request: Request, prefs: PreferencesInput):
    ai = request.app.state.ai
    if not prefs.age.strip():
        raise HTTPException(status_code=400, detail="Please select your child's age")
    try:
        return ai.generate_plan(_prefs(prefs)).to_dict()
    except AIUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except PlanGenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/api/get-alternatives")
def get_alternatives(request: Request, body: AlternativesRequest):
    ai = request.app.state.ai
    current = Meal(body.current_meal.title, body.current_meal.prep_notes,
                   body.current_meal.prep_time, body.current_meal.cook_time)
    try:
        meals = ai.get_alternatives(_prefs(body.prefs), body.meal_type, current, body.existing_titles)
    except AIUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AlternativesError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return [m.to_dict() for m in meals]
