from typing import Final

SESSION_KEY: Final[str] = "3meals_session"

MAIN_SLOTS: Final[tuple] = ("breakfast", "lunch", "dinner")
SNACK_SLOT: Final[str] = "snack"
DAYS_PER_WEEK: Final[int] = 7
TEMPLATE_WEEKS: Final[int] = 4

MAX_AVOID_TITLES: Final[int] = 50
ALTERNATIVES_COUNT: Final[int] = 3
DEFAULT_SNACK_PREP_TIME: Final[str] = "5 mins"
DEFAULT_SNACK_COOK_TIME: Final[str] = "0 mins"

EATING_STYLES: Final[tuple] = ("purees", "finger-foods", "table-food", "mixed")
COOKING_SITUATIONS: Final[tuple] = ("surviving", "batching", "mixed")
AGE_BRACKETS: Final[tuple] = ("6-9 months", "9-12 months", "1 year", "18 months", "2 years", "3+ years")
NONE_SENTINEL: Final[str] = "None"

EMAIL_PATTERN: Final[str] = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

SUGGESTED_SNACKS: Final[list] = [
    {"title": "Apple Slices with Almond Butter", "prepNotes": "Slice apple and serve with a small dollop of almond butter."},
    {"title": "Cheese Cubes", "prepNotes": "Cut cheese into small, easy-to-grab cubes."},
    {"title": "Banana Bites", "prepNotes": "Slice banana into bite-sized pieces."},
    {"title": "Yogurt with Berries", "prepNotes": "Mix plain yogurt with fresh berries."},
    {"title": "Veggie Sticks", "prepNotes": "Cut cucumber and carrots into sticks."},
    {"title": "Crackers with Hummus", "prepNotes": "Serve whole grain crackers with a side of hummus."},
]

TEMPLATE_PLAN_PROMPT: Final[str] = (
    """
    Create a 7-day meal plan template for a {age} child, plus grocery lists and prep tips for 4 weeks.

    Child Details:
    - Eating Style: {eating_style}
    - Favorites: {favorites}
    - Wants more of: {wants_more_of}
    - ALLERGIES (AVOID): {allergies}
    - Dislikes: {hates_gags}
    - Dietary preferences: {dietary_preferences}
    - Cooking: {cooking_situation}

    Rules:
    1. Create 7 unique days of meals (these will be rotated across 4 weeks).
    2. No repeated main meals within the 7 days.
    3. Age-appropriate textures.
    4. Brief prep notes for each meal.
    5. Create 4 weeks of grocery lists (15-20 items each) - vary items slightly each week.
    6. Include 2-5 practical batch prep tips for each of the 4 weeks.

    Answer ONLY with JSON in the following format:
    """
)
FULL_PLAN_PROMPT: Final[str] = (
    """
    Create a {days}-day meal plan for a {age} child.

    Eating Style: {eating_style}
    Favorites: {favorites}
    Wants more of: {wants_more_of}
    ALLERGIES (AVOID): {allergies}
    Dislikes: {hates_gags}
    Dietary preferences: {dietary_preferences}
    Cooking: {cooking_situation}

    Rules:
    1. {days} days: Breakfast, Lunch, Dinner, Snack each day, numbered 1..{days}.
    2. NO REPEATS for main meals.
    3. Age-appropriate textures (purees for 6-9mo, soft foods for 1yr+, table food for 2yr+).
    4. BRIEF prep notes (1 short sentence max, under 50 characters).
    5. One grocery list per 7-day block (10-20 key items each).
    6. 2-5 batch prep tips per week.

    Answer ONLY with JSON in the following format:
    """
)
PLAN_JSON_FORMAT: Final[str] = (
    """
{
    "days": [
      {
        "day": int,
        "breakfast": {"title": str, "prepNotes": str},
        "lunch": {"title": str, "prepNotes": str},
        "dinner": {"title": str, "prepNotes": str},
        "snack": {"title": str, "prepNotes": str}
      }
    ],
    "weeks": [
      {
        "week": int,
        "groceryList": [str, str],
        "batchPrepTips": [str, str]
      }
    ]
  }
    """
)
ALTERNATIVES_PROMPT: Final[str] = (
    """
    Provide 3 alternative {meal_type} ideas for a child who is {age} old.
    Current meal being replaced: "{current_title}".
    Eating style: {eating_style}.
    Cooking situation: {cooking_situation}.

    CRITICAL: Avoid these existing meals to prevent repeats: {avoid}.

    Ensure alternatives are safe, age-appropriate, and follow dietary preferences: {dietary_preferences}.
    Allergies to avoid: {allergies}.
    Include prep time and cook time estimates (e.g., "5 mins", "10 mins"). Use "0 mins" for no-cook items.
    Tone: Supportive and realistic.

    Answer ONLY with a JSON array in the following format:
    """
)
ALTERNATIVES_JSON_FORMAT: Final[str] = (
    """
[
  {"title": str, "prepNotes": str, "prepTime": str, "cookTime": str},
  {"title": str, "prepNotes": str, "prepTime": str, "cookTime": str},
  {"title": str, "prepNotes": str, "prepTime": str, "cookTime": str}
]
    """
)
