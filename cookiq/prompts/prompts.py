"""System and user prompts for CookIQ recipe generation.

Provides factory functions that interpolate the user's ingredients, language and
time preference into fixed safety, ethics and culinary rules. Prompts guide the
LLM to emit the RecipeSet JSON document parsed by cookiq.pipeline.extractor.

All functions here are pure: identical inputs give identical prompts.
"""

from typing import NamedTuple


RECIPE_COUNT = 3

IMAGE_ANALYSIS_PROMPT = (
    "Identify all items in this image. Distinguish between standard food, wild/unsafe meat, "
    "toxic items, and non-food. Return as a comma-separated list."
)

RECIPE_SET_JSON_SCHEMA = """{
  "analysis": {
    "categorization": {
      "edible": ["item1", "item2"],
      "wildOrUnsafe": ["item"],
      "nonFood": ["item"],
      "toxic": ["item"]
    },
    "safetyAlerts": ["alert1", "alert2"]
  },
  "recipes": [
    {
      "dishName": "string",
      "cookingTime": "string",
      "dishType": "Vegetarian" | "Non-Vegetarian",
      "ingredients": [
        {"item": "string", "amount": "string"}
      ],
      "steps": ["step1", "step2"],
      "nutrition": {
        "calories": "string",
        "protein": "string",
        "carbs": "string",
        "fats": "string"
      }
    }
  ]
}"""


class PromptPair(NamedTuple):
    """System and user instruction for one chat-completion request."""

    system: str
    user: str


def _get_time_section(time_limit: str) -> str:
    """Generate the strict time constraint section.

    Args:
        time_limit: One of "Any Time", "Under 15 mins", "Under 30 mins", "Under 60 mins".

    Returns:
        str: Time constraint instructions with the limit quoted verbatim.
    """
    return f"""
STRICT TIME CONSTRAINT:
User has specified a time limit of: {time_limit}.
- If time is not "Any", prioritize recipes that can be completed (prep + cook) within this average time.
- Clearly state the "cookingTime" as the average time taken.
"""


def _get_safety_section() -> str:
    return """
STRICT SAFETY & ETHICS:
1. TOXICITY/WILD MEAT: Strictly identify and filter hazardous items (foxglove, poisonous mushrooms) or unethical wild meats (snake, crocodile, bushmeat).
2. NEVER provide cooking steps for toxic or wild/unethical meats. Mention them in "safetyAlerts" only.
3. NON-FOOD: List objects like "plastic" or "shoes" in "nonFood" and ignore them for cooking.
4. Never name a toxic, wild/unethical or non-food item inside any recipe "ingredients" or "steps".
"""


def _get_culinary_section() -> str:
    return """
CULINARY RULES:
1. Provide a variety of recipes (e.g., one fast, one traditional, one creative).
2. Each recipe must have specific amounts and estimated nutrition facts.
3. Use only the provided edible ingredients + common staples (oil, salt, water, common spices).
"""


def get_system_instructions(language: str = "English", time_limit: str = "Any Time") -> str:
    """Generate the system instruction with language and time constraint.

    Args:
        language: Output language for every recipe field, quoted verbatim.
        time_limit: Preferred average total time, quoted verbatim.

    Returns:
        str: Complete system instruction.
    """
    return f"""
You are "CookIQ", the world's most responsible and intelligent multi-recipe culinary assistant.
Your goal is to provide multiple safe, delicious, and diverse recipe options (at least {RECIPE_COUNT} if possible).
{_get_time_section(time_limit)}{_get_safety_section()}{_get_culinary_section()}
OUTPUT REQUIREMENTS:
- JSON format only.
- Language: {language}.
"""


def get_user_prompt(ingredients: str, language: str = "English", time_limit: str = "Any Time") -> str:
    """Generate the user instruction carrying the raw ingredients and the JSON schema.

    The ingredients are embedded as typed (no trimming, no validation).

    Args:
        ingredients: Free-text ingredients, comma-separated or photo-derived.
        language: Output language, quoted verbatim.
        time_limit: Preferred average total time, repeated verbatim.

    Returns:
        str: User instruction demanding exactly the RecipeSet JSON document.
    """
    return (
        f"USER INPUT: {ingredients}. Preferred Average Time: {time_limit}. "
        f"Generate {RECIPE_COUNT} diverse, safe recipes in {language}.\n\n"
        "IMPORTANT: Return ONLY valid JSON with this exact structure, with no text before or after it:\n"
        f"{RECIPE_SET_JSON_SCHEMA}"
    )


def build_prompts(ingredients: str, language: str = "English", time_limit: str = "Any Time") -> PromptPair:
    """Build the (system, user) prompt pair for one generation request."""
    return PromptPair(
        system=get_system_instructions(language, time_limit),
        user=get_user_prompt(ingredients, language, time_limit),
    )
