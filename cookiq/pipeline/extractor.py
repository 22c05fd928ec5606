"""Extract and validate the RecipeSet document from free-form model text.

Models often wrap their JSON in prose ("Here you go: {...} Enjoy!"). The
extraction takes the span from the first "{" to the last "}" in the text. This
is a greedy heuristic, not a balanced-brace parser: text holding two separate
JSON objects, or a stray "}" after the document, yields an unparsable candidate
and fails with MalformedJson.

Validation is strict at this boundary: the parsed document must satisfy the
RecipeSet model and the safety exclusion rule before anything downstream
touches it.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from cookiq.models.models import RecipeSet
from cookiq.utils.errors import GenerationError, MalformedJson, SafetyViolation, SchemaMismatch
from cookiq.utils.logger import logger


_JSON_SPAN = re.compile(r"\{.*\}", re.DOTALL)


@dataclass
class ParseResult:
    """Tagged outcome of parsing one model response."""

    ok: bool
    value: Optional[RecipeSet] = None
    error: Optional[GenerationError] = None


def extract_json_candidate(text: str) -> str:
    """Return the outermost "{...}" span of text.

    Args:
        text: Raw model content, possibly with prose around the JSON.

    Returns:
        str: Substring from the first "{" through the last "}".

    Raises:
        MalformedJson: If the text holds no "{...}" span.
    """
    match = _JSON_SPAN.search(text or "")
    if not match:
        logger.warning(f"No JSON object found in model content ({len(text or '')} chars)")
        raise MalformedJson("No JSON found in response")
    return match.group()


def _field_path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc)


def _word_pattern(item: str) -> re.Pattern:
    return re.compile(rf"(?<!\w){re.escape(item)}(?!\w)", re.IGNORECASE)


def _mask_items(text: str, items: list[str]) -> str:
    """Blank out whole-word occurrences of items, longest first."""
    for item in sorted(items, key=len, reverse=True):
        text = _word_pattern(item).sub(lambda m: " " * len(m.group()), text)
    return text


def _contains_item(text: str, item: str) -> bool:
    """Case-insensitive whole-word search for item inside text."""
    return _word_pattern(item).search(text) is not None


def check_safety(recipe_set: RecipeSet) -> None:
    """Ensure no recipe uses an item the analysis flagged as unsafe.

    Items categorized as toxic, wildOrUnsafe or nonFood must not appear in any
    recipe's ingredient items or steps. Matching is by name only: it cannot
    catch an unsafe item the model failed to flag.

    Edible names that contain a flagged name (edible "snake gourd", flagged
    "snake") are masked before matching, so they do not count as a use of the
    flagged item. Shorter edible names are never masked: an edible "egg" does
    not hide a flagged "egg shell".

    Raises:
        SafetyViolation: Naming each offending recipe and item.
    """
    categorization = recipe_set.analysis.categorization
    flagged = [item.strip() for item in categorization.flagged_items() if item.strip()]
    if not flagged:
        return
    flagged_lower = {item.lower() for item in flagged}
    maskable = [
        name
        for name in (item.strip() for item in categorization.edible)
        if name.lower() not in flagged_lower and any(_contains_item(name, item) for item in flagged)
    ]

    violations = []
    for index, recipe in enumerate(recipe_set.recipes):
        texts = [ingredient.item for ingredient in recipe.ingredients] + list(recipe.steps)
        texts = [_mask_items(text, maskable) for text in texts]
        for item in flagged:
            if any(_contains_item(text, item) for text in texts):
                violations.append(f"recipes.{index} ({recipe.dish_name}): {item}")

    if violations:
        logger.warning(f"Flagged items used in recipes: {violations}")
        raise SafetyViolation(
            f"Recipes use items flagged as unsafe: {', '.join(violations)}",
            fields=violations,
        )


def validate_recipe_set(data: Any) -> RecipeSet:
    """Validate parsed JSON against the RecipeSet schema and the safety rule.

    Args:
        data: Result of json.loads on the extracted candidate.

    Returns:
        RecipeSet: Validated value with fields preserved as supplied.

    Raises:
        MalformedJson: If data is not a JSON object.
        SchemaMismatch: If required fields are missing or mistyped.
        SafetyViolation: If a recipe uses a flagged item.
    """
    if not isinstance(data, dict):
        raise MalformedJson(f"Expected a JSON object, got {type(data).__name__}")

    try:
        recipe_set = RecipeSet.model_validate(data)
    except ValidationError as e:
        fields = sorted({_field_path(err["loc"]) for err in e.errors()})
        logger.warning(f"Model response failed schema validation: {fields}")
        raise SchemaMismatch(f"Response does not match recipe schema: {', '.join(fields)}", fields=fields) from e

    check_safety(recipe_set)
    return recipe_set


def parse_recipe_set(text: str) -> RecipeSet:
    """Extract, parse and validate a RecipeSet from raw model content.

    Raises:
        MalformedJson: No JSON span, or the span is not valid JSON.
        SchemaMismatch: Required fields absent (or SafetyViolation).
    """
    candidate = extract_json_candidate(text)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse JSON from model content: {e}")
        raise MalformedJson(f"Invalid JSON in response: {e}") from e

    recipe_set = validate_recipe_set(data)
    logger.debug(f"Parsed recipe set with {len(recipe_set.recipes)} recipe(s)")
    return recipe_set


def try_parse_recipe_set(text: str) -> ParseResult:
    """Non-raising variant of parse_recipe_set returning a tagged result."""
    try:
        return ParseResult(ok=True, value=parse_recipe_set(text))
    except GenerationError as e:
        return ParseResult(ok=False, error=e)
