"""Data models and schemas for the CookIQ recipe pipeline.

Defines Pydantic models for generation requests, the recipe-set document the
language model must emit, and the persisted history record.
All models use Pydantic v2 for strict validation.

JSON keys are camelCase (model output and history file), Python attributes are
snake_case. Either spelling is accepted on input. Unknown keys are kept so the
model's output is passed through unchanged.
"""

from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


Language = Literal["English", "Hindi", "Marathi", "Tamil", "Telugu", "Spanish", "French"]
TimeLimit = Literal["Any Time", "Under 15 mins", "Under 30 mins", "Under 60 mins"]


class CamelModel(BaseModel):
    """Base model mapping snake_case attributes to camelCase JSON keys.

    Numbers arriving where text is expected (`"amount": 2`) are kept as their
    string form instead of failing validation.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow", coerce_numbers_to_str=True
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump exactly the fields that were supplied, with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class GenerationRequest(BaseModel):
    """Validated user input for one recipe generation.

    Guards against empty ingredient text before any network call is made.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    ingredients: Annotated[
        str,
        Field(min_length=1, max_length=2000, description="Comma-separated or photo-derived ingredients (1-2000 chars)"),
    ]
    language: Annotated[Language, Field(description="Language the recipes are written in")] = "English"
    time_limit: Annotated[TimeLimit, Field(description="Preferred average total cooking time")] = "Any Time"


def as_text_list(value: Any) -> List[str]:
    """Read an optional bucket as strings: a list, a single string, or nothing."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    return [str(value)]


class IngredientCategorization(CamelModel):
    """Model-assigned buckets for the user's input items.

    Advisory labels: the pipeline does not prove every input token lands in
    exactly one bucket.
    """

    edible: Annotated[List[str], Field(description="Items safe to cook with (may be empty)")]
    wild_or_unsafe: Annotated[Any, Field(description="Wild or unethical meats")] = None
    non_food: Annotated[Any, Field(description="Objects that are not food")] = None
    toxic: Annotated[Any, Field(description="Poisonous or hazardous items")] = None

    def flagged_items(self) -> List[str]:
        """Return every item that must never appear in a recipe, as text."""
        return [*as_text_list(self.toxic), *as_text_list(self.wild_or_unsafe), *as_text_list(self.non_food)]


class Analysis(CamelModel):
    categorization: IngredientCategorization
    safety_alerts: Annotated[Any, Field(description="Why toxic or wild/unsafe items were excluded")] = None


class NutritionFacts(CamelModel):
    """Estimated nutrition. Free text, units included as the model wrote them."""

    calories: str
    protein: str
    carbs: str
    fats: str


class Ingredient(CamelModel):
    item: str
    amount: str


class Recipe(CamelModel):
    """One generated dish.

    Only dish_name, ingredients, steps and nutrition are required. cooking_time
    and dish_type are passed through as given when present.
    """

    dish_name: Annotated[str, Field(min_length=1, description="Name of the dish")]
    cooking_time: Annotated[Any, Field(description="Average prep + cook time, e.g. '25 mins'")] = None
    dish_type: Annotated[Any, Field(description="'Vegetarian' or 'Non-Vegetarian' (not enforced)")] = None
    ingredients: Annotated[List[Ingredient], Field(min_length=1, description="Items with amounts")]
    steps: Annotated[
        List[Annotated[str, Field(min_length=1)]], Field(min_length=1, description="Ordered cooking steps")
    ]
    nutrition: NutritionFacts

    @property
    def is_vegetarian(self) -> bool:
        return self.dish_type == "Vegetarian"


class RecipeSource(CamelModel):
    """Grounding link. Either part may be missing."""

    uri: Any = None
    title: Any = None


class RecipeSet(CamelModel):
    """Full structured output of one generation request."""

    analysis: Analysis
    recipes: Annotated[List[Recipe], Field(min_length=1, description="Generated recipes (3 requested, 1+ accepted)")]
    sources: Annotated[Optional[List[RecipeSource]], Field(description="Optional grounding sources")] = None


class StoredRecipeSet(RecipeSet):
    """A RecipeSet accepted by the history store. Immutable once created.

    Attribute assignment is rejected; nested lists are ordinary lists. The
    persisted record stays unchanged regardless, because HistoryStore parses
    a fresh instance from storage on every read.
    """

    model_config = ConfigDict(frozen=True)

    id: Annotated[str, Field(min_length=1, description="Opaque unique identifier")]
    timestamp: Annotated[int, Field(ge=0, description="Creation time in epoch milliseconds")]

    def recipe_set(self) -> RecipeSet:
        """Strip id and timestamp, returning the original RecipeSet."""
        data = self.to_json_dict()
        data.pop("id", None)
        data.pop("timestamp", None)
        return RecipeSet.model_validate(data)
