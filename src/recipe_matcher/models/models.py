"""Data models and schemas for recipe matching service.

Defines Pydantic models for the canonical recipe record, resolution outcomes
and validated generative-service output. All models use Pydantic v2; records
handed to callers are frozen and serialize with camelCase aliases
(model_dump(by_alias=True)) for the HTTP layer.
"""

from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel


class Provenance(str, Enum):
    """Which resolution strategy produced a recipe record."""

    LIVE = "live"
    CURATED = "curated"
    GENERATED = "generated"
    EMERGENCY = "emergency"


class FilterKind(str, Enum):
    """Search refinements offered to the user."""

    QUICK = "quick"
    HEALTHY = "healthy"
    COMFORT = "comfort"
    SPICY = "spicy"
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    GLUTENFREE = "glutenfree"
    SWEET = "sweet"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["FilterKind"]:
        """Parse a filter name case-insensitively ("Gluten-Free" -> GLUTENFREE).

        Returns None for empty or unknown names.
        """
        if value is None:
            return None
        if isinstance(value, FilterKind):
            return value
        key = "".join(ch for ch in str(value).lower() if ch.isalpha())
        try:
            return cls(key)
        except ValueError:
            return None


class _FrozenCamelModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class IngredientLine(_FrozenCamelModel):
    """One ingredient as shown on a recipe detail view."""

    name: Annotated[str, Field(description="Ingredient name used for matching")]
    original: Annotated[str, Field(description="Ingredient line as written, e.g. '2 cups rice'")]
    amount: Annotated[float, Field(0.0, ge=0, description="Quantity in `unit`")]
    unit: Annotated[str, Field("", description="Unit of measure (may be empty)")]


class Nutrient(_FrozenCamelModel):
    title: str
    amount: Annotated[float, Field(ge=0)]
    unit: str


class RecipeDetail(_FrozenCamelModel):
    """Full recipe payload, only populated for detail views."""

    ingredients: Annotated[List[IngredientLine], Field(default_factory=list, max_length=100)]
    instructions: Annotated[List[str], Field(default_factory=list, max_length=100)]
    nutrition: Annotated[List[Nutrient], Field(default_factory=list)]
    diets: Annotated[List[str], Field(default_factory=list)]
    dish_types: Annotated[List[str], Field(default_factory=list)]
    credits_text: Annotated[str, Field("Recipe Matcher")]
    source_url: Annotated[str, Field("#", max_length=500)]


class CanonicalRecipe(_FrozenCamelModel):
    """Unified recipe record produced from any provider payload.

    Every field has a value regardless of what the provider sent; the recipe
    normalizer fills defaults. `detail` is None in search results and set for
    detail views.
    """

    id: Annotated[int, Field(description="Recipe id, unique within a run")]
    title: Annotated[str, Field(min_length=1, max_length=200, description="Recipe name (1-200 chars)")]
    image: Annotated[str, Field(max_length=500, description="URL to recipe image or placeholder")]
    ready_in_minutes: Annotated[int, Field(ge=0, le=1440, description="Total time (prep + cook) in minutes")]
    servings: Annotated[int, Field(ge=1, le=100, description="Number of servings")]
    match_score: Annotated[int, Field(ge=0, le=100, description="Ingredient match percentage")]
    cheap: bool = False
    dairy_free: bool = False
    gluten_free: bool = False
    vegan: bool = False
    vegetarian: bool = False
    very_healthy: bool = False
    very_popular: bool = False
    provenance: Annotated[Provenance, Field(description="Strategy that produced this record")]
    summary: Annotated[Optional[str], Field(None, max_length=1000)]
    detail: Optional[RecipeDetail] = None


class ResolutionOutcome(_FrozenCamelModel):
    """Ranked result of one search, with an honest source indicator."""

    recipes: Annotated[List[CanonicalRecipe], Field(default_factory=list)]
    provenance: Provenance
    fallback_used: Annotated[bool, Field(description="True when the live source did not supply the results")]
    success: bool = True
    ingredients: Annotated[List[str], Field(default_factory=list, description="Normalized user ingredients, sorted")]

    @computed_field
    @property
    def count(self) -> int:
        return len(self.recipes)


class MatchExplanation(_FrozenCamelModel):
    """Match score plus the recipe tokens behind it."""

    score: Annotated[int, Field(ge=0, le=100)]
    exact: List[str] = Field(default_factory=list)
    related: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)


class ScaledRecipe(_FrozenCamelModel):
    """Ingredient list of a recipe rescaled to a new serving count."""

    recipe_id: int
    original_servings: Annotated[int, Field(ge=1)]
    new_servings: Annotated[int, Field(ge=1)]
    scale_factor: Annotated[float, Field(gt=0)]
    ingredients: List[IngredientLine] = Field(default_factory=list)


class GeneratedRecipe(BaseModel):
    """One recipe as returned by the generative service, before normalization.

    Lenient by design of the prompt contract: ingredients may be plain strings
    or {name, amount, unit} objects, instructions a list or one string.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: Annotated[str, Field(min_length=1, max_length=200)]
    summary: Optional[str] = None
    ready_in_minutes: Annotated[Optional[int], Field(None, ge=0, le=1440)]
    servings: Annotated[Optional[int], Field(None, ge=1, le=100)]
    ingredients: Annotated[List[dict[str, Any]], Field(min_length=1, max_length=50)]
    instructions: Annotated[List[str], Field(default_factory=list, max_length=50)]
    diets: List[str] = Field(default_factory=list)

    @field_validator("ingredients", mode="before")
    @classmethod
    def coerce_ingredients(cls, value: Any) -> list[dict[str, Any]]:
        """Accept ["rice", {"name": "egg", "amount": 2}] and normalize to dicts with a name."""
        if not isinstance(value, list):
            raise ValueError("ingredients must be a list")
        coerced = []
        for item in value:
            if isinstance(item, str) and item.strip():
                coerced.append({"name": item.strip()})
            elif isinstance(item, dict) and str(item.get("name", "")).strip():
                coerced.append(item)
        return coerced

    @field_validator("instructions", mode="before")
    @classmethod
    def coerce_instructions(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [line.strip() for line in value.splitlines() if line.strip()]
        if isinstance(value, list):
            return [str(step).strip() for step in value if str(step).strip()]
        raise ValueError("instructions must be a list or a string")
