"""Recipe normalization into the canonical record.

Each source ships recipes in its own shape:
1. Live (Spoonacular): camelCase keys, ingredients as extendedIngredients or
   as usedIngredients/missedIngredients sub-lists on partial-match searches
2. Curated table / emergency placeholders: snake_case literal records
3. Generated (Gemini): validated GeneratedRecipe dumps, diets as a tag list

One field mapper per provenance turns a payload into canonical field values;
to_canonical() then fills defaults, scores the ingredient match, and builds the
CanonicalRecipe. Result: downstream code never sees provider shapes or missing
fields.
"""

import re
import zlib
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence

from pydantic import ValidationError

from recipe_matcher.matching.scorer import score
from recipe_matcher.models.models import (
    CanonicalRecipe,
    IngredientLine,
    Nutrient,
    Provenance,
    RecipeDetail,
)
from recipe_matcher.utils.errors import MalformedResponse
from recipe_matcher.utils.logger import logger

DEFAULT_TITLE = "Delicious Recipe"
DEFAULT_READY_IN_MINUTES = 30
DEFAULT_SERVINGS = 4
DEFAULT_PLACEHOLDER_IMAGE = "https://via.placeholder.com/312x231?text=Recipe+Image"
DEFAULT_SUMMARY = "A delicious recipe you'll love!"
DEFAULT_SOURCE_URL = "#"

# Ids for records no provider assigned: 900,000,000 - 999,999,999
SYNTHETIC_ID_BASE = 900_000_000
_SYNTHETIC_ID_SPAN = 100_000_000

_FLAG_FIELDS = ("cheap", "dairy_free", "gluten_free", "vegan", "vegetarian", "very_healthy", "very_popular")
_HTML_TAG_RE = re.compile(r"<[^>]+>")
_HTML_BREAK_RE = re.compile(r"</li>|<br\s*/?>|</p>", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class NormalizationContext:
    """What the normalizer needs besides the payload itself."""

    user_ingredients: tuple[str, ...]
    provenance: Provenance
    placeholder_image: str = DEFAULT_PLACEHOLDER_IMAGE


def synthetic_recipe_id(provenance: Provenance, title: str) -> int:
    """Deterministic id for a record without a provider id (same title, same id)."""
    digest = zlib.crc32(f"{provenance.value}:{title.lower()}".encode("utf-8"))
    return SYNTHETIC_ID_BASE + digest % _SYNTHETIC_ID_SPAN


# ============================================================================
# Coercion Helpers (degrade one field at a time, never raise)
# ============================================================================


def _as_int(value: Any, default: int, low: int, high: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    if number < low:
        return default
    return min(number, high)


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if number >= 0 else 0.0


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() in ("true", "yes", "1")


def _as_text(value: Any, default: Optional[str], max_length: int) -> Optional[str]:
    if not isinstance(value, str):
        return default
    text = _WHITESPACE_RE.sub(" ", value).strip()
    if not text:
        return default
    if len(text) > max_length:
        text = text[: max_length - 3].rstrip() + "..."
    return text


def _as_image(value: Any, placeholder: str) -> str:
    if isinstance(value, str) and value.strip() and len(value.strip()) <= 500:
        return value.strip()
    return placeholder


def _strip_html(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return _HTML_TAG_RE.sub("", value)


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


# ============================================================================
# Ingredient Extraction
# ============================================================================


def _ingredient_name(item: Any) -> Optional[str]:
    if isinstance(item, str):
        return item.strip() or None
    if isinstance(item, Mapping):
        name = _first(item, "name", "nameClean", "original")
        if isinstance(name, str) and name.strip():
            return name.strip()
    return None


def _ingredient_items(payload: Mapping[str, Any]) -> list[Any]:
    """Raw ingredient entries in precedence order: full list, used+missed union, flat names."""
    full = _first(payload, "extendedIngredients", "ingredients")
    if isinstance(full, (list, tuple)) and full:
        return list(full)

    combined = _as_list(payload.get("usedIngredients")) + _as_list(payload.get("missedIngredients"))
    if combined:
        return combined

    return _as_list(payload.get("ingredientNames"))


def extract_ingredient_names(payload: Mapping[str, Any]) -> list[str]:
    """Ingredient names of a recipe payload, whatever shape the provider used."""
    names = (_ingredient_name(item) for item in _ingredient_items(payload))
    return [name for name in names if name]


# ============================================================================
# Field Mappers (one per provenance)
# ============================================================================


def _live_fields(payload: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "id": payload.get("id"),
        "title": payload.get("title"),
        "image": payload.get("image"),
        "ready_in_minutes": payload.get("readyInMinutes"),
        "servings": payload.get("servings"),
        "summary": _strip_html(payload.get("summary")),
        "cheap": payload.get("cheap"),
        "dairy_free": payload.get("dairyFree"),
        "gluten_free": payload.get("glutenFree"),
        "vegan": payload.get("vegan"),
        "vegetarian": payload.get("vegetarian"),
        "very_healthy": payload.get("veryHealthy"),
        "very_popular": payload.get("veryPopular"),
    }


def _literal_fields(payload: Mapping[str, Any]) -> dict[str, Any]:
    fields = {key: payload.get(key) for key in ("id", "title", "image", "ready_in_minutes", "servings", "summary")}
    fields.update({flag: payload.get(flag) for flag in _FLAG_FIELDS})
    return fields


def _generated_fields(payload: Mapping[str, Any]) -> dict[str, Any]:
    diets = {_WHITESPACE_RE.sub("", diet.lower()).replace("-", "") for diet in _str_list(payload.get("diets"))}
    fields = _literal_fields(payload)
    # Provider ids are never trusted for generated recipes
    fields["id"] = None
    fields["vegan"] = "vegan" in diets
    fields["vegetarian"] = "vegetarian" in diets or "vegan" in diets
    fields["gluten_free"] = "glutenfree" in diets
    fields["dairy_free"] = "dairyfree" in diets or "vegan" in diets
    return fields


_FIELD_MAPPERS: dict[Provenance, Callable[[Mapping[str, Any]], dict[str, Any]]] = {
    Provenance.LIVE: _live_fields,
    Provenance.CURATED: _literal_fields,
    Provenance.GENERATED: _generated_fields,
    Provenance.EMERGENCY: _literal_fields,
}

_DEFAULT_CREDITS: dict[Provenance, str] = {
    Provenance.LIVE: "Spoonacular",
    Provenance.CURATED: "Recipe Matcher kitchen",
    Provenance.GENERATED: "Generated by Gemini",
    Provenance.EMERGENCY: "Recipe Matcher kitchen",
}


# ============================================================================
# Detail Payload
# ============================================================================


def _ingredient_lines(payload: Mapping[str, Any]) -> list[IngredientLine]:
    lines = []
    for item in _ingredient_items(payload)[:100]:
        name = _ingredient_name(item)
        if not name:
            continue
        if isinstance(item, Mapping):
            amount = _as_float(item.get("amount"))
            unit = item.get("unit") if isinstance(item.get("unit"), str) else ""
            original = _as_text(item.get("original"), None, 300)
            if original is None:
                original = " ".join(part for part in (f"{amount:g}" if amount else "", unit, name) if part)
            lines.append(IngredientLine(name=name, original=original, amount=amount, unit=unit))
        else:
            lines.append(IngredientLine(name=name, original=name))
    return lines


def _instruction_steps(payload: Mapping[str, Any]) -> list[str]:
    analyzed = _first(payload, "analyzedInstructions", "analyzed_instructions")
    steps: list[str] = []
    if isinstance(analyzed, list):
        for block in analyzed:
            block_steps = block.get("steps") if isinstance(block, Mapping) else None
            if isinstance(block_steps, str):
                block_steps = [block_steps]
            for step in _as_list(block_steps):
                text = step.get("step") if isinstance(step, Mapping) else step
                text = _as_text(text, None, 1000)
                if text:
                    steps.append(text)
    if steps:
        return steps[:100]

    raw = payload.get("instructions")
    if isinstance(raw, str):
        raw = _HTML_TAG_RE.sub("", _HTML_BREAK_RE.sub("\n", raw)).splitlines()
    for line in raw if isinstance(raw, list) else []:
        text = _as_text(line, None, 1000)
        if text:
            steps.append(text)
    return steps[:100]


def _nutrients(payload: Mapping[str, Any]) -> list[Nutrient]:
    nutrition = payload.get("nutrition")
    raw = nutrition.get("nutrients") if isinstance(nutrition, Mapping) else None
    nutrients = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, Mapping):
            continue
        title = _as_text(_first(item, "title", "name"), None, 100)
        if title:
            unit = item.get("unit") if isinstance(item.get("unit"), str) else ""
            nutrients.append(Nutrient(title=title, amount=_as_float(item.get("amount")), unit=unit))
    if nutrients:
        return nutrients
    return [
        Nutrient(title="Calories", amount=0, unit="kcal"),
        Nutrient(title="Protein", amount=0, unit="g"),
        Nutrient(title="Carbohydrates", amount=0, unit="g"),
        Nutrient(title="Fat", amount=0, unit="g"),
    ]


def build_detail(payload: Mapping[str, Any], provenance: Provenance) -> RecipeDetail:
    """Detail-view payload (ingredient lines, steps, nutrition, labels) for one recipe."""
    return RecipeDetail(
        ingredients=_ingredient_lines(payload),
        instructions=_instruction_steps(payload),
        nutrition=_nutrients(payload),
        diets=_str_list(payload.get("diets")),
        dish_types=_str_list(_first(payload, "dishTypes", "dish_types")),
        credits_text=_as_text(_first(payload, "creditsText", "credits_text"), _DEFAULT_CREDITS[provenance], 200),
        source_url=_as_text(_first(payload, "sourceUrl", "source_url"), DEFAULT_SOURCE_URL, 500),
    )


# ============================================================================
# Entry Point
# ============================================================================


def to_canonical(
    payload: Mapping[str, Any],
    context: NormalizationContext,
    *,
    with_detail: bool = False,
) -> CanonicalRecipe:
    """Normalize one provider payload into a CanonicalRecipe.

    Missing or malformed fields fall back to defaults one by one (30 minutes,
    4 servings, placeholder image, all flags False). Provenance always comes
    from the context, never from the payload's shape.

    Args:
        payload: Provider recipe object.
        context: User ingredients to score against and the payload's provenance.
        with_detail: Also build the detail payload and a default summary.

    Returns:
        CanonicalRecipe with match_score computed against context.user_ingredients.

    Raises:
        MalformedResponse: If payload is not a mapping at all.
    """
    if not isinstance(payload, Mapping):
        raise MalformedResponse(f"Expected a recipe object, got {type(payload).__name__}")

    provenance = context.provenance
    fields = _FIELD_MAPPERS[provenance](payload)

    title = _as_text(fields["title"], DEFAULT_TITLE, 200)
    recipe_id = _as_int(fields["id"], 0, 1, 2**63 - 1) or synthetic_recipe_id(provenance, title)
    summary = _as_text(fields["summary"], DEFAULT_SUMMARY if with_detail else None, 1000)

    return CanonicalRecipe(
        id=recipe_id,
        title=title,
        image=_as_image(fields["image"], context.placeholder_image),
        ready_in_minutes=_as_int(fields["ready_in_minutes"], DEFAULT_READY_IN_MINUTES, 1, 1440),
        servings=_as_int(fields["servings"], DEFAULT_SERVINGS, 1, 100),
        match_score=score(context.user_ingredients, extract_ingredient_names(payload)),
        provenance=provenance,
        summary=summary,
        detail=build_detail(payload, provenance) if with_detail else None,
        **{flag: _as_bool(fields[flag]) for flag in _FLAG_FIELDS},
    )


def normalize_batch(
    payloads: Sequence[Any],
    context: NormalizationContext,
    *,
    with_detail: bool = False,
) -> list[CanonicalRecipe]:
    """Normalize a list of payloads, skipping (and not failing on) unrecognizable entries."""
    records = []
    for payload in payloads:
        try:
            records.append(to_canonical(payload, context, with_detail=with_detail))
        except MalformedResponse as e:
            logger.debug(f"Skipping {context.provenance.value} candidate: {e}")
        except ValidationError as e:
            logger.warning(
                f"Skipping {context.provenance.value} candidate: {e.error_count()} invalid field(s)",
                extra={"provenance": context.provenance.value},
            )
    return records


def without_detail(recipe: CanonicalRecipe) -> CanonicalRecipe:
    """List-view copy of a recipe (detail dropped)."""
    if recipe.detail is None:
        return recipe
    return recipe.model_copy(update={"detail": None})
