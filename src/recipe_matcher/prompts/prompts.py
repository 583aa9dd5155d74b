"""Prompts for the generative recipe fallback.

Provides a factory function that builds the Gemini prompt for a set of
ingredients, an optional style hint (from the search filter) and a recipe
count. The prompt pins the response to a JSON shape that GeneratedRecipe
validates.
"""

from typing import Optional, Sequence

from recipe_matcher.models.models import FilterKind

# Style hints mirror what the live source's filter constraints express
STYLE_HINTS: dict[FilterKind, str] = {
    FilterKind.QUICK: "Every recipe must be ready in 30 minutes or less.",
    FilterKind.HEALTHY: "Keep every recipe light and nutritious, under about 500 kcal per serving.",
    FilterKind.COMFORT: "Favor hearty, cozy comfort food.",
    FilterKind.SPICY: "Make every recipe noticeably spicy.",
    FilterKind.VEGETARIAN: "Every recipe must be vegetarian (no meat or fish).",
    FilterKind.VEGAN: "Every recipe must be vegan (no animal products at all).",
    FilterKind.GLUTENFREE: "Every recipe must be gluten-free.",
    FilterKind.SWEET: "Every recipe must be a dessert or sweet treat.",
}

RESPONSE_FORMAT = """Return ONLY valid JSON in this exact format:
{"recipes": [{"title": "<name>", "summary": "<one sentence>", "ready_in_minutes": <int>, "servings": <int>,
  "ingredients": [{"name": "<ingredient>", "amount": <number>, "unit": "<unit>"}],
  "instructions": ["<step 1>", "<step 2>"],
  "diets": ["vegetarian" | "vegan" | "gluten free" | "dairy free"]}]}"""


def _get_style_section(style: Optional[FilterKind]) -> str:
    if style is None:
        return ""
    return f"\n## Style\n{STYLE_HINTS[style]}\n"


def build_generation_prompt(
    ingredients: Sequence[str],
    count: int,
    style: Optional[FilterKind] = None,
) -> str:
    """Generate the recipe-generation prompt.

    Args:
        ingredients: Raw ingredient names the user has on hand.
        count: Number of recipes to request.
        style: Optional filter to express as a style constraint.

    Returns:
        str: Complete prompt text.
    """
    ingredient_list = "\n".join(f"- {name}" for name in ingredients)
    return f"""You are a practical home-cooking assistant.

## Task
Suggest {count} different recipes that can be cooked using ONLY the ingredients below,
plus pantry basics (salt, pepper, oil, water). Use each listed ingredient by its given name.

## Ingredients
{ingredient_list}
{_get_style_section(style)}
## Rules
- Keep instructions short and concrete, one action per step
- Use realistic times and serving counts
- List only diets the recipe actually satisfies

{RESPONSE_FORMAT}
"""
