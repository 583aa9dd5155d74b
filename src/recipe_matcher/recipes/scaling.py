"""Serving-size scaling for recipe ingredient lists."""

from recipe_matcher.models.models import CanonicalRecipe, IngredientLine, ScaledRecipe
from recipe_matcher.recipes.canonical import DEFAULT_SERVINGS
from recipe_matcher.utils.errors import InvalidRequest


def _format_amount(amount: float) -> str:
    return f"{amount:g}"


def scale_servings(recipe: CanonicalRecipe, new_servings: int) -> ScaledRecipe:
    """Rescale a recipe's ingredient amounts to a new number of servings.

    Amounts are multiplied by new_servings / original servings and rounded to
    two decimals; each line's text is rebuilt as "{amount} {unit} {name}".

    Args:
        recipe: Recipe with a detail payload (ingredient lines).
        new_servings: Desired servings, at least 1.

    Returns:
        ScaledRecipe with the scale factor and scaled ingredient lines.

    Raises:
        InvalidRequest: If new_servings is not a positive integer or the recipe has no detail.
    """
    if isinstance(new_servings, bool) or not isinstance(new_servings, int) or new_servings < 1:
        raise InvalidRequest("Valid servings number required")
    if recipe.detail is None:
        raise InvalidRequest(f"Recipe {recipe.id} has no ingredient details to scale")

    original_servings = recipe.servings or DEFAULT_SERVINGS
    scale_factor = new_servings / original_servings

    scaled = []
    for line in recipe.detail.ingredients:
        amount = round(line.amount * scale_factor, 2)
        original = " ".join(part for part in (_format_amount(amount), line.unit, line.name) if part)
        scaled.append(IngredientLine(name=line.name, original=original, amount=amount, unit=line.unit))

    return ScaledRecipe(
        recipe_id=recipe.id,
        original_servings=original_servings,
        new_servings=new_servings,
        scale_factor=scale_factor,
        ingredients=scaled,
    )
