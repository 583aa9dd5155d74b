"""Ingredient match scoring.

The match percentage measures how much of a recipe's ingredient list the user
already has, evaluated from the recipe's side:

- a recipe ingredient present in the user's set counts 1.0
- otherwise, one related to any user ingredient (substring either way) counts 0.5
- percentage = round_half_up(100 * total / number of recipe ingredients)

A recipe needing 4 ingredients where the user has 2 exactly and 1 related
scores round(100 * 2.5 / 4) = 63. Scores are pure functions of their inputs.
"""

from typing import Iterable, Sequence

from recipe_matcher.matching.normalizer import ingredient_set, is_related, normalize
from recipe_matcher.models.models import MatchExplanation


def _percentage(half_points: int, total: int) -> int:
    """Round 100 * (half_points / 2) / total half-up, in integer arithmetic."""
    if total <= 0:
        return 0
    value = (100 * half_points + total) // (2 * total)
    return max(0, min(100, value))


def explain_match(user_ingredients: Iterable[str], recipe_ingredients: Iterable[str]) -> MatchExplanation:
    """Score a recipe against the user's ingredients and say which tokens counted.

    Args:
        user_ingredients: Raw ingredient names the user has.
        recipe_ingredients: Raw ingredient names the recipe needs.

    Returns:
        MatchExplanation with the score and the exact/related/missing recipe tokens,
        each list sorted for stable output.
    """
    user_set = ingredient_set(user_ingredients)
    recipe_set = ingredient_set(recipe_ingredients)

    exact: list[str] = []
    related: list[str] = []
    missing: list[str] = []
    for token in sorted(recipe_set):
        if token in user_set:
            exact.append(token)
        elif any(is_related(token, user_token) for user_token in user_set):
            related.append(token)
        else:
            missing.append(token)

    half_points = 2 * len(exact) + len(related)
    return MatchExplanation(
        score=_percentage(half_points, len(recipe_set)),
        exact=exact,
        related=related,
        missing=missing,
    )


def score(user_ingredients: Sequence[str], recipe_ingredients: Sequence[str]) -> int:
    """Match percentage (0-100) of a recipe's ingredients covered by the user's."""
    return explain_match(user_ingredients, recipe_ingredients).score


def missing_ingredients(user_ingredients: Iterable[str], recipe_ingredients: Iterable[str]) -> list[str]:
    """Recipe ingredient names (as written) that the user has nothing equivalent or related to.

    Used to build a shopping list for a recipe. Order follows the recipe.
    """
    user_set = ingredient_set(user_ingredients)
    missing: list[str] = []
    for name in recipe_ingredients:
        token = normalize(name) if isinstance(name, str) else ""
        if not token:
            continue
        if token in user_set or any(is_related(token, user_token) for user_token in user_set):
            continue
        missing.append(name)
    return missing
