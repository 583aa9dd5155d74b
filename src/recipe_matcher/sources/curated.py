"""In-process curated recipes and generic placeholders.

The curated table maps sorted ingredient-token combinations to literal recipe
records (snake_case, the shape recipes.canonical expects for curated and
emergency provenance). It needs no network and never fails.
"""

from typing import Any, Iterable, Optional, Sequence

_NUTRITION_LIGHT = {
    "nutrients": [
        {"title": "Calories", "amount": 320, "unit": "kcal"},
        {"title": "Protein", "amount": 14, "unit": "g"},
        {"title": "Carbohydrates", "amount": 40, "unit": "g"},
        {"title": "Fat", "amount": 11, "unit": "g"},
    ]
}
_NUTRITION_HEARTY = {
    "nutrients": [
        {"title": "Calories", "amount": 520, "unit": "kcal"},
        {"title": "Protein", "amount": 28, "unit": "g"},
        {"title": "Carbohydrates", "amount": 55, "unit": "g"},
        {"title": "Fat", "amount": 18, "unit": "g"},
    ]
}


def _line(name: str, amount: float, unit: str) -> dict[str, Any]:
    return {"name": name, "amount": amount, "unit": unit}


# Curated ids live in 800,000,001+, below the synthetic id range (900M+)
CURATED_RECIPES: dict[tuple[str, ...], list[dict[str, Any]]] = {
    ("egg", "pasta"): [
        {
            "id": 800_000_001,
            "title": "Pasta Carbonara",
            "ready_in_minutes": 20,
            "servings": 2,
            "summary": "Silky Roman pasta with egg, pepper and a little cheese.",
            "ingredients": [_line("pasta", 200, "g"), _line("egg", 2, ""), _line("parmesan", 40, "g")],
            "instructions": [
                "Boil the pasta in salted water until al dente.",
                "Whisk the eggs with grated parmesan and plenty of black pepper.",
                "Toss the drained pasta off the heat with the egg mixture until creamy.",
            ],
            "diets": ["vegetarian"],
            "dish_types": ["main course"],
            "nutrition": _NUTRITION_HEARTY,
            "vegetarian": True,
            "cheap": True,
            "very_popular": True,
        },
        {
            "id": 800_000_002,
            "title": "Egg Noodle Stir Fry",
            "ready_in_minutes": 15,
            "servings": 2,
            "summary": "Quick noodles scrambled through with egg.",
            "ingredients": [_line("pasta", 150, "g"), _line("egg", 2, ""), _line("soy sauce", 1, "tbsp")],
            "instructions": [
                "Cook the pasta and drain.",
                "Scramble the eggs in a hot oiled pan.",
                "Add the pasta and soy sauce and toss until hot.",
            ],
            "diets": ["vegetarian", "dairy free"],
            "dish_types": ["main course"],
            "nutrition": _NUTRITION_LIGHT,
            "vegetarian": True,
            "dairy_free": True,
            "cheap": True,
        },
    ],
    ("chicken", "rice"): [
        {
            "id": 800_000_003,
            "title": "Chicken Fried Rice",
            "ready_in_minutes": 25,
            "servings": 3,
            "summary": "Leftover rice fried with chicken and vegetables.",
            "ingredients": [
                _line("chicken", 300, "g"),
                _line("rice", 300, "g"),
                _line("egg", 1, ""),
                _line("soy sauce", 2, "tbsp"),
            ],
            "instructions": [
                "Dice the chicken and brown it in a hot oiled pan.",
                "Push aside, scramble the egg, then add the rice.",
                "Season with soy sauce and stir fry until the rice crisps.",
            ],
            "diets": ["dairy free"],
            "dish_types": ["main course"],
            "nutrition": _NUTRITION_HEARTY,
            "dairy_free": True,
            "very_popular": True,
        },
        {
            "id": 800_000_004,
            "title": "One-Pot Chicken and Rice",
            "ready_in_minutes": 40,
            "servings": 4,
            "summary": "Chicken simmered with rice in a single pot.",
            "ingredients": [_line("chicken", 500, "g"), _line("rice", 250, "g"), _line("onion", 1, "")],
            "instructions": [
                "Brown the chicken with the onion.",
                "Add the rice and twice its volume of water.",
                "Cover and simmer for 20 minutes until the rice is tender.",
            ],
            "diets": ["gluten free", "dairy free"],
            "dish_types": ["main course"],
            "nutrition": _NUTRITION_HEARTY,
            "gluten_free": True,
            "dairy_free": True,
            "cheap": True,
        },
    ],
    ("pasta", "tomato"): [
        {
            "id": 800_000_005,
            "title": "Pasta al Pomodoro",
            "ready_in_minutes": 25,
            "servings": 2,
            "summary": "Pasta in a quick tomato and garlic sauce.",
            "ingredients": [_line("pasta", 200, "g"), _line("tomato", 400, "g"), _line("garlic", 2, "cloves")],
            "instructions": [
                "Simmer chopped tomatoes with garlic and olive oil for 15 minutes.",
                "Cook the pasta until al dente.",
                "Toss the pasta through the sauce.",
            ],
            "diets": ["vegan", "vegetarian", "dairy free"],
            "dish_types": ["main course"],
            "nutrition": _NUTRITION_LIGHT,
            "vegan": True,
            "vegetarian": True,
            "dairy_free": True,
            "cheap": True,
            "very_healthy": True,
        },
    ],
    ("egg", "rice"): [
        {
            "id": 800_000_006,
            "title": "Egg Fried Rice",
            "ready_in_minutes": 15,
            "servings": 2,
            "summary": "The classic five-minute fried rice.",
            "ingredients": [_line("rice", 300, "g"), _line("egg", 2, ""), _line("green onion", 2, "")],
            "instructions": [
                "Scramble the eggs in a hot oiled pan.",
                "Add the rice and stir fry until hot.",
                "Finish with sliced green onion.",
            ],
            "diets": ["vegetarian", "dairy free", "gluten free"],
            "dish_types": ["side dish"],
            "nutrition": _NUTRITION_LIGHT,
            "vegetarian": True,
            "dairy_free": True,
            "gluten_free": True,
            "cheap": True,
        },
    ],
    ("bread", "egg"): [
        {
            "id": 800_000_007,
            "title": "French Toast",
            "ready_in_minutes": 15,
            "servings": 2,
            "summary": "Bread soaked in egg and fried golden.",
            "ingredients": [_line("bread", 4, "slices"), _line("egg", 2, ""), _line("milk", 100, "ml")],
            "instructions": [
                "Whisk the eggs with the milk.",
                "Soak the bread slices in the mixture.",
                "Fry in butter until golden on both sides.",
            ],
            "diets": ["vegetarian"],
            "dish_types": ["breakfast"],
            "nutrition": _NUTRITION_LIGHT,
            "vegetarian": True,
            "cheap": True,
        },
    ],
    ("bread", "cheese"): [
        {
            "id": 800_000_008,
            "title": "Grilled Cheese Sandwich",
            "ready_in_minutes": 10,
            "servings": 1,
            "summary": "Crisp buttered bread around melted cheese.",
            "ingredients": [_line("bread", 2, "slices"), _line("cheese", 60, "g"), _line("butter", 1, "tbsp")],
            "instructions": [
                "Butter the outside of both bread slices.",
                "Fill with the cheese.",
                "Fry over medium heat until golden and melted.",
            ],
            "diets": ["vegetarian"],
            "dish_types": ["lunch"],
            "nutrition": _NUTRITION_HEARTY,
            "vegetarian": True,
            "cheap": True,
            "very_popular": True,
        },
    ],
    ("banana", "egg"): [
        {
            "id": 800_000_009,
            "title": "Two-Ingredient Banana Pancakes",
            "ready_in_minutes": 15,
            "servings": 1,
            "summary": "Flourless pancakes from mashed banana and egg.",
            "ingredients": [_line("banana", 1, ""), _line("egg", 2, "")],
            "instructions": [
                "Mash the banana and whisk in the eggs.",
                "Fry small spoonfuls in a buttered pan, flipping once.",
            ],
            "diets": ["vegetarian", "gluten free", "dairy free"],
            "dish_types": ["breakfast"],
            "nutrition": _NUTRITION_LIGHT,
            "vegetarian": True,
            "gluten_free": True,
            "dairy_free": True,
            "cheap": True,
            "very_healthy": True,
        },
    ],
}


def _overlaps(user_tokens: frozenset[str], key: tuple[str, ...]) -> bool:
    """Partial-overlap rule: at least min(|user|, |key|) - 1 shared tokens, and never zero."""
    shared = len(user_tokens.intersection(key))
    return shared >= 1 and shared >= min(len(user_tokens), len(key)) - 1


def lookup(tokens: Iterable[str]) -> list[dict[str, Any]]:
    """Curated records for a set of normalized ingredient tokens.

    An exact key match wins outright. Otherwise every entry whose key
    partially overlaps the tokens is returned, in table order, without
    duplicates. Returns an empty list when nothing matches.
    """
    user_tokens = frozenset(token for token in tokens if token)
    if not user_tokens:
        return []

    exact = CURATED_RECIPES.get(tuple(sorted(user_tokens)))
    if exact:
        return [dict(record) for record in exact]

    seen: set[int] = set()
    matches = []
    for key, records in CURATED_RECIPES.items():
        if not _overlaps(user_tokens, key):
            continue
        for record in records:
            if record["id"] in seen:
                continue
            seen.add(record["id"])
            matches.append(dict(record))
    return matches


def find_by_id(recipe_id: int) -> Optional[dict[str, Any]]:
    """Curated record with the given id, or None."""
    for records in CURATED_RECIPES.values():
        for record in records:
            if record["id"] == recipe_id:
                return dict(record)
    return None


def placeholder_recipes(ingredients: Sequence[str]) -> list[dict[str, Any]]:
    """One trivial single-ingredient recipe per user ingredient.

    Each placeholder lists only its own ingredient, so it scores 100 against
    the user's set. Ids are left out; the normalizer assigns synthetic ones.
    """
    return [
        {
            "title": f"Simple {name.title()}",
            "ready_in_minutes": 15,
            "servings": 2,
            "summary": f"A simple way to enjoy {name}.",
            "ingredients": [_line(name, 1, "cup")],
            "instructions": [
                f"Prepare the {name}.",
                "Cook with a little oil, salt and pepper until done.",
                "Serve warm.",
            ],
        }
        for name in ingredients
        if name
    ]


def emergency_recipes(ingredients: Sequence[str]) -> list[dict[str, Any]]:
    """Two generic recipes (a stir fry and a soup) built from whatever ingredients were given."""
    names = [name for name in ingredients if name]
    first = names[0].title() if names else ""
    joined = " and ".join(names) if names else "your ingredients"
    return [
        {
            "title": f"{first or 'Simple'} Stir Fry",
            "ready_in_minutes": 20,
            "servings": 2,
            "summary": f"A quick stir fry with {joined}.",
            "ingredients": [_line(name, 1, "cup") for name in names],
            "instructions": [
                f"Chop {joined}",
                "Heat oil in a pan",
                "Add ingredients and stir fry for 10-15 minutes",
                "Season with salt and pepper",
                "Serve hot",
            ],
            "nutrition": {
                "nutrients": [
                    {"title": "Calories", "amount": 350, "unit": "kcal"},
                    {"title": "Protein", "amount": 15, "unit": "g"},
                    {"title": "Carbohydrates", "amount": 45, "unit": "g"},
                    {"title": "Fat", "amount": 12, "unit": "g"},
                ]
            },
        },
        {
            "title": f"{first or 'Quick'} Soup",
            "ready_in_minutes": 25,
            "servings": 4,
            "summary": f"A warming soup with {joined}.",
            "ingredients": [_line(name, 2, "cups") for name in names],
            "instructions": [
                f"Dice {', '.join(names) if names else 'your ingredients'}",
                "Boil 4 cups of water",
                "Add ingredients and simmer for 20 minutes",
                "Add seasonings of your choice",
                "Serve warm with bread",
            ],
            "nutrition": {
                "nutrients": [
                    {"title": "Calories", "amount": 200, "unit": "kcal"},
                    {"title": "Protein", "amount": 8, "unit": "g"},
                    {"title": "Carbohydrates", "amount": 30, "unit": "g"},
                    {"title": "Fat", "amount": 6, "unit": "g"},
                ]
            },
        },
    ]
