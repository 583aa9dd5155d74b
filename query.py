#!/usr/bin/env python3
"""Ad hoc query runner for Recipe Matcher.

Run searches and recipe lookups directly from the command line.

Usage:
    python query.py "chicken, rice"
    python query.py --filter quick --number 5 "pasta, egg"
    python query.py --debug "chicken, rice"  # Show full JSON outcome
    python query.py --id 800000001  # Show one recipe's detail
    python query.py --id 800000001 --servings 6  # Rescale a recipe's ingredients

Features:
- Ranked recipe table with match score and source indicator
- Recipe detail view with ingredients, steps and nutrition
- Serving customization
- Debug mode to display the full JSON outcome
"""

import asyncio
import sys
from typing import Optional

from rich.console import Console
from rich.table import Table

from recipe_matcher.models.models import CanonicalRecipe, ResolutionOutcome, ScaledRecipe
from recipe_matcher.service.recipe_service import RecipeService, initialize_recipe_service
from recipe_matcher.utils.errors import InvalidRequest, RecipeNotFound
from recipe_matcher.utils.logger import logger

console = Console()

USAGE = 'Usage: python query.py [--filter NAME] [--number N] [--debug] "<ingredients>" | --id ID [--servings N]'


def render_outcome(outcome: ResolutionOutcome) -> None:
    """Print search results as a table."""
    if outcome.fallback_used:
        console.print(f"[yellow]Using {outcome.provenance.value} recipes (live search had no results)[/yellow]")

    table = Table(title=f"Recipes for {', '.join(outcome.ingredients)}")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Match", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Servings", justify="right")
    table.add_column("Source")
    for recipe in outcome.recipes:
        color = "green" if recipe.match_score >= 75 else "yellow" if recipe.match_score >= 50 else "red"
        table.add_row(
            str(recipe.id),
            recipe.title,
            f"[{color}]{recipe.match_score}%[/{color}]",
            f"{recipe.ready_in_minutes} min",
            str(recipe.servings),
            recipe.provenance.value,
        )
    console.print(table)


def render_recipe(recipe: CanonicalRecipe) -> None:
    """Print one recipe's detail view."""
    console.print(f"[bold cyan]{recipe.title}[/bold cyan] [dim]({recipe.provenance.value}, id {recipe.id})[/dim]")
    console.print(f"{recipe.ready_in_minutes} min · {recipe.servings} servings · {recipe.match_score}% match")
    if recipe.summary:
        console.print(recipe.summary)
    if recipe.detail is None:
        return

    console.print("\n[bold]Ingredients[/bold]")
    for line in recipe.detail.ingredients:
        console.print(f"  • {line.original}")
    console.print("\n[bold]Instructions[/bold]")
    for idx, step in enumerate(recipe.detail.instructions, start=1):
        console.print(f"  {idx}. {step}")
    console.print("\n[bold]Nutrition[/bold]")
    console.print("  " + ", ".join(f"{n.title}: {n.amount:g} {n.unit}" for n in recipe.detail.nutrition))
    console.print(f"\n[dim]{recipe.detail.credits_text} · {recipe.detail.source_url}[/dim]")


def render_scaled(scaled: ScaledRecipe) -> None:
    console.print(
        f"[bold cyan]Recipe {scaled.recipe_id}[/bold cyan]: {scaled.original_servings} -> "
        f"{scaled.new_servings} servings (x{scaled.scale_factor:.2f})"
    )
    for line in scaled.ingredients:
        console.print(f"  • {line.original}")


async def _run(
    service: RecipeService,
    ingredients: Optional[str],
    filter_name: Optional[str],
    number: Optional[int],
    recipe_id: Optional[int],
    servings: Optional[int],
    debug: bool,
) -> None:
    if recipe_id is not None and servings is not None:
        scaled = await service.customize_servings(recipe_id, servings)
        if debug:
            console.print_json(data=scaled.model_dump(by_alias=True))
        render_scaled(scaled)
        return

    if recipe_id is not None:
        recipe = await service.get_by_id(recipe_id, ingredients)
        if debug:
            console.print_json(data=recipe.model_dump(by_alias=True))
        render_recipe(recipe)
        return

    outcome = await service.search(ingredients, filter_name, number)
    if debug:
        console.print("[bold cyan]Debug Mode: Full Outcome[/bold cyan]")
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print_json(data=outcome.model_dump(by_alias=True))
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print()
    render_outcome(outcome)


def run_query(
    ingredients: Optional[str],
    filter_name: Optional[str] = None,
    number: Optional[int] = None,
    recipe_id: Optional[int] = None,
    servings: Optional[int] = None,
    debug: bool = False,
) -> None:
    """Execute a single search or recipe lookup and print the result.

    Args:
        ingredients: Comma-separated ingredients (optional with --id, used for the match score).
        filter_name: Optional search filter.
        number: Number of recipes wanted.
        recipe_id: Show this recipe's detail instead of searching.
        servings: With recipe_id, rescale the recipe to this many servings.
        debug: If True, display the full JSON result.
    """
    try:
        service = initialize_recipe_service()
        asyncio.run(_run(service, ingredients, filter_name, number, recipe_id, servings, debug))
    except (InvalidRequest, RecipeNotFound) as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        sys.exit(1)


def _int_flag(flag: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        print(f"Error: {flag} requires an integer, got: {value}")
        sys.exit(1)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(USAGE)
        print("")
        print("Examples:")
        print('  python query.py "chicken, rice"')
        print('  python query.py --filter vegetarian --number 5 "pasta, tomato"')
        print('  python query.py --debug "egg, bread"')
        print("  python query.py --id 800000003")
        print("  python query.py --id 800000003 --servings 6")
        sys.exit(1)

    debug_mode = False
    filter_name = None
    number = None
    recipe_id = None
    servings = None
    argv_start = 1
    value_flags = ("--filter", "--number", "--id", "--servings")

    while argv_start < len(sys.argv) and sys.argv[argv_start].startswith("--"):
        flag = sys.argv[argv_start]
        if flag == "--debug":
            debug_mode = True
            argv_start += 1
        elif flag in value_flags:
            argv_start += 1
            if argv_start >= len(sys.argv):
                print(f"Error: {flag} flag requires a value")
                sys.exit(1)
            value = sys.argv[argv_start]
            if flag == "--filter":
                filter_name = value
            elif flag == "--number":
                number = _int_flag(flag, value)
            elif flag == "--id":
                recipe_id = _int_flag(flag, value)
            else:
                servings = _int_flag(flag, value)
            argv_start += 1
        else:
            print(f"Unknown flag: {flag}")
            sys.exit(1)

    # Join all arguments after flags as the ingredient list (handles unquoted input)
    ingredients = " ".join(sys.argv[argv_start:]) or None

    if ingredients is None and recipe_id is None:
        print("Error: No ingredients provided")
        print(USAGE)
        sys.exit(1)
    if servings is not None and recipe_id is None:
        print("Error: --servings requires --id")
        sys.exit(1)

    run_query(
        ingredients,
        filter_name=filter_name,
        number=number,
        recipe_id=recipe_id,
        servings=servings,
        debug=debug_mode,
    )
