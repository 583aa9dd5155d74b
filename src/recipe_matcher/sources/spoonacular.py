"""Spoonacular REST client with timeouts and retry logic.

This module provides the SpoonacularClient class used as the live recipe
source: ingredient-based search (with filter constraints), per-recipe
information lookup, and concurrent enrichment of basic search hits. Every
failure surfaces as SourceUnavailable or MalformedResponse so the resolution
pipeline can fall back.
"""

import asyncio
import json
from typing import Any, Optional, Sequence

import aiohttp

from recipe_matcher.models.models import FilterKind
from recipe_matcher.utils.errors import MalformedResponse, RecipeNotFound, SourceUnavailable
from recipe_matcher.utils.logger import logger
from recipe_matcher.utils.safe_execute import safe_execute_async

DEFAULT_BASE_URL = "https://api.spoonacular.com"

# Query constraints per filter (aiohttp only accepts str/int/float query values)
FILTER_PARAMS: dict[FilterKind, dict[str, Any]] = {
    FilterKind.QUICK: {"maxReadyTime": 30},
    FilterKind.HEALTHY: {"maxCalories": 500, "diet": "vegetarian"},
    FilterKind.COMFORT: {"sort": "popularity", "maxCalories": 800},
    FilterKind.SPICY: {"query": "spicy"},
    FilterKind.VEGETARIAN: {"diet": "vegetarian"},
    FilterKind.VEGAN: {"diet": "vegan"},
    FilterKind.GLUTENFREE: {"intolerances": "gluten"},
    FilterKind.SWEET: {"type": "dessert"},
}


def filter_params(filter_kind: Optional[FilterKind]) -> dict[str, Any]:
    """Spoonacular query constraints for a filter (empty dict for no filter)."""
    if filter_kind is None:
        return {}
    return dict(FILTER_PARAMS[filter_kind])


def needs_enrichment(candidate: dict[str, Any]) -> bool:
    """True for basic search hits (findByIngredients) that lack time/servings/flags."""
    return "readyInMinutes" not in candidate


class SpoonacularClient:
    """Async client for the Spoonacular recipe API.

    Each call is bounded by `timeout` seconds. Transient failures (network
    errors, timeouts, 429 and 5xx) are retried with the configured delays;
    everything else fails immediately.
    """

    SOURCE = "spoonacular"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 5.0,
        max_retries: int = 2,
        retry_delays: Optional[list[float]] = None,
    ) -> None:
        """Initialize SpoonacularClient with configuration.

        Args:
            api_key: Spoonacular API key for authentication.
            base_url: API root URL.
            timeout: Total timeout per HTTP request in seconds (default: 5.0).
            max_retries: Attempts per call, including the first (default: 2).
            retry_delays: Delay in seconds before each retry. If None, defaults to [0.5, 1.0].

        Raises:
            ValueError: If api_key is None or empty string.
        """
        if not api_key:
            raise ValueError("SPOONACULAR_API_KEY is required")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delays = retry_delays or [0.5, 1.0]

    async def _request(self, path: str, params: dict[str, Any]) -> Any:
        """Issue one GET request and decode its JSON body (no retries).

        Raises:
            SourceUnavailable: Network error, timeout or non-200 status.
            MalformedResponse: Body is not valid JSON.
        """
        query = {"apiKey": self.api_key, **params}
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(f"{self.base_url}{path}", params=query) as response:
                    if response.status != 200:
                        raise SourceUnavailable(
                            self.SOURCE, f"HTTP {response.status} for {path}", status=response.status
                        )
                    try:
                        return await response.json(content_type=None)
                    except (json.JSONDecodeError, ValueError) as e:
                        raise MalformedResponse(f"{self.SOURCE}: invalid JSON from {path}: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SourceUnavailable(self.SOURCE, f"{type(e).__name__} for {path}: {e}") from e

    @staticmethod
    def _is_transient(error: SourceUnavailable) -> bool:
        return error.status is None or error.status == 429 or error.status >= 500

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        """GET with retries on transient failures."""
        for attempt in range(self.max_retries):
            try:
                logger.debug(f"Spoonacular GET {path} (attempt {attempt + 1}/{self.max_retries})")
                return await self._request(path, params)
            except SourceUnavailable as e:
                if not self._is_transient(e) or attempt == self.max_retries - 1:
                    raise
                delay = self.retry_delays[min(attempt, len(self.retry_delays) - 1)]
                logger.warning(
                    f"Spoonacular request failed ({e}), retrying in {delay}s... "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )
                await asyncio.sleep(delay)
        raise SourceUnavailable(self.SOURCE, f"no attempts made for {path}")

    async def find_by_ingredients(self, ingredients: Sequence[str], number: int) -> list[dict[str, Any]]:
        """Partial-match search: recipes using as many of the ingredients as possible."""
        data = await self._get(
            "/recipes/findByIngredients",
            {
                "ingredients": ",".join(ingredients),
                "number": number,
                "ranking": 2,
                "ignorePantry": "true",
            },
        )
        if not isinstance(data, list):
            raise MalformedResponse(f"{self.SOURCE}: findByIngredients returned {type(data).__name__}, expected list")
        return [item for item in data if isinstance(item, dict)]

    async def complex_search(
        self,
        ingredients: Sequence[str],
        number: int,
        constraints: Optional[dict[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        """Filtered search including the ingredients, with recipe information and used/missed lists."""
        params: dict[str, Any] = {
            "includeIngredients": ",".join(ingredients),
            "number": number,
            "sort": "max-used-ingredients",
            "ignorePantry": "true",
            "fillIngredients": "true",
            "addRecipeInformation": "true",
        }
        params.update(constraints or {})
        data = await self._get("/recipes/complexSearch", params)
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise MalformedResponse(f"{self.SOURCE}: complexSearch response has no results list")
        return [item for item in results if isinstance(item, dict)]

    async def search_by_ingredients(
        self,
        ingredients: Sequence[str],
        number: int,
        filter_kind: Optional[FilterKind] = None,
    ) -> list[dict[str, Any]]:
        """Ingredient-based search honoring an optional filter.

        Unfiltered searches use findByIngredients and fall back to complexSearch
        when it fails; filtered searches go straight to complexSearch, the only
        endpoint that accepts the filter constraints.
        """
        constraints = filter_params(filter_kind)
        if not constraints:
            try:
                return await self.find_by_ingredients(ingredients, number)
            except SourceUnavailable as e:
                logger.info(f"Ingredient search failed ({e}), trying general search")
        return await self.complex_search(ingredients, number, constraints)

    async def get_information(self, recipe_id: int, include_nutrition: bool = False) -> dict[str, Any]:
        """Full recipe information for one id.

        Raises:
            RecipeNotFound: Spoonacular answered 404.
            SourceUnavailable: Any other transport or status failure.
            MalformedResponse: Response is not a recipe object.
        """
        try:
            data = await self._get(
                f"/recipes/{recipe_id}/information",
                {"includeNutrition": "true" if include_nutrition else "false"},
            )
        except SourceUnavailable as e:
            if e.status == 404:
                raise RecipeNotFound(recipe_id) from e
            raise
        if not isinstance(data, dict):
            raise MalformedResponse(f"{self.SOURCE}: information for {recipe_id} is not an object")
        return data

    async def enrich(self, candidates: list[dict[str, Any]], concurrency: int = 5) -> list[dict[str, Any]]:
        """Merge full information into basic search hits, fetching concurrently.

        A failed fetch keeps that candidate's basic fields; it never aborts the
        batch. Order is preserved.
        """
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def _enrich_one(candidate: dict[str, Any]) -> dict[str, Any]:
            if not needs_enrichment(candidate) or candidate.get("id") is None:
                return candidate
            async with semaphore:
                info = await safe_execute_async(
                    self.get_information(candidate["id"]),
                    f"Enrich Spoonacular recipe {candidate['id']}",
                    log_level="warning",
                    default_return=None,
                    source=self.SOURCE,
                )
            if info is None:
                return candidate
            return {**candidate, **info}

        return list(await asyncio.gather(*(_enrich_one(candidate) for candidate in candidates)))
