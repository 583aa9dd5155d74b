"""Recipe service: search, detail lookup, serving customization and status.

Factory function initialize_recipe_service() wires configuration, source
clients, resolution strategies and caches together once per process; the
returned RecipeService is the entry point for callers (CLI or HTTP layer).
"""

from typing import Any, Optional, Sequence

from recipe_matcher.matching.normalizer import parse_ingredients
from recipe_matcher.matching.scorer import missing_ingredients, score
from recipe_matcher.models.models import CanonicalRecipe, FilterKind, Provenance, ResolutionOutcome, ScaledRecipe
from recipe_matcher.pipeline.cache import DetailCache, ResultCache
from recipe_matcher.pipeline.resolver import RecipeResolver, ResolutionContext
from recipe_matcher.pipeline.strategies import (
    CuratedStrategy,
    EmergencyStrategy,
    GenerativeStrategy,
    LiveSearchStrategy,
    ResolutionStrategy,
)
from recipe_matcher.recipes.canonical import NormalizationContext, to_canonical
from recipe_matcher.recipes.scaling import scale_servings
from recipe_matcher.sources import curated
from recipe_matcher.sources.gemini import GeminiRecipeGenerator
from recipe_matcher.sources.spoonacular import SpoonacularClient
from recipe_matcher.utils.config import Config, config
from recipe_matcher.utils.errors import InvalidRequest, MalformedResponse, RecipeNotFound, SourceUnavailable
from recipe_matcher.utils.logger import logger


def _validate_id(recipe_id: Any) -> int:
    if isinstance(recipe_id, bool):
        raise InvalidRequest(f"Invalid recipe id: {recipe_id!r}")
    try:
        value = int(recipe_id)
    except (TypeError, ValueError) as e:
        raise InvalidRequest(f"Invalid recipe id: {recipe_id!r}") from e
    if value < 1:
        raise InvalidRequest(f"Invalid recipe id: {recipe_id!r}")
    return value


class RecipeService:
    """Caller-facing recipe operations over a resolution context."""

    def __init__(
        self,
        context: ResolutionContext,
        spoonacular: Optional[SpoonacularClient] = None,
        placeholder_image: Optional[str] = None,
    ) -> None:
        self.context = context
        self.resolver = RecipeResolver(context)
        self.spoonacular = spoonacular
        self.placeholder_image = placeholder_image

    async def search(
        self,
        ingredients: str | Sequence[str],
        filter: Optional[str | FilterKind] = None,
        number: Optional[int] = None,
    ) -> ResolutionOutcome:
        """Ranked recipes for the user's ingredients.

        Raises:
            InvalidRequest: If no usable ingredient is given.
        """
        return await self.resolver.resolve(ingredients, filter, number)

    def _context(self, user_ingredients: Sequence[str], provenance: Provenance) -> NormalizationContext:
        if self.placeholder_image:
            return NormalizationContext(tuple(user_ingredients), provenance, self.placeholder_image)
        return NormalizationContext(tuple(user_ingredients), provenance)

    async def get_by_id(
        self,
        recipe_id: int,
        ingredients: Optional[str | Sequence[str]] = None,
    ) -> CanonicalRecipe:
        """Full recipe (with detail) for an id.

        Looks in recipes produced earlier in this process first, then the
        curated table, then the live information endpoint. When ingredients
        are given, the match score is computed against them.

        Raises:
            InvalidRequest: If the id is not a positive integer.
            RecipeNotFound: If no source knows the id.
        """
        recipe_id = _validate_id(recipe_id)
        user_ingredients = parse_ingredients(ingredients) if ingredients else []

        cached = self.context.detail_cache.get(recipe_id)
        if cached is not None:
            if not user_ingredients:
                return cached
            recipe_names = [line.name for line in cached.detail.ingredients]
            return cached.model_copy(update={"match_score": score(user_ingredients, recipe_names)})

        payload = curated.find_by_id(recipe_id)
        if payload is not None:
            return to_canonical(payload, self._context(user_ingredients, Provenance.CURATED), with_detail=True)

        if self.spoonacular is None:
            raise RecipeNotFound(recipe_id)
        try:
            payload = await self.spoonacular.get_information(recipe_id, include_nutrition=True)
        except (SourceUnavailable, MalformedResponse) as e:
            logger.warning(f"Recipe lookup failed: {e}", extra={"source": self.spoonacular.SOURCE})
            raise RecipeNotFound(recipe_id) from e
        return to_canonical(payload, self._context(user_ingredients, Provenance.LIVE), with_detail=True)

    async def missing_ingredients(self, recipe_id: int, ingredients: str | Sequence[str]) -> list[str]:
        """Recipe ingredients the user does not have (a shopping list)."""
        recipe = await self.get_by_id(recipe_id)
        return missing_ingredients(parse_ingredients(ingredients), [line.name for line in recipe.detail.ingredients])

    async def customize_servings(self, recipe_id: int, servings: int) -> ScaledRecipe:
        """Recipe ingredient amounts rescaled to a new number of servings.

        Raises:
            InvalidRequest: If servings is not a positive integer.
            RecipeNotFound: If no source knows the id.
        """
        if isinstance(servings, bool) or not isinstance(servings, int) or servings < 1:
            raise InvalidRequest("Valid servings number required")
        recipe = await self.get_by_id(recipe_id)
        return scale_servings(recipe, servings)

    def status(self) -> dict[str, Any]:
        """Which sources are configured, plus cache statistics."""
        configured = {strategy.provenance.value for strategy in self.context.strategies}
        return {
            "status": "ok",
            "sources": {
                "spoonacular": Provenance.LIVE.value in configured,
                "curated": Provenance.CURATED.value in configured,
                "gemini": Provenance.GENERATED.value in configured,
                "emergency": True,
            },
            "cache": self.context.cache.stats(),
            "detail_cache_size": len(self.context.detail_cache),
            "max_results": self.context.max_results,
        }


def _build_strategies(cfg: Config, spoonacular: Optional[SpoonacularClient]) -> list[ResolutionStrategy]:
    strategies: list[ResolutionStrategy] = []

    logger.info("Step 2/4: Registering resolution strategies...")
    if spoonacular is not None:
        strategies.append(
            LiveSearchStrategy(
                spoonacular,
                min_match_score=cfg.MIN_MATCH_SCORE,
                max_results=cfg.MAX_RESULTS_LIMIT,
                enrich=cfg.ENRICH_LIVE_RESULTS,
                enrich_concurrency=cfg.ENRICH_CONCURRENCY,
                placeholder_image=cfg.PLACEHOLDER_IMAGE,
            )
        )
    strategies.append(CuratedStrategy(placeholders=cfg.CURATED_PLACEHOLDERS, placeholder_image=cfg.PLACEHOLDER_IMAGE))
    if cfg.USE_GEMINI:
        generator = GeminiRecipeGenerator(
            api_key=cfg.GEMINI_API_KEY,
            model=cfg.GEMINI_MODEL,
            temperature=cfg.TEMPERATURE,
            max_output_tokens=cfg.MAX_OUTPUT_TOKENS,
            timeout=cfg.GEMINI_TIMEOUT,
        )
        strategies.append(GenerativeStrategy(generator, count=cfg.GENERATED_RECIPE_COUNT, placeholder_image=cfg.PLACEHOLDER_IMAGE))
    strategies.append(EmergencyStrategy(placeholder_image=cfg.PLACEHOLDER_IMAGE))

    logger.info(f"✓ {len(strategies)} strategies: {' -> '.join(s.provenance.value for s in strategies)}")
    return strategies


def initialize_recipe_service(cfg: Optional[Config] = None) -> RecipeService:
    """Factory function to build the recipe service.

    Orchestrates initialization in sequence:
    1. Configuration validation and the live source client
    2. Resolution strategies (live, curated, generative, emergency)
    3. Result cache
    4. Service

    Args:
        cfg: Configuration to use. Defaults to the module-level config.

    Returns:
        RecipeService ready for use.

    Raises:
        ValueError: If the configuration is invalid (fail-fast).
    """
    cfg = cfg or config
    logger.info("=== Initializing Recipe Matcher ===")

    logger.info("Step 1/4: Validating configuration...")
    cfg.validate()
    spoonacular = None
    if cfg.USE_SPOONACULAR:
        spoonacular = SpoonacularClient(
            api_key=cfg.SPOONACULAR_API_KEY,
            base_url=cfg.SPOONACULAR_BASE_URL,
            timeout=cfg.SPOONACULAR_TIMEOUT,
            max_retries=cfg.SPOONACULAR_MAX_RETRIES,
        )
        logger.info("✓ Spoonacular live search enabled")
    else:
        logger.info("Spoonacular disabled - curated and generated recipes only")

    strategies = _build_strategies(cfg, spoonacular)

    logger.info("Step 3/4: Configuring result cache...")
    cache = ResultCache(
        ttl_seconds=cfg.CACHE_TTL_SECONDS,
        max_entries=cfg.CACHE_MAX_ENTRIES,
        enabled=cfg.CACHE_ENABLED,
    )
    logger.info(f"✓ Cache {'enabled' if cfg.CACHE_ENABLED else 'disabled'} (ttl {cfg.CACHE_TTL_SECONDS:g}s)")

    logger.info("Step 4/4: Creating service...")
    context = ResolutionContext(
        strategies=strategies,
        cache=cache,
        detail_cache=DetailCache(max_entries=cfg.DETAIL_CACHE_MAX_ENTRIES),
        max_results=cfg.MAX_RESULTS_LIMIT,
        default_count=cfg.MAX_RECIPES,
    )
    service = RecipeService(context, spoonacular=spoonacular, placeholder_image=cfg.PLACEHOLDER_IMAGE)

    logger.info("=== Recipe Matcher initialization complete ===")
    return service
