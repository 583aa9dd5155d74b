"""Multi-source recipe resolution.

Strategies run in order (live search, curated table, generative, emergency) and
the first one with at least one record wins. Its records are ranked by match
score and truncated to the requested count. A search with at least one usable
ingredient always gets a non-empty outcome, with an honest provenance and
fallback indicator.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from recipe_matcher.matching.normalizer import ingredient_set, parse_ingredients
from recipe_matcher.models.models import CanonicalRecipe, FilterKind, Provenance, ResolutionOutcome
from recipe_matcher.pipeline.cache import DetailCache, ResultCache, make_key
from recipe_matcher.pipeline.strategies import (
    EmergencyStrategy,
    ResolutionRequest,
    ResolutionStrategy,
    StrategyResult,
)
from recipe_matcher.recipes.canonical import without_detail
from recipe_matcher.utils.errors import InvalidRequest
from recipe_matcher.utils.logger import logger

MAX_RESULTS = 25
DEFAULT_RESULT_COUNT = 15


@dataclass
class ResolutionContext:
    """Everything a resolver needs, built once per process."""

    strategies: list[ResolutionStrategy]
    cache: ResultCache = field(default_factory=ResultCache)
    # Records produced with detail (curated, generated, emergency), by id
    detail_cache: DetailCache = field(default_factory=DetailCache)
    max_results: int = MAX_RESULTS
    default_count: int = DEFAULT_RESULT_COUNT


def rank(records: Sequence[CanonicalRecipe], desired_count: int) -> list[CanonicalRecipe]:
    """Highest match score first, ties in input order, at most desired_count records."""
    return sorted(records, key=lambda record: record.match_score, reverse=True)[:desired_count]


def parse_filter(value: Optional[str | FilterKind]) -> Optional[FilterKind]:
    """Filter for a name; unknown names are ignored (logged) rather than rejected."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    filter_kind = FilterKind.parse(value)
    if filter_kind is None:
        logger.warning(f"Ignoring unknown filter: {value!r}")
    return filter_kind


class RecipeResolver:
    """Runs the strategy chain for a search request."""

    def __init__(self, context: ResolutionContext) -> None:
        self.context = context
        self._emergency = next(
            (strategy for strategy in context.strategies if isinstance(strategy, EmergencyStrategy)),
            EmergencyStrategy(),
        )

    def clamp_count(self, desired_count: Optional[int]) -> int:
        if desired_count is None:
            desired_count = self.context.default_count
        if isinstance(desired_count, bool) or not isinstance(desired_count, int):
            raise InvalidRequest(f"Result count must be an integer, got: {desired_count!r}")
        return max(1, min(desired_count, self.context.max_results))

    def build_request(
        self,
        ingredients: str | Sequence[str],
        filter: Optional[str | FilterKind] = None,
        desired_count: Optional[int] = None,
    ) -> ResolutionRequest:
        """Parse and validate raw search input.

        Raises:
            InvalidRequest: If no usable ingredient is given or the count is not an integer.
        """
        tokens = ingredient_set(parse_ingredients(ingredients))
        if not tokens:
            raise InvalidRequest("At least one ingredient is required")
        # Sources see sorted tokens only, so equal cache keys mean equal outcomes
        return ResolutionRequest(
            ingredients=tuple(sorted(tokens)),
            tokens=tokens,
            filter=parse_filter(filter),
            desired_count=self.clamp_count(desired_count),
        )

    async def resolve(
        self,
        ingredients: str | Sequence[str],
        filter: Optional[str | FilterKind] = None,
        desired_count: Optional[int] = None,
    ) -> ResolutionOutcome:
        """Resolve a search to a ranked, non-empty list of recipes.

        Args:
            ingredients: Comma-separated string or list of ingredient names.
            filter: Optional filter name (quick, healthy, comfort, spicy,
                vegetarian, vegan, glutenfree, sweet).
            desired_count: Number of recipes wanted, clamped to [1, max_results].

        Returns:
            ResolutionOutcome with at least one recipe.

        Raises:
            InvalidRequest: If no usable ingredient is given.
        """
        request = self.build_request(ingredients, filter, desired_count)
        key = make_key(request.tokens, request.filter, request.desired_count)
        return await self.context.cache.get_or_compute(key, lambda: self._resolve(request))

    async def _run_strategy(self, strategy: ResolutionStrategy, request: ResolutionRequest) -> StrategyResult:
        try:
            return await strategy.run(request)
        except Exception as e:
            logger.error(
                f"{type(strategy).__name__} failed unexpectedly: {type(e).__name__}: {e}",
                extra={"provenance": strategy.provenance.value},
            )
            return StrategyResult(error=e)

    async def _resolve(self, request: ResolutionRequest) -> ResolutionOutcome:
        logger.info(
            f"Resolving {len(request.ingredients)} ingredient(s): {', '.join(request.ingredients)}"
            + (f" [filter: {request.filter.value}]" if request.filter else "")
        )

        provenance: Optional[Provenance] = None
        records: list[CanonicalRecipe] = []
        for strategy in self.context.strategies:
            result = await self._run_strategy(strategy, request)
            if result.records:
                provenance, records = strategy.provenance, result.records
                break
            logger.info(f"No recipes from {strategy.provenance.value} strategy, trying next")

        if not records:
            result = await self._emergency.run(request)
            provenance, records = Provenance.EMERGENCY, result.records

        for record in records:
            if record.detail is not None:
                self.context.detail_cache.put(record)

        ranked = [without_detail(record) for record in rank(records, request.desired_count)]
        logger.info(
            f"Resolved {len(ranked)} recipe(s) from {provenance.value}",
            extra={"provenance": provenance.value},
        )
        return ResolutionOutcome(
            recipes=ranked,
            provenance=provenance,
            fallback_used=provenance != Provenance.LIVE,
            success=True,
            ingredients=list(request.ingredients),
        )
