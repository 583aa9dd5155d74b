"""Resolution strategies, tried in order until one produces recipes.

Each strategy turns a ResolutionRequest into canonical records of a single
provenance. A strategy whose source fails returns no records plus the error;
it never raises for source failures, so the resolver can move on.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from recipe_matcher.models.models import CanonicalRecipe, FilterKind, Provenance
from recipe_matcher.recipes.canonical import (
    DEFAULT_PLACEHOLDER_IMAGE,
    NormalizationContext,
    normalize_batch,
)
from recipe_matcher.sources import curated
from recipe_matcher.sources.gemini import GeminiRecipeGenerator
from recipe_matcher.sources.spoonacular import SpoonacularClient
from recipe_matcher.utils.errors import MalformedResponse, SourceUnavailable
from recipe_matcher.utils.logger import logger

# Live candidates below this match percentage are discarded
MATCH_ACCEPTANCE_THRESHOLD = 50


@dataclass(frozen=True)
class ResolutionRequest:
    """One search, already parsed and validated.

    ingredients holds the normalized tokens in sorted order, whatever order
    and spelling the user typed.
    """

    ingredients: tuple[str, ...]
    tokens: frozenset[str]
    filter: Optional[FilterKind]
    desired_count: int


@dataclass
class StrategyResult:
    records: list[CanonicalRecipe] = field(default_factory=list)
    error: Optional[Exception] = None


class ResolutionStrategy(ABC):
    """Base class: a named source of candidate recipes."""

    provenance: Provenance

    def __init__(self, placeholder_image: str = DEFAULT_PLACEHOLDER_IMAGE) -> None:
        self.placeholder_image = placeholder_image

    def context(self, request: ResolutionRequest) -> NormalizationContext:
        return NormalizationContext(
            user_ingredients=request.ingredients,
            provenance=self.provenance,
            placeholder_image=self.placeholder_image,
        )

    @abstractmethod
    async def run(self, request: ResolutionRequest) -> StrategyResult:
        """Produce this source's records for request, or none plus the error."""


class LiveSearchStrategy(ResolutionStrategy):
    """Spoonacular search, enriched and filtered by match score."""

    provenance = Provenance.LIVE

    def __init__(
        self,
        client: SpoonacularClient,
        min_match_score: int = MATCH_ACCEPTANCE_THRESHOLD,
        max_results: int = 25,
        enrich: bool = True,
        enrich_concurrency: int = 5,
        placeholder_image: str = DEFAULT_PLACEHOLDER_IMAGE,
    ) -> None:
        super().__init__(placeholder_image)
        self.client = client
        self.min_match_score = min_match_score
        self.max_results = max_results
        self.enrich = enrich
        self.enrich_concurrency = enrich_concurrency

    async def run(self, request: ResolutionRequest) -> StrategyResult:
        # Ask for more than needed, some candidates will miss the threshold
        number = min(request.desired_count * 2, self.max_results)
        try:
            candidates = await self.client.search_by_ingredients(list(request.ingredients), number, request.filter)
        except (SourceUnavailable, MalformedResponse) as e:
            logger.warning(f"Live search failed: {e}", extra={"source": self.client.SOURCE})
            return StrategyResult(error=e)

        if self.enrich and candidates:
            candidates = await self.client.enrich(candidates, self.enrich_concurrency)

        seen: set[int] = set()
        accepted = []
        for record in normalize_batch(candidates, self.context(request)):
            if record.id in seen:
                continue
            seen.add(record.id)
            if record.match_score >= self.min_match_score:
                accepted.append(record)

        logger.info(
            f"Live search: {len(accepted)}/{len(candidates)} candidate(s) at or above {self.min_match_score}% match",
            extra={"source": self.client.SOURCE},
        )
        return StrategyResult(records=accepted)


class CuratedStrategy(ResolutionStrategy):
    """Curated table lookup, falling back to per-ingredient placeholders."""

    provenance = Provenance.CURATED

    def __init__(self, placeholders: bool = True, placeholder_image: str = DEFAULT_PLACEHOLDER_IMAGE) -> None:
        super().__init__(placeholder_image)
        self.placeholders = placeholders

    async def run(self, request: ResolutionRequest) -> StrategyResult:
        payloads = curated.lookup(request.tokens)
        if not payloads and self.placeholders:
            logger.info("No curated match, using per-ingredient placeholders")
            payloads = curated.placeholder_recipes(request.ingredients)
        return StrategyResult(records=normalize_batch(payloads, self.context(request), with_detail=True))


class GenerativeStrategy(ResolutionStrategy):
    """Recipes generated by Gemini for exactly the given ingredients."""

    provenance = Provenance.GENERATED

    def __init__(
        self,
        generator: GeminiRecipeGenerator,
        count: int = 3,
        placeholder_image: str = DEFAULT_PLACEHOLDER_IMAGE,
    ) -> None:
        super().__init__(placeholder_image)
        self.generator = generator
        self.count = count

    async def run(self, request: ResolutionRequest) -> StrategyResult:
        try:
            payloads = await self.generator.generate(request.ingredients, self.count, request.filter)
        except SourceUnavailable as e:
            logger.warning(f"Recipe generation failed: {e}", extra={"source": self.generator.SOURCE})
            return StrategyResult(error=e)
        return StrategyResult(records=normalize_batch(payloads, self.context(request), with_detail=True))


class EmergencyStrategy(ResolutionStrategy):
    """Two generic placeholder recipes. Always produces records."""

    provenance = Provenance.EMERGENCY

    async def run(self, request: ResolutionRequest) -> StrategyResult:
        payloads = curated.emergency_recipes(request.ingredients)
        return StrategyResult(records=normalize_batch(payloads, self.context(request), with_detail=True))
