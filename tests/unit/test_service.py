"""Unit tests for RecipeService and its factory."""

import pytest
from unittest.mock import AsyncMock, patch

from recipe_matcher.models.models import Provenance
from recipe_matcher.pipeline.resolver import ResolutionContext
from recipe_matcher.pipeline.strategies import (
    CuratedStrategy,
    EmergencyStrategy,
    GenerativeStrategy,
    LiveSearchStrategy,
)
from recipe_matcher.service.recipe_service import RecipeService, initialize_recipe_service
from recipe_matcher.sources.spoonacular import SpoonacularClient
from recipe_matcher.utils.config import Config
from recipe_matcher.utils.errors import InvalidRequest, RecipeNotFound, SourceUnavailable

LIVE_INFO = {
    "id": 715538,
    "title": "Chicken Rice Bowl",
    "readyInMinutes": 30,
    "servings": 2,
    "extendedIngredients": [
        {"name": "chicken", "amount": 200, "unit": "g"},
        {"name": "rice", "amount": 1, "unit": "cup"},
        {"name": "scallion", "amount": 2, "unit": ""},
    ],
    "nutrition": {"nutrients": [{"title": "Calories", "amount": 610, "unit": "kcal"}]},
}


def _service(spoonacular=None) -> RecipeService:
    context = ResolutionContext(strategies=[CuratedStrategy(), EmergencyStrategy()])
    return RecipeService(context, spoonacular=spoonacular)


def _spoonacular(information=None, error=None) -> SpoonacularClient:
    client = SpoonacularClient(api_key="test")
    client.get_information = AsyncMock(return_value=information, side_effect=error)
    return client


class TestSearch:
    """Test RecipeService.search()."""

    @pytest.mark.asyncio
    async def test_search_returns_outcome(self):
        outcome = await _service().search("pasta, egg", None, 1)
        assert outcome.count == 1
        assert outcome.provenance == Provenance.CURATED
        assert outcome.ingredients == ["egg", "pasta"]

    @pytest.mark.asyncio
    async def test_search_without_ingredients_raises(self):
        with pytest.raises(InvalidRequest):
            await _service().search("   ")


class TestGetById:
    """Test lookup order of get_by_id()."""

    @pytest.mark.asyncio
    async def test_serves_records_from_earlier_search(self):
        service = _service()
        outcome = await service.search("salmon", None, 5)
        recipe_id = outcome.recipes[0].id

        recipe = await service.get_by_id(recipe_id)

        assert recipe.title == "Simple Salmon"
        assert recipe.detail is not None

    @pytest.mark.asyncio
    async def test_rescores_cached_record_against_given_ingredients(self):
        service = _service()
        outcome = await service.search("salmon", None, 5)

        recipe = await service.get_by_id(outcome.recipes[0].id, "rice")

        assert recipe.match_score == 0

    @pytest.mark.asyncio
    async def test_curated_table_by_id(self):
        recipe = await _service().get_by_id(800_000_005, ["pasta", "tomato"])
        assert recipe.title == "Pasta al Pomodoro"
        assert recipe.provenance == Provenance.CURATED
        assert recipe.detail.instructions
        assert recipe.match_score == 67

    @pytest.mark.asyncio
    async def test_live_information(self):
        client = _spoonacular(information=LIVE_INFO)

        recipe = await _service(client).get_by_id(715538, "chicken, rice")

        client.get_information.assert_awaited_once_with(715538, include_nutrition=True)
        assert recipe.provenance == Provenance.LIVE
        assert recipe.match_score == 67
        assert recipe.detail.nutrition[0].amount == 610

    @pytest.mark.asyncio
    async def test_live_not_found(self):
        client = _spoonacular(error=RecipeNotFound(1))
        with pytest.raises(RecipeNotFound):
            await _service(client).get_by_id(1)

    @pytest.mark.asyncio
    async def test_live_unavailable_is_not_found(self):
        client = _spoonacular(error=SourceUnavailable("spoonacular", "timeout"))
        with pytest.raises(RecipeNotFound) as exc:
            await _service(client).get_by_id(42)
        assert exc.value.recipe_id == 42

    @pytest.mark.asyncio
    async def test_no_live_source_is_not_found(self):
        with pytest.raises(RecipeNotFound):
            await _service().get_by_id(42)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("recipe_id", [0, -1, "abc", None, True])
    async def test_invalid_id_raises(self, recipe_id):
        with pytest.raises(InvalidRequest):
            await _service().get_by_id(recipe_id)


class TestCustomizeServings:
    """Test customize_servings()."""

    @pytest.mark.asyncio
    async def test_scales_curated_recipe(self):
        scaled = await _service().customize_servings(800_000_003, 6)
        assert scaled.original_servings == 3
        assert scaled.new_servings == 6
        assert scaled.scale_factor == 2.0
        assert scaled.ingredients[0].amount == 600
        assert scaled.ingredients[0].original == "600 g chicken"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("servings", [0, -1, "2", 1.5])
    async def test_invalid_servings_raise(self, servings):
        with pytest.raises(InvalidRequest):
            await _service().customize_servings(800_000_003, servings)

    @pytest.mark.asyncio
    async def test_unknown_recipe(self):
        with pytest.raises(RecipeNotFound):
            await _service().customize_servings(5, 2)


class TestMissingIngredients:
    @pytest.mark.asyncio
    async def test_shopping_list(self):
        missing = await _service().missing_ingredients(800_000_003, "chicken, rice")
        assert missing == ["egg", "soy sauce"]


class TestStatus:
    def test_status_reports_sources_and_cache(self):
        status = _service().status()
        assert status["status"] == "ok"
        assert status["sources"] == {"spoonacular": False, "curated": True, "gemini": False, "emergency": True}
        assert status["cache"]["size"] == 0


class TestInitializeRecipeService:
    """Test the factory wiring."""

    def _config(self, monkeypatch, **env) -> Config:
        defaults = {
            "USE_SPOONACULAR": "true",
            "SPOONACULAR_API_KEY": "spoon-key",
            "USE_GEMINI": "true",
            "GEMINI_API_KEY": "gemini-key",
        }
        defaults.update(env)
        for name, value in defaults.items():
            monkeypatch.setenv(name, value)
        return Config()

    def test_all_sources(self, monkeypatch):
        service = initialize_recipe_service(self._config(monkeypatch, MIN_MATCH_SCORE="60", MAX_RECIPES="8"))

        kinds = [type(strategy) for strategy in service.context.strategies]
        assert kinds == [LiveSearchStrategy, CuratedStrategy, GenerativeStrategy, EmergencyStrategy]
        assert service.context.strategies[0].min_match_score == 60
        assert service.context.default_count == 8
        assert service.spoonacular is not None

    def test_sources_disabled(self, monkeypatch):
        cfg = self._config(monkeypatch, USE_SPOONACULAR="false", USE_GEMINI="false", SPOONACULAR_API_KEY="", GEMINI_API_KEY="")

        service = initialize_recipe_service(cfg)

        kinds = [type(strategy) for strategy in service.context.strategies]
        assert kinds == [CuratedStrategy, EmergencyStrategy]
        assert service.spoonacular is None

    def test_invalid_config_fails_fast(self, monkeypatch):
        cfg = self._config(monkeypatch, SPOONACULAR_API_KEY="")
        with pytest.raises(ValueError):
            initialize_recipe_service(cfg)

    def test_cache_settings(self, monkeypatch):
        cfg = self._config(monkeypatch, CACHE_ENABLED="false", CACHE_TTL_SECONDS="60", DETAIL_CACHE_MAX_ENTRIES="8")

        service = initialize_recipe_service(cfg)

        assert service.context.cache.enabled is False
        assert service.context.cache.ttl_seconds == 60
        assert service.context.detail_cache.max_entries == 8

    def test_uses_module_config_by_default(self, monkeypatch):
        cfg = self._config(monkeypatch, USE_SPOONACULAR="false", USE_GEMINI="false")
        with patch("recipe_matcher.service.recipe_service.config", cfg):
            service = initialize_recipe_service()
        assert service.status()["sources"]["spoonacular"] is False
