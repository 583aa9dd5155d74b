"""Unit tests for the Spoonacular client."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock, Mock, patch

from recipe_matcher.models.models import FilterKind
from recipe_matcher.sources.spoonacular import SpoonacularClient, filter_params, needs_enrichment
from recipe_matcher.utils.errors import MalformedResponse, RecipeNotFound, SourceUnavailable


class TestClientInit:
    """Tests for SpoonacularClient initialization."""

    def test_init_with_valid_key(self) -> None:
        """Test initialization with valid API key."""
        client = SpoonacularClient(api_key="test-key")
        assert client.api_key == "test-key"
        assert client.max_retries == 2
        assert client.timeout == 5.0

    def test_init_with_empty_key_raises(self) -> None:
        """Test that empty key raises error."""
        with pytest.raises(ValueError):
            SpoonacularClient(api_key="")

    def test_base_url_trailing_slash_stripped(self) -> None:
        client = SpoonacularClient(api_key="k", base_url="https://example.test/")
        assert client.base_url == "https://example.test"


class TestFilterParams:
    """Tests for filter-to-query mapping."""

    def test_quick(self) -> None:
        assert filter_params(FilterKind.QUICK) == {"maxReadyTime": 30}

    def test_healthy(self) -> None:
        assert filter_params(FilterKind.HEALTHY) == {"maxCalories": 500, "diet": "vegetarian"}

    def test_glutenfree(self) -> None:
        assert filter_params(FilterKind.GLUTENFREE) == {"intolerances": "gluten"}

    def test_no_filter(self) -> None:
        assert filter_params(None) == {}

    def test_returns_copy(self) -> None:
        params = filter_params(FilterKind.SWEET)
        params["type"] = "main course"
        assert filter_params(FilterKind.SWEET) == {"type": "dessert"}

    def test_needs_enrichment(self) -> None:
        assert needs_enrichment({"id": 1, "usedIngredients": []})
        assert not needs_enrichment({"id": 1, "readyInMinutes": 20})


class TestRetries:
    """Tests for retry behavior in _get."""

    @pytest.mark.asyncio
    @patch("recipe_matcher.sources.spoonacular.asyncio.sleep", new_callable=AsyncMock)
    async def test_transient_failure_retried(self, mock_sleep: Mock) -> None:
        """Test that a timeout is retried and the second attempt succeeds."""
        client = SpoonacularClient(api_key="test", max_retries=2)
        client._request = AsyncMock(side_effect=[SourceUnavailable("spoonacular", "timeout"), [{"id": 1}]])

        result = await client._get("/recipes/findByIngredients", {})

        assert result == [{"id": 1}]
        assert client._request.call_count == 2
        mock_sleep.assert_awaited_once_with(0.5)

    @pytest.mark.asyncio
    @patch("recipe_matcher.sources.spoonacular.asyncio.sleep", new_callable=AsyncMock)
    async def test_client_error_not_retried(self, mock_sleep: Mock) -> None:
        """Test that a 401 fails immediately."""
        client = SpoonacularClient(api_key="test", max_retries=3)
        client._request = AsyncMock(side_effect=SourceUnavailable("spoonacular", "HTTP 401", status=401))

        with pytest.raises(SourceUnavailable):
            await client._get("/recipes/complexSearch", {})

        assert client._request.call_count == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    @patch("recipe_matcher.sources.spoonacular.asyncio.sleep", new_callable=AsyncMock)
    async def test_exhausted_retries_raise(self, mock_sleep: Mock) -> None:
        """Test that quota errors are retried and the last failure propagates."""
        client = SpoonacularClient(api_key="test", max_retries=3)
        client._request = AsyncMock(side_effect=SourceUnavailable("spoonacular", "HTTP 429", status=429))

        with pytest.raises(SourceUnavailable) as exc:
            await client._get("/recipes/complexSearch", {})

        assert exc.value.status == 429
        assert client._request.call_count == 3
        assert mock_sleep.await_count == 2


class TestSearch:
    """Tests for search endpoints."""

    @pytest.mark.asyncio
    async def test_find_by_ingredients_params(self) -> None:
        client = SpoonacularClient(api_key="test")
        client._get = AsyncMock(return_value=[{"id": 1}, "junk"])

        result = await client.find_by_ingredients(["chicken", "rice"], 10)

        assert result == [{"id": 1}]
        path, params = client._get.call_args.args
        assert path == "/recipes/findByIngredients"
        assert params["ingredients"] == "chicken,rice"
        assert params["ranking"] == 2
        assert params["number"] == 10

    @pytest.mark.asyncio
    async def test_find_by_ingredients_rejects_non_list(self) -> None:
        client = SpoonacularClient(api_key="test")
        client._get = AsyncMock(return_value={"status": "failure"})

        with pytest.raises(MalformedResponse):
            await client.find_by_ingredients(["chicken"], 5)

    @pytest.mark.asyncio
    async def test_filtered_search_uses_complex_search(self) -> None:
        client = SpoonacularClient(api_key="test")
        client._get = AsyncMock(return_value={"results": [{"id": 2, "readyInMinutes": 20}]})

        result = await client.search_by_ingredients(["pasta"], 6, FilterKind.QUICK)

        assert result == [{"id": 2, "readyInMinutes": 20}]
        path, params = client._get.call_args.args
        assert path == "/recipes/complexSearch"
        assert params["includeIngredients"] == "pasta"
        assert params["maxReadyTime"] == 30
        assert params["addRecipeInformation"] == "true"

    @pytest.mark.asyncio
    async def test_unfiltered_search_falls_back_to_complex_search(self) -> None:
        client = SpoonacularClient(api_key="test")
        client._get = AsyncMock(
            side_effect=[SourceUnavailable("spoonacular", "HTTP 500", status=500), {"results": [{"id": 3}]}]
        )

        result = await client.search_by_ingredients(["egg"], 4)

        assert result == [{"id": 3}]
        paths = [call.args[0] for call in client._get.call_args_list]
        assert paths == ["/recipes/findByIngredients", "/recipes/complexSearch"]

    @pytest.mark.asyncio
    async def test_complex_search_without_results_list(self) -> None:
        client = SpoonacularClient(api_key="test")
        client._get = AsyncMock(return_value={"totalResults": 0})

        with pytest.raises(MalformedResponse):
            await client.complex_search(["egg"], 4)


class TestInformation:
    """Tests for recipe information and enrichment."""

    @pytest.mark.asyncio
    async def test_get_information_404_is_not_found(self) -> None:
        client = SpoonacularClient(api_key="test")
        client._get = AsyncMock(side_effect=SourceUnavailable("spoonacular", "HTTP 404", status=404))

        with pytest.raises(RecipeNotFound):
            await client.get_information(999)

    @pytest.mark.asyncio
    async def test_get_information_include_nutrition(self) -> None:
        client = SpoonacularClient(api_key="test")
        client._get = AsyncMock(return_value={"id": 5, "title": "Soup"})

        result = await client.get_information(5, include_nutrition=True)

        assert result["title"] == "Soup"
        path, params = client._get.call_args.args
        assert path == "/recipes/5/information"
        assert params == {"includeNutrition": "true"}

    @pytest.mark.asyncio
    async def test_enrich_merges_and_keeps_failures(self) -> None:
        """Test that a failed fetch keeps the basic record and order is preserved."""
        client = SpoonacularClient(api_key="test")

        async def fake_information(recipe_id, include_nutrition=False):
            if recipe_id == 2:
                raise SourceUnavailable("spoonacular", "timeout")
            return {"id": recipe_id, "readyInMinutes": 25, "servings": 3}

        client.get_information = fake_information
        candidates = [
            {"id": 1, "title": "A", "usedIngredients": []},
            {"id": 2, "title": "B", "usedIngredients": []},
            {"id": 3, "title": "C", "readyInMinutes": 10},
        ]

        result = await client.enrich(candidates, concurrency=2)

        assert [item["id"] for item in result] == [1, 2, 3]
        assert result[0]["readyInMinutes"] == 25
        assert result[0]["title"] == "A"
        assert "readyInMinutes" not in result[1]
        assert result[2] == candidates[2]


class TestRequest:
    """Tests for the single-request HTTP layer."""

    @staticmethod
    def _patched_session(mock_session_cls: Mock, response: Mock) -> Mock:
        session = MagicMock()
        session.get.return_value.__aenter__.return_value = response
        mock_session_cls.return_value.__aenter__.return_value = session
        return session

    @pytest.mark.asyncio
    @patch("recipe_matcher.sources.spoonacular.aiohttp.ClientSession")
    async def test_success_decodes_json(self, mock_session_cls: Mock) -> None:
        response = MagicMock(status=200)
        response.json = AsyncMock(return_value=[{"id": 1}])
        session = self._patched_session(mock_session_cls, response)

        client = SpoonacularClient(api_key="secret")
        result = await client._request("/recipes/findByIngredients", {"number": 2})

        assert result == [{"id": 1}]
        url = session.get.call_args.args[0]
        params = session.get.call_args.kwargs["params"]
        assert url == "https://api.spoonacular.com/recipes/findByIngredients"
        assert params == {"apiKey": "secret", "number": 2}

    @pytest.mark.asyncio
    @patch("recipe_matcher.sources.spoonacular.aiohttp.ClientSession")
    async def test_non_200_raises_with_status(self, mock_session_cls: Mock) -> None:
        self._patched_session(mock_session_cls, MagicMock(status=402))

        client = SpoonacularClient(api_key="secret")
        with pytest.raises(SourceUnavailable) as exc:
            await client._request("/recipes/complexSearch", {})

        assert exc.value.status == 402
        assert exc.value.source == "spoonacular"

    @pytest.mark.asyncio
    @patch("recipe_matcher.sources.spoonacular.aiohttp.ClientSession")
    async def test_invalid_json_is_malformed(self, mock_session_cls: Mock) -> None:
        response = MagicMock(status=200)
        response.json = AsyncMock(side_effect=ValueError("Expecting value"))
        self._patched_session(mock_session_cls, response)

        client = SpoonacularClient(api_key="secret")
        with pytest.raises(MalformedResponse):
            await client._request("/recipes/complexSearch", {})

    @pytest.mark.asyncio
    @patch("recipe_matcher.sources.spoonacular.aiohttp.ClientSession")
    async def test_timeout_is_unavailable(self, mock_session_cls: Mock) -> None:
        session = MagicMock()
        session.get.side_effect = asyncio.TimeoutError()
        mock_session_cls.return_value.__aenter__.return_value = session

        client = SpoonacularClient(api_key="secret")
        with pytest.raises(SourceUnavailable) as exc:
            await client._request("/recipes/complexSearch", {})

        assert exc.value.status is None
