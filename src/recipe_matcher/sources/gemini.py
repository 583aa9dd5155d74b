"""Recipe generation with the Gemini API.

Used as the last real fallback when neither the live source nor the curated
table produced anything. The flow per request:

1. Build a structured prompt (ingredients, count, optional style hint)
2. Call Gemini in a worker thread, bounded by a timeout
3. Parse the response leniently (direct JSON, then regex extraction)
4. Validate each recipe against GeneratedRecipe
5. If nothing parses, synthesize minimal single-step recipes from the ingredients

Service errors (unavailable, quota, timeout) raise SourceUnavailable; a bad
response body never raises.
"""

import asyncio
import json
import re
from typing import Any, Optional, Sequence

from google import genai
from google.genai import types

from recipe_matcher.models.models import FilterKind, GeneratedRecipe
from recipe_matcher.prompts.prompts import build_generation_prompt
from recipe_matcher.utils.errors import SourceUnavailable
from recipe_matcher.utils.logger import logger
from recipe_matcher.utils.safe_execute import safe_execute_sync


def _recipe_items(parsed: Any) -> Optional[list[Any]]:
    if isinstance(parsed, dict) and isinstance(parsed.get("recipes"), list):
        return parsed["recipes"]
    if isinstance(parsed, list):
        return parsed
    return None


def parse_recipe_response(response_text: str) -> Optional[list[dict[str, Any]]]:
    """Parse recipes from a Gemini response into validated GeneratedRecipe dicts.

    Lenient about framing: accepts {"recipes": [...]} or a bare list, and
    explanatory text around the JSON. Tries, in order:
    1. Direct json.loads() on the full response
    2. Regex extraction of the outermost JSON object or array
    Recipes that fail validation are dropped individually.

    Args:
        response_text: Raw response text from Gemini (may include non-JSON text).

    Returns:
        List of validated recipe dicts, or None if no valid recipe was found.
    """
    if not response_text:
        return None

    def _parse_json_direct():
        return json.loads(response_text)

    def _parse_json_regex():
        for pattern in (r"\{.*\}", r"\[.*\]"):
            json_match = re.search(pattern, response_text, re.DOTALL)
            if json_match:
                parsed = json.loads(json_match.group())
                if _recipe_items(parsed) is not None:
                    return parsed
        return None

    items = _recipe_items(safe_execute_sync(_parse_json_direct, "Direct JSON parse", log_level="debug", source="gemini"))
    if items is None:
        items = _recipe_items(
            safe_execute_sync(_parse_json_regex, "Regex JSON extraction", log_level="debug", source="gemini")
        )
    if items is None:
        logger.warning("Failed to parse recipes from Gemini response")
        return None

    recipes = []
    for idx, item in enumerate(items):
        recipe = safe_execute_sync(
            lambda item=item: GeneratedRecipe.model_validate(item),
            f"Validate generated recipe {idx + 1}",
            log_level="debug",
            source="gemini",
        )
        if recipe is not None:
            recipes.append(recipe.model_dump())

    if not recipes:
        logger.warning(f"Gemini response held {len(items)} recipe(s), none valid")
        return None
    return recipes


def synthesize_recipes(ingredients: Sequence[str], count: int) -> list[dict[str, Any]]:
    """Minimal single-step recipes built directly from the ingredient list.

    The first combines every ingredient; the rest feature one ingredient each,
    up to `count` recipes in total.
    """
    names = [name for name in ingredients if name]
    if not names:
        return []

    combined = ", ".join(names)
    recipes = [
        {
            "title": f"{names[0].title()} Skillet" if len(names) == 1 else f"{names[0].title()} and {names[1].title()} Skillet",
            "summary": f"A simple one-pan dish using {combined}.",
            "ready_in_minutes": 20,
            "servings": 2,
            "ingredients": [{"name": name} for name in names],
            "instructions": [f"Cook {combined} in a hot pan with a little oil, season with salt and pepper, and serve."],
            "diets": [],
        }
    ]
    for name in names:
        if len(recipes) >= count:
            break
        if len(names) == 1:
            break
        recipes.append(
            {
                "title": f"Roasted {name.title()}",
                "summary": f"{name.title()} roasted until golden.",
                "ready_in_minutes": 25,
                "servings": 2,
                "ingredients": [{"name": name}],
                "instructions": [f"Toss {name} with oil, salt and pepper and roast at 200°C until golden."],
                "diets": [],
            }
        )
    return recipes[:count]


class GeminiRecipeGenerator:
    """Generate recipes for an ingredient list with a Gemini model."""

    SOURCE = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.2,
        max_output_tokens: int = 2048,
        timeout: float = 20.0,
        client: Optional[genai.Client] = None,
    ) -> None:
        """Initialize the generator.

        Args:
            api_key: Gemini API key.
            model: Gemini model name.
            temperature: Sampling temperature (0.0-1.0).
            max_output_tokens: Maximum response length.
            timeout: Seconds to wait for a response before giving up.
            client: Preconfigured genai.Client (created lazily from api_key if None).

        Raises:
            ValueError: If api_key is None or empty string.
        """
        if not api_key:
            raise ValueError("GEMINI_API_KEY is required")

        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> genai.Client:
        """Get or create the Gemini client."""
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def _call_gemini_api(self, prompt: str) -> str:
        response = await asyncio.wait_for(
            asyncio.to_thread(
                self.client.models.generate_content,
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=self.temperature,
                    max_output_tokens=self.max_output_tokens,
                    response_mime_type="application/json",
                ),
            ),
            timeout=self.timeout,
        )
        return response.text or ""

    async def generate(
        self,
        ingredients: Sequence[str],
        count: int = 3,
        style: Optional[FilterKind] = None,
    ) -> list[dict[str, Any]]:
        """Ask Gemini for recipes using exactly the given ingredients.

        Args:
            ingredients: Raw ingredient names.
            count: Number of recipes to request.
            style: Optional filter, expressed to the model as a style constraint.

        Returns:
            Recipe dicts in GeneratedRecipe shape. Synthesized recipes if the
            response could not be parsed.

        Raises:
            SourceUnavailable: If the call fails or times out.
        """
        prompt = build_generation_prompt(ingredients, count, style)
        logger.info(f"Requesting {count} generated recipe(s) from {self.model}")
        try:
            response_text = await self._call_gemini_api(prompt)
        except asyncio.TimeoutError as e:
            raise SourceUnavailable(self.SOURCE, f"no response within {self.timeout}s") from e
        except Exception as e:
            raise SourceUnavailable(self.SOURCE, f"{type(e).__name__}: {e}") from e

        recipes = parse_recipe_response(response_text)
        if recipes is None:
            logger.warning("Falling back to synthesized recipes for unparseable Gemini response")
            return synthesize_recipes(ingredients, count)
        return recipes[:count]
