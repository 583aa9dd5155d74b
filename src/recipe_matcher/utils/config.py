"""Configuration management for Recipe Matcher.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Spoonacular Configuration: Enable/disable the live recipe source
        self.USE_SPOONACULAR: bool = _env_bool("USE_SPOONACULAR", "true")
        # Spoonacular API Key: required if USE_SPOONACULAR is true
        self.SPOONACULAR_API_KEY: str = os.getenv("SPOONACULAR_API_KEY", "")
        self.SPOONACULAR_BASE_URL: str = os.getenv("SPOONACULAR_BASE_URL", "https://api.spoonacular.com")
        # Per-request timeout (seconds) for every Spoonacular call, search and enrichment alike
        self.SPOONACULAR_TIMEOUT: float = float(os.getenv("SPOONACULAR_TIMEOUT", "5.0"))
        # Attempts per Spoonacular call. Only transient failures (timeouts, 429, 5xx) are retried
        self.SPOONACULAR_MAX_RETRIES: int = int(os.getenv("SPOONACULAR_MAX_RETRIES", "2"))
        # Fetch full recipe information for search hits that only carry basic fields
        self.ENRICH_LIVE_RESULTS: bool = _env_bool("ENRICH_LIVE_RESULTS", "true")
        # Maximum number of enrichment requests in flight at once
        self.ENRICH_CONCURRENCY: int = int(os.getenv("ENRICH_CONCURRENCY", "5"))

        # Gemini Configuration: generative fallback when no other source has results
        self.USE_GEMINI: bool = _env_bool("USE_GEMINI", "true")
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Default: gemini-2.5-flash-lite (fast, cost-effective for short structured output)
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash-lite")
        self.GEMINI_TIMEOUT: float = float(os.getenv("GEMINI_TIMEOUT", "20.0"))
        # Temperature: Controls randomness (0.0 = deterministic, 1.0 = max randomness)
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.2"))
        # Max Output Tokens: 2048 is enough for a handful of short recipes
        self.MAX_OUTPUT_TOKENS: int = int(os.getenv("MAX_OUTPUT_TOKENS", "2048"))
        # Number of recipes requested from the generative service
        self.GENERATED_RECIPE_COUNT: int = int(os.getenv("GENERATED_RECIPE_COUNT", "3"))

        # Matching & Ranking
        # Live candidates scoring below this match percentage are discarded. Default: 50
        self.MIN_MATCH_SCORE: int = int(os.getenv("MIN_MATCH_SCORE", "50"))
        # Number of recipes returned when the caller does not ask for a count. Default: 15
        self.MAX_RECIPES: int = int(os.getenv("MAX_RECIPES", "15"))
        # Hard cap on the number of recipes a single search may return. Default: 25
        self.MAX_RESULTS_LIMIT: int = int(os.getenv("MAX_RESULTS_LIMIT", "25"))
        # Synthesize one placeholder recipe per ingredient when the curated table has no match.
        # Disable to let unmatched searches reach the generative fallback instead.
        self.CURATED_PLACEHOLDERS: bool = _env_bool("CURATED_PLACEHOLDERS", "true")
        self.PLACEHOLDER_IMAGE: str = os.getenv(
            "PLACEHOLDER_IMAGE", "https://via.placeholder.com/312x231?text=Recipe+Image"
        )

        # Result Cache
        self.CACHE_ENABLED: bool = _env_bool("CACHE_ENABLED", "true")
        # Seconds before a cached search result expires. Default: 300 (5 minutes)
        self.CACHE_TTL_SECONDS: float = float(os.getenv("CACHE_TTL_SECONDS", "300"))
        # Entry count above which expired entries are swept. Default: 256
        self.CACHE_MAX_ENTRIES: int = int(os.getenv("CACHE_MAX_ENTRIES", "256"))
        # Detailed records kept for lookup by id, least recently used evicted first. Default: 512
        self.DETAIL_CACHE_MAX_ENTRIES: int = int(os.getenv("DETAIL_CACHE_MAX_ENTRIES", "512"))

    def validate(self) -> None:
        """Validate required configuration.

        Raises:
            ValueError: If required API keys are missing or invalid values provided.
        """
        # Only validate keys for sources that are enabled
        if self.USE_SPOONACULAR and not self.SPOONACULAR_API_KEY:
            raise ValueError("SPOONACULAR_API_KEY environment variable is required when USE_SPOONACULAR=true")
        if self.USE_GEMINI and not self.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY environment variable is required when USE_GEMINI=true")
        if self.SPOONACULAR_TIMEOUT <= 0:
            raise ValueError(f"SPOONACULAR_TIMEOUT must be positive, got: {self.SPOONACULAR_TIMEOUT}")
        if self.GEMINI_TIMEOUT <= 0:
            raise ValueError(f"GEMINI_TIMEOUT must be positive, got: {self.GEMINI_TIMEOUT}")
        if self.SPOONACULAR_MAX_RETRIES < 1:
            raise ValueError(f"SPOONACULAR_MAX_RETRIES must be at least 1, got: {self.SPOONACULAR_MAX_RETRIES}")
        if self.ENRICH_CONCURRENCY < 1:
            raise ValueError(f"ENRICH_CONCURRENCY must be at least 1, got: {self.ENRICH_CONCURRENCY}")
        if not (0.0 <= self.TEMPERATURE <= 1.0):
            raise ValueError(f"TEMPERATURE must be between 0.0 and 1.0, got: {self.TEMPERATURE}")
        if self.MAX_OUTPUT_TOKENS < 512:
            raise ValueError(f"MAX_OUTPUT_TOKENS must be at least 512, got: {self.MAX_OUTPUT_TOKENS}")
        if not (1 <= self.GENERATED_RECIPE_COUNT <= 10):
            raise ValueError(f"GENERATED_RECIPE_COUNT must be between 1 and 10, got: {self.GENERATED_RECIPE_COUNT}")
        if not (0 <= self.MIN_MATCH_SCORE <= 100):
            raise ValueError(f"MIN_MATCH_SCORE must be between 0 and 100, got: {self.MIN_MATCH_SCORE}")
        if self.MAX_RESULTS_LIMIT < 1:
            raise ValueError(f"MAX_RESULTS_LIMIT must be at least 1, got: {self.MAX_RESULTS_LIMIT}")
        if not (1 <= self.MAX_RECIPES <= self.MAX_RESULTS_LIMIT):
            raise ValueError(
                f"MAX_RECIPES must be between 1 and MAX_RESULTS_LIMIT ({self.MAX_RESULTS_LIMIT}), "
                f"got: {self.MAX_RECIPES}"
            )
        if self.CACHE_TTL_SECONDS <= 0:
            raise ValueError(f"CACHE_TTL_SECONDS must be positive, got: {self.CACHE_TTL_SECONDS}")
        if self.CACHE_MAX_ENTRIES < 1:
            raise ValueError(f"CACHE_MAX_ENTRIES must be at least 1, got: {self.CACHE_MAX_ENTRIES}")
        if self.DETAIL_CACHE_MAX_ENTRIES < 1:
            raise ValueError(
                f"DETAIL_CACHE_MAX_ENTRIES must be at least 1, got: {self.DETAIL_CACHE_MAX_ENTRIES}"
            )


# Module-level config instance; validated by initialize_recipe_service()
config = Config()
