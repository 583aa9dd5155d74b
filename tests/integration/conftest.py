"""Pytest configuration and fixtures for integration tests.

Loads .env from the project root and skips tests whose API keys are not
configured. These tests call the real Spoonacular and Gemini services.
"""

import os
import pytest
from dotenv import load_dotenv
from pathlib import Path


def pytest_configure(config):
    """Load .env before test collection so module-level config sees the keys."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    # Keep the result cache out of the way so every test hits the services
    os.environ["CACHE_ENABLED"] = "false"

    print("\n" + "=" * 70)
    print("Note: These tests call live services and need API keys")
    print(f"Environment loaded from: {env_path}")
    print(f"  - SPOONACULAR_API_KEY: {'set' if os.getenv('SPOONACULAR_API_KEY') else 'MISSING'}")
    print(f"  - GEMINI_API_KEY: {'set' if os.getenv('GEMINI_API_KEY') else 'MISSING'}")
    print("  - Result cache: DISABLED")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session")
def spoonacular_key():
    """Spoonacular API key, or skip when it is not configured."""
    key = os.getenv("SPOONACULAR_API_KEY")
    if not key:
        pytest.skip("SPOONACULAR_API_KEY not set. Please set it in your .env file.")
    return key


@pytest.fixture(scope="session")
def gemini_key():
    """Gemini API key, or skip when it is not configured."""
    key = os.getenv("GEMINI_API_KEY")
    if not key:
        pytest.skip("GEMINI_API_KEY not set. Please set it in your .env file.")
    return key
