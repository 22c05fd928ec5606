"""Pytest configuration and fixtures for integration tests.

Ensures environment variables are loaded and validates the provider API key
before running integration tests against the live model.
"""

import os
import pytest
from dotenv import load_dotenv
from pathlib import Path


def pytest_configure(config):
    """Load .env and point the history store at a throwaway database.

    This hook runs before test collection, so every Config() built by the
    tests sees the integration settings.
    """
    # Load environment variables from .env (in project root)
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    # Keep live runs out of the user's real history
    os.environ["HISTORY_DB_FILE"] = ":memory:"

    print("\n" + "=" * 70)
    print("Note: These tests require a valid OPENROUTER_API_KEY")
    print(f"Environment loaded from: {env_path}")
    print(f"Model: {os.getenv('MODEL', 'meta-llama/llama-3.3-70b-instruct:free')}")
    print("History store: in-memory")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session", autouse=True)
def check_api_keys():
    """Skip every integration test when OPENROUTER_API_KEY is not configured."""
    if not os.getenv("OPENROUTER_API_KEY"):
        pytest.skip(
            "Integration tests skipped. Missing API key: OPENROUTER_API_KEY. Please set it in your .env file.",
            allow_module_level=True,
        )
