"""Pytest configuration for tests that call a real text-generation provider."""

import pytest
from dotenv import load_dotenv

from backend.config.llm import get_generation_settings

# Load environment variables
load_dotenv()


@pytest.fixture(scope="session")
def generation_settings():
    """Provider settings from the environment; skips when no key is set."""
    settings = get_generation_settings()
    if settings is None:
        pytest.skip("No LLM API key configured")
    return settings
