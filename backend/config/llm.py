"""
LLM configuration for tale generation.

Picks the text-generation model from whichever provider key is set and
builds the DSPy LM from an explicit GenerationSettings object.

Includes:
- 120s timeout per LLM call to fail fast on hanging connections
- Retry with exponential backoff for transient network errors
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
import dspy
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

# Load environment variables from .env file
load_dotenv()

# Logging for retry attempts
logger = logging.getLogger(__name__)

# Timeout for LLM calls (seconds)
LLM_TIMEOUT = 120

# Network errors that should trigger retry
RETRYABLE_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
    BrokenPipeError,
    OSError,  # Catches [Errno 32] Broken pipe
)

# Provider priority: first key found wins
PROVIDER_MODELS = (
    ("ANTHROPIC_API_KEY", "anthropic/claude-3-haiku-20240307"),
    ("GOOGLE_API_KEY", "gemini/gemini-2.0-flash"),
    ("OPENAI_API_KEY", "openai/gpt-4o-mini"),
)


@dataclass(frozen=True)
class GenerationSettings:
    """Everything needed to build the LM for tale writing."""

    model: str
    api_key: str
    max_tokens: int = 4000
    temperature: float = 0.7
    timeout: int = LLM_TIMEOUT


def get_generation_settings() -> Optional[GenerationSettings]:
    """
    Build GenerationSettings from the environment.

    Priority order:
    1. Claude (ANTHROPIC_API_KEY)
    2. Gemini (GOOGLE_API_KEY)
    3. OpenAI (OPENAI_API_KEY)

    Returns None when no provider key is configured.
    """
    model_override = os.getenv("TALE_LLM_MODEL")
    for env_var, default_model in PROVIDER_MODELS:
        api_key = os.getenv(env_var)
        if api_key:
            return GenerationSettings(model=model_override or default_model, api_key=api_key)
    return None


def get_inference_lm(settings: Optional[GenerationSettings] = None) -> dspy.LM:
    """
    Get the LM used to write tales.

    Includes 120s timeout per call.
    """
    if settings is None:
        settings = get_generation_settings()
    if settings is None:
        raise ValueError(
            "No API key found. Set ANTHROPIC_API_KEY, GOOGLE_API_KEY, or OPENAI_API_KEY in .env"
        )

    return dspy.LM(
        settings.model,
        api_key=settings.api_key,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        timeout=settings.timeout,
    )


# Retry decorator for LLM calls with network errors
llm_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=2, min=2, max=10),
    retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
