"""
Configuration module for the Tales API.

Re-exports LLM configuration for convenient access.
"""

from .llm import (
    GenerationSettings,
    get_generation_settings,
    get_inference_lm,
    llm_retry,
)

__all__ = [
    "GenerationSettings",
    "get_generation_settings",
    "get_inference_lm",
    "llm_retry",
]
