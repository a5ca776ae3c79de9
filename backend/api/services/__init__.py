"""Services for tales and tale generation."""

from .tale_service import TaleService
from .tale_generation import GeneratedTale, TaleGenerationService

__all__ = ["TaleService", "GeneratedTale", "TaleGenerationService"]
