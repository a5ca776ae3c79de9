"""Shared enums for API models."""

from enum import Enum

from backend.core.types import AgeRange, TaleLength


class Visibility(str, Enum):
    """Filter for the caller's own tales."""

    PUBLIC = "public"
    PRIVATE = "private"


class TaleSort(str, Enum):
    """Sort order for public tale listings."""

    NEWEST = "newest"
    OLDEST = "oldest"
    MOST_LIKED = "mostLiked"


__all__ = ["AgeRange", "TaleLength", "Visibility", "TaleSort"]
