"""
Centralized domain types for the Tales API.

All dataclasses that are used across the core, the repositories and the
API layer are defined here to make data flow explicit and avoid circular
imports.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional


# =============================================================================
# Enumerations
# =============================================================================


class AgeRange(str, Enum):
    """Reader age bands a tale can be written for."""

    PRESCHOOL = "3-5"
    EARLY_READER = "6-8"
    MIDDLE_GRADE = "9-12"


class TaleLength(str, Enum):
    """Requested length of a generated tale."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class EngagementAction(str, Enum):
    """Transitions of the (user, tale) engagement state machine."""

    LIKE = "like"
    UNLIKE = "unlike"


# =============================================================================
# Identity
# =============================================================================


@dataclass(frozen=True)
class Principal:
    """Verified identity of a caller, resolved per request and never stored."""

    id: str


@dataclass
class User:
    """A registered account. The password hash never leaves the API layer."""

    id: str
    name: str
    email: str
    password_hash: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_db_record(cls, record: Mapping[str, Any]) -> "User":
        return cls(
            id=str(record["id"]),
            name=record["name"],
            email=record["email"],
            password_hash=record["password_hash"],
            created_at=record.get("created_at"),
        )


# =============================================================================
# Tale Types
# =============================================================================


@dataclass
class Tale:
    """A story with an author, a visibility flag and an aggregate like count."""

    id: str
    title: str
    content: str
    age_range: str
    topic: str
    author_id: str
    is_public: bool = False
    likes: int = 0
    created_at: Optional[datetime] = None
    author_name: Optional[str] = None  # Populated from users.name on reads

    def is_authored_by(self, principal: Optional[Principal]) -> bool:
        """True when the principal is present and owns this tale."""
        return principal is not None and principal.id == self.author_id

    @classmethod
    def from_db_record(cls, record: Mapping[str, Any]) -> "Tale":
        """Build a Tale from a tales row (optionally joined with users.name)."""
        return cls(
            id=str(record["id"]),
            title=record["title"],
            content=record["content"],
            age_range=record["age_range"],
            topic=record["topic"],
            author_id=str(record["author_id"]),
            is_public=record["is_public"],
            likes=record["likes"],
            created_at=record.get("created_at"),
            author_name=record.get("author_name"),
        )


@dataclass
class TalePatch:
    """Author-supplied changes to a tale.

    Empty title or content strings are ignored; is_public applies whenever
    it is supplied, including False.
    """

    title: Optional[str] = None
    content: Optional[str] = None
    is_public: Optional[bool] = None

    def apply_to(self, tale: Tale) -> Tale:
        changes: dict[str, Any] = {}
        if self.title:
            changes["title"] = self.title
        if self.content:
            changes["content"] = self.content
        if self.is_public is not None:
            changes["is_public"] = self.is_public
        return replace(tale, **changes)


@dataclass
class TaleView:
    """A tale as returned to a caller.

    is_liked is None when no principal could be resolved for the read.
    """

    tale: Tale
    is_liked: Optional[bool] = None


@dataclass
class TaleQuery:
    """Filter and sort options for listing tales."""

    author_id: Optional[str] = None
    is_public: Optional[bool] = None
    age_range: Optional[str] = None
    sort: str = "newest"  # newest, oldest, mostLiked


# =============================================================================
# Engagement Types
# =============================================================================


@dataclass(frozen=True)
class ApplyLikeTransition:
    """Command moving one (user, tale) pair to the liked or not-liked state.

    The store executes the liked-set change and the counter change inside a
    single transaction, so the two effects land together or not at all.
    """

    user_id: str
    tale_id: str
    action: EngagementAction

    @property
    def counter_delta(self) -> int:
        return 1 if self.action is EngagementAction.LIKE else -1
