"""Pydantic models for API responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from backend.core.types import Tale, TaleView, User


class AuthorResponse(BaseModel):
    """The author of a tale."""

    id: str
    name: Optional[str] = None


class TaleResponse(BaseModel):
    """A tale as seen by the caller.

    is_liked is only present when the caller presented a valid credential.
    Routes returning this model exclude unset fields so the key is omitted
    rather than sent as null.
    """

    id: str
    title: str
    content: str
    age_range: str
    topic: str
    is_public: bool
    likes: int
    author: AuthorResponse
    created_at: Optional[datetime] = None
    is_liked: Optional[bool] = None

    @classmethod
    def from_tale(cls, tale: Tale) -> "TaleResponse":
        return cls(
            id=tale.id,
            title=tale.title,
            content=tale.content,
            age_range=tale.age_range,
            topic=tale.topic,
            is_public=tale.is_public,
            likes=tale.likes,
            author=AuthorResponse(id=tale.author_id, name=tale.author_name),
            created_at=tale.created_at,
        )

    @classmethod
    def from_view(cls, view: TaleView) -> "TaleResponse":
        response = cls.from_tale(view.tale)
        if view.is_liked is not None:
            response.is_liked = view.is_liked
        return response


class LikesResponse(BaseModel):
    """Like count after a like or unlike."""

    likes: int


class MessageResponse(BaseModel):
    message: str


class GenerateTaleResponse(BaseModel):
    """Generated tale text."""

    content: str
    target_word_count: int


class TokenResponse(BaseModel):
    """Login/registration response with access token."""

    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """The authenticated user's profile. Never includes the password hash."""

    id: str
    name: str
    email: str
    created_at: Optional[datetime] = None
    liked_tales: list[str] = []

    @classmethod
    def from_user(cls, user: User, liked_tales: set[str]) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            created_at=user.created_at,
            liked_tales=sorted(liked_tales),
        )
