"""Pytest fixtures for core and API unit tests."""

import asyncio
import os
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

# Set a test signing secret before the app reads its configuration
os.environ.setdefault("JWT_SECRET", "test-secret-for-unit-tests")
os.environ.pop("DATABASE_URL", None)

from backend.api.main import app  # noqa: E402
from backend.api.dependencies import (  # noqa: E402
    get_credential_resolver,
    get_generation_service,
    get_repository,
    get_user_repository,
)
from backend.api.services.tale_generation import TaleGenerationService  # noqa: E402
from backend.core.credentials import AuthSettings, CredentialResolver  # noqa: E402
from backend.core.errors import EmailAlreadyRegistered, TaleNotFound, TaleNotPublic  # noqa: E402
from backend.core.types import (  # noqa: E402
    ApplyLikeTransition,
    EngagementAction,
    Tale,
    TaleQuery,
    User,
)

TEST_SECRET = "test-secret-for-unit-tests"
AUTHOR_ID = "author-1"
READER_ID = "reader-1"
OTHER_ID = "other-1"

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class InMemoryTaleRepository:
    """Dict-backed stand-in for TaleRepository.

    Every method yields to the event loop first, so concurrent tasks
    interleave between a read and the following write.
    """

    def __init__(self, user_names: Optional[dict[str, str]] = None):
        self.tales: dict[str, Tale] = {}
        self.likes: set[tuple[str, str]] = set()
        self.user_names = user_names or {}
        self.transition_calls = 0

    def add_tale(self, tale_id: str, author_id: str = AUTHOR_ID, is_public: bool = True, likes: int = 0, **fields) -> Tale:
        """Seed a tale synchronously."""
        tale = Tale(
            id=tale_id,
            title=fields.pop("title", f"Tale {tale_id}"),
            content=fields.pop("content", "Once upon a time..."),
            age_range=fields.pop("age_range", "6-8"),
            topic=fields.pop("topic", "friendship"),
            author_id=author_id,
            is_public=is_public,
            likes=likes,
            created_at=fields.pop("created_at", _EPOCH + timedelta(minutes=len(self.tales))),
            author_name=self.user_names.get(author_id),
        )
        self.tales[tale_id] = tale
        return replace(tale)

    def add_like(self, user_id: str, tale_id: str) -> None:
        """Seed an existing like, keeping the counter consistent."""
        self.likes.add((user_id, tale_id))
        self.tales[tale_id].likes += 1

    def like_count(self, tale_id: str) -> int:
        return sum(1 for _, t in self.likes if t == tale_id)

    async def create_tale(self, tale_id, title, content, age_range, topic, author_id, is_public=False) -> Tale:
        await asyncio.sleep(0)
        return self.add_tale(
            tale_id,
            author_id=author_id,
            is_public=is_public,
            title=title,
            content=content,
            age_range=age_range,
            topic=topic,
        )

    async def get_tale(self, tale_id: str) -> Optional[Tale]:
        await asyncio.sleep(0)
        tale = self.tales.get(tale_id)
        return replace(tale) if tale else None

    async def list_tales(self, query: TaleQuery) -> list[Tale]:
        await asyncio.sleep(0)
        tales = [
            replace(t)
            for t in self.tales.values()
            if (query.author_id is None or t.author_id == query.author_id)
            and (query.is_public is None or t.is_public == query.is_public)
            and (query.age_range is None or t.age_range == query.age_range)
        ]
        if query.sort == "oldest":
            tales.sort(key=lambda t: t.created_at)
        elif query.sort == "mostLiked":
            tales.sort(key=lambda t: (t.likes, t.created_at), reverse=True)
        else:
            tales.sort(key=lambda t: t.created_at, reverse=True)
        return tales

    async def update_tale(self, tale: Tale) -> Tale:
        await asyncio.sleep(0)
        stored = self.tales.get(tale.id)
        if stored is None:
            raise TaleNotFound()
        stored.title = tale.title
        stored.content = tale.content
        stored.is_public = tale.is_public
        return replace(stored)

    async def delete_tale(self, tale_id: str) -> bool:
        await asyncio.sleep(0)
        if self.tales.pop(tale_id, None) is None:
            return False
        self.likes = {(u, t) for u, t in self.likes if t != tale_id}
        return True

    async def is_liked(self, user_id: str, tale_id: str) -> bool:
        await asyncio.sleep(0)
        return (user_id, tale_id) in self.likes

    async def get_liked_tale_ids(self, user_id: str) -> set[str]:
        await asyncio.sleep(0)
        return {t for u, t in self.likes if u == user_id}

    async def apply_like_transition(self, command: ApplyLikeTransition) -> Optional[int]:
        await asyncio.sleep(0)
        self.transition_calls += 1
        tale = self.tales.get(command.tale_id)
        if tale is None:
            raise TaleNotFound()
        if command.action is EngagementAction.LIKE and not tale.is_public:
            raise TaleNotPublic()

        key = (command.user_id, command.tale_id)
        if command.action is EngagementAction.LIKE and key in self.likes:
            return None
        if command.action is EngagementAction.UNLIKE and key not in self.likes:
            return None

        # Both effects applied together
        if command.action is EngagementAction.LIKE:
            self.likes.add(key)
        else:
            self.likes.discard(key)
        tale.likes = max(0, tale.likes + command.counter_delta)
        return tale.likes


class InMemoryUserRepository:
    """Dict-backed stand-in for UserRepository."""

    def __init__(self):
        self.users: dict[str, User] = {}

    def add_user(self, user_id: str, name: str, email: str, password_hash: str = "") -> User:
        user = User(id=user_id, name=name, email=email, password_hash=password_hash, created_at=_EPOCH)
        self.users[user_id] = user
        return user

    async def create_user(self, user_id: str, name: str, email: str, password_hash: str) -> User:
        if any(u.email == email for u in self.users.values()):
            raise EmailAlreadyRegistered()
        return self.add_user(user_id, name, email, password_hash)

    async def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)


@pytest.fixture
def resolver():
    """CredentialResolver signing with the test secret."""
    return CredentialResolver(AuthSettings(secret_key=TEST_SECRET))


@pytest.fixture
def tale_repo():
    return InMemoryTaleRepository(user_names={AUTHOR_ID: "Ada", READER_ID: "Rex", OTHER_ID: "Olive"})


@pytest.fixture
def user_repo():
    return InMemoryUserRepository()


@pytest.fixture
def auth_headers(resolver):
    """Build an Authorization header for a user id."""

    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {resolver.issue(user_id)}"}

    return _headers


@pytest.fixture
def mock_generator():
    """Stand-in for TaleGenerator: a callable returning fixed text."""
    generator = MagicMock(return_value="Once upon a time, a fox shared her berries.")
    return generator


@pytest.fixture
def client_with_fakes(tale_repo, user_repo, resolver, mock_generator):
    """TestClient with in-memory repositories and a fake generator."""
    app.dependency_overrides[get_repository] = lambda: tale_repo
    app.dependency_overrides[get_user_repository] = lambda: user_repo
    app.dependency_overrides[get_credential_resolver] = lambda: resolver
    app.dependency_overrides[get_generation_service] = lambda: TaleGenerationService(generator=mock_generator)

    with TestClient(app) as client:
        yield client, tale_repo, user_repo

    app.dependency_overrides.clear()
