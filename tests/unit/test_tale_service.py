"""Unit tests for TaleService."""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from backend.api.services.tale_service import TaleService
from backend.core.credentials import CredentialResult
from backend.core.engagement import PairLocks
from backend.core.errors import (
    AccessDenied,
    AlreadyLiked,
    StoreFailure,
    TaleNotFound,
    TaleNotPublic,
    ValidationFailed,
)
from backend.core.types import Principal, TalePatch
from tests.unit.conftest import AUTHOR_ID, OTHER_ID, READER_ID

AUTHOR = Principal(id=AUTHOR_ID)
READER = Principal(id=READER_ID)


@pytest.fixture
def service(tale_repo):
    return TaleService(tale_repo, locks=PairLocks())


class TestCreateTale:
    @pytest.mark.asyncio
    async def test_author_is_principal(self, service, tale_repo):
        tale = await service.create_tale(
            AUTHOR, title="Rain Song", content="Drip, drop.", age_range="3-5", topic="weather"
        )

        assert tale.author_id == AUTHOR_ID
        assert tale.is_public is False
        assert tale.likes == 0
        assert tale.id in tale_repo.tales

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field,message",
        [
            ("title", "Title is required"),
            ("content", "Content is required"),
            ("topic", "Topic is required"),
        ],
    )
    async def test_blank_required_field_rejected_before_store(self, service, tale_repo, field, message):
        fields = {"title": "Rain Song", "content": "Drip.", "age_range": "3-5", "topic": "weather"}
        fields[field] = "   "
        tale_repo.create_tale = AsyncMock()

        with pytest.raises(ValidationFailed) as exc_info:
            await service.create_tale(AUTHOR, **fields)

        assert exc_info.value.message == message
        tale_repo.create_tale.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_age_range_rejected(self, service, tale_repo):
        with pytest.raises(ValidationFailed):
            await service.create_tale(AUTHOR, title="T", content="C", age_range="13-16", topic="x")

        assert tale_repo.tales == {}

    @pytest.mark.asyncio
    async def test_logs_creation(self, service, caplog):
        with caplog.at_level(logging.INFO, logger="tales"):
            tale = await service.create_tale(
                AUTHOR, title="Rain Song", content="Drip.", age_range="3-5", topic="weather"
            )

        record = next(r for r in caplog.records if r.message == "Tale created")
        assert record.tale_id == tale.id
        assert record.user_id == AUTHOR_ID


class TestReadTale:
    @pytest.mark.asyncio
    async def test_anonymous_public_read_omits_is_liked(self, service, tale_repo):
        tale_repo.add_tale("t1")

        view = await service.read_tale("t1", CredentialResult.absent())

        assert view.tale.id == "t1"
        assert view.is_liked is None

    @pytest.mark.asyncio
    async def test_identified_read_includes_is_liked(self, service, tale_repo):
        tale_repo.add_tale("t1")
        tale_repo.add_like(READER_ID, "t1")

        liked = await service.read_tale("t1", CredentialResult.present(READER))
        not_liked = await service.read_tale("t1", CredentialResult.present(Principal(id=OTHER_ID)))

        assert liked.is_liked is True
        assert not_liked.is_liked is False

    @pytest.mark.asyncio
    async def test_invalid_credential_reads_public_as_anonymous(self, service, tale_repo):
        tale_repo.add_tale("t1")

        view = await service.read_tale("t1", CredentialResult.invalid("expired"))

        assert view.is_liked is None

    @pytest.mark.asyncio
    async def test_invalid_credential_denied_private(self, service, tale_repo):
        tale_repo.add_tale("t1", is_public=False)

        with pytest.raises(AccessDenied):
            await service.read_tale("t1", CredentialResult.invalid("bad signature"))

    @pytest.mark.asyncio
    async def test_author_reads_private(self, service, tale_repo):
        tale_repo.add_tale("t1", is_public=False)

        view = await service.read_tale("t1", CredentialResult.present(AUTHOR))

        assert view.tale.is_public is False
        assert view.is_liked is False

    @pytest.mark.asyncio
    async def test_missing_tale(self, service):
        with pytest.raises(TaleNotFound):
            await service.read_tale("nope", CredentialResult.absent())

    @pytest.mark.asyncio
    async def test_enrichment_failure_omits_is_liked(self, service, tale_repo):
        tale_repo.add_tale("t1")
        tale_repo.is_liked = AsyncMock(side_effect=StoreFailure())

        view = await service.read_tale("t1", CredentialResult.present(READER))

        assert view.is_liked is None


class TestListTales:
    @pytest.mark.asyncio
    async def test_user_tales_filtered_by_visibility(self, service, tale_repo):
        tale_repo.add_tale("pub", is_public=True)
        tale_repo.add_tale("priv", is_public=False)
        tale_repo.add_tale("theirs", author_id=OTHER_ID)

        everything = await service.list_user_tales(AUTHOR)
        public = await service.list_user_tales(AUTHOR, "public")
        private = await service.list_user_tales(AUTHOR, "private")

        assert [t.id for t in everything] == ["priv", "pub"]
        assert [t.id for t in public] == ["pub"]
        assert [t.id for t in private] == ["priv"]

    @pytest.mark.asyncio
    async def test_public_tales_exclude_private(self, service, tale_repo):
        tale_repo.add_tale("a")
        tale_repo.add_tale("b", is_public=False)

        views = await service.list_public_tales(CredentialResult.absent())

        assert [v.tale.id for v in views] == ["a"]
        assert views[0].is_liked is None

    @pytest.mark.asyncio
    async def test_public_tales_marked_for_identified_caller(self, service, tale_repo):
        tale_repo.add_tale("a")
        tale_repo.add_tale("b")
        tale_repo.add_like(READER_ID, "a")

        views = await service.list_public_tales(CredentialResult.present(READER), sort="oldest")

        assert [(v.tale.id, v.is_liked) for v in views] == [("a", True), ("b", False)]

    @pytest.mark.asyncio
    async def test_public_tales_filter_and_sort(self, service, tale_repo):
        tale_repo.add_tale("young", age_range="3-5", likes=1)
        tale_repo.add_tale("popular", age_range="6-8", likes=9)
        tale_repo.add_tale("quiet", age_range="6-8", likes=2)

        views = await service.list_public_tales(CredentialResult.absent(), age_range="6-8", sort="mostLiked")

        assert [v.tale.id for v in views] == ["popular", "quiet"]

    @pytest.mark.asyncio
    async def test_liked_lookup_failure_still_lists(self, service, tale_repo):
        tale_repo.add_tale("a")
        tale_repo.get_liked_tale_ids = AsyncMock(side_effect=StoreFailure())

        views = await service.list_public_tales(CredentialResult.present(READER))

        assert [(v.tale.id, v.is_liked) for v in views] == [("a", None)]


class TestMutations:
    @pytest.mark.asyncio
    async def test_author_updates(self, service, tale_repo):
        tale_repo.add_tale("t1", is_public=True, title="Old")

        updated = await service.mutate_tale("t1", AUTHOR, TalePatch(title="New", content="", is_public=False))

        assert updated.title == "New"
        assert updated.content == "Once upon a time..."
        assert updated.is_public is False

    @pytest.mark.asyncio
    async def test_non_author_update_denied(self, service, tale_repo, caplog):
        tale_repo.add_tale("t1", title="Old")

        with caplog.at_level(logging.WARNING, logger="tales"):
            with pytest.raises(AccessDenied):
                await service.mutate_tale("t1", READER, TalePatch(title="Hacked"))

        assert tale_repo.tales["t1"].title == "Old"
        assert any(getattr(r, "action", None) == "update" for r in caplog.records)

    @pytest.mark.asyncio
    async def test_author_deletes(self, service, tale_repo):
        tale_repo.add_tale("t1")
        tale_repo.add_like(READER_ID, "t1")

        await service.delete_tale("t1", AUTHOR)

        assert "t1" not in tale_repo.tales
        assert tale_repo.like_count("t1") == 0

    @pytest.mark.asyncio
    async def test_non_author_delete_denied(self, service, tale_repo):
        tale_repo.add_tale("t1")

        with pytest.raises(AccessDenied):
            await service.delete_tale("t1", READER)

        assert "t1" in tale_repo.tales

    @pytest.mark.asyncio
    async def test_delete_missing(self, service):
        with pytest.raises(TaleNotFound):
            await service.delete_tale("nope", AUTHOR)


class TestEngagement:
    @pytest.mark.asyncio
    async def test_like_then_unlike(self, service, tale_repo):
        tale_repo.add_tale("t1", likes=4)

        assert await service.like("t1", READER) == 5
        assert await service.unlike("t1", READER) == 4

    @pytest.mark.asyncio
    async def test_like_twice(self, service, tale_repo):
        tale_repo.add_tale("t1")
        await service.like("t1", READER)

        with pytest.raises(AlreadyLiked):
            await service.like("t1", READER)

    @pytest.mark.asyncio
    async def test_services_sharing_locks_serialize(self, tale_repo):
        """Each request builds its own service; the lock registry is shared."""
        locks = PairLocks()
        tale_repo.add_tale("t1")
        services = [TaleService(tale_repo, locks=locks) for _ in range(3)]

        results = await asyncio.gather(
            *(s.like("t1", READER) for s in services),
            return_exceptions=True,
        )

        assert sum(isinstance(r, int) for r in results) == 1
        assert tale_repo.tales["t1"].likes == 1

    @pytest.mark.asyncio
    async def test_like_racing_author_making_tale_private(self, service, tale_repo):
        """The author's visibility change wins; no like lands on a private tale."""
        tale_repo.add_tale("t1")

        results = await asyncio.gather(
            service.like("t1", READER),
            service.mutate_tale("t1", AUTHOR, TalePatch(is_public=False)),
            return_exceptions=True,
        )

        assert isinstance(results[0], TaleNotPublic)
        assert results[1].is_public is False
        assert (READER_ID, "t1") not in tale_repo.likes
        assert tale_repo.tales["t1"].likes == 0

    @pytest.mark.asyncio
    async def test_like_racing_author_deleting_tale(self, service, tale_repo):
        tale_repo.add_tale("t1")

        results = await asyncio.gather(
            service.like("t1", READER),
            service.delete_tale("t1", AUTHOR),
            return_exceptions=True,
        )

        assert isinstance(results[0], TaleNotFound)
        assert results[1] is None
        assert tale_repo.like_count("t1") == 0
