"""Tale service: access-controlled reads, author mutations and engagement."""

import logging
import uuid
from typing import Optional

from backend.core.access_policy import AccessPolicy
from backend.core.credentials import CredentialResult, CredentialStatus
from backend.core.engagement import EngagementLedger, PairLocks
from backend.core.errors import AccessDenied, StoreFailure, TaleNotFound, ValidationFailed
from backend.core.types import AgeRange, Principal, Tale, TalePatch, TaleQuery, TaleView
from ..database.repository import TaleRepository
from ..logging import tale_logger

logger = logging.getLogger(__name__)

REQUIRED_TALE_FIELDS = (
    ("title", "Title is required"),
    ("content", "Content is required"),
    ("age_range", "Age range is required"),
    ("topic", "Topic is required"),
)


def validate_new_tale(**fields: str) -> None:
    """Reject a new tale with a blank required field or an unknown age range."""
    for name, message in REQUIRED_TALE_FIELDS:
        if not (fields.get(name) or "").strip():
            raise ValidationFailed(message)
    if fields["age_range"] not in {a.value for a in AgeRange}:
        raise ValidationFailed(f"Unknown age range: {fields['age_range']}")


class TaleService:
    """Service applying the access policy and the engagement ledger to stored tales.

    Args:
        repo: Tale repository bound to a connection
        policy: Access rules; defaults to AccessPolicy()
        locks: Process-wide per-pair lock registry shared by all requests
    """

    def __init__(
        self,
        repo: TaleRepository,
        policy: Optional[AccessPolicy] = None,
        locks: Optional[PairLocks] = None,
    ):
        self.repo = repo
        self.policy = policy or AccessPolicy()
        self.ledger = EngagementLedger(repo, self.policy, locks)

    async def create_tale(
        self,
        principal: Principal,
        title: str,
        content: str,
        age_range: str,
        topic: str,
        is_public: bool = False,
    ) -> Tale:
        """Create a tale owned by the principal.

        Raises:
            ValidationFailed: a required field is blank or the age range is
                unknown. Checked before the store is touched.
        """
        validate_new_tale(title=title, content=content, age_range=age_range, topic=topic)

        tale = await self.repo.create_tale(
            tale_id=str(uuid.uuid4()),
            title=title,
            content=content,
            age_range=age_range,
            topic=topic,
            author_id=principal.id,
            is_public=is_public,
        )
        tale_logger.tale_created(tale.id, principal.id)
        return tale

    async def read_tale(self, tale_id: str, credential: CredentialResult) -> TaleView:
        """Read a tale, enriching it with is_liked when the caller is identified.

        An invalid credential is treated as anonymous: public tales are still
        returned (without is_liked) and private tales are denied.
        """
        tale = await self._get_tale(tale_id)
        principal = self._optional_principal(credential)

        try:
            self.policy.check_read(tale, principal)
        except AccessDenied as e:
            tale_logger.access_denied(tale_id, principal.id if principal else None, "read", e)
            raise

        return TaleView(tale=tale, is_liked=await self._is_liked(principal, tale.id))

    async def list_user_tales(self, principal: Principal, visibility: Optional[str] = None) -> list[Tale]:
        """The principal's own tales, newest first, optionally filtered by visibility."""
        is_public = None
        if visibility == "public":
            is_public = True
        elif visibility == "private":
            is_public = False

        return await self.repo.list_tales(
            TaleQuery(author_id=principal.id, is_public=is_public, sort="newest")
        )

    async def list_public_tales(
        self,
        credential: CredentialResult,
        age_range: Optional[str] = None,
        sort: str = "newest",
    ) -> list[TaleView]:
        """Public tales, each marked is_liked when the caller is identified."""
        tales = await self.repo.list_tales(
            TaleQuery(is_public=True, age_range=age_range, sort=sort)
        )

        principal = self._optional_principal(credential)
        liked_ids = None
        if principal is not None:
            try:
                liked_ids = await self.repo.get_liked_tale_ids(principal.id)
            except StoreFailure:
                logger.warning(f"Could not load liked tales for user {principal.id}; omitting is_liked")

        if liked_ids is None:
            return [TaleView(tale=t) for t in tales]
        return [TaleView(tale=t, is_liked=t.id in liked_ids) for t in tales]

    async def mutate_tale(self, tale_id: str, principal: Principal, patch: TalePatch) -> Tale:
        """Apply an author's changes to title, content or visibility."""
        tale = await self._get_tale(tale_id)

        try:
            self.policy.check_modify(tale, principal)
        except AccessDenied as e:
            tale_logger.access_denied(tale_id, principal.id, "update", e)
            raise

        updated = await self.repo.update_tale(patch.apply_to(tale))
        tale_logger.tale_updated(tale_id, principal.id)
        return updated

    async def delete_tale(self, tale_id: str, principal: Principal) -> None:
        """Delete a tale. Only its author may do so."""
        tale = await self._get_tale(tale_id)

        try:
            self.policy.check_modify(tale, principal)
        except AccessDenied as e:
            tale_logger.access_denied(tale_id, principal.id, "delete", e)
            raise

        if not await self.repo.delete_tale(tale_id):
            raise TaleNotFound()
        tale_logger.tale_deleted(tale_id, principal.id)

    async def like(self, tale_id: str, principal: Principal) -> int:
        """Like a public tale. Returns the new like count."""
        likes = await self.ledger.like(principal, tale_id)
        tale_logger.engagement_changed(tale_id, principal.id, "like", likes)
        return likes

    async def unlike(self, tale_id: str, principal: Principal) -> int:
        """Remove the principal's like. Returns the new like count."""
        likes = await self.ledger.unlike(principal, tale_id)
        tale_logger.engagement_changed(tale_id, principal.id, "unlike", likes)
        return likes

    async def _get_tale(self, tale_id: str) -> Tale:
        tale = await self.repo.get_tale(tale_id)
        if tale is None:
            raise TaleNotFound()
        return tale

    async def _is_liked(self, principal: Optional[Principal], tale_id: str) -> Optional[bool]:
        """Best-effort enrichment: None when there is no principal or the lookup fails."""
        if principal is None:
            return None
        try:
            return await self.repo.is_liked(principal.id, tale_id)
        except StoreFailure:
            logger.warning(f"Could not check like state of tale {tale_id}; omitting is_liked")
            return None

    @staticmethod
    def _optional_principal(credential: CredentialResult) -> Optional[Principal]:
        if credential.status is CredentialStatus.INVALID:
            logger.debug(f"Ignoring invalid credential on optional-auth read: {credential.reason}")
        return credential.principal if credential.is_present else None
