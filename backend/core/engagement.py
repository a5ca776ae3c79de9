"""
Like/unlike state machine for (user, tale) pairs.

Each pair is either NotLiked or Liked. A transition checks its
preconditions with the AccessPolicy and then hands one ApplyLikeTransition
command to the store, which updates the liked set and the tale's counter
in a single transaction.

Transitions on the same pair are serialized with an in-process lock keyed
by (user_id, tale_id). Across processes the store's conditional insert or
delete is the arbiter: when it reports that the pair was already in the
target state, the transition fails with AlreadyLiked / NotLiked and
nothing changes. The store also re-checks the tale inside its transaction,
so an author's concurrent visibility change or delete wins over a like.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Protocol

from .access_policy import AccessPolicy
from .errors import AlreadyLiked, MissingCredential, NotLiked, TaleNotFound
from .types import ApplyLikeTransition, EngagementAction, Principal, Tale

logger = logging.getLogger(__name__)


class EngagementStore(Protocol):
    """The persistence operations the ledger needs."""

    async def get_tale(self, tale_id: str) -> Optional[Tale]: ...

    async def is_liked(self, user_id: str, tale_id: str) -> bool: ...

    async def apply_like_transition(self, command: ApplyLikeTransition) -> Optional[int]:
        """Apply both effects atomically and return the new like count.

        Returns None, without changing anything, when the pair was already
        in the target state. The tale is re-checked under the same
        transaction: raises TaleNotFound if it is gone, and TaleNotPublic on
        a like if it has turned private since the ledger's read.
        """
        ...


class PairLocks:
    """asyncio locks keyed by (user_id, tale_id).

    A lock exists only while some task holds or waits for it, so the
    registry does not grow with the number of pairs ever touched.
    """

    def __init__(self):
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._holders: dict[tuple[str, str], int] = {}

    @asynccontextmanager
    async def hold(self, user_id: str, tale_id: str) -> AsyncIterator[None]:
        key = (user_id, tale_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class EngagementLedger:
    """Applies like/unlike transitions for one store.

    Args:
        store: Persistence for tales and the liked relation
        policy: Access rules; defaults to AccessPolicy()
        locks: Shared per-pair lock registry. Pass the same instance to
            every ledger in the process so concurrent requests serialize.
    """

    def __init__(
        self,
        store: EngagementStore,
        policy: Optional[AccessPolicy] = None,
        locks: Optional[PairLocks] = None,
    ):
        self.store = store
        self.policy = policy or AccessPolicy()
        self.locks = locks if locks is not None else PairLocks()

    async def like(self, principal: Optional[Principal], tale_id: str) -> int:
        """Like a public tale. Returns the tale's new like count."""
        return await self._transition(principal, tale_id, EngagementAction.LIKE)

    async def unlike(self, principal: Optional[Principal], tale_id: str) -> int:
        """Remove a like. Returns the tale's new like count (never below 0)."""
        return await self._transition(principal, tale_id, EngagementAction.UNLIKE)

    async def _transition(
        self,
        principal: Optional[Principal],
        tale_id: str,
        action: EngagementAction,
    ) -> int:
        if principal is None:
            raise MissingCredential()

        async with self.locks.hold(principal.id, tale_id):
            tale = await self.store.get_tale(tale_id)
            if tale is None:
                raise TaleNotFound()

            liked = await self.store.is_liked(principal.id, tale_id)
            if action is EngagementAction.LIKE:
                self.policy.check_like(tale, principal, liked)
            else:
                self.policy.check_unlike(tale, principal, liked)

            command = ApplyLikeTransition(user_id=principal.id, tale_id=tale_id, action=action)
            likes = await self.store.apply_like_transition(command)

        if likes is None:
            logger.debug(f"Lost {action.value} race on tale {tale_id} for user {principal.id}")
            if action is EngagementAction.LIKE:
                raise AlreadyLiked()
            raise NotLiked()

        return likes
