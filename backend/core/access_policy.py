"""
Visibility and ownership rules for tale operations.

Rules are evaluated in a fixed order and the first failing condition
decides the error:

1. read: public tales are readable by anyone; private tales only by
   their author.
2. update / delete: author only, whatever the visibility.
3. like: needs a principal, a public tale, and no existing like. The
   visibility failure and the already-liked failure are distinct errors.
4. unlike: needs a principal and an existing like. Visibility is not
   checked, so a tale made private after being liked can still be unliked.
"""

from enum import Enum
from typing import Optional

from .errors import (
    AccessDenied,
    AlreadyLiked,
    MissingCredential,
    NotLiked,
    TaleError,
    TaleNotPublic,
)
from .types import Principal, Tale


class TaleOperation(str, Enum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LIKE = "like"
    UNLIKE = "unlike"


class AccessPolicy:
    """Decides which operations a principal (or an anonymous caller) may perform."""

    def check(
        self,
        operation: TaleOperation,
        tale: Tale,
        principal: Optional[Principal] = None,
        liked: bool = False,
    ) -> None:
        """Raise the matching TaleError if the operation is not allowed."""
        if operation is TaleOperation.READ:
            self.check_read(tale, principal)
        elif operation in (TaleOperation.UPDATE, TaleOperation.DELETE):
            self.check_modify(tale, principal)
        elif operation is TaleOperation.LIKE:
            self.check_like(tale, principal, liked)
        elif operation is TaleOperation.UNLIKE:
            self.check_unlike(tale, principal, liked)
        else:
            raise ValueError(f"Unknown operation: {operation}")

    def check_read(self, tale: Tale, principal: Optional[Principal]) -> None:
        if tale.is_public:
            return
        if not tale.is_authored_by(principal):
            raise AccessDenied()

    def check_modify(self, tale: Tale, principal: Optional[Principal]) -> None:
        if not tale.is_authored_by(principal):
            raise AccessDenied("User not authorized")

    def check_like(self, tale: Tale, principal: Optional[Principal], liked: bool) -> None:
        self._require_principal(principal)
        if not tale.is_public:
            raise TaleNotPublic()
        if liked:
            raise AlreadyLiked()

    def check_unlike(self, tale: Tale, principal: Optional[Principal], liked: bool) -> None:
        self._require_principal(principal)
        if not liked:
            raise NotLiked()

    def allowed_operations(
        self,
        tale: Tale,
        principal: Optional[Principal] = None,
        liked: bool = False,
    ) -> frozenset[TaleOperation]:
        """Every operation the caller may currently perform on the tale."""
        allowed = set()
        for operation in TaleOperation:
            try:
                self.check(operation, tale, principal, liked)
            except TaleError:
                continue
            allowed.add(operation)
        return frozenset(allowed)

    @staticmethod
    def _require_principal(principal: Optional[Principal]) -> None:
        if principal is None:
            raise MissingCredential()
