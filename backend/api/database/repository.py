"""Repositories for tales, users and likes using raw asyncpg SQL."""

import functools
import logging
from typing import Optional

import asyncpg

from backend.core.errors import EmailAlreadyRegistered, StoreFailure, TaleNotFound, TaleNotPublic
from backend.core.types import (
    ApplyLikeTransition,
    EngagementAction,
    Tale,
    TaleQuery,
    User,
)

logger = logging.getLogger(__name__)

# Columns selected for every tale read, joined with the author's name
TALE_COLUMNS = """
    t.id, t.title, t.content, t.age_range, t.topic, t.is_public, t.likes,
    t.author_id, t.created_at, u.name AS author_name
"""

SORT_ORDERS = {
    "newest": "t.created_at DESC",
    "oldest": "t.created_at ASC",
    "mostLiked": "t.likes DESC, t.created_at DESC",
}


def wrap_store_errors(func):
    """Re-raise driver errors as StoreFailure so callers see one error kind."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            logger.error(f"{func.__qualname__} failed: {e}", extra={"error_type": type(e).__name__})
            raise StoreFailure() from e

    return wrapper


class TaleRepository:
    """Repository for tale persistence and the liked relation."""

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    @wrap_store_errors
    async def create_tale(
        self,
        tale_id: str,
        title: str,
        content: str,
        age_range: str,
        topic: str,
        author_id: str,
        is_public: bool = False,
    ) -> Tale:
        """Insert a tale and return it with the author's name."""
        row = await self.conn.fetchrow(
            f"""
            WITH t AS (
                INSERT INTO tales (id, title, content, age_range, topic, is_public, author_id)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                RETURNING *
            )
            SELECT {TALE_COLUMNS}
            FROM t JOIN users u ON u.id = t.author_id
            """,
            tale_id,
            title,
            content,
            age_range,
            topic,
            is_public,
            author_id,
        )
        return Tale.from_db_record(row)

    @wrap_store_errors
    async def get_tale(self, tale_id: str) -> Optional[Tale]:
        """Get a tale by ID."""
        row = await self.conn.fetchrow(
            f"""
            SELECT {TALE_COLUMNS}
            FROM tales t JOIN users u ON u.id = t.author_id
            WHERE t.id = $1
            """,
            tale_id,
        )
        if not row:
            return None
        return Tale.from_db_record(row)

    @wrap_store_errors
    async def list_tales(self, query: TaleQuery) -> list[Tale]:
        """List tales matching the query's filters, in the query's sort order."""
        conditions = []
        params = []

        if query.author_id is not None:
            params.append(query.author_id)
            conditions.append(f"t.author_id = ${len(params)}")
        if query.is_public is not None:
            params.append(query.is_public)
            conditions.append(f"t.is_public = ${len(params)}")
        if query.age_range is not None:
            params.append(query.age_range)
            conditions.append(f"t.age_range = ${len(params)}")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        order_by = SORT_ORDERS.get(query.sort, SORT_ORDERS["newest"])

        rows = await self.conn.fetch(
            f"""
            SELECT {TALE_COLUMNS}
            FROM tales t JOIN users u ON u.id = t.author_id
            {where}
            ORDER BY {order_by}
            """,
            *params,
        )
        return [Tale.from_db_record(r) for r in rows]

    @wrap_store_errors
    async def update_tale(self, tale: Tale) -> Tale:
        """Persist the author-mutable fields of a tale."""
        row = await self.conn.fetchrow(
            f"""
            WITH t AS (
                UPDATE tales
                SET title = $2,
                    content = $3,
                    is_public = $4
                WHERE id = $1
                RETURNING *
            )
            SELECT {TALE_COLUMNS}
            FROM t JOIN users u ON u.id = t.author_id
            """,
            tale.id,
            tale.title,
            tale.content,
            tale.is_public,
        )
        if not row:
            raise TaleNotFound()
        return Tale.from_db_record(row)

    @wrap_store_errors
    async def delete_tale(self, tale_id: str) -> bool:
        """Delete a tale; its likes cascade via FK."""
        result = await self.conn.execute(
            "DELETE FROM tales WHERE id = $1",
            tale_id,
        )
        # Result is like "DELETE 1" or "DELETE 0"
        return result.split()[-1] != "0"

    @wrap_store_errors
    async def is_liked(self, user_id: str, tale_id: str) -> bool:
        """Whether the tale is in the user's liked set."""
        return await self.conn.fetchval(
            "SELECT EXISTS (SELECT 1 FROM tale_likes WHERE user_id = $1 AND tale_id = $2)",
            user_id,
            tale_id,
        )

    @wrap_store_errors
    async def get_liked_tale_ids(self, user_id: str) -> set[str]:
        """The user's liked set."""
        rows = await self.conn.fetch(
            "SELECT tale_id FROM tale_likes WHERE user_id = $1",
            user_id,
        )
        return {str(r["tale_id"]) for r in rows}

    @wrap_store_errors
    async def apply_like_transition(self, command: ApplyLikeTransition) -> Optional[int]:
        """Change the liked set and the counter in one transaction.

        The tale row is locked and re-checked first, so a tale made private
        or deleted since the caller's read is never liked.

        Returns the new like count, or None when the pair was already in the
        target state (nothing is changed in that case).

        Raises:
            TaleNotFound: the tale no longer exists
            TaleNotPublic: liking a tale that is no longer public
        """
        async with self.conn.transaction():
            tale = await self.conn.fetchrow(
                "SELECT is_public FROM tales WHERE id = $1 FOR UPDATE",
                command.tale_id,
            )
            if tale is None:
                raise TaleNotFound()
            if command.action is EngagementAction.LIKE and not tale["is_public"]:
                raise TaleNotPublic()

            if command.action is EngagementAction.LIKE:
                try:
                    changed = await self.conn.fetchval(
                        """
                        INSERT INTO tale_likes (user_id, tale_id)
                        VALUES ($1, $2)
                        ON CONFLICT DO NOTHING
                        RETURNING tale_id
                        """,
                        command.user_id,
                        command.tale_id,
                    )
                except asyncpg.ForeignKeyViolationError as e:
                    raise TaleNotFound() from e
            else:
                changed = await self.conn.fetchval(
                    """
                    DELETE FROM tale_likes
                    WHERE user_id = $1 AND tale_id = $2
                    RETURNING tale_id
                    """,
                    command.user_id,
                    command.tale_id,
                )

            if changed is None:
                return None

            # Counter never drops below zero
            likes = await self.conn.fetchval(
                """
                UPDATE tales
                SET likes = GREATEST(likes + $2, 0)
                WHERE id = $1
                RETURNING likes
                """,
                command.tale_id,
                command.counter_delta,
            )
            if likes is None:
                # Rolls back the liked-set change
                raise TaleNotFound()

            return likes


class UserRepository:
    """Repository for user accounts."""

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    @wrap_store_errors
    async def create_user(self, user_id: str, name: str, email: str, password_hash: str) -> User:
        """Create a user. Raises EmailAlreadyRegistered on a duplicate email."""
        try:
            row = await self.conn.fetchrow(
                """
                INSERT INTO users (id, name, email, password_hash)
                VALUES ($1, $2, $3, $4)
                RETURNING *
                """,
                user_id,
                name,
                email,
                password_hash,
            )
        except asyncpg.UniqueViolationError as e:
            raise EmailAlreadyRegistered() from e
        return User.from_db_record(row)

    @wrap_store_errors
    async def get_user(self, user_id: str) -> Optional[User]:
        row = await self.conn.fetchrow("SELECT * FROM users WHERE id = $1", user_id)
        return User.from_db_record(row) if row else None

    @wrap_store_errors
    async def get_user_by_email(self, email: str) -> Optional[User]:
        row = await self.conn.fetchrow("SELECT * FROM users WHERE email = $1", email)
        return User.from_db_record(row) if row else None
