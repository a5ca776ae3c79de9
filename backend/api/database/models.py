"""SQLAlchemy ORM models for PostgreSQL.

These define the schema; request handling queries the same tables with
raw asyncpg SQL in repository.py.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    false,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


class User(Base):
    """Registered user - author of tales and owner of a liked set."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    tales: Mapped[list["Tale"]] = relationship(
        back_populates="author", cascade="all, delete-orphan"
    )


class Tale(Base):
    """Tale model - a story with visibility and a denormalized like counter."""

    __tablename__ = "tales"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    age_range: Mapped[str] = mapped_column(String(5), nullable=False)
    topic: Mapped[str] = mapped_column(Text, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    author_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationship
    author: Mapped["User"] = relationship(back_populates="tales")

    __table_args__ = (
        CheckConstraint("likes >= 0", name="ck_tales_likes_non_negative"),
        CheckConstraint("age_range IN ('3-5', '6-8', '9-12')", name="ck_tales_age_range"),
        Index("idx_tales_author_id", "author_id"),
        Index("idx_tales_public_created_at", "is_public", "created_at"),
    )


class TaleLike(Base):
    """One element of a user's liked set. The composite key makes it a set."""

    __tablename__ = "tale_likes"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    tale_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tales.id", ondelete="CASCADE"), primary_key=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("idx_tale_likes_tale_id", "tale_id"),
    )
