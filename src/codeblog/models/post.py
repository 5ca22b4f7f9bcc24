# src/codeblog/models/post.py
"""SQLAlchemy models for posts, their code files and comments."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import get_args

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from codeblog.db.session import Base
from codeblog.db.time import utcnow
from codeblog.schemas.post import PostStatus, ReactionKind

REACTION_KINDS: tuple[str, ...] = get_args(ReactionKind)
POST_STATUSES: tuple[str, ...] = get_args(PostStatus)

DEFAULT_LANGUAGE = "javascript"


def new_id() -> str:
    """Return a fresh canonical identifier (32 lowercase hex characters)."""
    return uuid.uuid4().hex


class ReactionCountsMixin:
    """One counter column per reaction kind."""

    like_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    dislike_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    heart_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    laugh_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    confused_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    eyes_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    @classmethod
    def reaction_column(cls, kind: str):
        """Return the counter column for a reaction kind.

        Raises:
            ValueError: If ``kind`` is not one of ``REACTION_KINDS``.
        """
        if kind not in REACTION_KINDS:
            raise ValueError(f"Unknown reaction type: {kind}")
        return getattr(cls, f"{kind}_count")

    @property
    def reactions(self) -> dict[str, int]:
        return {kind: getattr(self, f"{kind}_count") or 0 for kind in REACTION_KINDS}


class Post(ReactionCountsMixin, Base):
    """A shareable unit of one or more code files with comments and reactions."""

    __tablename__ = "post"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_post_status",
        ),
        Index("ix_post_status_created_at", "status", "created_at"),
        Index("ix_post_author", "author"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(Text, nullable=False)
    avatar: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    files: Mapped[list[CodeFile]] = relationship(
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="CodeFile.position",
        collection_class=ordering_list("position"),
    )
    comments: Mapped[list[Comment]] = relationship(
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="Comment.position",
        collection_class=ordering_list("position"),
    )

    @property
    def formatted_date(self) -> str:
        return self.created_at.date().isoformat()


class CodeFile(Base):
    """A single code file owned by a post."""

    __tablename__ = "code_file"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    post_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    filename: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(Text, nullable=False, default=DEFAULT_LANGUAGE)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    post: Mapped[Post] = relationship(back_populates="files")
    # Comments keep existing when the file they annotate is removed.
    comments: Mapped[list[Comment]] = relationship(back_populates="file")


class Comment(ReactionCountsMixin, Base):
    """A comment on a post, optionally annotating one of its files."""

    __tablename__ = "comment"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    post_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_id: Mapped[str | None] = mapped_column(
        String(32),
        ForeignKey("code_file.id", ondelete="SET NULL"),
        nullable=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    author: Mapped[str] = mapped_column(Text, nullable=False)
    avatar: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    line_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    post: Mapped[Post] = relationship(back_populates="comments")
    file: Mapped[CodeFile | None] = relationship(back_populates="comments")
