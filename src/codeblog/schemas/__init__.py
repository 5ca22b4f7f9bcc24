# src/codeblog/schemas/__init__.py
"""Pydantic schemas for request and response validation."""

from .post import (
    CodeFileIn,
    CodeFileResponse,
    CommentCreate,
    CommentResponse,
    DeleteResponse,
    PostCreate,
    PostListResponse,
    PostResponse,
    PostUpdate,
    ReactionCreate,
    ReactionKind,
    ReactionTally,
)

__all__ = [
    "CodeFileIn", "CodeFileResponse",
    "CommentCreate", "CommentResponse",
    "DeleteResponse",
    "PostCreate", "PostListResponse", "PostResponse", "PostUpdate",
    "ReactionCreate", "ReactionKind", "ReactionTally",
]
