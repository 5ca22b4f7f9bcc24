# src/codeblog/models/__init__.py
"""SQLAlchemy models for the codeblog application."""

from .post import REACTION_KINDS, POST_STATUSES, CodeFile, Comment, Post

__all__ = [
    "REACTION_KINDS", "POST_STATUSES",
    "CodeFile", "Comment", "Post",
]
