"""Data access layer for codeblog."""

from .post_repo import PostRepository

__all__ = ["PostRepository"]
