# src/codeblog/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .posts import router as posts_router

__all__ = ["posts_router"]
