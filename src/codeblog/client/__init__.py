"""Client for the codeblog API with a local cache fallback."""

from .api import ApiError, BlogAPIClient
from .cache import LocalCache
from .session import BlogSession
from .state import ConnectivityState, EditorMode, PageState

__all__ = [
    "ApiError",
    "BlogAPIClient",
    "BlogSession",
    "ConnectivityState",
    "EditorMode",
    "LocalCache",
    "PageState",
]
