"""Interchangeable post stores used by the reconciliation session.

The session always applies a mutation to its own state first and then hands
the resulting record to a store. ``LocalPostStore`` simply acknowledges the
local record; ``RemotePostStore`` forwards it to the gateway and returns the
canonical version. Which one is used depends on the connectivity state.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from codeblog.client.api import BlogAPIClient
from codeblog.client.identifiers import is_local_id
from codeblog.client.search import filter_posts

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class PostStore(Protocol):
    """Operations a session may delegate after its optimistic update."""

    is_remote: bool

    async def create_post(self, record: Mapping[str, Any]) -> Record: ...

    async def update_post(self, record: Mapping[str, Any]) -> Record: ...

    async def delete_post(self, post_id: str) -> None: ...

    async def add_reaction(self, post_id: str, reaction_type: str) -> dict[str, int] | None: ...

    async def add_comment(self, post_id: str, comment: Mapping[str, Any]) -> Record: ...

    async def add_comment_reaction(
        self, post_id: str, comment_id: str, reaction_type: str
    ) -> dict[str, int] | None: ...

    async def search_posts(self, query: str, posts: Sequence[Mapping[str, Any]]) -> list[Any]: ...


class LocalPostStore:
    """Store backed only by the client's own state."""

    is_remote = False

    async def create_post(self, record: Mapping[str, Any]) -> Record:
        return dict(record)

    async def update_post(self, record: Mapping[str, Any]) -> Record:
        return dict(record)

    async def delete_post(self, post_id: str) -> None:
        return None

    async def add_reaction(self, post_id: str, reaction_type: str) -> dict[str, int] | None:
        return None

    async def add_comment(self, post_id: str, comment: Mapping[str, Any]) -> Record:
        return dict(comment)

    async def add_comment_reaction(
        self, post_id: str, comment_id: str, reaction_type: str
    ) -> dict[str, int] | None:
        return None

    async def search_posts(self, query: str, posts: Sequence[Mapping[str, Any]]) -> list[Any]:
        return filter_posts(posts, query)


def post_payload(record: Mapping[str, Any]) -> Record:
    """Build the create/update request body from a client-side post record."""
    files = []
    for code_file in record.get("files") or []:
        item = {
            "filename": code_file.get("filename", ""),
            "language": code_file.get("language") or "javascript",
            "content": code_file.get("content", ""),
        }
        if not is_local_id(code_file.get("id")):
            item["id"] = code_file["id"]
        files.append(item)

    return {
        "title": record.get("title", ""),
        "description": record.get("description", ""),
        "author": record.get("author", ""),
        "avatar": record.get("avatar", ""),
        "status": record.get("status") or "pending",
        "tags": list(record.get("tags") or []),
        "files": files,
    }


def comment_payload(comment: Mapping[str, Any]) -> Record:
    """Build the request body for a new comment; temporary file ids are dropped."""
    payload: Record = {
        "author": comment.get("author", ""),
        "avatar": comment.get("avatar", ""),
        "content": comment.get("content", ""),
    }
    file_id = comment.get("fileId")
    if not is_local_id(file_id):
        payload["fileId"] = file_id
    if comment.get("lineNumber") is not None:
        payload["lineNumber"] = comment["lineNumber"]
    return payload


class RemotePostStore:
    """Store that forwards to the API gateway.

    Records still carrying a temporary identifier have no server-side
    counterpart, so operations addressing them are answered locally, except
    ``update_post`` which publishes such a post through ``create``.
    """

    is_remote = True

    def __init__(self, api: BlogAPIClient) -> None:
        self.api = api

    async def create_post(self, record: Mapping[str, Any]) -> Record:
        return await self.api.create_post(post_payload(record))

    async def update_post(self, record: Mapping[str, Any]) -> Record:
        post_id = record.get("id")
        if is_local_id(post_id):
            logger.info("Publishing local post %s on update", post_id)
            return await self.api.create_post(post_payload(record))
        return await self.api.update_post(str(post_id), post_payload(record))

    async def delete_post(self, post_id: str) -> None:
        if is_local_id(post_id):
            return None
        await self.api.delete_post(post_id)
        return None

    async def add_reaction(self, post_id: str, reaction_type: str) -> dict[str, int] | None:
        if is_local_id(post_id):
            return None
        return await self.api.add_reaction(post_id, reaction_type)

    async def add_comment(self, post_id: str, comment: Mapping[str, Any]) -> Record:
        if is_local_id(post_id):
            return dict(comment)
        return await self.api.add_comment(post_id, comment_payload(comment))

    async def add_comment_reaction(
        self, post_id: str, comment_id: str, reaction_type: str
    ) -> dict[str, int] | None:
        if is_local_id(post_id) or is_local_id(comment_id):
            return None
        return await self.api.add_comment_reaction(post_id, comment_id, reaction_type)

    async def search_posts(self, query: str, posts: Sequence[Mapping[str, Any]]) -> list[Any]:
        data = await self.api.search_posts(query)
        return list(data.get("posts") or [])
