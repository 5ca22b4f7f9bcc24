"""Reconciliation between the local cache and the remote API.

``BlogSession`` is the single entry point for user actions. Every mutation is
applied to ``PageState`` first, so the user sees the result immediately, and is
then handed to the store selected by the connectivity state. When the remote
store answers with a canonical record, it replaces the optimistic one in place.
When the remote call fails the optimistic change is kept and only an error
message is shown; there is no rollback.

After each operation the post list, the current post and its comments are
mirrored into the local cache so a restart restores the last view without a
network call.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from types import TracebackType
from typing import Any

from codeblog.client.api import ApiError, BlogAPIClient
from codeblog.client.cache import COMMENTS_KEY, CURRENT_POST_KEY, POSTS_KEY, LocalCache
from codeblog.client.identifiers import is_local_id, new_local_id
from codeblog.client.search import filter_posts
from codeblog.client.state import (
    DEFAULT_LANGUAGE,
    ConnectivityState,
    EditorMode,
    PageState,
    Record,
    empty_tally,
    increment_tally,
)
from codeblog.client.stores import LocalPostStore, PostStore, RemotePostStore
from codeblog.core.settings import settings

logger = logging.getLogger(__name__)

LOCAL_DATA_CLEARED = "Local data cleared. Refresh the page to start fresh."


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _records(value: Any) -> list[Record]:
    """Keep the object entries of a cached list; anything else reads as empty."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


class BlogSession:
    """Client-side view of the post collection with offline fallback."""

    def __init__(
        self,
        api: BlogAPIClient | None = None,
        cache: LocalCache | None = None,
        *,
        author: str | None = None,
        avatar: str | None = None,
    ) -> None:
        self.api = api or BlogAPIClient()
        self.cache = cache or LocalCache()
        self.author = author or settings.default_author
        self.avatar = avatar or settings.default_avatar
        self.state = PageState()
        self._local_store = LocalPostStore()
        self._remote_store = RemotePostStore(self.api)

    async def __aenter__(self) -> BlogSession:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.api.aclose()

    @property
    def store(self) -> PostStore:
        """Remote store while connected, local store otherwise."""
        if self.state.is_connected:
            return self._remote_store
        return self._local_store

    # persistence

    def restore(self) -> None:
        """Load the last mirrored view from the local cache."""
        saved_posts = _records(self.cache.get(POSTS_KEY, []))
        if not saved_posts:
            return
        saved_current = self.cache.get(CURRENT_POST_KEY)
        if isinstance(saved_current, dict):
            saved_comments = _records(self.cache.get(COMMENTS_KEY, []))
            self.state.load(saved_posts, saved_current, saved_comments)
        else:
            self.state.load(saved_posts)
        self.state.loading = False
        logger.debug("Restored %d post(s) from local cache", len(saved_posts))

    def _mirror(self) -> None:
        self.cache.set(POSTS_KEY, self.state.posts)
        if self.state.current_post is not None:
            self.cache.set(CURRENT_POST_KEY, self.state.current_post)
        else:
            self.cache.remove(CURRENT_POST_KEY)
        self.cache.set(COMMENTS_KEY, self.state.comments)

    def _report(self, action: str, exc: ApiError) -> None:
        logger.error("Error trying to %s: %s", action, exc.message)
        self.state.fail(f"Failed to {action}: {exc.message}")

    # connectivity

    async def start(self) -> None:
        """Restore cached state, then probe the backend once."""
        self.restore()
        await self.check_connection()

    async def check_connection(self) -> ConnectivityState:
        """Probe the gateway by listing posts; also used for "retry connection"."""
        state = self.state
        state.connectivity = ConnectivityState.CHECKING
        try:
            data = await self.api.get_posts()
        except ApiError as exc:
            logger.warning("Backend connection failed: %s", exc.message)
            state.connectivity = ConnectivityState.ERROR
        else:
            state.connectivity = ConnectivityState.CONNECTED
            remote_posts = list(data.get("posts") or [])
            if remote_posts:
                self._merge_remote_posts(remote_posts)
        finally:
            state.loading = False
        self._mirror()
        return state.connectivity

    def _merge_remote_posts(self, remote_posts: list[Record]) -> None:
        # Posts that never reached the server stay in front of the canonical ones.
        state = self.state
        local_only = [post for post in state.posts if is_local_id(post.get("id"))]
        state.set_posts([*local_only, *remote_posts])

        current = state.current_post
        if current is None:
            state.select(state.posts[0])
        elif not is_local_id(current.get("id")):
            fresh = state.find_post(current["id"])
            state.select(fresh if fresh is not None else state.posts[0])

    # reading

    async def fetch_posts(self, params: Mapping[str, Any] | None = None) -> None:
        """Reload the list from the gateway and open its first post."""
        state = self.state
        state.loading = True
        try:
            data = await self.api.get_posts(params)
        except ApiError as exc:
            self._report("fetch posts", exc)
        else:
            posts = list(data.get("posts") or [])
            state.set_posts(posts)
            if posts:
                await self.select_post(posts[0]["id"])
            else:
                state.select(None)
        finally:
            state.loading = False
        self._mirror()

    async def select_post(self, post_id: str) -> Record | None:
        """Make a post current, refreshing it from the gateway when possible."""
        state = self.state
        post = state.find_post(post_id)
        if state.is_connected and not is_local_id(post_id):
            try:
                fetched = await self.api.get_post(post_id)
            except ApiError as exc:
                self._report("fetch post", exc)
            else:
                if post is not None:
                    state.replace_post(post_id, fetched)
                post = fetched

        if post is None:
            state.fail("Post not found")
            return None
        state.select(post)
        self._mirror()
        return post

    def select_file(self, index: int) -> None:
        post = self.state.current_post
        if post is not None and 0 <= index < len(post.get("files") or []):
            self.state.active_file = index

    def file_comments(self, file_id: Any) -> list[Record]:
        return self.state.file_comments(file_id)

    async def search(self, query: str) -> list[Record]:
        """Filter the collection; remote search when connected, local otherwise.

        A failing remote search falls back to local filtering without
        surfacing an error.
        """
        state = self.state
        state.search_query = query
        if not query.strip():
            state.searching = False
            state.filtered_posts = list(state.posts)
            return state.filtered_posts

        state.searching = True
        try:
            state.filtered_posts = await self.store.search_posts(query, state.posts)
        except ApiError as exc:
            logger.warning("Search error, falling back to local search: %s", exc.message)
            state.filtered_posts = filter_posts(state.posts, query)
        finally:
            state.searching = False
        return state.filtered_posts

    def clear_search(self) -> None:
        self.state.clear_search()

    # editor

    def begin_create(self) -> None:
        self.state.begin_create()

    def begin_edit(self) -> bool:
        return self.state.begin_edit()

    def cancel_edit(self) -> None:
        self.state.finish_edit()

    def update_draft(self, **fields: Any) -> None:
        draft = self.state.draft
        if draft is None:
            return
        for name in ("title", "description"):
            if name in fields:
                setattr(draft, name, fields[name])

    def update_draft_file(self, index: int, **fields: Any) -> None:
        draft = self.state.draft
        if draft is None or not 0 <= index < len(draft.files):
            return
        draft.files[index] = {**draft.files[index], **fields}

    def add_draft_file(self) -> None:
        if self.state.draft is not None:
            self.state.draft.files.append(
                {"filename": "", "language": DEFAULT_LANGUAGE, "content": ""}
            )

    def remove_draft_file(self, index: int) -> None:
        draft = self.state.draft
        if draft is not None and len(draft.files) > 1 and 0 <= index < len(draft.files):
            del draft.files[index]

    def _draft_files(self) -> list[Record]:
        files = []
        for draft_file in self.state.draft.files:
            files.append(
                {
                    "id": draft_file.get("id") or new_local_id(),
                    "filename": draft_file.get("filename", ""),
                    "language": draft_file.get("language") or DEFAULT_LANGUAGE,
                    "content": draft_file.get("content", ""),
                }
            )
        return files

    # mutations

    async def save(self) -> Record | None:
        """Publish the draft as a new post or as an edit of the current post.

        Returns the post as it ends up in the list, or ``None`` when the draft
        lacks a title or a first filename.
        """
        state = self.state
        draft = state.draft
        if draft is None or not draft.is_savable():
            return None

        editing = state.mode is EditorMode.EDITING and state.current_post is not None
        now = _now_iso()
        if editing:
            previous = state.current_post
            record: Record = {
                **previous,
                "title": draft.title.strip(),
                "description": draft.description,
                "files": self._draft_files(),
                "status": "pending",
                "comments": list(state.comments),
                "reactions": previous.get("reactions") or empty_tally(),
                "updatedAt": now,
            }
            state.replace_post(previous["id"], record)
        else:
            record = {
                "id": new_local_id(),
                "title": draft.title.strip(),
                "description": draft.description,
                "author": self.author,
                "avatar": self.avatar,
                "status": "pending",
                "tags": [],
                "files": self._draft_files(),
                "comments": [],
                "reactions": empty_tally(),
                "createdAt": now,
                "updatedAt": now,
            }
            state.insert_post(record)
        state.finish_edit()
        state.saving = True

        store = self.store
        local = record
        try:
            if editing:
                saved = await store.update_post(record)
            else:
                saved = await store.create_post(record)
        except ApiError as exc:
            self._report("save post", exc)
        else:
            if saved.get("id"):
                state.replace_post(record["id"], saved)
                record = saved
            state.dismiss_error()
            if editing and store.is_remote and is_local_id(local["id"]) and saved.get("id"):
                record = await self._carry_over_activity(local, saved)
        finally:
            state.saving = False
        self._mirror()
        return record

    async def _carry_over_activity(self, local: Record, published: Record) -> Record:
        """Replay comments and reactions of a just-published local post.

        Comment file references are mapped onto the published files by
        position. If the gateway fails midway, the comments not yet sent and
        the local reaction counts are kept so nothing disappears.
        """
        file_ids = {
            old.get("id"): new.get("id")
            for old, new in zip(local.get("files") or [], published.get("files") or [])
        }
        pending = [
            {**comment, "fileId": file_ids.get(comment.get("fileId"))}
            for comment in local.get("comments") or []
        ]
        local_reactions = {**empty_tally(), **(local.get("reactions") or {})}
        reactions = {**empty_tally(), **(published.get("reactions") or {})}
        comments: list[Record] = []
        post_id = published["id"]
        try:
            while pending:
                comment = pending[0]
                saved_comment = await self._remote_store.add_comment(post_id, comment)
                for kind, count in (comment.get("reactions") or {}).items():
                    for _ in range(count):
                        tally = await self._remote_store.add_comment_reaction(
                            post_id, saved_comment["id"], kind
                        )
                        saved_comment = {**saved_comment, "reactions": tally}
                comments.append(saved_comment)
                pending.pop(0)
            for kind, count in local_reactions.items():
                for _ in range(count - reactions.get(kind, 0)):
                    tally = await self._remote_store.add_reaction(post_id, kind)
                    reactions = {**empty_tally(), **tally}
        except ApiError as exc:
            self._report("publish comments and reactions", exc)
            comments.extend(pending)
            reactions = {
                kind: max(reactions.get(kind, 0), local_reactions.get(kind, 0))
                for kind in reactions
            }

        logger.info("Carried %d comment(s) over to published post %s", len(comments), post_id)
        record = {**published, "comments": comments, "reactions": reactions}
        self.state.replace_post(post_id, record)
        return record

    async def delete(self) -> None:
        """Delete the current post; another post (or none) becomes current."""
        state = self.state
        post = state.current_post
        if post is None:
            return

        state.saving = True
        state.remove_post(post["id"])
        try:
            await self.store.delete_post(post["id"])
        except ApiError as exc:
            self._report("delete post", exc)
        else:
            state.dismiss_error()
        finally:
            state.saving = False
        self._mirror()

    async def add_reaction(self, reaction_type: str) -> dict[str, int] | None:
        """Add one reaction to the current post."""
        state = self.state
        post = state.current_post
        if post is None:
            return None

        tally = increment_tally(post.get("reactions"), reaction_type)
        state.update_current(reactions=tally)
        try:
            remote_tally = await self.store.add_reaction(post["id"], reaction_type)
        except ApiError as exc:
            self._report("add reaction", exc)
        else:
            if remote_tally is not None and state.current_post is not None:
                if state.current_post.get("id") == post["id"]:
                    tally = {**empty_tally(), **remote_tally}
                    state.update_current(reactions=tally)
        self._mirror()
        return tally

    async def add_comment(self, content: str, line_number: int | None = None) -> Record | None:
        """Comment on the current post, annotating the active file."""
        state = self.state
        post = state.current_post
        if post is None or not content.strip():
            return None

        files = post.get("files") or []
        active = files[state.active_file] if state.active_file < len(files) else None
        comment: Record = {
            "id": new_local_id(),
            "author": self.author,
            "avatar": self.avatar,
            "content": content,
            "fileId": active.get("id") if active else None,
            "lineNumber": line_number,
            "reactions": empty_tally(),
            "createdAt": _now_iso(),
        }
        state.append_comment(comment)

        try:
            saved = await self.store.add_comment(post["id"], comment)
        except ApiError as exc:
            self._report("add comment", exc)
        else:
            if saved.get("id") and saved["id"] != comment["id"]:
                state.replace_comment(comment["id"], saved)
                comment = saved
        self._mirror()
        return comment

    async def add_comment_reaction(
        self, comment_id: Any, reaction_type: str
    ) -> dict[str, int] | None:
        """Add one reaction to a comment of the current post."""
        state = self.state
        post = state.current_post
        comment = state.find_comment(comment_id)
        if post is None or comment is None:
            return None

        tally = increment_tally(comment.get("reactions"), reaction_type)
        state.replace_comment(comment_id, {**comment, "reactions": tally})
        try:
            remote_tally = await self.store.add_comment_reaction(
                post["id"], str(comment_id), reaction_type
            )
        except ApiError as exc:
            self._report("add comment reaction", exc)
        else:
            current = state.find_comment(comment_id)
            if remote_tally is not None and current is not None:
                tally = {**empty_tally(), **remote_tally}
                state.replace_comment(comment_id, {**current, "reactions": tally})
        self._mirror()
        return tally

    # housekeeping

    def dismiss_error(self) -> None:
        self.state.dismiss_error()

    def clear_local_data(self) -> None:
        """Forget every cached entry and reset the page."""
        self.cache.clear()
        self.state.reset()
        self.state.fail(LOCAL_DATA_CLEARED)
