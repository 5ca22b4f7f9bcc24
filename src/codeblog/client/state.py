"""Explicit page state for the post browser.

Every field the post page shows lives on ``PageState``;
mutations go through named transitions so that the post list, the current
post and its comment list never disagree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, get_args

from codeblog.client.search import filter_posts
from codeblog.schemas.post import ReactionKind

Record = dict[str, Any]

REACTION_KINDS: tuple[str, ...] = get_args(ReactionKind)
DEFAULT_LANGUAGE = "javascript"


def empty_tally() -> dict[str, int]:
    return {kind: 0 for kind in REACTION_KINDS}


def increment_tally(tally: dict[str, int] | None, reaction_type: str) -> dict[str, int]:
    """Return a copy of ``tally`` with one more ``reaction_type``.

    Raises:
        ValueError: If ``reaction_type`` is not a known reaction kind.
    """
    if reaction_type not in REACTION_KINDS:
        raise ValueError(f"Unknown reaction type: {reaction_type}")
    updated = {**empty_tally(), **(tally or {})}
    updated[reaction_type] = updated[reaction_type] + 1
    return updated


class ConnectivityState(str, Enum):
    """Reachability of the API gateway."""

    CHECKING = "checking"
    CONNECTED = "connected"
    ERROR = "error"


class EditorMode(str, Enum):
    VIEWING = "viewing"
    CREATING = "creating"
    EDITING = "editing"


@dataclass
class PostDraft:
    """Form contents while creating or editing a post."""

    title: str = ""
    description: str = ""
    files: list[Record] = field(
        default_factory=lambda: [{"filename": "", "language": DEFAULT_LANGUAGE, "content": ""}]
    )

    @classmethod
    def from_post(cls, post: Record) -> PostDraft:
        return cls(
            title=post.get("title", ""),
            description=post.get("description", ""),
            files=[
                {
                    "id": code_file.get("id"),
                    "filename": code_file.get("filename", ""),
                    "language": code_file.get("language") or DEFAULT_LANGUAGE,
                    "content": code_file.get("content", ""),
                }
                for code_file in post.get("files") or []
            ],
        )

    def is_savable(self) -> bool:
        return bool(self.title.strip()) and bool(self.files) and bool(
            self.files[0].get("filename", "").strip()
        )


@dataclass
class PageState:
    """Everything the post page shows, plus the connectivity status."""

    posts: list[Record] = field(default_factory=list)
    filtered_posts: list[Record] = field(default_factory=list)
    current_post: Record | None = None
    comments: list[Record] = field(default_factory=list)
    active_file: int = 0
    search_query: str = ""
    mode: EditorMode = EditorMode.VIEWING
    draft: PostDraft | None = None
    connectivity: ConnectivityState = ConnectivityState.CHECKING
    loading: bool = True
    saving: bool = False
    searching: bool = False
    error: str = ""

    @property
    def is_connected(self) -> bool:
        return self.connectivity is ConnectivityState.CONNECTED

    def find_post(self, post_id: str) -> Record | None:
        return next((post for post in self.posts if post.get("id") == post_id), None)

    def _index_of(self, post_id: str) -> int | None:
        return next(
            (index for index, post in enumerate(self.posts) if post.get("id") == post_id),
            None,
        )

    # load / select

    def load(
        self,
        posts: list[Record],
        current: Record | None = None,
        comments: list[Record] | None = None,
    ) -> None:
        """Install a post collection; the first post becomes current if none is given."""
        self.posts = list(posts)
        if current is not None:
            self.current_post = current
            self.comments = list(comments if comments is not None else current.get("comments") or [])
        elif self.posts:
            self.select(self.posts[0])
        else:
            self.select(None)
        self.refilter()

    def set_posts(self, posts: list[Record]) -> None:
        self.posts = list(posts)
        self.refilter()

    def select(self, post: Record | None) -> None:
        self.current_post = post
        self.comments = list(post.get("comments") or []) if post else []
        self.active_file = 0

    # search

    def refilter(self) -> None:
        self.filtered_posts = filter_posts(self.posts, self.search_query)

    def clear_search(self) -> None:
        self.search_query = ""
        self.searching = False
        self.filtered_posts = list(self.posts)

    # editor

    def begin_create(self) -> None:
        self.mode = EditorMode.CREATING
        self.draft = PostDraft()

    def begin_edit(self) -> bool:
        if self.current_post is None:
            return False
        self.mode = EditorMode.EDITING
        self.draft = PostDraft.from_post(self.current_post)
        return True

    def finish_edit(self) -> None:
        self.mode = EditorMode.VIEWING
        self.draft = None

    # post records

    def insert_post(self, record: Record) -> None:
        """Put a new post at the top of the list and make it current."""
        self.posts.insert(0, record)
        self.select(record)
        self.refilter()

    def replace_post(self, old_id: str, record: Record) -> None:
        """Swap the record stored under ``old_id`` for ``record`` in place.

        Used both for edits and for exchanging a temporary identifier for a
        canonical one; list position is preserved and the current post follows.
        """
        index = self._index_of(old_id)
        if index is not None:
            self.posts[index] = record
        if self.current_post is not None and self.current_post.get("id") == old_id:
            active_file = self.active_file
            self.select(record)
            if active_file < len(record.get("files") or []):
                self.active_file = active_file
        self.refilter()

    def update_current(self, **changes: Any) -> Record | None:
        """Apply ``changes`` to the current post and its list entry."""
        if self.current_post is None:
            return None
        record = {**self.current_post, **changes}
        index = self._index_of(record.get("id"))
        if index is not None:
            self.posts[index] = record
        self.current_post = record
        self.refilter()
        return record

    def remove_post(self, post_id: str) -> None:
        """Drop a post; if it was current, the first remaining post takes over."""
        self.posts = [post for post in self.posts if post.get("id") != post_id]
        if self.current_post is not None and self.current_post.get("id") == post_id:
            self.select(self.posts[0] if self.posts else None)
        self.refilter()

    # comments

    def set_comments(self, comments: list[Record]) -> None:
        self.comments = list(comments)
        self.update_current(comments=list(comments))

    def append_comment(self, comment: Record) -> None:
        self.set_comments([*self.comments, comment])

    def replace_comment(self, old_id: Any, comment: Record) -> None:
        self.set_comments(
            [comment if existing.get("id") == old_id else existing for existing in self.comments]
        )

    def find_comment(self, comment_id: Any) -> Record | None:
        return next((c for c in self.comments if c.get("id") == comment_id), None)

    def file_comments(self, file_id: Any) -> list[Record]:
        return [comment for comment in self.comments if comment.get("fileId") == file_id]

    # errors

    def fail(self, message: str) -> None:
        self.error = message

    def dismiss_error(self) -> None:
        self.error = ""

    def reset(self) -> None:
        """Forget every post and the search; connectivity is kept."""
        self.posts = []
        self.filtered_posts = []
        self.select(None)
        self.search_query = ""
        self.searching = False
        self.finish_edit()
