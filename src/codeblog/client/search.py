"""Local search and display helpers."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86_400


def _contains(value: Any, term: str) -> bool:
    return isinstance(value, str) and term in value.lower()


def post_matches(post: Mapping[str, Any], term: str) -> bool:
    """Return True if ``term`` (already lowercased) occurs in the post."""
    if _contains(post.get("title"), term) or _contains(post.get("description"), term):
        return True
    for code_file in post.get("files") or []:
        if _contains(code_file.get("filename"), term) or _contains(code_file.get("content"), term):
            return True
    return _contains(post.get("author"), term)


def filter_posts(posts: Iterable[Mapping[str, Any]], query: str) -> list[Any]:
    """Return the posts matching ``query``, in their original order.

    The query is trimmed and compared case-insensitively against the title,
    description, every file's filename and content, and the author. A blank
    query returns every post.
    """
    posts = list(posts)
    term = query.strip().lower()
    if not term:
        return posts
    return [post for post in posts if post_matches(post, term)]


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_time_ago(timestamp: str | datetime, now: datetime | None = None) -> str:
    """Render a timestamp relative to ``now`` ("Just now", "5 minutes ago", ...)."""
    now = now or datetime.now(UTC)
    seconds = int((now - parse_timestamp(timestamp)).total_seconds())
    if seconds < SECONDS_PER_MINUTE:
        return "Just now"
    if seconds < SECONDS_PER_HOUR:
        return f"{seconds // SECONDS_PER_MINUTE} minutes ago"
    if seconds < SECONDS_PER_DAY:
        return f"{seconds // SECONDS_PER_HOUR} hours ago"
    return f"{seconds // SECONDS_PER_DAY} days ago"
