# src/codeblog/cli.py
"""Command line interface for the codeblog server and client.

Examples:
    codeblog serve
    codeblog list
    codeblog search auth.js
    codeblog publish --title "JWT helpers" --description "Token utils" --file controllers/auth.js
    codeblog react <post-id> heart
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from codeblog.client.cache import LocalCache
from codeblog.client.identifiers import is_local_id
from codeblog.client.search import format_time_ago
from codeblog.client.session import BlogSession
from codeblog.client.state import REACTION_KINDS, ConnectivityState
from codeblog.core.settings import settings

LANGUAGES_BY_SUFFIX = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cs": "csharp",
    ".html": "html",
    ".css": "css",
    ".json": "json",
    ".md": "markdown",
    ".sh": "bash",
    ".sql": "sql",
}


def read_code_file(spec: str) -> dict[str, str]:
    """Read ``PATH`` or ``PATH:LANGUAGE`` into a draft file entry."""
    path_text, _, language = spec.partition(":")
    path = Path(path_text)
    return {
        "filename": path_text,
        "language": language or LANGUAGES_BY_SUFFIX.get(path.suffix.lower(), "javascript"),
        "content": path.read_text(encoding="utf-8"),
    }


def _print_post_line(post: dict[str, Any]) -> None:
    marker = " [Local]" if is_local_id(post.get("id")) else ""
    when = format_time_ago(post["createdAt"]) if post.get("createdAt") else ""
    print(f"{post.get('id')}{marker}  {post.get('title')}  by {post.get('author')}  {when}")


def _print_post(session: BlogSession) -> None:
    post = session.state.current_post
    if post is None:
        print("No post selected.")
        return
    _print_post_line(post)
    print(post.get("description", ""))
    reactions = post.get("reactions") or {}
    counts = ", ".join(f"{kind}={reactions.get(kind, 0)}" for kind in REACTION_KINDS)
    print(f"Reactions: {counts}")
    for code_file in post.get("files") or []:
        print(f"\n--- {code_file.get('filename')} ({code_file.get('language')}) ---")
        print(code_file.get("content", ""))
        for comment in session.file_comments(code_file.get("id")):
            line = f" L{comment['lineNumber']}" if comment.get("lineNumber") else ""
            print(f"  # {comment.get('avatar')} {comment.get('author')}{line}: {comment.get('content')}")
            print(f"    id={comment.get('id')}")


async def _select(session: BlogSession, post_id: str) -> bool:
    return await session.select_post(post_id) is not None


async def _run(args: argparse.Namespace) -> int:
    cache = LocalCache(args.cache_dir) if args.cache_dir else LocalCache()
    async with BlogSession(cache=cache) as session:
        state = session.state
        command = args.command

        if command == "status":
            print(f"Backend: {state.connectivity.value}")
            local_count = sum(1 for post in state.posts if is_local_id(post.get("id")))
            print(f"Posts: {len(state.posts)} ({local_count} local only)")
        elif command == "list":
            for post in state.filtered_posts:
                _print_post_line(post)
        elif command == "search":
            for post in await session.search(args.query):
                _print_post_line(post)
        elif command == "show":
            if await _select(session, args.post_id):
                _print_post(session)
        elif command == "publish":
            session.begin_create()
            session.update_draft(title=args.title, description=args.description)
            state.draft.files = [read_code_file(spec) for spec in args.file]
            saved = await session.save()
            if saved is None:
                print("A title and a first filename are required.", file=sys.stderr)
                return 1
            _print_post_line(saved)
        elif command == "edit":
            if await _select(session, args.post_id) and session.begin_edit():
                if args.title is not None:
                    session.update_draft(title=args.title)
                if args.description is not None:
                    session.update_draft(description=args.description)
                if args.file:
                    state.draft.files = [read_code_file(spec) for spec in args.file]
                saved = await session.save()
                if saved is not None:
                    _print_post_line(saved)
        elif command == "delete":
            if await _select(session, args.post_id):
                await session.delete()
                print(f"Deleted {args.post_id}")
        elif command == "react":
            if await _select(session, args.post_id):
                tally = await session.add_reaction(args.kind)
                print(tally)
        elif command == "comment":
            if await _select(session, args.post_id):
                session.select_file(args.file_index)
                comment = await session.add_comment(args.text, line_number=args.line)
                if comment is not None:
                    print(f"Comment {comment['id']} added")
        elif command == "comment-react":
            if await _select(session, args.post_id):
                tally = await session.add_comment_reaction(args.comment_id, args.kind)
                if tally is None:
                    print("Comment not found", file=sys.stderr)
                    return 1
                print(tally)
        elif command == "clear-cache":
            session.clear_local_data()
            print(state.error)
            return 0

        if state.connectivity is ConnectivityState.ERROR:
            print("Backend unavailable; using local data.", file=sys.stderr)
        if state.error:
            print(state.error, file=sys.stderr)
            return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="codeblog", description="Share code posts.")
    parser.add_argument("--cache-dir", default=None, help="Local cache directory")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default=settings.server_host)
    serve.add_argument("--port", type=int, default=settings.server_port)
    serve.add_argument("--reload", action="store_true", default=settings.debug)

    sub.add_parser("status", help="Show backend connectivity and cached post count")
    sub.add_parser("list", help="List posts")

    search = sub.add_parser("search", help="Search posts")
    search.add_argument("query")

    show = sub.add_parser("show", help="Show one post with files and comments")
    show.add_argument("post_id")

    publish = sub.add_parser("publish", help="Publish a new post")
    publish.add_argument("--title", required=True)
    publish.add_argument("--description", required=True)
    publish.add_argument(
        "--file", action="append", required=True, metavar="PATH[:LANGUAGE]",
        help="Code file to include (repeatable)",
    )

    edit = sub.add_parser("edit", help="Edit a post")
    edit.add_argument("post_id")
    edit.add_argument("--title")
    edit.add_argument("--description")
    edit.add_argument("--file", action="append", metavar="PATH[:LANGUAGE]")

    delete = sub.add_parser("delete", help="Delete a post")
    delete.add_argument("post_id")

    react = sub.add_parser("react", help="React to a post")
    react.add_argument("post_id")
    react.add_argument("kind", choices=REACTION_KINDS)

    comment = sub.add_parser("comment", help="Comment on a post")
    comment.add_argument("post_id")
    comment.add_argument("text")
    comment.add_argument("--file-index", type=int, default=0)
    comment.add_argument("--line", type=int, default=None)

    comment_react = sub.add_parser("comment-react", help="React to a comment")
    comment_react.add_argument("post_id")
    comment_react.add_argument("comment_id")
    comment_react.add_argument("kind", choices=REACTION_KINDS)

    sub.add_parser("clear-cache", help="Forget all locally cached data")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        import uvicorn
        uvicorn.run("codeblog.main:app", host=args.host, port=args.port, reload=args.reload)
        return 0
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
