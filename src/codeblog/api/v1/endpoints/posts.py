# src/codeblog/api/v1/endpoints/posts.py
"""Post, comment and reaction endpoints for the codeblog API."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from codeblog.core.settings import settings
from codeblog.db.session import get_db
from codeblog.models import Post
from codeblog.repositories.post_repo import PostRepository
from codeblog.schemas.post import (
    CommentCreate,
    CommentResponse,
    DeleteResponse,
    PostCreate,
    PostListResponse,
    PostResponse,
    PostStatus,
    PostUpdate,
    ReactionCreate,
    ReactionTally,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])


def get_post_repository(db: Annotated[Session, Depends(get_db)]) -> PostRepository:
    """Return a repository bound to the request's session."""
    return PostRepository(db)


SessionDep = Annotated[Session, Depends(get_db)]
RepoDep = Annotated[PostRepository, Depends(get_post_repository)]


def _get_post_or_404(repo: PostRepository, post_id: str) -> Post:
    post = repo.get_by_id(post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


@router.get("", response_model=PostListResponse)
async def list_posts(
    repo: RepoDep,
    status_filter: PostStatus | None = Query(None, alias="status", description="Filter by status"),
    author: str | None = Query(None, description="Filter by author name"),
    tag: str | None = Query(None, description="Filter by tag"),
    limit: int = Query(
        settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Maximum number of posts to return",
    ),
    skip: int = Query(0, ge=0, description="Number of posts to skip"),
) -> dict[str, object]:
    """List posts, newest first, with optional filters.

    Args:
        repo: Post repository
        status_filter: Only posts with this status
        author: Only posts by this author
        tag: Only posts carrying this tag
        limit: Maximum number of posts to return
        skip: Offset for pagination

    Returns:
        The page of posts and the total number of matching posts
    """
    posts, total = repo.list_posts(
        status=status_filter,
        author=author,
        tag=tag,
        limit=limit,
        skip=skip,
    )
    return {"posts": posts, "total": total}


@router.get("/search", response_model=PostListResponse)
async def search_posts(
    repo: RepoDep,
    q: str = Query("", description="Case-insensitive search text"),
) -> dict[str, object]:
    """Search titles, descriptions, authors, filenames and file contents."""
    posts = repo.search(q)
    return {"posts": posts, "total": len(posts)}


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: str, repo: RepoDep) -> Post:
    """Get a specific post by ID.

    Raises:
        HTTPException: If post not found
    """
    return _get_post_or_404(repo, post_id)


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(post_data: PostCreate, repo: RepoDep, db: SessionDep) -> Post:
    """Create a new post with its code files.

    The store assigns the canonical identifier and timestamps.
    """
    post = repo.create(post_data)
    db.commit()
    db.refresh(post)
    logger.info("Created post %s with %d file(s)", post.id, len(post.files))
    return post


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    post_data: PostUpdate,
    repo: RepoDep,
    db: SessionDep,
) -> Post:
    """Replace a post's content; the last write wins.

    Raises:
        HTTPException: If post not found
    """
    post = _get_post_or_404(repo, post_id)
    repo.replace(post, post_data)
    db.commit()
    db.refresh(post)
    return post


@router.delete("/{post_id}", response_model=DeleteResponse)
async def delete_post(post_id: str, repo: RepoDep, db: SessionDep) -> dict[str, str]:
    """Delete a post together with its files and comments.

    Raises:
        HTTPException: If post not found
    """
    post = _get_post_or_404(repo, post_id)
    repo.delete(post)
    db.commit()
    logger.info("Deleted post %s", post_id)
    return {"message": "Post deleted successfully", "id": post_id}


@router.patch("/{post_id}/reactions", response_model=ReactionTally)
async def add_reaction(
    post_id: str,
    reaction: ReactionCreate,
    repo: RepoDep,
    db: SessionDep,
) -> dict[str, int]:
    """Increment one reaction counter on a post.

    Returns:
        The post's updated reaction tally

    Raises:
        HTTPException: If post not found
    """
    tally = repo.increment_reaction(post_id, reaction.reaction_type)
    if tally is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    db.commit()
    return tally


@router.post(
    "/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    post_id: str,
    comment_data: CommentCreate,
    repo: RepoDep,
    db: SessionDep,
) -> object:
    """Append a comment to a post.

    Raises:
        HTTPException: If post not found or the referenced file is not part of it
    """
    post = _get_post_or_404(repo, post_id)
    try:
        comment = repo.add_comment(post, comment_data)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    db.commit()
    db.refresh(comment)
    return comment


@router.patch("/{post_id}/comments/{comment_id}/reactions", response_model=ReactionTally)
async def add_comment_reaction(
    post_id: str,
    comment_id: str,
    reaction: ReactionCreate,
    repo: RepoDep,
    db: SessionDep,
) -> dict[str, int]:
    """Increment one reaction counter on a comment.

    Raises:
        HTTPException: If the comment does not exist on that post
    """
    tally = repo.increment_comment_reaction(post_id, comment_id, reaction.reaction_type)
    if tally is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    db.commit()
    return tally
