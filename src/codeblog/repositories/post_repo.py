"""Data access helpers for working with posts, files and comments."""
from __future__ import annotations

import json

from sqlalchemy import Text, cast, func, or_, select, update
from sqlalchemy.orm import Session

from codeblog.models.post import CodeFile, Comment, Post
from codeblog.schemas.post import CommentCreate, PostCreate

__all__ = ["PostRepository"]


class PostRepository:
    """Thin wrapper around database access for post entities.

    Methods flush but never commit; the caller owns the transaction.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, post_id: str) -> Post | None:
        """Return a post by identifier."""
        return self.session.get(Post, post_id)

    def list_posts(
        self,
        *,
        status: str | None = None,
        author: str | None = None,
        tag: str | None = None,
        limit: int = 50,
        skip: int = 0,
    ) -> tuple[list[Post], int]:
        """Return a page of posts, newest first, plus the unpaged total."""
        stmt = select(Post)
        if status is not None:
            stmt = stmt.where(Post.status == status)
        if author is not None:
            stmt = stmt.where(Post.author == author)
        if tag is not None:
            # Tags are a JSON array; match the quoted element in its text form,
            # raw or \u-escaped depending on the backend's serializer.
            tags_text = cast(Post.tags, Text)
            stmt = stmt.where(
                or_(
                    tags_text.contains(f'"{tag}"', autoescape=True),
                    tags_text.contains(json.dumps(tag), autoescape=True),
                )
            )

        total = self.session.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        page = stmt.order_by(Post.created_at.desc()).offset(skip).limit(limit)
        return list(self.session.scalars(page)), total

    def search(self, query: str) -> list[Post]:
        """Return posts whose title, description, author or any file matches ``query``.

        Matching is a case-insensitive substring test on the trimmed query; an
        empty query matches every post.
        """
        term = query.strip().lower()
        stmt = select(Post)
        if term:
            file_match = Post.files.any(
                or_(
                    func.lower(CodeFile.filename).contains(term, autoescape=True),
                    func.lower(CodeFile.content).contains(term, autoescape=True),
                )
            )
            stmt = stmt.where(
                or_(
                    func.lower(Post.title).contains(term, autoescape=True),
                    func.lower(Post.description).contains(term, autoescape=True),
                    func.lower(Post.author).contains(term, autoescape=True),
                    file_match,
                )
            )
        return list(self.session.scalars(stmt.order_by(Post.created_at.desc())))

    def create(self, data: PostCreate) -> Post:
        """Insert a new post with its files and return the persisted instance."""
        post = Post(
            title=data.title,
            description=data.description,
            author=data.author,
            avatar=data.avatar,
            status=data.status,
            tags=list(data.tags),
        )
        for file_data in data.files:
            post.files.append(
                CodeFile(
                    filename=file_data.filename,
                    language=file_data.language,
                    content=file_data.content,
                )
            )
        self.session.add(post)
        self.session.flush()
        return post

    def replace(self, post: Post, data: PostCreate) -> Post:
        """Overwrite a post's content fields; comments and reactions are kept.

        Files whose ``id`` names an existing file of this post are edited in
        place so that comment references survive. Omitted files are removed.
        """
        post.title = data.title
        post.description = data.description
        post.author = data.author
        post.avatar = data.avatar
        post.status = data.status
        post.tags = list(data.tags)

        existing = {code_file.id: code_file for code_file in post.files}
        files: list[CodeFile] = []
        for file_data in data.files:
            code_file = existing.pop(file_data.id, None) if file_data.id else None
            if code_file is None:
                code_file = CodeFile(filename=file_data.filename)
            code_file.filename = file_data.filename
            code_file.language = file_data.language
            code_file.content = file_data.content
            files.append(code_file)

        for orphan in existing.values():
            for comment in list(orphan.comments):
                comment.file = None
        post.files = files
        post.files.reorder()
        self.session.flush()
        return post

    def delete(self, post: Post) -> None:
        """Remove a post; its files and comments go with it."""
        self.session.delete(post)
        self.session.flush()

    def increment_reaction(self, post_id: str, kind: str) -> dict[str, int] | None:
        """Atomically add one to a post's reaction counter.

        Returns:
            The updated tally, or ``None`` when the post does not exist.

        Raises:
            ValueError: If ``kind`` is not a known reaction kind.
        """
        column = Post.reaction_column(kind)
        result = self.session.execute(
            update(Post)
            .where(Post.id == post_id)
            .values({column: column + 1})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        post = self.session.get(Post, post_id, populate_existing=True)
        return post.reactions if post is not None else None

    def add_comment(self, post: Post, data: CommentCreate) -> Comment:
        """Append a comment to a post.

        Raises:
            ValueError: If ``data.file_id`` does not name a file of this post.
        """
        if data.file_id is not None and data.file_id not in {f.id for f in post.files}:
            raise ValueError("Referenced file does not belong to this post")

        comment = Comment(
            author=data.author,
            avatar=data.avatar,
            content=data.content,
            file_id=data.file_id,
            line_number=data.line_number,
        )
        post.comments.append(comment)
        self.session.flush()
        return comment

    def increment_comment_reaction(
        self, post_id: str, comment_id: str, kind: str
    ) -> dict[str, int] | None:
        """Atomically add one to a comment's reaction counter.

        Returns:
            The updated tally, or ``None`` when the comment is not on that post.
        """
        column = Comment.reaction_column(kind)
        result = self.session.execute(
            update(Comment)
            .where(Comment.id == comment_id, Comment.post_id == post_id)
            .values({column: column + 1})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        comment = self.session.get(Comment, comment_id, populate_existing=True)
        return comment.reactions if comment is not None else None
