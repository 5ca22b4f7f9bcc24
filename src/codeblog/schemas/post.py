"""Post-related Pydantic schemas.

Field names travel as camelCase on the wire (``fileId``, ``lineNumber``,
``reactionType``); snake_case is accepted on input as well.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ReactionKind = Literal["like", "dislike", "heart", "laugh", "confused", "eyes"]
PostStatus = Literal["pending", "approved", "rejected"]


class CamelModel(BaseModel):
    """Base model using camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ReactionTally(CamelModel):
    """Counts for every reaction kind; kinds not yet reacted to are zero."""

    like: int = Field(0, ge=0)
    dislike: int = Field(0, ge=0)
    heart: int = Field(0, ge=0)
    laugh: int = Field(0, ge=0)
    confused: int = Field(0, ge=0)
    eyes: int = Field(0, ge=0)


class ReactionCreate(CamelModel):
    """Schema for a single reaction increment."""

    reaction_type: ReactionKind = Field(..., description="Reaction kind to increment")


class CodeFileIn(CamelModel):
    """A code file submitted with a post.

    ``id`` is optional; on update a file carrying the id of an existing file of
    the same post is edited in place.
    """

    id: str | None = None
    filename: str = Field(..., min_length=1)
    language: str = Field("javascript", min_length=1)
    content: str = Field(..., min_length=1)


class CodeFileResponse(CamelModel):
    id: str
    filename: str
    language: str
    content: str


class PostCreate(CamelModel):
    """Schema for creating (or replacing) a post."""

    title: str = Field(..., min_length=1, description="Post title (trimmed)")
    description: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    avatar: str = Field(..., min_length=1)
    status: PostStatus = "pending"
    tags: list[str] = Field(default_factory=list)
    files: list[CodeFileIn] = Field(..., min_length=1, description="At least one code file")

    @field_validator("title", mode="before")
    @classmethod
    def _trim_title(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value


class PostUpdate(PostCreate):
    """Schema for replacing a post's content (last write wins)."""


class CommentCreate(CamelModel):
    """Schema for appending a comment to a post."""

    author: str = Field(..., min_length=1)
    avatar: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    file_id: str | None = Field(None, description="File of the same post being annotated")
    line_number: int | None = Field(None, ge=1)


class CommentResponse(CamelModel):
    id: str
    author: str
    avatar: str
    content: str
    file_id: str | None
    line_number: int | None
    reactions: ReactionTally
    created_at: datetime
    updated_at: datetime


class PostResponse(CamelModel):
    """Schema for post information returned by the API."""

    id: str
    title: str
    description: str
    author: str
    avatar: str
    status: PostStatus
    tags: list[str]
    files: list[CodeFileResponse]
    comments: list[CommentResponse]
    reactions: ReactionTally
    created_at: datetime
    updated_at: datetime
    formatted_date: str


class PostListResponse(CamelModel):
    posts: list[PostResponse]
    total: int


class DeleteResponse(CamelModel):
    message: str
    id: str
