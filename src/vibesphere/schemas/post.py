# src/vibesphere/schemas/post.py
"""Post-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from vibesphere.services.content import PostView

from .profile import AuthorSummary


class PostCreate(BaseModel):
    """Schema for publishing a post."""

    content: str = Field(..., min_length=1, max_length=5000)
    is_anonymous: bool | None = Field(
        None, description="Defaults to the author's profile setting"
    )
    ai_feedback: str | None = Field(
        None, description="Suggestion text kept as an anonymous comment"
    )


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: str
    content: str
    is_anonymous: bool
    author: AuthorSummary | None
    created_at: datetime
    updated_at: datetime
    like_count: int
    liked: bool
    comment_count: int

    @classmethod
    def from_view(cls, view: PostView) -> PostResponse:
        post = view.post
        return cls(
            id=post.id,
            content=post.content,
            is_anonymous=post.is_anonymous,
            author=AuthorSummary.model_validate(view.author) if view.author else None,
            created_at=post.created_at,
            updated_at=post.updated_at,
            like_count=view.like_count,
            liked=view.liked_by_viewer,
            comment_count=view.comment_count,
        )
