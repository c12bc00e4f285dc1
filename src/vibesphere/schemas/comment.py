# src/vibesphere/schemas/comment.py
"""Comment-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from vibesphere.services.content import CommentView

from .profile import AuthorSummary


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    is_anonymous: bool | None = None


class CommentResponse(BaseModel):
    """A comment on a post or a poll; exactly one target id is set."""

    id: str
    content: str
    is_anonymous: bool
    author: AuthorSummary | None
    created_at: datetime
    post_id: str | None
    poll_id: str | None

    @classmethod
    def from_view(cls, view: CommentView) -> CommentResponse:
        comment = view.comment
        return cls(
            id=comment.id,
            content=comment.content,
            is_anonymous=comment.is_anonymous,
            author=AuthorSummary.model_validate(view.author) if view.author else None,
            created_at=comment.created_at,
            post_id=comment.post_id,
            poll_id=comment.poll_id,
        )


class CommentCount(BaseModel):
    count: int
