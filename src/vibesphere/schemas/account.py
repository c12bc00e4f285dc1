# src/vibesphere/schemas/account.py
"""Schemas for content ownership listings and deletions."""

from __future__ import annotations

from pydantic import BaseModel, Field

from vibesphere.services.cascade import DeletionReport

from .poll import PollResponse
from .post import PostResponse


class AccountDeleteRequest(BaseModel):
    confirmation: str = Field(..., description="Must read 'delete my account'")


class DeletionResponse(BaseModel):
    """Summary of a finished cascading deletion."""

    target: str
    target_id: str
    state: str
    completed: list[str]
    removed: dict[str, int]
    already_deleted: bool

    @classmethod
    def from_report(cls, report: DeletionReport) -> DeletionResponse:
        return cls(
            target=report.target,
            target_id=report.target_id,
            state=report.state.value,
            completed=[state.value for state in report.completed],
            removed=dict(report.removed),
            already_deleted=report.already_deleted,
        )


class OwnContentResponse(BaseModel):
    public_posts: list[PostResponse]
    anonymous_posts: list[PostResponse]
    public_polls: list[PollResponse]
    anonymous_polls: list[PollResponse]
