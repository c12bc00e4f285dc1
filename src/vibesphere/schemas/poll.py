# src/vibesphere/schemas/poll.py
"""Poll and vote Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from vibesphere.services.content import PollView
from vibesphere.services.vote_ledger import PollTally

from .profile import AuthorSummary


class PollCreate(BaseModel):
    """Schema for creating a poll."""

    question: str = Field(..., min_length=1, max_length=500)
    options: list[str] = Field(..., description="Two to five answers, in display order")
    is_anonymous: bool | None = None
    ai_feedback: str | None = None


class VoteCreate(BaseModel):
    option_id: str


class OptionResult(BaseModel):
    id: str
    text: str
    votes: int
    percentage: int


class PollResults(BaseModel):
    """Current tallies of a poll."""

    poll_id: str
    total_votes: int
    options: list[OptionResult]

    @classmethod
    def from_tally(cls, tally: PollTally) -> PollResults:
        return cls(
            poll_id=tally.poll_id,
            total_votes=tally.total_votes,
            options=[
                OptionResult(
                    id=option.option_id,
                    text=option.text,
                    votes=option.votes,
                    percentage=option.percentage,
                )
                for option in tally.options
            ],
        )


class MyVoteResponse(BaseModel):
    poll_id: str
    option_id: str | None


class PollResponse(BaseModel):
    """Schema for poll information returned by the API."""

    id: str
    question: str
    is_anonymous: bool
    author: AuthorSummary | None
    created_at: datetime
    expires_at: datetime
    expired: bool
    total_votes: int
    options: list[OptionResult]
    my_vote: str | None
    comment_count: int

    @classmethod
    def from_view(cls, view: PollView) -> PollResponse:
        poll = view.poll
        results = PollResults.from_tally(view.tally)
        return cls(
            id=poll.id,
            question=poll.question,
            is_anonymous=poll.is_anonymous,
            author=AuthorSummary.model_validate(view.author) if view.author else None,
            created_at=poll.created_at,
            expires_at=poll.expires_at,
            expired=view.expired,
            total_votes=results.total_votes,
            options=results.options,
            my_vote=view.viewer_option_id,
            comment_count=view.comment_count,
        )
