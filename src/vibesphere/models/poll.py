# src/vibesphere/models/poll.py
"""SQLAlchemy models for polls, their options and cast votes."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from vibesphere.db.ids import new_id
from vibesphere.db.session import Base
from vibesphere.db.time import utcnow


class Poll(Base):
    """Multiple-choice question owned by its author."""

    __tablename__ = "polls"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
    )
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # Denormalized; readers derive the total from the option counters.
    total_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class PollOption(Base):
    """One answer of a poll together with its vote counter."""

    __tablename__ = "poll_options"
    __table_args__ = (
        CheckConstraint("votes >= 0", name="ck_poll_options_votes_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    poll_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("polls.id"),
        nullable=False,
        index=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Display order within the poll.
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class UserVote(Base):
    """Ballot recording which option a user picked on a poll."""

    __tablename__ = "user_votes"
    __table_args__ = (
        # One ballot per user per poll; first insert wins.
        UniqueConstraint("poll_id", "user_id", name="uq_user_votes_poll_user"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    poll_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("polls.id"),
        nullable=False,
        index=True,
    )
    option_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("poll_options.id"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
