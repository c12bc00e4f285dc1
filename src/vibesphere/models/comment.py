# src/vibesphere/models/comment.py
"""SQLAlchemy model for comments on posts and polls."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from vibesphere.db.ids import new_id
from vibesphere.db.session import Base
from vibesphere.db.time import utcnow


class Comment(Base):
    """Comment attached to exactly one post or one poll."""

    __tablename__ = "comments"
    __table_args__ = (
        CheckConstraint(
            "(post_id IS NULL) <> (poll_id IS NULL)",
            name="ck_comments_single_target",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    content: Mapped[str] = mapped_column(Text, nullable=False)
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
    post_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("posts.id"),
        nullable=True,
        index=True,
    )
    poll_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("polls.id"),
        nullable=True,
        index=True,
    )
