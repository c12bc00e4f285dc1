"""SQLAlchemy model for public user profiles."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from vibesphere.db.session import Base
from vibesphere.db.time import utcnow


class Profile(Base):
    """Public identity of an account; its id equals the auth record id."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("auth_users.id"),
        primary_key=True,
    )
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    default_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


# Usernames are unique regardless of case.
Index("uq_profiles_username_lower", func.lower(Profile.username), unique=True)
