"""initial schema

Revision ID: 3c1f9a6b2d40
Revises:
Create Date: 2026-10-19 09:12:44.518302

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f9a6b2d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    """Create auth, profile and content tables."""
    op.create_table(
        "auth_users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("auth_users.id"), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_auth_sessions_user_id", "auth_sessions", ["user_id"])

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), sa.ForeignKey("auth_users.id"), primary_key=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("image", sa.Text(), nullable=True),
        _timestamp("created_at"),
        sa.Column("default_anonymous", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index(
        "uq_profiles_username_lower",
        "profiles",
        [sa.text("lower(username)")],
        unique=True,
    )

    op.create_table(
        "posts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_posts_author_id", "posts", ["author_id"])

    op.create_table(
        "post_likes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("post_id", sa.String(length=36), sa.ForeignKey("posts.id"), nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=False),
        _timestamp("created_at"),
        sa.UniqueConstraint("post_id", "user_id", name="uq_post_likes_post_user"),
    )
    op.create_index("ix_post_likes_post_id", "post_likes", ["post_id"])
    op.create_index("ix_post_likes_user_id", "post_likes", ["user_id"])

    op.create_table(
        "polls",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("author_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        _timestamp("expires_at"),
        sa.Column("total_votes", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_polls_author_id", "polls", ["author_id"])

    op.create_table(
        "poll_options",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("poll_id", sa.String(length=36), sa.ForeignKey("polls.id"), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("votes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint("votes >= 0", name="ck_poll_options_votes_non_negative"),
    )
    op.create_index("ix_poll_options_poll_id", "poll_options", ["poll_id"])

    op.create_table(
        "user_votes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("poll_id", sa.String(length=36), sa.ForeignKey("polls.id"), nullable=False),
        sa.Column(
            "option_id", sa.String(length=36), sa.ForeignKey("poll_options.id"), nullable=False
        ),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=False),
        _timestamp("created_at"),
        sa.UniqueConstraint("poll_id", "user_id", name="uq_user_votes_poll_user"),
    )
    op.create_index("ix_user_votes_poll_id", "user_votes", ["poll_id"])
    op.create_index("ix_user_votes_user_id", "user_votes", ["user_id"])

    op.create_table(
        "comments",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        sa.Column("post_id", sa.String(length=36), sa.ForeignKey("posts.id"), nullable=True),
        sa.Column("poll_id", sa.String(length=36), sa.ForeignKey("polls.id"), nullable=True),
        sa.CheckConstraint(
            "(post_id IS NULL) <> (poll_id IS NULL)", name="ck_comments_single_target"
        ),
    )
    op.create_index("ix_comments_author_id", "comments", ["author_id"])
    op.create_index("ix_comments_post_id", "comments", ["post_id"])
    op.create_index("ix_comments_poll_id", "comments", ["poll_id"])


def downgrade() -> None:
    """Drop everything created by upgrade()."""
    for table in (
        "comments",
        "user_votes",
        "poll_options",
        "polls",
        "post_likes",
        "posts",
        "profiles",
        "auth_sessions",
        "auth_users",
    ):
        op.drop_table(table)
