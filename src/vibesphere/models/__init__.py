# src/vibesphere/models/__init__.py
"""SQLAlchemy models for the VibeSphere application."""

from .auth import AuthSession, AuthUser
from .comment import Comment
from .poll import Poll, PollOption, UserVote
from .post import Post, PostLike
from .profile import Profile

__all__ = [
    "AuthSession", "AuthUser",
    "Comment",
    "Poll", "PollOption", "UserVote",
    "Post", "PostLike",
    "Profile",
]
