# src/vibesphere/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    account_router,
    auth_router,
    comments_router,
    feedback_router,
    polls_router,
    posts_router,
    profiles_router,
)

__all__ = [
    "account_router",
    "auth_router",
    "comments_router",
    "feedback_router",
    "polls_router",
    "posts_router",
    "profiles_router",
]
