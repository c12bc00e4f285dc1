# src/vibesphere/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .account import router as account_router
from .auth import router as auth_router
from .comments import router as comments_router
from .feedback import router as feedback_router
from .polls import router as polls_router
from .posts import router as posts_router
from .profiles import router as profiles_router

__all__ = [
    "account_router",
    "auth_router",
    "comments_router",
    "feedback_router",
    "polls_router",
    "posts_router",
    "profiles_router",
]
