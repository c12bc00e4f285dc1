# src/vibesphere/main.py
"""Main entry point for the VibeSphere application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from vibesphere import __version__
from vibesphere.api.v1 import (
    account_router,
    auth_router,
    comments_router,
    feedback_router,
    polls_router,
    posts_router,
    profiles_router,
)
from vibesphere.core.logging import configure_logging
from vibesphere.core.settings import settings
from vibesphere.services.feedback import get_feedback_client

configure_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="VibeSphere API",
    description="Posts, polls and comments with optional anonymity",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(profiles_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(polls_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(account_router, prefix="/api/v1")
# The feedback function keeps its historical root path.
app.include_router(feedback_router)


@app.on_event("startup")
async def on_startup() -> None:
    logger.info("%s %s starting", settings.app_name, __version__)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await get_feedback_client().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "VibeSphere API",
        "version": __version__,
        "description": "Posts, polls and comments with optional anonymity",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("vibesphere.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
