# src/vibesphere/api/v1/endpoints/feedback.py
"""Content feedback endpoint.

Mounted at the application root as `/generate-content-feedback`. Errors are
answered as `{"error": ...}` bodies rather than the usual `detail` shape.
"""

from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from vibesphere.api.v1.dependencies import CredentialsDep
from vibesphere.core.settings import settings
from vibesphere.schemas.feedback import FeedbackRequest, FeedbackResponse
from vibesphere.services.errors import InvalidInput, UpstreamError
from vibesphere.services.feedback import FeedbackClient, get_feedback_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["feedback"])


def get_feedback_client_dep() -> FeedbackClient:
    """Return the shared feedback client."""
    return get_feedback_client()


FeedbackClientDep = Annotated[FeedbackClient, Depends(get_feedback_client_dep)]


def _authorized(credentials) -> bool:
    expected = settings.public_api_key
    if not expected or credentials is None:
        return False
    return secrets.compare_digest(credentials.credentials, expected)


@router.post("/generate-content-feedback", response_model=FeedbackResponse)
async def generate_content_feedback(
    payload: FeedbackRequest,
    credentials: CredentialsDep,
    client: FeedbackClientDep,
):
    """Ask the text-generation service to review a draft post or poll."""
    if not _authorized(credentials):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "Missing or invalid API key"},
        )
    try:
        feedback = await client.get_feedback(payload.content, payload.type)
    except InvalidInput as exc:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})
    except UpstreamError as exc:
        logger.warning("Content feedback failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to generate feedback"},
        )
    return FeedbackResponse(feedback=feedback)
