# src/vibesphere/schemas/feedback.py
"""Content feedback request/response schemas."""

from typing import Literal

from pydantic import BaseModel


class FeedbackRequest(BaseModel):
    content: str
    type: Literal["post", "poll"]


class FeedbackResponse(BaseModel):
    feedback: str
