# src/vibesphere/schemas/profile.py
"""Profile-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AuthorSummary(BaseModel):
    """Public identity shown next to authored content."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    name: str | None = None
    image: str | None = None


class ProfileResponse(BaseModel):
    """Full profile as seen by its owner."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    name: str | None
    email: str | None
    image: str | None
    created_at: datetime
    default_anonymous: bool


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    name: str | None = Field(None, max_length=100, description="Display name; blank clears it")
    default_anonymous: bool | None = Field(None, description="Post anonymously by default")
