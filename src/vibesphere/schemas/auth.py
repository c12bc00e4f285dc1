# src/vibesphere/schemas/auth.py
"""Authentication-related Pydantic schemas."""

from pydantic import BaseModel, Field

from .profile import ProfileResponse


class RegisterRequest(BaseModel):
    """Schema for creating an account."""

    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=6, max_length=256)
    username: str | None = Field(None, max_length=50, description="Left blank for a generated name")


class LoginRequest(BaseModel):
    """Schema for signing in with a username or an email."""

    username_or_email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Access token issued on sign-in."""

    access_token: str
    token_type: str = "bearer"
    profile: ProfileResponse
