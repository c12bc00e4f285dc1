# src/vibesphere/api/v1/endpoints/auth.py
"""Authentication endpoints for the VibeSphere API."""

from __future__ import annotations

from fastapi import APIRouter, status

from vibesphere.api.v1.dependencies import ActorDep, SessionDep, http_error
from vibesphere.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from vibesphere.schemas.profile import ProfileResponse
from vibesphere.services import auth as auth_service
from vibesphere.services import profiles as profile_service
from vibesphere.services.errors import VibeSphereError

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: SessionDep) -> ProfileResponse:
    """Create an account and its profile."""
    try:
        profile = auth_service.register(
            db,
            email=payload.email,
            password=payload.password,
            username=payload.username,
        )
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return ProfileResponse.model_validate(profile)


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: SessionDep) -> TokenResponse:
    """Sign in with a username or an email address."""
    try:
        result = auth_service.sign_in(
            db,
            username_or_email=payload.username_or_email,
            password=payload.password,
        )
        profile = profile_service.get_profile(db, result.actor.user_id)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return TokenResponse(
        access_token=result.access_token,
        profile=ProfileResponse.model_validate(profile),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(actor: ActorDep, db: SessionDep) -> None:
    """End the current session; its token stops working."""
    auth_service.sign_out(db, actor)


@router.get("/me", response_model=ProfileResponse)
async def me(actor: ActorDep, db: SessionDep) -> ProfileResponse:
    try:
        profile = profile_service.get_own_profile(db, actor)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return ProfileResponse.model_validate(profile)
