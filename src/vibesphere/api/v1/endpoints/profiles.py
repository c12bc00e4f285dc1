# src/vibesphere/api/v1/endpoints/profiles.py
"""Profile endpoints."""

from fastapi import APIRouter

from vibesphere.api.v1.dependencies import ActorDep, SessionDep, http_error
from vibesphere.schemas.profile import AuthorSummary, ProfileResponse, ProfileUpdate
from vibesphere.services import profiles as profile_service
from vibesphere.services.errors import VibeSphereError

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(actor: ActorDep, db: SessionDep) -> ProfileResponse:
    try:
        profile = profile_service.get_own_profile(db, actor)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return ProfileResponse.model_validate(profile)


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    payload: ProfileUpdate,
    actor: ActorDep,
    db: SessionDep,
) -> ProfileResponse:
    """Update display name and/or the anonymous-by-default flag."""
    changes = payload.model_dump(exclude_unset=True)
    try:
        profile = profile_service.update_profile(db, actor, **changes)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return ProfileResponse.model_validate(profile)


@router.get("/by-username/{username}", response_model=AuthorSummary)
async def lookup_profile(username: str, db: SessionDep) -> AuthorSummary:
    try:
        profile = profile_service.lookup_username(db, username)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return AuthorSummary.model_validate(profile)
