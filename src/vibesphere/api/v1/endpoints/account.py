# src/vibesphere/api/v1/endpoints/account.py
"""Account-level endpoints: own content listing and account deletion."""

from fastapi import APIRouter

from vibesphere.api.v1.dependencies import ActorDep, AuthAdminDep, SessionDep, http_error
from vibesphere.schemas.account import AccountDeleteRequest, DeletionResponse, OwnContentResponse
from vibesphere.schemas.poll import PollResponse
from vibesphere.schemas.post import PostResponse
from vibesphere.services import cascade, content
from vibesphere.services.errors import VibeSphereError

router = APIRouter(prefix="/account", tags=["account"])


@router.get("/content", response_model=OwnContentResponse)
async def own_content(actor: ActorDep, db: SessionDep) -> OwnContentResponse:
    """The caller's posts and polls, with public and anonymous kept apart."""
    owned = content.own_content(db, actor)
    return OwnContentResponse(
        public_posts=[PostResponse.from_view(view) for view in owned.public_posts],
        anonymous_posts=[PostResponse.from_view(view) for view in owned.anonymous_posts],
        public_polls=[PollResponse.from_view(view) for view in owned.public_polls],
        anonymous_polls=[PollResponse.from_view(view) for view in owned.anonymous_polls],
    )


@router.post("/delete", response_model=DeletionResponse)
async def delete_account(
    payload: AccountDeleteRequest,
    actor: ActorDep,
    admin: AuthAdminDep,
    db: SessionDep,
) -> DeletionResponse:
    """Permanently delete the caller's account and everything it owns.

    The caller's sessions end with the account, so the token used here is
    no longer accepted afterwards.
    """
    try:
        report = cascade.delete_account(db, actor, payload.confirmation, admin)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return DeletionResponse.from_report(report)
