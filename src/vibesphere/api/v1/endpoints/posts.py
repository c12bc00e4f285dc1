# src/vibesphere/api/v1/endpoints/posts.py
"""Post endpoints for the VibeSphere API."""

from __future__ import annotations

from fastapi import APIRouter, status

from vibesphere.api.v1.dependencies import ActorDep, OptionalActorDep, SessionDep, http_error
from vibesphere.schemas.account import DeletionResponse
from vibesphere.schemas.post import PostCreate, PostResponse
from vibesphere.services import cascade, content
from vibesphere.services.errors import VibeSphereError

router = APIRouter(prefix="/posts", tags=["posts"])


def _viewer_id(actor) -> str | None:
    return actor.user_id if actor is not None else None


@router.get("/", response_model=list[PostResponse])
async def list_posts(db: SessionDep, actor: OptionalActorDep) -> list[PostResponse]:
    """Return every post, newest first."""
    return [PostResponse.from_view(view) for view in content.list_posts(db, _viewer_id(actor))]


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(payload: PostCreate, actor: ActorDep, db: SessionDep) -> PostResponse:
    try:
        post = content.create_post(
            db,
            actor,
            content=payload.content,
            is_anonymous=payload.is_anonymous,
            ai_feedback=payload.ai_feedback,
        )
        view = content.get_post(db, post.id, actor.user_id)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return PostResponse.from_view(view)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: str, db: SessionDep, actor: OptionalActorDep) -> PostResponse:
    try:
        view = content.get_post(db, post_id, _viewer_id(actor))
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return PostResponse.from_view(view)


@router.post("/{post_id}/like", response_model=PostResponse)
async def like_post(post_id: str, actor: ActorDep, db: SessionDep) -> PostResponse:
    try:
        view = content.like_post(db, actor, post_id)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return PostResponse.from_view(view)


@router.delete("/{post_id}/like", response_model=PostResponse)
async def unlike_post(post_id: str, actor: ActorDep, db: SessionDep) -> PostResponse:
    try:
        view = content.unlike_post(db, actor, post_id)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return PostResponse.from_view(view)


@router.delete("/{post_id}", response_model=DeletionResponse)
async def delete_post(post_id: str, actor: ActorDep, db: SessionDep) -> DeletionResponse:
    """Delete a post together with its comments and likes."""
    try:
        report = cascade.delete_post(db, actor, post_id)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return DeletionResponse.from_report(report)
