# src/vibesphere/api/v1/endpoints/comments.py
"""Comment endpoints, including a server-sent-events change stream."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Literal

from fastapi import APIRouter, Request, status
from fastapi.responses import StreamingResponse

from vibesphere.api.v1.dependencies import ActorDep, OptionalActorDep, SessionDep, http_error
from vibesphere.schemas.comment import CommentCount, CommentCreate, CommentResponse
from vibesphere.services import content
from vibesphere.services.errors import NotFound, VibeSphereError
from vibesphere.services.realtime import Subscription, get_change_feed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/comments", tags=["comments"])

TargetKind = Literal["post", "poll"]

# Seconds between keep-alive frames on an idle event stream
KEEPALIVE_SECONDS = 15.0


def _target(kind: TargetKind, target_id: str) -> dict[str, str]:
    return {"post_id": target_id} if kind == "post" else {"poll_id": target_id}


@router.get("/{kind}/{target_id}", response_model=list[CommentResponse])
async def list_comments(
    kind: TargetKind,
    target_id: str,
    db: SessionDep,
    actor: OptionalActorDep,
) -> list[CommentResponse]:
    """Return the comments on a post or poll, oldest first."""
    viewer_id = actor.user_id if actor is not None else None
    views = content.list_comments(db, viewer_id=viewer_id, **_target(kind, target_id))
    return [CommentResponse.from_view(view) for view in views]


@router.get("/{kind}/{target_id}/count", response_model=CommentCount)
async def count_comments(kind: TargetKind, target_id: str, db: SessionDep) -> CommentCount:
    return CommentCount(count=content.count_comments(db, **_target(kind, target_id)))


@router.post(
    "/{kind}/{target_id}",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    kind: TargetKind,
    target_id: str,
    payload: CommentCreate,
    actor: ActorDep,
    db: SessionDep,
) -> CommentResponse:
    try:
        comment = content.add_comment(
            db,
            actor,
            content=payload.content,
            is_anonymous=payload.is_anonymous,
            **_target(kind, target_id),
        )
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return CommentResponse.from_view(content.comment_view(db, comment, actor.user_id))


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(comment_id: str, actor: ActorDep, db: SessionDep) -> None:
    """Delete one of the caller's own comments."""
    if not content.delete_comment(db, actor, comment_id):
        raise http_error(NotFound("Comment not found"))


async def _event_stream(request: Request, subscription: Subscription) -> AsyncIterator[str]:
    async with subscription:
        yield ": subscribed\n\n"
        iterator = subscription.__aiter__()
        while not await request.is_disconnected():
            try:
                event = await asyncio.wait_for(iterator.__anext__(), timeout=KEEPALIVE_SECONDS)
            except TimeoutError:
                yield ": keep-alive\n\n"
                continue
            except StopAsyncIteration:
                break
            data = json.dumps({"table": event.table, "id": event.row_id, "at": event.at})
            yield f"event: {event.kind}\ndata: {data}\n\n"
    logger.debug("Event stream for %s:%s closed", *subscription.scope)


@router.get("/{kind}/{target_id}/events")
async def comment_events(kind: TargetKind, target_id: str, request: Request) -> StreamingResponse:
    """Stream comment inserts and deletes for one post or poll.

    Each event only says that the list changed; clients refetch it.
    """
    subscription = get_change_feed().subscribe(kind, target_id)
    return StreamingResponse(
        _event_stream(request, subscription),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
