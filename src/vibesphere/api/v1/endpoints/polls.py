# src/vibesphere/api/v1/endpoints/polls.py
"""Poll and vote endpoints for the VibeSphere API."""

from __future__ import annotations

from fastapi import APIRouter, status

from vibesphere.api.v1.dependencies import ActorDep, OptionalActorDep, SessionDep, http_error
from vibesphere.schemas.account import DeletionResponse
from vibesphere.schemas.poll import MyVoteResponse, PollCreate, PollResponse, PollResults, VoteCreate
from vibesphere.services import cascade, content, vote_ledger
from vibesphere.services.errors import VibeSphereError

router = APIRouter(prefix="/polls", tags=["polls"])


@router.get("/", response_model=list[PollResponse])
async def list_polls(db: SessionDep, actor: OptionalActorDep) -> list[PollResponse]:
    viewer_id = actor.user_id if actor is not None else None
    return [PollResponse.from_view(view) for view in content.list_polls(db, viewer_id)]


@router.post("/", response_model=PollResponse, status_code=status.HTTP_201_CREATED)
async def create_poll(payload: PollCreate, actor: ActorDep, db: SessionDep) -> PollResponse:
    """Create a poll with two to five options."""
    try:
        poll = content.create_poll(
            db,
            actor,
            question=payload.question,
            options=payload.options,
            is_anonymous=payload.is_anonymous,
            ai_feedback=payload.ai_feedback,
        )
        view = content.get_poll(db, poll.id, actor.user_id)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return PollResponse.from_view(view)


@router.get("/{poll_id}", response_model=PollResponse)
async def get_poll(poll_id: str, db: SessionDep, actor: OptionalActorDep) -> PollResponse:
    viewer_id = actor.user_id if actor is not None else None
    try:
        view = content.get_poll(db, poll_id, viewer_id)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return PollResponse.from_view(view)


@router.get("/{poll_id}/results", response_model=PollResults)
async def get_results(poll_id: str, db: SessionDep) -> PollResults:
    try:
        tally = vote_ledger.tally(db, poll_id)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return PollResults.from_tally(tally)


@router.post("/{poll_id}/votes", response_model=PollResults, status_code=status.HTTP_201_CREATED)
async def cast_vote(
    poll_id: str,
    payload: VoteCreate,
    actor: ActorDep,
    db: SessionDep,
) -> PollResults:
    """Cast the caller's single vote on a poll."""
    try:
        tally = vote_ledger.cast_vote(db, actor, poll_id, payload.option_id)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return PollResults.from_tally(tally)


@router.get("/{poll_id}/my-vote", response_model=MyVoteResponse)
async def my_vote(poll_id: str, actor: ActorDep, db: SessionDep) -> MyVoteResponse:
    return MyVoteResponse(
        poll_id=poll_id,
        option_id=vote_ledger.has_voted(db, poll_id, actor.user_id),
    )


@router.delete("/{poll_id}", response_model=DeletionResponse)
async def delete_poll(poll_id: str, actor: ActorDep, db: SessionDep) -> DeletionResponse:
    """Delete a poll together with its comments, votes and options."""
    try:
        report = cascade.delete_poll(db, actor, poll_id)
    except VibeSphereError as exc:
        raise http_error(exc) from exc
    return DeletionResponse.from_report(report)
