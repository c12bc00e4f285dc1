# src/vibesphere/services/vote_ledger.py
"""Vote ledger: one ballot per user per poll and the derived option tallies.

The ballot row and the option counter move together in a single
transaction. Duplicate ballots are rejected by the `(poll_id, user_id)`
unique constraint on `user_votes`, not by reading first, so a stale client
can never double count.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vibesphere.models import Poll, PollOption, UserVote
from vibesphere.services.auth import ActorContext, require_actor
from vibesphere.services.errors import AlreadyVoted, InvalidInput, NotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptionTally:
    option_id: str
    text: str
    votes: int
    percentage: int


@dataclass(frozen=True)
class PollTally:
    """Read model of a poll's results."""

    poll_id: str
    total_votes: int
    options: tuple[OptionTally, ...]


def percentage(votes: int, total: int) -> int:
    """Return `votes / total` as a whole percentage, halves rounding up.

    Each option is rounded on its own, so the values of a poll need not sum
    to 100. Zero votes overall gives 0 for every option.
    """
    if total <= 0:
        return 0
    return (200 * votes + total) // (2 * total)


def _ordered_options(db: Session, poll_id: str) -> list[PollOption]:
    return list(
        db.execute(
            select(PollOption)
            .where(PollOption.poll_id == poll_id)
            .order_by(PollOption.position, PollOption.id)
        ).scalars()
    )


def tally(db: Session, poll_id: str) -> PollTally:
    """Return the options of a poll with their counts and percentages.

    The total is the sum of the option counters; `polls.total_votes` is not
    consulted.
    """
    if db.get(Poll, poll_id) is None:
        raise NotFound("Poll not found")
    options = _ordered_options(db, poll_id)
    total = sum(option.votes for option in options)
    return PollTally(
        poll_id=poll_id,
        total_votes=total,
        options=tuple(
            OptionTally(
                option_id=option.id,
                text=option.text,
                votes=option.votes,
                percentage=percentage(option.votes, total),
            )
            for option in options
        ),
    )


def has_voted(db: Session, poll_id: str, user_id: str) -> str | None:
    """Return the option the user picked on the poll, if any."""
    return db.execute(
        select(UserVote.option_id).where(
            UserVote.poll_id == poll_id,
            UserVote.user_id == user_id,
        )
    ).scalar_one_or_none()


def ballot_count(db: Session, poll_id: str) -> int:
    """Number of ballots recorded for a poll."""
    return db.execute(
        select(func.count()).select_from(UserVote).where(UserVote.poll_id == poll_id)
    ).scalar_one()


def cast_vote(
    db: Session,
    actor: ActorContext | None,
    poll_id: str,
    option_id: str,
) -> PollTally:
    """Record the actor's vote and bump the chosen option.

    Raises:
        NotAuthenticated: If no actor is signed in.
        NotFound: If the poll does not exist, or it or the option is removed
            while the vote is being recorded.
        InvalidInput: If the option does not belong to the poll.
        AlreadyVoted: If the actor already holds a ballot on this poll. Nothing
            is changed in that case.
    """
    actor = require_actor(actor)

    poll = db.get(Poll, poll_id)
    if poll is None:
        raise NotFound("Poll not found")
    option = db.get(PollOption, option_id)
    if option is None or option.poll_id != poll_id:
        raise InvalidInput("Option does not belong to this poll")

    db.add(UserVote(poll_id=poll_id, option_id=option_id, user_id=actor.user_id))
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        if has_voted(db, poll_id, actor.user_id) is None:
            # No ballot to collide with: the poll or option went away meanwhile.
            raise NotFound("Poll option no longer exists") from exc
        logger.info("Rejected duplicate vote by %s on poll %s", actor.user_id, poll_id)
        raise AlreadyVoted("You have already voted on this poll") from exc

    db.execute(
        update(PollOption)
        .where(PollOption.id == option_id)
        .values(votes=PollOption.votes + 1)
    )
    db.execute(
        update(Poll)
        .where(Poll.id == poll_id)
        .values(total_votes=Poll.total_votes + 1)
    )
    db.commit()
    logger.debug("Vote recorded on poll %s option %s", poll_id, option_id)
    return tally(db, poll_id)
