# src/vibesphere/services/cascade.py
"""Cascading deletion of polls, posts and whole accounts.

Each deletion is an ordered list of `CascadeStep`s. Steps run strictly in
order and each one commits before the next begins, so a failure leaves the
earlier steps applied. Every step deletes by parent id (or by a collected id
set), which makes it a no-op when already empty; re-running the same
deletion after a failure converges on the fully deleted state.

Children are always removed before their parent, so the order holds whether
or not the database enforces foreign keys.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vibesphere.core.settings import settings
from vibesphere.models import Comment, Poll, PollOption, Post, PostLike, Profile, UserVote
from vibesphere.services.auth import ActorContext, AuthAdmin, require_actor
from vibesphere.services.errors import (
    AccountDeletionFailed,
    ConfirmationMismatch,
    DeletionFailed,
    Unauthorized,
)
from vibesphere.services.realtime import get_change_feed

logger = logging.getLogger(__name__)


class DeletionState(str, enum.Enum):
    """Progress markers of a cascading deletion."""

    REQUESTED = "Requested"
    DELETING_COMMENTS = "DeletingComments"
    DELETING_VOTES = "DeletingVotes"
    DELETING_OPTIONS = "DeletingOptions"
    DELETING_POLL = "DeletingPoll"
    DELETING_LIKES = "DeletingLikes"
    DELETING_POST = "DeletingPost"
    DELETING_VOTES_AND_LIKES = "DeletingVotesAndLikes"
    DELETING_OWNED_POLLS_DEPENDENTS = "DeletingOwnedPollsDependents"
    DELETING_OWNED_POLLS = "DeletingOwnedPolls"
    DELETING_OWNED_POSTS_DEPENDENTS = "DeletingOwnedPostsDependents"
    DELETING_OWNED_POSTS = "DeletingOwnedPosts"
    DELETING_OWN_COMMENTS = "DeletingOwnComments"
    DELETING_PROFILE = "DeletingProfile"
    DELETING_AUTH_RECORD = "DeletingAuthRecord"
    DONE = "Done"
    FAILED = "Failed"


POLL_STATES = (
    DeletionState.DELETING_COMMENTS,
    DeletionState.DELETING_VOTES,
    DeletionState.DELETING_OPTIONS,
    DeletionState.DELETING_POLL,
)
POST_STATES = (
    DeletionState.DELETING_COMMENTS,
    DeletionState.DELETING_LIKES,
    DeletionState.DELETING_POST,
)
ACCOUNT_STATES = (
    DeletionState.DELETING_VOTES_AND_LIKES,
    DeletionState.DELETING_OWNED_POLLS_DEPENDENTS,
    DeletionState.DELETING_OWNED_POLLS,
    DeletionState.DELETING_OWNED_POSTS_DEPENDENTS,
    DeletionState.DELETING_OWNED_POSTS,
    DeletionState.DELETING_OWN_COMMENTS,
    DeletionState.DELETING_PROFILE,
    DeletionState.DELETING_AUTH_RECORD,
)


class CommentScopes:
    """Posts and polls whose comment lists changed during a step."""

    def __init__(self) -> None:
        self.post_ids: set[str] = set()
        self.poll_ids: set[str] = set()

    def add(self, *, post_ids: Iterable[str | None] = (), poll_ids: Iterable[str | None] = ()) -> None:
        self.post_ids.update(pid for pid in post_ids if pid)
        self.poll_ids.update(pid for pid in poll_ids if pid)

    def publish(self) -> None:
        feed = get_change_feed()
        for post_id in sorted(self.post_ids):
            feed.publish_comment_change("DELETE", post_id=post_id)
        for poll_id in sorted(self.poll_ids):
            feed.publish_comment_change("DELETE", poll_id=poll_id)
        self.post_ids.clear()
        self.poll_ids.clear()


@dataclass(frozen=True)
class CascadeStep:
    """One round trip of a deletion.

    `run` returns the number of rows removed. Comment scopes it records are
    announced once the step has committed.
    """

    state: DeletionState
    run: Callable[[Session, CommentScopes], int]


@dataclass
class DeletionReport:
    """Outcome of a completed deletion."""

    target: str
    target_id: str
    state: DeletionState = DeletionState.REQUESTED
    completed: list[DeletionState] = field(default_factory=list)
    removed: dict[str, int] = field(default_factory=dict)
    already_deleted: bool = False

    @property
    def total_removed(self) -> int:
        return sum(self.removed.values())


def run_cascade(
    db: Session,
    report: DeletionReport,
    steps: Sequence[CascadeStep],
    *,
    failure: type[DeletionFailed] = DeletionFailed,
) -> DeletionReport:
    """Execute `steps` in order, committing after each one.

    Raises:
        DeletionFailed: (or the given subclass) at the first failing step,
            carrying the failed state and the states that completed.
    """
    scopes = CommentScopes()
    for step in steps:
        report.state = step.state
        try:
            removed = step.run(db, scopes)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning(
                "Deleting %s %s failed at %s: %s",
                report.target,
                report.target_id,
                step.state.value,
                exc,
            )
            report.state = DeletionState.FAILED
            raise failure(
                f"Could not delete {report.target}: {exc}",
                failed_state=step.state.value,
                completed=[state.value for state in report.completed],
            ) from exc
        scopes.publish()
        report.completed.append(step.state)
        report.removed[step.state.value] = removed
        logger.info(
            "Deleting %s %s: %s removed %d row(s)",
            report.target,
            report.target_id,
            step.state.value,
            removed,
        )
    report.state = DeletionState.DONE
    return report


def _rowcount(db: Session, statement) -> int:
    return db.execute(statement).rowcount or 0


# Poll deletion


def poll_deletion_steps(poll_id: str) -> list[CascadeStep]:
    """Comments, ballots, options, then the poll row."""

    def comments(db: Session, scopes: CommentScopes) -> int:
        removed = _rowcount(db, delete(Comment).where(Comment.poll_id == poll_id))
        if removed:
            scopes.add(poll_ids=[poll_id])
        return removed

    def votes(db: Session, scopes: CommentScopes) -> int:
        return _rowcount(db, delete(UserVote).where(UserVote.poll_id == poll_id))

    def options(db: Session, scopes: CommentScopes) -> int:
        return _rowcount(db, delete(PollOption).where(PollOption.poll_id == poll_id))

    def poll(db: Session, scopes: CommentScopes) -> int:
        return _rowcount(db, delete(Poll).where(Poll.id == poll_id))

    return [
        CascadeStep(DeletionState.DELETING_COMMENTS, comments),
        CascadeStep(DeletionState.DELETING_VOTES, votes),
        CascadeStep(DeletionState.DELETING_OPTIONS, options),
        CascadeStep(DeletionState.DELETING_POLL, poll),
    ]


def delete_poll(db: Session, actor: ActorContext | None, poll_id: str) -> DeletionReport:
    """Delete a poll with its comments, ballots and options.

    A poll that is already gone counts as deleted: the dependent steps still
    run to sweep any leftovers and the report is flagged `already_deleted`.

    Raises:
        NotAuthenticated: If no actor is signed in.
        Unauthorized: If the actor is not the poll's author.
        DeletionFailed: If a step errors.
    """
    actor = require_actor(actor)
    report = DeletionReport(target="poll", target_id=poll_id)
    poll = db.get(Poll, poll_id)
    if poll is None:
        report.already_deleted = True
    elif poll.author_id != actor.user_id:
        raise Unauthorized("Only the author can delete this poll")
    return run_cascade(db, report, poll_deletion_steps(poll_id))


# Post deletion


def post_deletion_steps(post_id: str) -> list[CascadeStep]:
    """Comments, likes, then the post row."""

    def comments(db: Session, scopes: CommentScopes) -> int:
        removed = _rowcount(db, delete(Comment).where(Comment.post_id == post_id))
        if removed:
            scopes.add(post_ids=[post_id])
        return removed

    def likes(db: Session, scopes: CommentScopes) -> int:
        return _rowcount(db, delete(PostLike).where(PostLike.post_id == post_id))

    def post(db: Session, scopes: CommentScopes) -> int:
        return _rowcount(db, delete(Post).where(Post.id == post_id))

    return [
        CascadeStep(DeletionState.DELETING_COMMENTS, comments),
        CascadeStep(DeletionState.DELETING_LIKES, likes),
        CascadeStep(DeletionState.DELETING_POST, post),
    ]


def delete_post(db: Session, actor: ActorContext | None, post_id: str) -> DeletionReport:
    """Delete a post with its comments and likes. Author only."""
    actor = require_actor(actor)
    report = DeletionReport(target="post", target_id=post_id)
    post = db.get(Post, post_id)
    if post is None:
        report.already_deleted = True
    elif post.author_id != actor.user_id:
        raise Unauthorized("Only the author can delete this post")
    return run_cascade(db, report, post_deletion_steps(post_id))


# Account deletion


def confirmation_matches(confirmation: str | None) -> bool:
    """True when the typed phrase equals the deletion phrase, ignoring case."""
    expected = settings.account_deletion_phrase
    return (confirmation or "").lower() == expected.lower()


def _retract_ballots(db: Session, user_id: str) -> int:
    """Remove the user's ballots and take them off the option counters.

    Counters are decremented in SQL so votes committed by others meanwhile
    are kept.
    """
    per_option = db.execute(
        select(UserVote.poll_id, UserVote.option_id, func.count())
        .where(UserVote.user_id == user_id)
        .group_by(UserVote.poll_id, UserVote.option_id)
    ).all()
    for poll_id, option_id, ballots in per_option:
        db.execute(
            update(PollOption)
            .where(PollOption.id == option_id)
            .values(votes=PollOption.votes - ballots)
        )
        db.execute(
            update(Poll)
            .where(Poll.id == poll_id)
            .values(total_votes=Poll.total_votes - ballots)
        )
    return _rowcount(db, delete(UserVote).where(UserVote.user_id == user_id))


def _owned_ids(db: Session, model, user_id: str) -> list[str]:
    return list(db.execute(select(model.id).where(model.author_id == user_id)).scalars())


def account_deletion_steps(user_id: str, auth_admin: AuthAdmin) -> list[CascadeStep]:
    """Everything the user touched, outermost dependents first."""

    def votes_and_likes(db: Session, scopes: CommentScopes) -> int:
        removed = _retract_ballots(db, user_id)
        return removed + _rowcount(db, delete(PostLike).where(PostLike.user_id == user_id))

    def owned_polls_dependents(db: Session, scopes: CommentScopes) -> int:
        poll_ids = _owned_ids(db, Poll, user_id)
        if not poll_ids:
            return 0
        # Ballots reference options, so options go last.
        removed = _rowcount(db, delete(Comment).where(Comment.poll_id.in_(poll_ids)))
        removed += _rowcount(db, delete(UserVote).where(UserVote.poll_id.in_(poll_ids)))
        removed += _rowcount(db, delete(PollOption).where(PollOption.poll_id.in_(poll_ids)))
        scopes.add(poll_ids=poll_ids)
        return removed

    def owned_polls(db: Session, scopes: CommentScopes) -> int:
        return _rowcount(db, delete(Poll).where(Poll.author_id == user_id))

    def owned_posts_dependents(db: Session, scopes: CommentScopes) -> int:
        post_ids = _owned_ids(db, Post, user_id)
        if not post_ids:
            return 0
        removed = _rowcount(db, delete(Comment).where(Comment.post_id.in_(post_ids)))
        removed += _rowcount(db, delete(PostLike).where(PostLike.post_id.in_(post_ids)))
        scopes.add(post_ids=post_ids)
        return removed

    def owned_posts(db: Session, scopes: CommentScopes) -> int:
        return _rowcount(db, delete(Post).where(Post.author_id == user_id))

    def own_comments(db: Session, scopes: CommentScopes) -> int:
        targets = db.execute(
            select(Comment.post_id, Comment.poll_id).where(Comment.author_id == user_id)
        ).all()
        scopes.add(
            post_ids=[post_id for post_id, _ in targets],
            poll_ids=[poll_id for _, poll_id in targets],
        )
        return _rowcount(db, delete(Comment).where(Comment.author_id == user_id))

    def profile(db: Session, scopes: CommentScopes) -> int:
        return _rowcount(db, delete(Profile).where(Profile.id == user_id))

    def auth_record(db: Session, scopes: CommentScopes) -> int:
        return auth_admin.delete_user(db, user_id)

    return [
        CascadeStep(DeletionState.DELETING_VOTES_AND_LIKES, votes_and_likes),
        CascadeStep(DeletionState.DELETING_OWNED_POLLS_DEPENDENTS, owned_polls_dependents),
        CascadeStep(DeletionState.DELETING_OWNED_POLLS, owned_polls),
        CascadeStep(DeletionState.DELETING_OWNED_POSTS_DEPENDENTS, owned_posts_dependents),
        CascadeStep(DeletionState.DELETING_OWNED_POSTS, owned_posts),
        CascadeStep(DeletionState.DELETING_OWN_COMMENTS, own_comments),
        CascadeStep(DeletionState.DELETING_PROFILE, profile),
        CascadeStep(DeletionState.DELETING_AUTH_RECORD, auth_record),
    ]


def delete_account(
    db: Session,
    actor: ActorContext | None,
    confirmation: str | None,
    auth_admin: AuthAdmin,
) -> DeletionReport:
    """Delete everything the actor owns, then the actor's profile and login.

    On success every session of the user is gone, so the token used for this
    call stops working.

    Raises:
        NotAuthenticated: If no actor is signed in.
        ConfirmationMismatch: If the typed phrase is wrong; nothing is deleted.
        AccountDeletionFailed: If a step errors; completed steps stay applied.
    """
    actor = require_actor(actor)
    if not confirmation_matches(confirmation):
        raise ConfirmationMismatch(
            f'Please type "{settings.account_deletion_phrase}" to confirm'
        )
    report = DeletionReport(target="account", target_id=actor.user_id)
    return run_cascade(
        db,
        report,
        account_deletion_steps(actor.user_id, auth_admin),
        failure=AccountDeletionFailed,
    )


def dependents_of_poll(db: Session, poll_id: str) -> int:
    """Count comments, ballots and options still referencing a poll id."""
    total = 0
    for model, column in (
        (Comment, Comment.poll_id),
        (UserVote, UserVote.poll_id),
        (PollOption, PollOption.poll_id),
    ):
        total += db.execute(
            select(func.count()).select_from(model).where(column == poll_id)
        ).scalar_one()
    return total


def dependents_of_post(db: Session, post_id: str) -> int:
    """Count comments and likes still referencing a post id."""
    total = 0
    for model, column in ((Comment, Comment.post_id), (PostLike, PostLike.post_id)):
        total += db.execute(
            select(func.count()).select_from(model).where(column == post_id)
        ).scalar_one()
    return total
