# tests/services/test_cascade.py
"""Tests for cascading deletion of polls, posts and accounts."""

import pytest
from sqlalchemy import Update, create_engine, func, or_, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from vibesphere.db.session import Base
from vibesphere.models import (
    AuthSession,
    AuthUser,
    Comment,
    Poll,
    PollOption,
    Post,
    PostLike,
    Profile,
    UserVote,
)
from vibesphere.services import auth as auth_service
from vibesphere.services import cascade, content, vote_ledger
from vibesphere.services.auth import get_auth_admin
from vibesphere.services.cascade import DeletionState
from vibesphere.services.errors import (
    AccountDeletionFailed,
    ConfirmationMismatch,
    DeletionFailed,
    NotAuthenticated,
    Unauthorized,
)


def _count(db_session, model, *criteria) -> int:
    return db_session.execute(
        select(func.count()).select_from(model).where(*criteria)
    ).scalar_one()


@pytest.fixture()
def busy_poll(db_session, color_poll, alice, bob, carol):
    """A poll with 2 options, 2 votes and 3 comments."""
    red, blue = (option.option_id for option in vote_ledger.tally(db_session, color_poll.id).options)
    vote_ledger.cast_vote(db_session, bob.actor, color_poll.id, red)
    vote_ledger.cast_vote(db_session, carol.actor, color_poll.id, blue)
    for author, text in ((alice, "Vote!"), (bob, "Red, obviously"), (carol, "Blue")):
        content.add_comment(db_session, author.actor, content=text, poll_id=color_poll.id)
    return color_poll.id


def test_poll_deletion_removes_all_dependents(db_session, busy_poll, alice) -> None:
    assert cascade.dependents_of_poll(db_session, busy_poll) == 7

    report = cascade.delete_poll(db_session, alice.actor, busy_poll)

    assert report.state is DeletionState.DONE
    assert report.completed == list(cascade.POLL_STATES)
    assert report.removed == {
        "DeletingComments": 3,
        "DeletingVotes": 2,
        "DeletingOptions": 2,
        "DeletingPoll": 1,
    }
    assert report.total_removed == 8
    assert not report.already_deleted
    assert cascade.dependents_of_poll(db_session, busy_poll) == 0
    assert db_session.get(Poll, busy_poll) is None


def test_poll_deletion_is_idempotent(db_session, busy_poll, alice) -> None:
    cascade.delete_poll(db_session, alice.actor, busy_poll)

    report = cascade.delete_poll(db_session, alice.actor, busy_poll)

    assert report.state is DeletionState.DONE
    assert report.already_deleted
    assert report.total_removed == 0
    assert cascade.dependents_of_poll(db_session, busy_poll) == 0


def test_only_author_can_delete_poll(db_session, busy_poll, bob) -> None:
    with pytest.raises(Unauthorized):
        cascade.delete_poll(db_session, bob.actor, busy_poll)
    assert db_session.get(Poll, busy_poll) is not None
    assert cascade.dependents_of_poll(db_session, busy_poll) == 7


def test_poll_deletion_requires_actor(db_session, busy_poll) -> None:
    with pytest.raises(NotAuthenticated):
        cascade.delete_poll(db_session, None, busy_poll)


def test_failed_step_keeps_earlier_steps_and_retry_converges(
    db_session, busy_poll, alice, monkeypatch
) -> None:
    steps = cascade.poll_deletion_steps(busy_poll)

    def broken_options(db, scopes):
        raise OperationalError("DELETE FROM poll_options", {}, Exception("connection lost"))

    broken = [
        steps[0],
        steps[1],
        cascade.CascadeStep(DeletionState.DELETING_OPTIONS, broken_options),
        steps[3],
    ]
    monkeypatch.setattr(cascade, "poll_deletion_steps", lambda poll_id: broken)

    with pytest.raises(DeletionFailed) as excinfo:
        cascade.delete_poll(db_session, alice.actor, busy_poll)

    assert excinfo.value.failed_state == "DeletingOptions"
    assert excinfo.value.completed == ("DeletingComments", "DeletingVotes")
    # Comments and votes are gone, options and the poll itself remain.
    assert _count(db_session, Comment, Comment.poll_id == busy_poll) == 0
    assert _count(db_session, UserVote, UserVote.poll_id == busy_poll) == 0
    assert _count(db_session, PollOption, PollOption.poll_id == busy_poll) == 2
    assert db_session.get(Poll, busy_poll) is not None

    monkeypatch.undo()
    report = cascade.delete_poll(db_session, alice.actor, busy_poll)

    assert report.removed["DeletingComments"] == 0
    assert report.removed["DeletingOptions"] == 2
    assert cascade.dependents_of_poll(db_session, busy_poll) == 0
    assert db_session.get(Poll, busy_poll) is None


def test_post_deletion_removes_comments_and_likes(db_session, alice_post, alice, bob) -> None:
    post_id = alice_post.id
    content.add_comment(db_session, bob.actor, content="Nice", post_id=post_id)
    content.like_post(db_session, bob.actor, post_id)

    with pytest.raises(Unauthorized):
        cascade.delete_post(db_session, bob.actor, post_id)

    report = cascade.delete_post(db_session, alice.actor, post_id)

    assert report.completed == list(cascade.POST_STATES)
    assert report.removed == {"DeletingComments": 1, "DeletingLikes": 1, "DeletingPost": 1}
    assert cascade.dependents_of_post(db_session, post_id) == 0
    assert db_session.get(Post, post_id) is None


def test_account_deletion_requires_confirmation(db_session, alice, alice_post) -> None:
    with pytest.raises(ConfirmationMismatch):
        cascade.delete_account(db_session, alice.actor, "delete account", get_auth_admin())
    assert db_session.get(Profile, alice.user_id) is not None
    assert db_session.get(Post, alice_post.id) is not None


@pytest.mark.parametrize("phrase", ["delete my account", "DELETE MY ACCOUNT", "Delete My Account"])
def test_confirmation_is_case_insensitive(phrase) -> None:
    assert cascade.confirmation_matches(phrase)


@pytest.mark.parametrize(
    "phrase", [" Delete My Account ", "delete my account\n", "delete  my account", "", None]
)
def test_confirmation_must_match_exactly_apart_from_case(phrase) -> None:
    assert not cascade.confirmation_matches(phrase)


def test_account_deletion_removes_everything(db_session, alice, bob, carol, busy_poll) -> None:
    # Alice owns busy_poll. Give her a post with activity, plus activity of her own
    # on Bob's content.
    alice_post_id = content.create_post(
        db_session, alice.actor, content="Mine", ai_feedback="Tip"
    ).id
    content.add_comment(db_session, bob.actor, content="Hi", post_id=alice_post_id)
    content.like_post(db_session, carol.actor, alice_post_id)

    bob_post = content.create_post(db_session, bob.actor, content="Bob here")
    content.like_post(db_session, alice.actor, bob_post.id)
    content.add_comment(db_session, alice.actor, content="Hey Bob", post_id=bob_post.id)

    bob_poll = content.create_poll(db_session, bob.actor, question="Tea?", options=["Yes", "No"])
    yes = vote_ledger.tally(db_session, bob_poll.id).options[0].option_id
    vote_ledger.cast_vote(db_session, alice.actor, bob_poll.id, yes)
    vote_ledger.cast_vote(db_session, carol.actor, bob_poll.id, yes)
    content.add_comment(db_session, alice.actor, content="Always", poll_id=bob_poll.id)

    report = cascade.delete_account(
        db_session, alice.actor, "Delete My Account", get_auth_admin()
    )

    assert report.state is DeletionState.DONE
    assert report.completed == list(cascade.ACCOUNT_STATES)
    user_id = alice.user_id
    assert _count(db_session, Post, Post.author_id == user_id) == 0
    assert _count(db_session, Poll, Poll.author_id == user_id) == 0
    assert _count(db_session, Comment, Comment.author_id == user_id) == 0
    assert _count(db_session, UserVote, UserVote.user_id == user_id) == 0
    assert _count(db_session, PostLike, PostLike.user_id == user_id) == 0
    assert _count(db_session, PollOption, PollOption.poll_id == busy_poll) == 0
    assert _count(
        db_session, Comment, or_(Comment.poll_id == busy_poll, Comment.post_id == alice_post_id)
    ) == 0
    assert db_session.get(Profile, user_id) is None
    assert db_session.get(AuthUser, user_id) is None
    assert _count(db_session, AuthSession, AuthSession.user_id == user_id) == 0

    # Other people's content survives, with Alice's ballot taken off the tally.
    tally = vote_ledger.tally(db_session, bob_poll.id)
    assert tally.total_votes == 1 == vote_ledger.ballot_count(db_session, bob_poll.id)
    assert db_session.get(Post, bob_post.id) is not None
    assert db_session.get(Profile, bob.user_id) is not None


def test_account_deletion_failure_is_reported(db_session, alice, alice_post, monkeypatch) -> None:
    admin = get_auth_admin()

    def refuse(db, user_id):
        raise OperationalError("DELETE FROM auth_users", {}, Exception("permission denied"))

    monkeypatch.setattr(admin, "delete_user", refuse)

    with pytest.raises(AccountDeletionFailed) as excinfo:
        cascade.delete_account(db_session, alice.actor, "delete my account", admin)

    assert excinfo.value.failed_state == "DeletingAuthRecord"
    assert "DeletingProfile" in excinfo.value.completed
    assert db_session.get(Profile, alice.user_id) is None
    assert db_session.get(AuthUser, alice.user_id) is not None

    report = cascade.delete_account(db_session, alice.actor, "delete my account", get_auth_admin())
    assert report.removed["DeletingAuthRecord"] == 1
    assert db_session.get(AuthUser, alice.user_id) is None


def test_account_deletion_with_nothing_owned(db_session, bob) -> None:
    report = cascade.delete_account(db_session, bob.actor, "delete my account", get_auth_admin())

    assert report.removed["DeletingOwnedPollsDependents"] == 0
    assert report.removed["DeletingProfile"] == 1
    assert db_session.get(AuthUser, bob.user_id) is None


def test_account_deletion_keeps_votes_committed_meanwhile(tmp_path, monkeypatch) -> None:
    # Two connections to one database file: the account deletion runs in one,
    # a fresh vote lands in the other while ballots are being retracted.
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    setup, deleting, voting = SessionLocal(), SessionLocal(), SessionLocal()
    try:
        actors = {}
        for name in ("alice", "bob", "carol"):
            email = f"{name}@example.com"
            auth_service.register(setup, email=email, password="pw-123456", username=name)
            actors[name] = auth_service.sign_in(
                setup, username_or_email=email, password="pw-123456"
            ).actor
        poll_id = content.create_poll(
            setup, actors["bob"], question="Tea?", options=["Yes", "No"]
        ).id
        yes = vote_ledger.tally(setup, poll_id).options[0].option_id
        vote_ledger.cast_vote(setup, actors["alice"], poll_id, yes)

        real_execute = deleting.execute
        pending = [lambda: vote_ledger.cast_vote(voting, actors["carol"], poll_id, yes)]

        def execute(statement, *args, **kwargs):
            if pending and isinstance(statement, Update) and statement.table.name == "poll_options":
                pending.pop()()
            return real_execute(statement, *args, **kwargs)

        monkeypatch.setattr(deleting, "execute", execute)
        cascade.delete_account(deleting, actors["alice"], "delete my account", get_auth_admin())

        assert not pending
        check = SessionLocal()
        try:
            assert vote_ledger.tally(check, poll_id).total_votes == 1
            assert vote_ledger.ballot_count(check, poll_id) == 1
            assert vote_ledger.has_voted(check, poll_id, actors["carol"].user_id) == yes
            assert check.get(Poll, poll_id).total_votes == 1
        finally:
            check.close()
    finally:
        for session in (setup, deleting, voting):
            session.close()
        engine.dispose()
