# tests/services/test_vote_ledger.py
"""Tests for vote recording and tally display."""

import pytest
from sqlalchemy import delete, func, select

from vibesphere.models import Poll, PollOption, UserVote
from vibesphere.services import content, vote_ledger
from vibesphere.services.errors import AlreadyVoted, InvalidInput, NotAuthenticated, NotFound


def _option_ids(db_session, poll_id):
    return [option.option_id for option in vote_ledger.tally(db_session, poll_id).options]


def _percentages(tally):
    return {option.text: option.percentage for option in tally.options}


def test_new_poll_shows_zero_percent(db_session, color_poll) -> None:
    tally = vote_ledger.tally(db_session, color_poll.id)

    assert tally.total_votes == 0
    assert _percentages(tally) == {"Red": 0, "Blue": 0}
    assert [option.text for option in tally.options] == ["Red", "Blue"]


def test_votes_move_percentages(db_session, color_poll, alice, bob) -> None:
    red, blue = _option_ids(db_session, color_poll.id)

    tally = vote_ledger.cast_vote(db_session, alice.actor, color_poll.id, red)
    assert tally.total_votes == 1
    assert _percentages(tally) == {"Red": 100, "Blue": 0}

    tally = vote_ledger.cast_vote(db_session, bob.actor, color_poll.id, blue)
    assert tally.total_votes == 2
    assert _percentages(tally) == {"Red": 50, "Blue": 50}


def test_second_vote_is_rejected_and_tallies_unchanged(db_session, color_poll, alice) -> None:
    red, blue = _option_ids(db_session, color_poll.id)
    vote_ledger.cast_vote(db_session, alice.actor, color_poll.id, red)

    with pytest.raises(AlreadyVoted):
        vote_ledger.cast_vote(db_session, alice.actor, color_poll.id, blue)
    with pytest.raises(AlreadyVoted):
        vote_ledger.cast_vote(db_session, alice.actor, color_poll.id, red)

    tally = vote_ledger.tally(db_session, color_poll.id)
    assert {option.text: option.votes for option in tally.options} == {"Red": 1, "Blue": 0}
    assert vote_ledger.has_voted(db_session, color_poll.id, alice.user_id) == red


def test_option_sum_matches_ballots(db_session, make_user, alice) -> None:
    poll = content.create_poll(
        db_session, alice.actor, question="Pick one", options=["A", "B", "C"]
    )
    options = _option_ids(db_session, poll.id)
    voters = [make_user() for _ in range(5)]
    for index, voter in enumerate(voters):
        vote_ledger.cast_vote(db_session, voter.actor, poll.id, options[index % 3])
    with pytest.raises(AlreadyVoted):
        vote_ledger.cast_vote(db_session, voters[0].actor, poll.id, options[2])

    option_sum = db_session.execute(
        select(func.sum(PollOption.votes)).where(PollOption.poll_id == poll.id)
    ).scalar_one()
    assert option_sum == vote_ledger.ballot_count(db_session, poll.id) == 5
    assert db_session.get(Poll, poll.id).total_votes == 5


def test_has_voted_without_ballot(db_session, color_poll, bob) -> None:
    assert vote_ledger.has_voted(db_session, color_poll.id, bob.user_id) is None


def test_vote_requires_actor(db_session, color_poll) -> None:
    red, _ = _option_ids(db_session, color_poll.id)
    with pytest.raises(NotAuthenticated):
        vote_ledger.cast_vote(db_session, None, color_poll.id, red)


def test_vote_on_missing_poll(db_session, alice) -> None:
    with pytest.raises(NotFound):
        vote_ledger.cast_vote(db_session, alice.actor, "missing", "missing")


def test_option_must_belong_to_poll(db_session, color_poll, alice, bob) -> None:
    other = content.create_poll(db_session, bob.actor, question="Other?", options=["X", "Y"])
    foreign_option = _option_ids(db_session, other.id)[0]

    with pytest.raises(InvalidInput):
        vote_ledger.cast_vote(db_session, alice.actor, color_poll.id, foreign_option)
    assert db_session.execute(select(func.count()).select_from(UserVote)).scalar_one() == 0


def test_vote_on_option_removed_underneath_is_not_a_duplicate(db_session, color_poll, alice) -> None:
    red, _ = _option_ids(db_session, color_poll.id)
    # Row goes away without the session noticing, as when another connection deletes it.
    db_session.execute(
        delete(PollOption).where(PollOption.id == red),
        execution_options={"synchronize_session": False},
    )

    with pytest.raises(NotFound):
        vote_ledger.cast_vote(db_session, alice.actor, color_poll.id, red)
    assert vote_ledger.has_voted(db_session, color_poll.id, alice.user_id) is None
    assert vote_ledger.ballot_count(db_session, color_poll.id) == 0


@pytest.mark.parametrize(
    ("votes", "total", "expected"),
    [
        (0, 0, 0),
        (5, 0, 0),
        (1, 1, 100),
        (1, 2, 50),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),  # 12.5 rounds up
        (1, 200, 1),  # 0.5 rounds up
        (1, 201, 0),
    ],
)
def test_percentage_rounding(votes, total, expected) -> None:
    assert vote_ledger.percentage(votes, total) == expected


def test_percentages_are_not_renormalised() -> None:
    # Three equal options each show 33, summing to 99.
    assert [vote_ledger.percentage(1, 3) for _ in range(3)] == [33, 33, 33]
