# tests/services/test_realtime.py
"""Tests for comment change subscriptions."""

import asyncio

import pytest

from vibesphere.services import content
from vibesphere.services.realtime import ChangeEvent, ChangeFeed, get_change_feed


@pytest.mark.asyncio
async def test_subscriber_receives_events_for_its_scope_only() -> None:
    feed = ChangeFeed()
    async with feed.subscribe("poll", "p1") as subscription:
        feed.publish(ChangeEvent("comments", "INSERT", ("poll", "p2"), "c0"))
        delivered = feed.publish(ChangeEvent("comments", "INSERT", ("poll", "p1"), "c1"))

        event = await asyncio.wait_for(subscription.__anext__(), timeout=1)

    assert delivered == 1
    assert event.kind == "INSERT"
    assert event.row_id == "c1"
    assert feed.subscriber_count("poll", "p1") == 0


@pytest.mark.asyncio
async def test_close_ends_iteration() -> None:
    feed = ChangeFeed()
    subscription = feed.subscribe("post", "x")

    async def consume() -> list[ChangeEvent]:
        return [event async for event in subscription]

    task = asyncio.create_task(consume())
    feed.publish_comment_change("DELETE", post_id="x", comment_id="c9")
    await asyncio.sleep(0)
    subscription.close()
    events = await asyncio.wait_for(task, timeout=1)

    assert [event.kind for event in events] == ["DELETE"]
    assert subscription.closed


@pytest.mark.asyncio
async def test_resubscribing_starts_a_fresh_sequence() -> None:
    feed = ChangeFeed()
    first = feed.subscribe("poll", "p1")
    first.close()
    feed.publish_comment_change("INSERT", poll_id="p1")

    second = feed.subscribe("poll", "p1")
    feed.publish_comment_change("DELETE", poll_id="p1")
    event = await asyncio.wait_for(second.__anext__(), timeout=1)
    second.close()

    assert event.kind == "DELETE"
    assert [e async for e in first] == []


@pytest.mark.asyncio
async def test_adding_and_deleting_comments_publishes(db_session, alice_post, alice) -> None:
    post_id = alice_post.id
    async with get_change_feed().subscribe("post", post_id) as subscription:
        comment = content.add_comment(db_session, alice.actor, content="First!", post_id=post_id)
        comment_id = comment.id
        content.delete_comment(db_session, alice.actor, comment_id)

        inserted = await asyncio.wait_for(subscription.__anext__(), timeout=1)
        deleted = await asyncio.wait_for(subscription.__anext__(), timeout=1)

    assert (inserted.kind, deleted.kind) == ("INSERT", "DELETE")
    assert inserted.scope == ("post", post_id)
    assert deleted.row_id == comment_id
