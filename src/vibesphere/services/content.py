"""Posts, polls, comments and likes.

Read helpers return small view objects that already carry the viewer
dependent bits: the author profile is withheld on anonymous content unless
the viewer wrote it, and polls include the viewer's ballot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vibesphere.core.settings import settings
from vibesphere.db.time import utcnow
from vibesphere.models import Comment, Poll, PollOption, Post, PostLike, Profile
from vibesphere.services import vote_ledger
from vibesphere.services.auth import ActorContext, require_actor
from vibesphere.services.errors import InvalidInput, NotFound
from vibesphere.services.realtime import get_change_feed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostView:
    post: Post
    author: Profile | None
    like_count: int
    liked_by_viewer: bool
    comment_count: int


@dataclass(frozen=True)
class PollView:
    poll: Poll
    author: Profile | None
    tally: vote_ledger.PollTally
    viewer_option_id: str | None
    comment_count: int

    @property
    def expired(self) -> bool:
        expires_at = self.poll.expires_at
        if expires_at.tzinfo is None:
            return expires_at <= utcnow().replace(tzinfo=None)
        return expires_at <= utcnow()


@dataclass(frozen=True)
class CommentView:
    comment: Comment
    author: Profile | None


@dataclass(frozen=True)
class OwnContent:
    """A user's own posts and polls split by visibility."""

    public_posts: list[PostView]
    anonymous_posts: list[PostView]
    public_polls: list[PollView]
    anonymous_polls: list[PollView]


def _clean_text(value: str | None, message: str) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidInput(message)
    return text


def _visible_author(
    db: Session, author_id: str, is_anonymous: bool, viewer_id: str | None
) -> Profile | None:
    if is_anonymous and author_id != viewer_id:
        return None
    return db.get(Profile, author_id)


def _resolve_anonymity(db: Session, actor: ActorContext, is_anonymous: bool | None) -> bool:
    if is_anonymous is not None:
        return is_anonymous
    profile = db.get(Profile, actor.user_id)
    return bool(profile and profile.default_anonymous)


def _feedback_comment(
    author_id: str, ai_feedback: str | None, *, post_id=None, poll_id=None
) -> Comment | None:
    text = (ai_feedback or "").strip()
    if not text:
        return None
    return Comment(
        content=text,
        author_id=author_id,
        is_anonymous=True,
        post_id=post_id,
        poll_id=poll_id,
    )


# Posts


def create_post(
    db: Session,
    actor: ActorContext | None,
    *,
    content: str,
    is_anonymous: bool | None = None,
    ai_feedback: str | None = None,
) -> Post:
    """Publish a post.

    When `is_anonymous` is omitted the author's profile default applies. A
    non-empty `ai_feedback` is stored as an anonymous comment by the author
    in the same transaction.
    """
    actor = require_actor(actor)
    text = _clean_text(content, "Post content cannot be empty.")
    post = Post(
        content=text,
        author_id=actor.user_id,
        is_anonymous=_resolve_anonymity(db, actor, is_anonymous),
    )
    db.add(post)
    db.flush()
    feedback = _feedback_comment(actor.user_id, ai_feedback, post_id=post.id)
    if feedback is not None:
        db.add(feedback)
    db.commit()
    db.refresh(post)
    if feedback is not None:
        get_change_feed().publish_comment_change("INSERT", post_id=post.id, comment_id=feedback.id)
    logger.info("Post %s created by %s", post.id, actor.user_id)
    return post


def _post_view(db: Session, post: Post, viewer_id: str | None) -> PostView:
    like_count = db.execute(
        select(func.count()).select_from(PostLike).where(PostLike.post_id == post.id)
    ).scalar_one()
    liked = False
    if viewer_id is not None:
        liked = db.execute(
            select(PostLike.id).where(PostLike.post_id == post.id, PostLike.user_id == viewer_id)
        ).first() is not None
    return PostView(
        post=post,
        author=_visible_author(db, post.author_id, post.is_anonymous, viewer_id),
        like_count=like_count,
        liked_by_viewer=liked,
        comment_count=count_comments(db, post_id=post.id),
    )


def get_post(db: Session, post_id: str, viewer_id: str | None = None) -> PostView:
    post = db.get(Post, post_id)
    if post is None:
        raise NotFound("Post not found")
    return _post_view(db, post, viewer_id)


def list_posts(db: Session, viewer_id: str | None = None) -> list[PostView]:
    """Feed of all posts, newest first."""
    posts = db.execute(select(Post).order_by(Post.created_at.desc(), Post.id)).scalars()
    return [_post_view(db, post, viewer_id) for post in posts]


def like_post(db: Session, actor: ActorContext | None, post_id: str) -> PostView:
    """Like a post; liking twice is a no-op."""
    actor = require_actor(actor)
    if db.get(Post, post_id) is None:
        raise NotFound("Post not found")
    db.add(PostLike(post_id=post_id, user_id=actor.user_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.debug("Post %s already liked by %s", post_id, actor.user_id)
    return get_post(db, post_id, actor.user_id)


def unlike_post(db: Session, actor: ActorContext | None, post_id: str) -> PostView:
    actor = require_actor(actor)
    if db.get(Post, post_id) is None:
        raise NotFound("Post not found")
    db.execute(
        delete(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == actor.user_id)
    )
    db.commit()
    return get_post(db, post_id, actor.user_id)


# Polls


def create_poll(
    db: Session,
    actor: ActorContext | None,
    *,
    question: str,
    options: list[str],
    is_anonymous: bool | None = None,
    ai_feedback: str | None = None,
) -> Poll:
    """Create a poll with its options in one transaction.

    The poll expires a fixed number of days after creation. Options keep the
    order they were given in.

    Raises:
        InvalidInput: If the question is blank, an option is blank, or the
            option count is out of range.
    """
    actor = require_actor(actor)
    text = _clean_text(question, "Please enter a question.")
    cleaned = [(option or "").strip() for option in options]
    if any(not option for option in cleaned):
        raise InvalidInput("Please fill in all options.")
    if not settings.poll_min_options <= len(cleaned) <= settings.poll_max_options:
        raise InvalidInput(
            f"A poll needs between {settings.poll_min_options} and "
            f"{settings.poll_max_options} options."
        )

    created_at = utcnow()
    poll = Poll(
        question=text,
        author_id=actor.user_id,
        is_anonymous=_resolve_anonymity(db, actor, is_anonymous),
        created_at=created_at,
        expires_at=created_at + timedelta(days=settings.poll_duration_days),
        total_votes=0,
    )
    db.add(poll)
    db.flush()
    db.add_all(
        PollOption(poll_id=poll.id, text=option, votes=0, position=position)
        for position, option in enumerate(cleaned)
    )
    feedback = _feedback_comment(actor.user_id, ai_feedback, poll_id=poll.id)
    if feedback is not None:
        db.add(feedback)
    db.commit()
    db.refresh(poll)
    if feedback is not None:
        get_change_feed().publish_comment_change("INSERT", poll_id=poll.id, comment_id=feedback.id)
    logger.info("Poll %s created by %s with %d options", poll.id, actor.user_id, len(cleaned))
    return poll


def _poll_view(db: Session, poll: Poll, viewer_id: str | None) -> PollView:
    return PollView(
        poll=poll,
        author=_visible_author(db, poll.author_id, poll.is_anonymous, viewer_id),
        tally=vote_ledger.tally(db, poll.id),
        viewer_option_id=(
            vote_ledger.has_voted(db, poll.id, viewer_id) if viewer_id is not None else None
        ),
        comment_count=count_comments(db, poll_id=poll.id),
    )


def get_poll(db: Session, poll_id: str, viewer_id: str | None = None) -> PollView:
    poll = db.get(Poll, poll_id)
    if poll is None:
        raise NotFound("Poll not found")
    return _poll_view(db, poll, viewer_id)


def list_polls(db: Session, viewer_id: str | None = None) -> list[PollView]:
    """All polls, newest first."""
    polls = db.execute(select(Poll).order_by(Poll.created_at.desc(), Poll.id)).scalars()
    return [_poll_view(db, poll, viewer_id) for poll in polls]


def own_content(db: Session, actor: ActorContext | None) -> OwnContent:
    """The actor's posts and polls, public and anonymous kept apart."""
    actor = require_actor(actor)
    posts = db.execute(
        select(Post).where(Post.author_id == actor.user_id).order_by(Post.created_at.desc())
    ).scalars()
    polls = db.execute(
        select(Poll).where(Poll.author_id == actor.user_id).order_by(Poll.created_at.desc())
    ).scalars()
    post_views = [_post_view(db, post, actor.user_id) for post in posts]
    poll_views = [_poll_view(db, poll, actor.user_id) for poll in polls]
    return OwnContent(
        public_posts=[view for view in post_views if not view.post.is_anonymous],
        anonymous_posts=[view for view in post_views if view.post.is_anonymous],
        public_polls=[view for view in poll_views if not view.poll.is_anonymous],
        anonymous_polls=[view for view in poll_views if view.poll.is_anonymous],
    )


# Comments


def comment_view(db: Session, comment: Comment, viewer_id: str | None = None) -> CommentView:
    return CommentView(
        comment=comment,
        author=_visible_author(db, comment.author_id, comment.is_anonymous, viewer_id),
    )


def _target_filter(post_id: str | None, poll_id: str | None):
    if (post_id is None) == (poll_id is None):
        raise InvalidInput("A comment belongs to exactly one post or poll.")
    if post_id is not None:
        return Comment.post_id == post_id
    return Comment.poll_id == poll_id


def list_comments(
    db: Session,
    *,
    post_id: str | None = None,
    poll_id: str | None = None,
    viewer_id: str | None = None,
) -> list[CommentView]:
    """Comments on one post or poll, oldest first."""
    comments = db.execute(
        select(Comment)
        .where(_target_filter(post_id, poll_id))
        .order_by(Comment.created_at.asc(), Comment.id)
    ).scalars()
    return [comment_view(db, comment, viewer_id) for comment in comments]


def count_comments(db: Session, *, post_id: str | None = None, poll_id: str | None = None) -> int:
    return db.execute(
        select(func.count()).select_from(Comment).where(_target_filter(post_id, poll_id))
    ).scalar_one()


def add_comment(
    db: Session,
    actor: ActorContext | None,
    *,
    content: str,
    post_id: str | None = None,
    poll_id: str | None = None,
    is_anonymous: bool | None = None,
) -> Comment:
    """Attach a comment to a post or a poll and notify subscribers."""
    actor = require_actor(actor)
    _target_filter(post_id, poll_id)
    text = _clean_text(content, "Comment cannot be empty.")
    if post_id is not None and db.get(Post, post_id) is None:
        raise NotFound("Post not found")
    if poll_id is not None and db.get(Poll, poll_id) is None:
        raise NotFound("Poll not found")

    comment = Comment(
        content=text,
        author_id=actor.user_id,
        is_anonymous=_resolve_anonymity(db, actor, is_anonymous),
        post_id=post_id,
        poll_id=poll_id,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    get_change_feed().publish_comment_change(
        "INSERT", post_id=post_id, poll_id=poll_id, comment_id=comment.id
    )
    return comment


def delete_comment(db: Session, actor: ActorContext | None, comment_id: str) -> bool:
    """Delete one of the actor's own comments.

    The delete matches on both id and author, so someone else's comment is
    left alone and `False` is returned.
    """
    actor = require_actor(actor)
    comment = db.execute(
        select(Comment).where(Comment.id == comment_id, Comment.author_id == actor.user_id)
    ).scalar_one_or_none()
    if comment is None:
        return False
    post_id, poll_id = comment.post_id, comment.poll_id
    db.execute(
        delete(Comment).where(Comment.id == comment_id, Comment.author_id == actor.user_id)
    )
    db.commit()
    get_change_feed().publish_comment_change(
        "DELETE", post_id=post_id, poll_id=poll_id, comment_id=comment_id
    )
    return True
