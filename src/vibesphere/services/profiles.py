"""Profile reads and owner-only updates."""

from __future__ import annotations

from sqlalchemy.orm import Session

from vibesphere.models import Profile
from vibesphere.services.auth import ActorContext, find_profile_by_username, require_actor
from vibesphere.services.errors import NotFound

_UNSET = object()


def get_profile(db: Session, user_id: str) -> Profile:
    profile = db.get(Profile, user_id)
    if profile is None:
        raise NotFound("Profile not found")
    return profile


def get_own_profile(db: Session, actor: ActorContext | None) -> Profile:
    actor = require_actor(actor)
    return get_profile(db, actor.user_id)


def lookup_username(db: Session, username: str) -> Profile:
    """Find a profile by username, ignoring case."""
    profile = find_profile_by_username(db, username)
    if profile is None:
        raise NotFound("Profile not found")
    return profile


def update_profile(
    db: Session,
    actor: ActorContext | None,
    *,
    name: str | None | object = _UNSET,
    default_anonymous: bool | None = None,
) -> Profile:
    """Change the actor's display name and/or anonymous-by-default flag.

    The name is trimmed and an empty name clears it.
    """
    profile = get_own_profile(db, actor)
    if name is not _UNSET:
        profile.name = (name or "").strip() or None
    if default_anonymous is not None:
        profile.default_anonymous = default_anonymous
    db.commit()
    db.refresh(profile)
    return profile
