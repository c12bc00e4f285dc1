"""Account registration, sign-in sessions and the acting-user context.

Every operation that acts on behalf of a user receives an explicit
`ActorContext`; there is no ambient "current user". A context exists from
sign-in until sign-out (or account deletion) removes its session row.
"""
from __future__ import annotations

import logging
import random
import secrets
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vibesphere.core import security
from vibesphere.core.settings import settings
from vibesphere.models import AuthSession, AuthUser, Profile
from vibesphere.services.errors import (
    AdminPrivilegeRequired,
    EmailTaken,
    InvalidCredentials,
    InvalidInput,
    NotAuthenticated,
    UsernameTaken,
)

logger = logging.getLogger(__name__)

_ADJECTIVES = ("Happy", "Lucky", "Sunny", "Cool", "Swift", "Clever")
_NOUNS = ("Panda", "Tiger", "Eagle", "Dragon", "Phoenix", "Dolphin")


@dataclass(frozen=True)
class ActorContext:
    """Identity of the signed-in user performing an action."""

    user_id: str
    session_id: str


@dataclass(frozen=True)
class SignInResult:
    """Access token plus the context it establishes."""

    access_token: str
    actor: ActorContext


def require_actor(actor: ActorContext | None) -> ActorContext:
    """Return the actor or raise `NotAuthenticated` when nobody is signed in."""
    if actor is None:
        raise NotAuthenticated("You must be logged in to do that.")
    return actor


def generate_random_username(rng: random.Random | None = None) -> str:
    """Return a playful `AdjectiveNounNNN` username."""
    rng = rng or random.Random()
    return f"{rng.choice(_ADJECTIVES)}{rng.choice(_NOUNS)}{rng.randrange(1000)}"


def find_profile_by_username(db: Session, username: str) -> Profile | None:
    """Case-insensitive username lookup."""
    return db.execute(
        select(Profile).where(func.lower(Profile.username) == username.strip().lower())
    ).scalars().first()


def find_auth_user_by_email(db: Session, email: str) -> AuthUser | None:
    """Case-insensitive email lookup."""
    return db.execute(
        select(AuthUser).where(func.lower(AuthUser.email) == email.strip().lower())
    ).scalars().first()


def _unique_username(db: Session, base: str) -> str:
    candidate = base
    counter = 0
    while find_profile_by_username(db, candidate) is not None:
        counter += 1
        candidate = f"{base}{counter}"
    return candidate


def register(
    db: Session,
    *,
    email: str,
    password: str,
    username: str | None = None,
) -> Profile:
    """Create the auth record and its profile in one transaction.

    A supplied username must be free; a generated one gets a numeric suffix
    until it is unique.

    Raises:
        InvalidInput: If email or password is missing.
        UsernameTaken: If the supplied username already exists.
        EmailTaken: If the email is already registered.
    """
    email = email.strip()
    if "@" not in email or not password:
        raise InvalidInput("A valid email and password are required.")

    provided = (username or "").strip() or None
    if provided is not None and find_profile_by_username(db, provided) is not None:
        raise UsernameTaken("Username is already taken")
    if find_auth_user_by_email(db, email) is not None:
        raise EmailTaken("Email is already registered")

    final_username = provided or _unique_username(db, generate_random_username())

    auth_user = AuthUser(email=email, password_hash=security.hash_password(password))
    db.add(auth_user)
    db.flush()
    profile = Profile(
        id=auth_user.id,
        username=final_username,
        email=email,
        name=provided or final_username,
        default_anonymous=False,
    )
    db.add(profile)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise UsernameTaken("Username is already taken") from exc
    db.refresh(profile)
    logger.info("Registered user %s", profile.id)
    return profile


def sign_in(db: Session, *, username_or_email: str, password: str) -> SignInResult:
    """Authenticate by username or email and open a new session.

    Input containing "@" is treated as an email; anything else is resolved
    through the profile's username.
    """
    identifier = username_or_email.strip()
    if "@" in identifier:
        auth_user = find_auth_user_by_email(db, identifier)
    else:
        profile = find_profile_by_username(db, identifier)
        if profile is None or not profile.email:
            raise InvalidCredentials("Username not found")
        auth_user = find_auth_user_by_email(db, profile.email)

    if auth_user is None or not security.verify_password(auth_user.password_hash, password):
        raise InvalidCredentials("Invalid login credentials")

    session_row = AuthSession(user_id=auth_user.id)
    db.add(session_row)
    db.commit()
    actor = ActorContext(user_id=auth_user.id, session_id=session_row.id)
    return SignInResult(
        access_token=security.create_access_token(actor.user_id, actor.session_id),
        actor=actor,
    )


def resolve_actor(db: Session, token: str) -> ActorContext:
    """Turn a bearer token into an `ActorContext` backed by a live session.

    Raises:
        NotAuthenticated: If the token is invalid or its session has ended.
    """
    try:
        user_id, session_id = security.decode_access_token(token)
    except ValueError as err:
        raise NotAuthenticated(str(err)) from err

    session_row = db.get(AuthSession, session_id)
    if session_row is None or session_row.user_id != user_id:
        raise NotAuthenticated("Session has ended")
    return ActorContext(user_id=user_id, session_id=session_id)


def sign_out(db: Session, actor: ActorContext) -> None:
    """End the actor's session."""
    db.execute(delete(AuthSession).where(AuthSession.id == actor.session_id))
    db.commit()


class AuthAdmin:
    """Administrative operations on auth records.

    Requires the service-role credential, which is distinct from any user
    session.
    """

    def __init__(self, service_role_key: str | None) -> None:
        expected = settings.service_role_key
        if not expected or not service_role_key or not secrets.compare_digest(
            service_role_key, expected
        ):
            raise AdminPrivilegeRequired("Service-role credential required")

    def delete_user(self, db: Session, user_id: str) -> int:
        """Remove every session and the auth record of a user.

        Returns:
            Number of auth records removed (0 when it was already gone).
        """
        db.execute(delete(AuthSession).where(AuthSession.user_id == user_id))
        result = db.execute(delete(AuthUser).where(AuthUser.id == user_id))
        return result.rowcount or 0


def get_auth_admin() -> AuthAdmin:
    """Return an admin handle using the configured service-role credential."""
    return AuthAdmin(settings.service_role_key)
