"""Password hashing and access-token utilities."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import nacl.pwhash
from jose import JWTError, jwt
from nacl.exceptions import InvalidkeyError

from vibesphere.core.settings import settings


def hash_password(password: str) -> str:
    """Return an argon2id hash of the password in modular crypt format."""
    return nacl.pwhash.str(password.encode("utf-8")).decode("ascii")


def verify_password(password_hash: str, password: str) -> bool:
    """Verify a password against a stored argon2id hash.

    Returns:
        True if the password matches; False otherwise.
    """
    try:
        return nacl.pwhash.verify(password_hash.encode("ascii"), password.encode("utf-8"))
    except InvalidkeyError:
        return False


def create_access_token(user_id: str, session_id: str) -> str:
    """Create a JWT binding a user to one sign-in session."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode: dict[str, Any] = {"sub": user_id, "sid": session_id, "exp": expire}
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> tuple[str, str]:
    """Decode a JWT and return `(user_id, session_id)`.

    Raises:
        ValueError: If the token is invalid, expired, or missing claims.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise ValueError("Could not validate credentials") from err

    subject = payload.get("sub")
    session_id = payload.get("sid")
    if not subject or not session_id:
        raise ValueError("Could not validate credentials")
    return str(subject), str(session_id)
