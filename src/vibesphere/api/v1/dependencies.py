# src/vibesphere/api/v1/dependencies.py
"""Shared API dependencies for authentication and error translation."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from vibesphere.db.session import get_db
from vibesphere.services import auth as auth_service
from vibesphere.services.auth import ActorContext, AuthAdmin
from vibesphere.services.errors import (
    AdminPrivilegeRequired,
    AlreadyVoted,
    ConfirmationMismatch,
    DeletionFailed,
    EmailTaken,
    InvalidCredentials,
    InvalidInput,
    NotAuthenticated,
    NotFound,
    Unauthorized,
    UpstreamError,
    UsernameTaken,
    VibeSphereError,
)

# HTTP Bearer scheme; missing credentials are handled per endpoint
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]

_STATUS_BY_ERROR: tuple[tuple[type[VibeSphereError], int], ...] = (
    (NotAuthenticated, status.HTTP_401_UNAUTHORIZED),
    (InvalidCredentials, status.HTTP_401_UNAUTHORIZED),
    (Unauthorized, status.HTTP_403_FORBIDDEN),
    (AdminPrivilegeRequired, status.HTTP_403_FORBIDDEN),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (InvalidInput, status.HTTP_400_BAD_REQUEST),
    (ConfirmationMismatch, status.HTTP_400_BAD_REQUEST),
    (AlreadyVoted, status.HTTP_409_CONFLICT),
    (UsernameTaken, status.HTTP_409_CONFLICT),
    (EmailTaken, status.HTTP_409_CONFLICT),
    (UpstreamError, status.HTTP_502_BAD_GATEWAY),
    (DeletionFailed, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def http_error(exc: VibeSphereError) -> HTTPException:
    """Translate a domain error into the HTTP error shown to the user.

    Args:
        exc: Error raised by the service layer

    Returns:
        HTTPException with a matching status and a readable detail
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break

    detail: object = str(exc)
    if isinstance(exc, DeletionFailed):
        detail = {
            "message": str(exc),
            "failed_state": exc.failed_state,
            "completed": list(exc.completed),
        }
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return HTTPException(status_code=status_code, detail=detail, headers=headers)


def get_optional_actor(credentials: CredentialsDep, db: SessionDep) -> ActorContext | None:
    """Resolve the signed-in actor, or None for anonymous readers.

    A token that is present but invalid is still rejected.
    """
    if credentials is None:
        return None
    try:
        return auth_service.resolve_actor(db, credentials.credentials)
    except NotAuthenticated as err:
        raise http_error(err) from err


def get_actor(actor: Annotated[ActorContext | None, Depends(get_optional_actor)]) -> ActorContext:
    """Require a signed-in actor."""
    try:
        return auth_service.require_actor(actor)
    except NotAuthenticated as err:
        raise http_error(err) from err


def get_auth_admin_dep() -> AuthAdmin:
    """Return the administrative auth handle."""
    try:
        return auth_service.get_auth_admin()
    except AdminPrivilegeRequired as err:
        raise http_error(err) from err


# Type aliases for actor dependencies
ActorDep = Annotated[ActorContext, Depends(get_actor)]
OptionalActorDep = Annotated[ActorContext | None, Depends(get_optional_actor)]
AuthAdminDep = Annotated[AuthAdmin, Depends(get_auth_admin_dep)]
