"""Error taxonomy shared by the service layer.

Every failure a user-initiated action can hit is one of these; the API layer
turns them into HTTP error responses.
"""

from __future__ import annotations

from collections.abc import Sequence


class VibeSphereError(RuntimeError):
    """Base exception for all domain failures."""


class NotAuthenticated(VibeSphereError):
    """Raised when an action requires a signed-in user."""


class Unauthorized(VibeSphereError):
    """Raised when the actor does not own the entity being changed."""


class NotFound(VibeSphereError):
    """Raised when a referenced entity does not exist."""


class InvalidInput(VibeSphereError):
    """Raised when submitted content fails validation."""


class AlreadyVoted(VibeSphereError):
    """Raised when a user tries to vote twice on the same poll."""


class ConfirmationMismatch(VibeSphereError):
    """Raised when the account deletion confirmation phrase does not match."""


class UsernameTaken(VibeSphereError):
    """Raised when registering with a username that already exists."""


class EmailTaken(VibeSphereError):
    """Raised when registering with an email that already exists."""


class InvalidCredentials(VibeSphereError):
    """Raised when sign-in fails."""


class AdminPrivilegeRequired(VibeSphereError):
    """Raised when an administrative call lacks the service-role credential."""


class UpstreamError(VibeSphereError):
    """Raised when the content feedback upstream fails or answers garbage."""


class DeletionFailed(VibeSphereError):
    """Raised when a step of a cascading deletion errors.

    Steps that already completed are not rolled back; re-running the same
    deletion converges because every step is idempotent.
    """

    def __init__(
        self,
        message: str,
        *,
        failed_state: str,
        completed: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.failed_state = failed_state
        self.completed = tuple(completed)


class AccountDeletionFailed(DeletionFailed):
    """Raised when a step of the account deletion cascade errors."""
