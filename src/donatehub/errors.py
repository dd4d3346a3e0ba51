"""Domain error taxonomy.

Services raise these; the API layer renders them with the status code attached
to each class (see ``donatehub.middleware.error_handler``).
"""

from __future__ import annotations


class DonateHubError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DonateHubError):
    """Malformed or missing input; the caller can fix it."""

    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(DonateHubError):
    """No principal, or credentials that do not check out."""

    status_code = 401
    default_message = "Unauthorized access"


class AuthorizationError(DonateHubError):
    """Principal's role is not allowed to perform the operation."""

    status_code = 403
    default_message = "Access denied"


class OwnershipError(DonateHubError):
    """Principal has the right role but does not own the target entity."""

    status_code = 403
    default_message = "You do not own this resource"


class NotFoundError(DonateHubError):
    status_code = 404
    default_message = "Resource not found"


class StateConflictError(DonateHubError):
    """Operation is invalid for the entity's current state."""

    status_code = 409
    default_message = "Operation not allowed in the current state"


class TransactionError(DonateHubError):
    """A multi-step write could not be committed; nothing was applied."""

    status_code = 500
    default_message = "Transaction failed"


class InternalError(DonateHubError):
    """Unexpected failure; details stay in the logs."""

    status_code = 500
    default_message = "Internal server error"
