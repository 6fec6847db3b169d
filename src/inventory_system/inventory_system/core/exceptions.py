from __future__ import annotations

from .constants import MAX_ACTIVE_MONITORS


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFound(DomainError):
    """Raised when a referenced user does not exist."""

    def __init__(self, user_id: int, message: str = "User not found"):
        super().__init__(message)
        self.user_id = user_id


class InvalidRoleTransition(DomainError):
    """Raised when a user is not eligible for the requested role change."""


class CapacityExceeded(DomainError):
    """Raised when the monitor cap is already reached."""

    def __init__(self, limit: int = MAX_ACTIVE_MONITORS):
        super().__init__(f"Maximum of {limit} monitors reached")
        self.limit = limit


class NotAMonitor(DomainError):
    """Revoke requested on a user without an active assignment.

    Callers treat this as a benign no-op, not a failure.
    """

    def __init__(self, user_id: int):
        super().__init__("User is not currently a monitor")
        self.user_id = user_id


class PersistenceFailure(DomainError):
    """The underlying store could not complete the unit of work."""
