from __future__ import annotations

from typing import Iterable


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class MissingReferencesError(ValidationError):
    """Raised when referenced user ids do not resolve to existing users."""

    def __init__(self, missing: Iterable[str], message: str = "Some referenced user IDs not found"):
        super().__init__(message)
        self.missing = sorted(set(missing))


class AuthenticationError(DomainError):
    """Raised when credentials or bearer tokens are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when an identifier does not resolve."""


class MailError(DomainError):
    """Raised by mailers when a message could not be handed to the transport."""
