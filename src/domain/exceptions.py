"""
Domain exceptions - Semantic error types for the registration wizard.

This module defines domain-specific exceptions that communicate
failures of collaborators and misuse of a wizard session without
leaking infrastructure details (HTTP status codes, decoder errors).
"""


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    pass


class ServiceError(RegistrationError):
    """
    An external collaborator failed (transport or decoding).

    Args:
        message: Optional user-facing message (a localization key or the
            backend's own message). None when the failure carries nothing
            worth showing, in which case callers fall back to a generic key.
    """

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "service unavailable")
        self.message = message


class SessionNotFound(RegistrationError):
    """No wizard session is registered under the given handle."""

    pass


class UnknownField(RegistrationError):
    """An edit targeted a field the registration form does not have."""

    pass
