"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) the wizard requires from its
collaborators. Adapters implement these protocols through structural
subtyping; none of them inherits from the Protocol classes.
"""

from typing import Protocol

from .models import City, Country, Credentials, RegistrationResult, RegistrationSnapshot, Sport


class AvailabilityService(Protocol):
    """Port interface for server-side username/email existence checks."""

    async def check_username(self, username: str) -> bool:
        """
        Ask the backend whether a username is free.

        Returns:
            True if the username is available, False if already taken

        Raises:
            ServiceError: On transport or decoding failure
        """
        ...

    async def check_email(self, email: str) -> bool:
        """
        Ask the backend whether an email address is free.

        Returns:
            True if the email is available, False if already taken

        Raises:
            ServiceError: On transport or decoding failure
        """
        ...


class RegistrationService(Protocol):
    """Port interface for the final account creation call."""

    async def register(self, snapshot: RegistrationSnapshot) -> RegistrationResult:
        """
        Create the account described by the snapshot.

        Args:
            snapshot: Immutable copy of the form taken at submission time

        Returns:
            RegistrationResult; credentials are present only on success

        Raises:
            ServiceError: On transport or decoding failure
        """
        ...


class SportsCatalog(Protocol):
    """Port interface for the list of selectable sports."""

    async def list_available_sports(self) -> list[Sport]:
        ...


class LocationDirectory(Protocol):
    """Port interface for the country and city pickers."""

    async def list_countries(self) -> list[Country]:
        ...

    async def list_cities(self, country_id: int) -> list[City]:
        ...


class CredentialStore(Protocol):
    """Port interface for the session-storage collaborator."""

    def save(self, credentials: Credentials) -> None:
        """
        Persist credentials returned by a successful registration.

        Args:
            credentials: Tokens and identity of the newly created account
        """
        ...
