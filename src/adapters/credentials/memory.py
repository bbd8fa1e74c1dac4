"""
In-memory credential store adapter - Implements CredentialStore protocol.

Keeps the credentials of completed registrations for the lifetime of
the process so a client can pick them up, and logs the hand-off with
masked tokens.
"""

import logging

from src.domain.models import Credentials

logger = logging.getLogger(__name__)


def mask_token(token: str) -> str:
    """Show only the first characters of a token."""
    if len(token) <= 8:
        return "***"
    return f"{token[:8]}..."


class InMemoryCredentialStore:
    """
    Implements CredentialStore protocol via a dict keyed by user id.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self) -> None:
        self._by_user_id: dict[int, Credentials] = {}

    def save(self, credentials: Credentials) -> None:
        """
        Remember credentials, replacing any earlier ones for the same user.

        Args:
            credentials: Tokens and identity from a successful registration
        """
        self._by_user_id[credentials.user_id] = credentials
        logger.info(
            "[CREDENTIALS] User: %s Username: %s Token: %s",
            credentials.user_id,
            credentials.username,
            mask_token(credentials.access_token),
        )

    def get(self, user_id: int) -> Credentials | None:
        return self._by_user_id.get(user_id)
