"""
Wizard session registry - Handles to live registration wizards.

Each opened wizard gets an opaque id; the registry maps it to the
RegistrationOrchestrator driving that attempt. The registry itself is
created per application in the lifespan and stored on app.state, so
there is no module-level session state.
"""

import logging
import time
import uuid
from collections.abc import Callable
from typing import Protocol

from src.domain.exceptions import SessionNotFound
from src.domain.orchestrator import RegistrationOrchestrator
from src.domain.ports import (
    AvailabilityService,
    CredentialStore,
    LocationDirectory,
    RegistrationService,
    SportsCatalog,
)

logger = logging.getLogger(__name__)

OrchestratorFactory = Callable[[], RegistrationOrchestrator]


class WizardBackend(
    AvailabilityService, RegistrationService, SportsCatalog, LocationDirectory, Protocol
):
    """A single adapter implementing every service port."""


def orchestrator_factory(
    backend: WizardBackend,
    credential_store: CredentialStore | None,
    debounce_seconds: float,
    enforce_declared_steps: bool,
) -> OrchestratorFactory:
    """Bind the shared adapters; each call yields a fresh, independent wizard."""

    def build() -> RegistrationOrchestrator:
        return RegistrationOrchestrator(
            availability=backend,
            registration=backend,
            sports_catalog=backend,
            locations=backend,
            credential_store=credential_store,
            debounce_seconds=debounce_seconds,
            enforce_declared_steps=enforce_declared_steps,
        )

    return build


class SessionRegistry:
    """
    In-memory map of wizard ids to orchestrators.

    A wizard untouched for longer than ttl_seconds is treated as abandoned:
    lookups report it missing and the next open() closes it. A wizard with
    a registration call in flight is never swept.
    """

    def __init__(
        self,
        factory: OrchestratorFactory,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._factory = factory
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, RegistrationOrchestrator] = {}
        self._touched: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def open(self) -> tuple[str, RegistrationOrchestrator]:
        """
        Start a new wizard and load its initial data.

        Returns:
            Tuple of (session_id, orchestrator)
        """
        await self.sweep()
        orchestrator = self._factory()
        await orchestrator.open()
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = orchestrator
        self._touched[session_id] = self._clock()
        logger.info("Opened registration session %s", session_id)
        return session_id, orchestrator

    def get(self, session_id: str) -> RegistrationOrchestrator:
        """
        Raises:
            SessionNotFound: If the id is unknown, closed or expired
        """
        orchestrator = self._sessions.get(session_id)
        if orchestrator is None or self._is_expired(session_id, orchestrator):
            raise SessionNotFound(session_id)
        self._touched[session_id] = self._clock()
        return orchestrator

    async def close(self, session_id: str) -> None:
        """Discard a wizard, cancelling its pending checks."""
        orchestrator = self._sessions.pop(session_id, None)
        self._touched.pop(session_id, None)
        if orchestrator is None:
            raise SessionNotFound(session_id)
        await orchestrator.close()
        logger.info("Closed registration session %s", session_id)

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)

    async def sweep(self) -> int:
        """
        Close every expired wizard.

        Returns:
            Number of sessions closed
        """
        expired = [
            session_id
            for session_id, orchestrator in self._sessions.items()
            if self._is_expired(session_id, orchestrator)
        ]
        for session_id in expired:
            logger.info("Registration session %s expired", session_id)
            await self.close(session_id)
        return len(expired)

    def _is_expired(self, session_id: str, orchestrator: RegistrationOrchestrator) -> bool:
        if self._ttl_seconds is None or orchestrator.session.is_loading:
            return False
        return self._clock() - self._touched[session_id] > self._ttl_seconds
