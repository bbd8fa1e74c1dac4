"""
Shared fixtures for adversarial tests.

Provides an availability backend scripted for out-of-order responses and
helpers to drive wizards into racing states.
"""

import asyncio

import pytest

from tests.conftest import FakeAvailabilityService

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial

STALE_TAKEN_USERNAME = "staleTaken"


@pytest.fixture
def availability() -> FakeAvailabilityService:
    """Availability backend where STALE_TAKEN_USERNAME is already registered."""
    return FakeAvailabilityService(
        taken_usernames=("admin", STALE_TAKEN_USERNAME),
        taken_emails=("taken@example.com",),
    )


async def let_tasks_run(seconds: float = 0.01) -> None:
    """Give background checks on this loop a chance to progress."""
    await asyncio.sleep(seconds)
