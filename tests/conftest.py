"""
Shared test fixtures and configuration.

This module provides:
- Scripted fakes for the wizard's service ports
- An orchestrator factory wired to those fakes (no debounce delay)
- Helpers to fill in a valid first step
"""

import asyncio
from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from src.domain.exceptions import ServiceError
from src.domain.models import (
    City,
    Country,
    Credentials,
    RegistrationResult,
    Sport,
)
from src.domain.orchestrator import RegistrationOrchestrator

BASKETBALL = Sport(1, "Basketball", "Team sport played on a court")
TENNIS = Sport(2, "Tennis", "Racket sport")
SWIMMING = Sport(4, "Swimming", "Water sport")

TURKEY = Country(1, "Turkey", "TR")
GEORGIA = Country(3, "Georgia", "GE")
ISTANBUL = City(1, "Istanbul", 1)
TBILISI = City(8, "Tbilisi", 3)

CREDENTIALS = Credentials(
    access_token="access-token-123456",
    refresh_token="refresh-token-123456",
    user_id=123,
    username="validUser",
    email="valid@example.com",
)

VALID_BASIC_INFO = {
    "username": "validUser",
    "email": "valid@example.com",
    "password": "Abcdefg1",
    "confirm_password": "Abcdefg1",
    "first_name": "Ada",
    "last_name": "Lovelace",
    "phone_number": "+905551234567",
}


class FakeAvailabilityService:
    """
    Availability backend with scripted answers and a call log.

    Values listed in `holds` block until their asyncio.Event is set, which
    lets tests decide the order in which responses arrive. With
    `ignore_cancel`, a held request keeps going after cancellation, like a
    transport that cannot be interrupted.
    """

    def __init__(
        self,
        taken_usernames: tuple[str, ...] = (),
        taken_emails: tuple[str, ...] = (),
    ) -> None:
        self.taken_usernames = set(taken_usernames)
        self.taken_emails = set(taken_emails)
        self.username_calls: list[str] = []
        self.email_calls: list[str] = []
        self.holds: dict[str, asyncio.Event] = {}
        self.ignore_cancel = False
        self.failure: ServiceError | None = None

    def hold(self, value: str) -> asyncio.Event:
        event = asyncio.Event()
        self.holds[value] = event
        return event

    async def check_username(self, username: str) -> bool:
        self.username_calls.append(username)
        await self._wait(username)
        return username not in self.taken_usernames

    async def check_email(self, email: str) -> bool:
        self.email_calls.append(email)
        await self._wait(email)
        return email not in self.taken_emails

    async def _wait(self, value: str) -> None:
        event = self.holds.get(value)
        if event is not None:
            try:
                await event.wait()
            except asyncio.CancelledError:
                if not self.ignore_cancel:
                    raise
                await event.wait()
        if self.failure is not None:
            raise self.failure


class FakeCatalog:
    """Sports catalog and location directory with fixed data."""

    def __init__(self) -> None:
        self.sports = [BASKETBALL, TENNIS, SWIMMING]
        self.countries = [TURKEY, GEORGIA]
        self.cities = [ISTANBUL, TBILISI]
        self.failure: ServiceError | None = None

    async def list_available_sports(self) -> list[Sport]:
        if self.failure is not None:
            raise self.failure
        return list(self.sports)

    async def list_countries(self) -> list[Country]:
        return list(self.countries)

    async def list_cities(self, country_id: int) -> list[City]:
        return [city for city in self.cities if city.country_id == country_id]


@pytest.fixture
def availability() -> FakeAvailabilityService:
    return FakeAvailabilityService(taken_usernames=("admin",), taken_emails=("taken@example.com",))


@pytest.fixture
def registration() -> AsyncMock:
    """Registration service whose register() succeeds by default."""
    service = AsyncMock()
    service.register.return_value = RegistrationResult(
        success=True, message="Registration successful", credentials=CREDENTIALS
    )
    return service


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def make_orchestrator(
    availability: FakeAvailabilityService,
    registration: AsyncMock,
    catalog: FakeCatalog,
) -> Callable[..., RegistrationOrchestrator]:
    """Build orchestrators wired to the fakes; keyword overrides pass through."""

    def build(**kwargs) -> RegistrationOrchestrator:
        options = {
            "availability": availability,
            "registration": registration,
            "sports_catalog": catalog,
            "locations": catalog,
            "debounce_seconds": 0,
        }
        options.update(kwargs)
        return RegistrationOrchestrator(**options)

    return build


async def settle(orchestrator: RegistrationOrchestrator) -> None:
    """Wait for both availability checkers to finish their pending work."""
    await orchestrator.username_checker.wait_idle()
    await orchestrator.email_checker.wait_idle()


async def fill_basic_info(orchestrator: RegistrationOrchestrator, **overrides: str) -> None:
    """Enter a valid first step (with overrides) and let checks resolve."""
    for name, value in {**VALID_BASIC_INFO, **overrides}.items():
        orchestrator.update_field(name, value)
    await settle(orchestrator)
