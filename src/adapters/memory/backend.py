"""
In-memory backend adapter - Demo implementation of every service port.

Stands in for the BuddyBuilder API during local development and demos.
Seeded with a few taken usernames and emails, eight sports and a small
country/city directory. Accounts registered through it are kept in
memory with a bcrypt password hash, so their username and email are
reported taken afterwards.

Nothing survives a process restart.
"""

import asyncio
import itertools
import logging
import secrets
from dataclasses import dataclass

import bcrypt

from src.domain.models import (
    City,
    Country,
    Credentials,
    RegistrationResult,
    RegistrationSnapshot,
    Sport,
)

logger = logging.getLogger(__name__)

SEED_TAKEN_USERNAMES = ("admin", "test", "user", "john", "jane")
SEED_TAKEN_EMAILS = ("test@example.com", "admin@example.com", "user@example.com")

SEED_SPORTS = (
    Sport(1, "Basketball", "Team sport played on a court"),
    Sport(2, "Tennis", "Racket sport"),
    Sport(3, "Soccer", "Football"),
    Sport(4, "Swimming", "Water sport"),
    Sport(5, "Volleyball", "Team sport with net"),
    Sport(6, "Running", "Individual endurance sport"),
    Sport(7, "Cycling", "Bike sport"),
    Sport(8, "Fitness", "General fitness activities"),
)

SEED_COUNTRIES = (
    Country(1, "Turkey", "TR"),
    Country(2, "Azerbaijan", "AZ"),
    Country(3, "Georgia", "GE"),
    Country(4, "United States", "US"),
    Country(5, "Germany", "DE"),
)

SEED_CITIES = (
    City(1, "Istanbul", 1),
    City(2, "Ankara", 1),
    City(3, "Izmir", 1),
    City(4, "Antalya", 1),
    City(5, "Baku", 2),
    City(6, "Ganja", 2),
    City(7, "Sumqayit", 2),
    City(8, "Tbilisi", 3),
    City(9, "Batumi", 3),
    City(10, "Zugdidi", 3),
    City(11, "Kutaisi", 3),
)


@dataclass(frozen=True)
class StoredAccount:
    user_id: int
    username: str
    email: str
    password_hash: str


class InMemoryBuddyBackend:
    """
    Implements AvailabilityService, RegistrationService, SportsCatalog and
    LocationDirectory protocols in memory.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Username and email comparisons are case-insensitive.
    """

    def __init__(self, latency_seconds: float = 0.0, bcrypt_cost: int = 10) -> None:
        """
        Args:
            latency_seconds: Simulated round-trip delay for every call
            bcrypt_cost: bcrypt work factor for stored password hashes
        """
        self._latency = latency_seconds
        self._bcrypt_cost = bcrypt_cost
        self._taken_usernames = set(SEED_TAKEN_USERNAMES)
        self._taken_emails = set(SEED_TAKEN_EMAILS)
        self._accounts: dict[str, StoredAccount] = {}
        self._user_ids = itertools.count(1000)

    @property
    def accounts(self) -> list[StoredAccount]:
        return list(self._accounts.values())

    async def check_username(self, username: str) -> bool:
        await self._delay()
        return username.lower() not in self._taken_usernames

    async def check_email(self, email: str) -> bool:
        await self._delay()
        return email.lower() not in self._taken_emails

    async def register(self, snapshot: RegistrationSnapshot) -> RegistrationResult:
        await self._delay()
        username = snapshot.username.lower()
        email = snapshot.email.lower()
        if username in self._taken_usernames:
            return RegistrationResult(success=False, message="registration.error.username_taken")
        if email in self._taken_emails:
            return RegistrationResult(success=False, message="registration.error.email_taken")

        # Claim before hashing so a concurrent registration cannot slip in
        self._taken_usernames.add(username)
        self._taken_emails.add(email)
        try:
            password_hash = await asyncio.to_thread(self._hash_password, snapshot.password)
        except BaseException:
            self._taken_usernames.discard(username)
            self._taken_emails.discard(email)
            raise

        account = StoredAccount(
            user_id=next(self._user_ids),
            username=snapshot.username,
            email=snapshot.email,
            password_hash=password_hash,
        )
        self._accounts[username] = account
        logger.info("Stored demo account %s", account.user_id)

        return RegistrationResult(
            success=True,
            message="Registration successful",
            credentials=Credentials(
                access_token=secrets.token_urlsafe(32),
                refresh_token=secrets.token_urlsafe(32),
                user_id=account.user_id,
                username=account.username,
                email=account.email,
            ),
        )

    async def list_available_sports(self) -> list[Sport]:
        await self._delay()
        return list(SEED_SPORTS)

    async def list_countries(self) -> list[Country]:
        await self._delay()
        return list(SEED_COUNTRIES)

    async def list_cities(self, country_id: int) -> list[City]:
        await self._delay()
        return [city for city in SEED_CITIES if city.country_id == country_id]

    def verify_password(self, username: str, password: str) -> bool:
        """Check a password against a stored account (False if unknown)."""
        account = self._accounts.get(username.lower())
        if account is None:
            return False
        return bcrypt.checkpw(password.encode(), account.password_hash.encode())

    def _hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self._bcrypt_cost)).decode()

    async def _delay(self) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)
