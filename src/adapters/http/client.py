"""
BuddyBuilder API client - Implements the wizard's service ports over HTTP.

One httpx.AsyncClient serves all four ports (availability, registration,
sports catalog, location directory). Transport failures and undecodable
responses are translated into ServiceError so the domain never sees an
httpx or pydantic exception.

Endpoints (relative to the configured base URL):
- GET  /Auth/check-username?username=...
- GET  /Auth/check-email?email=...
- POST /Auth/register
- GET  /Sports
- GET  /Location/countries
- GET  /Location/cities?countryId=...
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from src.domain.exceptions import ServiceError
from src.domain.models import City, Country, RegistrationResult, RegistrationSnapshot, Sport

from .models import (
    ApiEnvelope,
    CityPayload,
    CountryPayload,
    LoginData,
    RegistrationRequest,
    SportPayload,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BuddyBuilderApiClient:
    """
    Implements AvailabilityService, RegistrationService, SportsCatalog and
    LocationDirectory protocols via httpx.

    Uses structural subtyping - no explicit inheritance from Protocol.
    The caller owns the httpx.AsyncClient and closes it.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        """
        Args:
            client: AsyncClient configured with base_url and timeout
        """
        self._client = client

    async def check_username(self, username: str) -> bool:
        envelope = await self._request(
            ApiEnvelope[bool], "GET", "/Auth/check-username", params={"username": username}
        )
        return envelope.success and bool(envelope.data)

    async def check_email(self, email: str) -> bool:
        envelope = await self._request(
            ApiEnvelope[bool], "GET", "/Auth/check-email", params={"email": email}
        )
        return envelope.success and bool(envelope.data)

    async def register(self, snapshot: RegistrationSnapshot) -> RegistrationResult:
        """
        Submit the registration.

        The backend reports business rejections inside the envelope
        (success=false plus a message), not through the status code, so
        the body is decoded regardless of status.
        """
        body = RegistrationRequest.from_snapshot(snapshot).to_json()
        envelope = await self._request(ApiEnvelope[LoginData], "POST", "/Auth/register", json=body)
        if envelope.success and envelope.data is not None:
            return RegistrationResult(
                success=True,
                message=envelope.message,
                credentials=envelope.data.to_domain(),
            )
        return RegistrationResult(
            success=False,
            message=envelope.message,
            errors=tuple(envelope.errors or ()),
        )

    async def list_available_sports(self) -> list[Sport]:
        envelope = await self._request(ApiEnvelope[list[SportPayload]], "GET", "/Sports")
        return [sport.to_domain() for sport in self._items(envelope)]

    async def list_countries(self) -> list[Country]:
        envelope = await self._request(
            ApiEnvelope[list[CountryPayload]], "GET", "/Location/countries"
        )
        return [country.to_domain() for country in self._items(envelope)]

    async def list_cities(self, country_id: int) -> list[City]:
        envelope = await self._request(
            ApiEnvelope[list[CityPayload]],
            "GET",
            "/Location/cities",
            params={"countryId": country_id},
        )
        return [city.to_domain() for city in self._items(envelope)]

    @staticmethod
    def _items(envelope: ApiEnvelope[list[T]]) -> list[T]:
        if not envelope.success or envelope.data is None:
            return []
        return envelope.data

    async def _request(self, model: type[T], method: str, url: str, **kwargs: Any) -> T:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc.__class__.__name__)
            raise ServiceError() from exc

        logger.debug("%s %s -> %s", method, url, response.status_code)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            logger.warning("%s %s unauthorized", method, url)

        try:
            return model.model_validate_json(response.content)
        except ValidationError as exc:
            logger.warning(
                "Undecodable response from %s %s (status %s)", method, url, response.status_code
            )
            raise ServiceError() from exc


def create_http_client(base_url: str, timeout_seconds: float) -> httpx.AsyncClient:
    """Build the AsyncClient the API client expects."""
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=timeout_seconds,
        headers={"Content-Type": "application/json", "Accept": "application/json"},
    )
