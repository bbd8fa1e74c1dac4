"""
Wire models for the BuddyBuilder backend API.

Pydantic models mirroring the backend's camelCase JSON. Every response
is wrapped in the same envelope: {success, message, data, errors,
timestamp}.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.domain.models import (
    City,
    Country,
    Credentials,
    RegistrationSnapshot,
    Sport,
)

T = TypeVar("T")

# Sent for location fields the user left unset
DEFAULT_COUNTRY_ID = 1
DEFAULT_CITY_ID = 1


class WireModel(BaseModel):
    """Base for camelCase payloads; accepts snake_case names too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiEnvelope(WireModel, Generic[T]):
    success: bool
    message: str | None = None
    data: T | None = None
    errors: list[str] | None = None
    timestamp: str | None = None


class SportPayload(WireModel):
    id: int
    name: str
    description: str | None = None
    image_url: str | None = None

    def to_domain(self) -> Sport:
        return Sport(id=self.id, name=self.name, description=self.description, image_url=self.image_url)


class CountryPayload(WireModel):
    id: int
    name: str
    code: str

    def to_domain(self) -> Country:
        return Country(id=self.id, name=self.name, code=self.code)


class CityPayload(WireModel):
    id: int
    name: str
    country_id: int

    def to_domain(self) -> City:
        return City(id=self.id, name=self.name, country_id=self.country_id)


class LoginData(WireModel):
    user_id: int
    username: str
    email: str
    access_token: str
    refresh_token: str
    login_time: str | None = None

    def to_domain(self) -> Credentials:
        return Credentials(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            user_id=self.user_id,
            username=self.username,
            email=self.email,
        )


class PreferredSport(WireModel):
    sport_id: int
    experience_level: int
    is_preferred: bool
    notes: str | None = None


class RegistrationRequest(WireModel):
    """Body of POST /Auth/register."""

    user_name: str
    first_name: str
    last_name: str
    email: str
    password: str
    confirm_password: str
    country_id: int
    city_id: int
    district: str
    overall_experience_level: int
    preferred_sports: list[PreferredSport]
    bio: str
    profile_image_url: str | None = None
    notes: str | None = None
    about_me: str

    @classmethod
    def from_snapshot(cls, snapshot: RegistrationSnapshot) -> "RegistrationRequest":
        return cls(
            user_name=snapshot.username,
            first_name=snapshot.first_name,
            last_name=snapshot.last_name,
            email=snapshot.email,
            password=snapshot.password,
            confirm_password=snapshot.confirm_password,
            country_id=snapshot.country_id or DEFAULT_COUNTRY_ID,
            city_id=snapshot.city_id or DEFAULT_CITY_ID,
            district=snapshot.district,
            overall_experience_level=int(snapshot.overall_experience_level),
            preferred_sports=[
                PreferredSport(
                    sport_id=sport.sport_id,
                    experience_level=int(sport.experience_level),
                    is_preferred=sport.is_preferred,
                    notes=sport.notes,
                )
                for sport in snapshot.selected_sports
            ],
            bio=snapshot.bio,
            profile_image_url=snapshot.profile_image_url or None,
            notes=snapshot.notes or None,
            about_me=snapshot.about_me,
        )

    def to_json(self) -> dict:
        """camelCase body; optional fields are omitted when unset."""
        return self.model_dump(by_alias=True, exclude_none=True)
