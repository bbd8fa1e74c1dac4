"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Passwords are accepted in requests but never echoed back in responses.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from src.domain.models import ExperienceLevel, Gender, RegistrationStep, ValidationState


class FieldUpdate(BaseModel):
    """Partial edit of form fields; only fields present in the body are applied."""

    model_config = ConfigDict(extra="forbid")

    username: str | None = None
    email: str | None = None
    password: str | None = None
    confirm_password: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    date_of_birth: date | None = None
    gender: Gender | None = None
    district: str | None = None
    overall_experience_level: ExperienceLevel | None = None
    bio: str | None = None
    about_me: str | None = None
    profile_image_url: str | None = None
    notes: str | None = None


class LocationUpdate(BaseModel):
    """Country/city selection; a null country clears both."""

    model_config = ConfigDict(extra="forbid")

    country_id: int | None = None
    city_id: int | None = None
    district: str | None = None


class SportUpdate(BaseModel):
    """Per-sport preferences of an already selected sport."""

    model_config = ConfigDict(extra="forbid")

    experience_level: ExperienceLevel | None = None
    is_preferred: bool | None = None
    notes: str | None = Field(None, max_length=500)


class PasswordFeedback(BaseModel):
    valid: bool
    reason: str | None = None
    confirmation_valid: bool
    confirmation_reason: str | None = None
    requirements: dict[str, bool]


class SportView(BaseModel):
    id: int
    name: str
    description: str | None = None


class SelectionView(BaseModel):
    sport_id: int
    name: str
    experience_level: ExperienceLevel
    is_preferred: bool
    notes: str


class CountryView(BaseModel):
    id: int
    name: str
    code: str


class CityView(BaseModel):
    id: int
    name: str
    country_id: int


class CredentialsView(BaseModel):
    user_id: int
    username: str
    email: str
    access_token: str
    refresh_token: str


class RegistrationView(BaseModel):
    """Full state of a wizard session as a client renders it."""

    id: str
    step: RegistrationStep
    progress: float
    can_proceed: bool
    is_final_step: bool

    username: str
    email: str
    first_name: str
    last_name: str
    phone_number: str
    date_of_birth: date | None = None
    gender: Gender | None = None
    country_id: int | None = None
    city_id: int | None = None
    district: str
    overall_experience_level: ExperienceLevel
    bio: str
    about_me: str

    username_availability: ValidationState
    email_availability: ValidationState
    password: PasswordFeedback

    errors: dict[str, bool]
    error_message: str | None = None
    is_loading: bool
    completed: bool
    dismissed: bool

    selected_sports: list[SelectionView]
    available_sports: list[SportView]
    countries: list[CountryView]
    cities: list[CityView]
    credentials: CredentialsView | None = None


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
