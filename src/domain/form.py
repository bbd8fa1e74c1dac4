"""
Registration form state - Mutable data model of one wizard attempt.

Holds every step's inputs, the two availability states and the
per-field error flags. One instance per in-progress registration; it is
discarded on completion or cancellation and never persisted.
"""

from dataclasses import dataclass, field, fields
from datetime import date

from .formats import is_valid_email
from .models import (
    City,
    Country,
    ExperienceLevel,
    Gender,
    RegistrationSnapshot,
    RegistrationStep,
    SelectedSport,
    Sport,
    SportSelection,
    ValidationState,
)

# Text inputs that can be edited one keystroke at a time
TEXT_FIELDS = frozenset(
    {
        "username",
        "email",
        "password",
        "confirm_password",
        "first_name",
        "last_name",
        "phone_number",
        "district",
        "bio",
        "about_me",
        "profile_image_url",
        "notes",
    }
)


@dataclass
class RegistrationFormState:
    """All inputs of the wizard, grouped by the step that collects them."""

    # Step 1 - basic info
    username: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    first_name: str = ""
    last_name: str = ""
    date_of_birth: date | None = None
    gender: Gender | None = None
    phone_number: str = ""

    # Step 2 - location
    country: Country | None = None
    city: City | None = None
    district: str = ""

    # Step 3 - sports preferences
    overall_experience_level: ExperienceLevel = ExperienceLevel.BEGINNER
    selected_sports: list[SportSelection] = field(default_factory=list)

    # Step 4 - profile
    bio: str = ""
    about_me: str = ""
    profile_image_url: str | None = None
    notes: str | None = None

    # Written only by the availability checkers
    username_availability: ValidationState = ValidationState.IDLE
    email_availability: ValidationState = ValidationState.IDLE

    def find_selection(self, sport_id: int) -> SportSelection | None:
        for selection in self.selected_sports:
            if selection.sport_id == sport_id:
                return selection
        return None

    def has_sport(self, sport: Sport) -> bool:
        return self.find_selection(sport.id) is not None

    def toggle_sport(self, sport: Sport) -> bool:
        """
        Add the sport with default preferences, or remove it if present.

        Membership is by sport identity, never by list position, so the
        list holds at most one selection per sport.

        Returns:
            True if the sport is selected after the call
        """
        existing = self.find_selection(sport.id)
        if existing is not None:
            self.selected_sports.remove(existing)
            return False
        self.selected_sports.append(SportSelection(sport=sport))
        return True

    def is_step_complete(self, step: RegistrationStep) -> bool:
        """
        Field-level completeness each step declares.

        This is what the form itself considers filled in. It is not the
        advance gate; see steps.is_step_satisfied for that.
        """
        if step is RegistrationStep.BASIC_INFO:
            return (
                all(
                    (
                        self.username,
                        self.email,
                        self.password,
                        self.confirm_password,
                        self.first_name,
                        self.last_name,
                        self.phone_number,
                    )
                )
                and is_valid_email(self.email)
                and self.password == self.confirm_password
            )
        if step is RegistrationStep.LOCATION:
            return self.country is not None and self.city is not None and bool(self.district)
        if step is RegistrationStep.SPORTS_PREFERENCES:
            return bool(self.selected_sports)
        if step is RegistrationStep.PROFILE:
            return bool(self.bio) and bool(self.about_me)
        return True

    def snapshot(self) -> RegistrationSnapshot:
        """Freeze the current inputs for submission."""
        return RegistrationSnapshot(
            username=self.username,
            email=self.email,
            password=self.password,
            confirm_password=self.confirm_password,
            first_name=self.first_name,
            last_name=self.last_name,
            phone_number=self.phone_number,
            date_of_birth=self.date_of_birth,
            gender=self.gender,
            country_id=self.country.id if self.country else None,
            city_id=self.city.id if self.city else None,
            district=self.district,
            overall_experience_level=self.overall_experience_level,
            selected_sports=tuple(
                SelectedSport(
                    sport_id=selection.sport_id,
                    experience_level=selection.experience_level,
                    is_preferred=selection.is_preferred,
                    notes=selection.notes,
                )
                for selection in self.selected_sports
            ),
            bio=self.bio,
            about_me=self.about_me,
            profile_image_url=self.profile_image_url,
            notes=self.notes,
        )


@dataclass
class FieldErrors:
    """Error flags the UI highlights; each clears on the next edit of its field."""

    username: bool = False
    email: bool = False
    password: bool = False
    confirm_password: bool = False
    first_name: bool = False
    last_name: bool = False
    phone_number: bool = False
    location: bool = False
    sports: bool = False
    profile: bool = False

    def clear(self, name: str) -> None:
        if hasattr(self, name):
            setattr(self, name, False)

    def clear_all(self) -> None:
        for flag in fields(self):
            setattr(self, flag.name, False)

    def as_dict(self) -> dict[str, bool]:
        return {flag.name: getattr(self, flag.name) for flag in fields(self)}
