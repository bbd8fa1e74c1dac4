"""
Domain models - Enumerations and value types of the registration wizard.

Everything here is plain data: no I/O and no framework imports. The
mutable form itself lives in form.py; these are the pieces it is built
from and the immutable values exchanged with collaborators.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum, IntEnum


class ValidationState(str, Enum):
    """
    Availability state of a username or email candidate.

    Transitions are driven only by FieldAvailabilityChecker:
    - IDLE: nothing to check (empty or below the minimum length)
    - CHECKING: a debounced check is pending or in flight
    - AVAILABLE / TAKEN: the backend answered for the latest edit
    - ERROR: local format check failed or the backend call failed
    """

    IDLE = "idle"
    CHECKING = "checking"
    AVAILABLE = "available"
    TAKEN = "taken"
    ERROR = "error"

    @property
    def message_key(self) -> str:
        """Localization key shown next to the field (empty for IDLE)."""
        if self is ValidationState.IDLE:
            return ""
        return f"registration.validation.{self.value}"


class RegistrationStep(str, Enum):
    """
    Wizard steps in their strict linear order.

    Declaration order is the navigation order; there are no cycles.
    """

    BASIC_INFO = "basic_info"
    LOCATION = "location"
    SPORTS_PREFERENCES = "sports_preferences"
    PROFILE = "profile"
    VERIFICATION = "verification"

    @property
    def index(self) -> int:
        return list(RegistrationStep).index(self)

    @property
    def progress(self) -> float:
        """Fraction of the wizard completed once this step is active."""
        return (self.index + 1) / len(RegistrationStep)

    @property
    def title_key(self) -> str:
        return f"registration.step.{self.value}"


class ExperienceLevel(IntEnum):
    """Self-declared experience, valued as the backend expects it."""

    BEGINNER = 1
    INTERMEDIATE = 2
    ADVANCED = 3
    EXPERT = 4


class Gender(IntEnum):
    MALE = 1
    FEMALE = 2
    OTHER = 3
    PREFER_NOT_TO_SAY = 4


@dataclass(frozen=True)
class Sport:
    """A selectable sport from the catalog. Identity is `id`."""

    id: int
    name: str
    description: str | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class Country:
    id: int
    name: str
    code: str


@dataclass(frozen=True)
class City:
    id: int
    name: str
    country_id: int


@dataclass(eq=False)
class SportSelection:
    """
    A sport the user picked, with their per-sport preferences.

    Equality and hashing follow the underlying sport's identity, so two
    selections of the same sport compare equal whatever their level,
    preference flag or notes.
    """

    sport: Sport
    experience_level: ExperienceLevel = ExperienceLevel.BEGINNER
    is_preferred: bool = False
    notes: str = ""

    @property
    def sport_id(self) -> int:
        return self.sport.id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SportSelection):
            return NotImplemented
        return self.sport.id == other.sport.id

    def __hash__(self) -> int:
        return hash(self.sport.id)


@dataclass(frozen=True)
class SelectedSport:
    """Immutable copy of a SportSelection inside a snapshot."""

    sport_id: int
    experience_level: ExperienceLevel
    is_preferred: bool
    notes: str


@dataclass(frozen=True)
class RegistrationSnapshot:
    """
    Immutable copy of the form handed to the registration service.

    Taken once at submission time so that edits made while the call is
    in flight cannot change what is being registered.
    """

    username: str
    email: str
    password: str
    confirm_password: str
    first_name: str
    last_name: str
    phone_number: str
    date_of_birth: date | None
    gender: Gender | None
    country_id: int | None
    city_id: int | None
    district: str
    overall_experience_level: ExperienceLevel
    selected_sports: tuple[SelectedSport, ...]
    bio: str
    about_me: str
    profile_image_url: str | None
    notes: str | None

    def __repr__(self) -> str:
        # Never leak the password through logs or tracebacks
        return f"RegistrationSnapshot(username={self.username!r}, email={self.email!r})"


@dataclass(frozen=True)
class Credentials:
    """Tokens and identity of a freshly registered account."""

    access_token: str
    refresh_token: str
    user_id: int
    username: str
    email: str


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome reported by the registration service."""

    success: bool
    message: str | None = None
    credentials: Credentials | None = None
    errors: tuple[str, ...] = field(default_factory=tuple)
