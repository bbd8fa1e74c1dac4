"""
Registration orchestrator - Drives one wizard session end to end.

Translates user intent (edit a field, go next, go back, toggle a sport,
submit) into coordinated calls across the password policy, the two
availability checkers, the step controller and the external services.

Side effects are confined to the RegistrationSession (form, availability
states, error flags, message, loading/completed flags) and the active
step. The availability network layer is only ever reached through the
FieldAvailabilityChecker instances.

Error message priority when a step is rejected:
1. username / email reported taken
2. password policy (strength, then confirmation)
3. username / email failing their format or availability check
4. availability still being checked
5. generic "complete required fields"
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date

from .availability import DEFAULT_DEBOUNCE_SECONDS, AvailabilityField, FieldAvailabilityChecker
from .exceptions import ServiceError, UnknownField
from .form import TEXT_FIELDS, FieldErrors, RegistrationFormState
from .formats import is_valid_email, is_valid_username
from .models import (
    City,
    Country,
    Credentials,
    ExperienceLevel,
    Gender,
    RegistrationResult,
    RegistrationStep,
    Sport,
    ValidationState,
)
from .password_policy import PolicyResult, validate_confirmation, validate_password
from .ports import (
    AvailabilityService,
    CredentialStore,
    LocationDirectory,
    RegistrationService,
    SportsCatalog,
)
from .steps import StepAdvance, StepController, is_step_satisfied

logger = logging.getLogger(__name__)

USERNAME_TAKEN = "registration.error.username_taken"
EMAIL_TAKEN = "registration.error.email_taken"
USERNAME_INVALID = "registration.error.username_invalid"
EMAIL_INVALID = "registration.error.invalid_email"
COMPLETE_REQUIRED_FIELDS = "registration.error.complete_required_fields"
UNKNOWN_ERROR = "registration.error.unknown"

# Field edits that clear a differently named error flag
_ERROR_FLAG_FOR_FIELD = {
    "district": "location",
    "bio": "profile",
    "about_me": "profile",
}


@dataclass
class RegistrationSession:
    """
    Explicit state of one wizard attempt.

    Created fresh when the wizard opens and passed by reference to the
    orchestrator; there is no ambient or global session.
    """

    form: RegistrationFormState = field(default_factory=RegistrationFormState)
    errors: FieldErrors = field(default_factory=FieldErrors)
    error_message: str = ""
    is_loading: bool = False
    completed: bool = False
    dismissed: bool = False
    credentials: Credentials | None = None
    available_sports: list[Sport] = field(default_factory=list)
    countries: list[Country] = field(default_factory=list)
    cities: list[City] = field(default_factory=list)

    @property
    def show_error(self) -> bool:
        return bool(self.error_message)


class RegistrationOrchestrator:
    """Glue layer between user intent and the wizard components."""

    def __init__(
        self,
        availability: AvailabilityService,
        registration: RegistrationService,
        sports_catalog: SportsCatalog,
        locations: LocationDirectory | None = None,
        credential_store: CredentialStore | None = None,
        session: RegistrationSession | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        enforce_declared_steps: bool = False,
    ) -> None:
        self.session = session or RegistrationSession()
        self._registration = registration
        self._sports_catalog = sports_catalog
        self._locations = locations
        self._credential_store = credential_store
        self._enforce_declared_steps = enforce_declared_steps

        self.steps = StepController(gate=self._gate)
        self.username_checker = FieldAvailabilityChecker(
            AvailabilityField.USERNAME,
            availability.check_username,
            on_change=self._on_username_state,
            debounce_seconds=debounce_seconds,
        )
        self.email_checker = FieldAvailabilityChecker(
            AvailabilityField.EMAIL,
            availability.check_email,
            on_change=self._on_email_state,
            debounce_seconds=debounce_seconds,
        )

    @property
    def current_step(self) -> RegistrationStep:
        return self.steps.current

    @property
    def can_proceed(self) -> bool:
        return self.steps.is_step_satisfied()

    # Lifecycle

    async def open(self) -> None:
        """Load the sports catalog and countries; failures do not block the wizard."""
        try:
            self.session.available_sports = await self._sports_catalog.list_available_sports()
        except ServiceError as exc:
            self._surface(exc)
        if self._locations is not None:
            try:
                self.session.countries = await self._locations.list_countries()
            except ServiceError as exc:
                self._surface(exc)

    async def close(self) -> None:
        """Cancel pending availability checks and wait for them to unwind."""
        self.username_checker.cancel()
        self.email_checker.cancel()
        await self.username_checker.wait_idle()
        await self.email_checker.wait_idle()

    def reset(self) -> None:
        """Start over with an empty form on the first step."""
        self.session.form = RegistrationFormState()
        self.session.errors.clear_all()
        self.session.error_message = ""
        self.session.completed = False
        self.session.dismissed = False
        self.session.credentials = None
        self.username_checker.reset()
        self.email_checker.reset()
        self.steps.reset()

    # Field edits

    def update_field(self, name: str, value: str) -> None:
        """
        Apply one edit to a text field.

        Clears the field's error flag and, for username and email, feeds
        the availability checker. Must run on the session's event loop.

        Raises:
            UnknownField: If the form has no such text field
        """
        if name not in TEXT_FIELDS:
            raise UnknownField(name)
        setattr(self.session.form, name, value)
        self.session.errors.clear(_ERROR_FLAG_FOR_FIELD.get(name, name))

        if name == "username":
            self.username_checker.update(value)
        elif name == "email":
            self.email_checker.update(value)

    def set_date_of_birth(self, value: date | None) -> None:
        self.session.form.date_of_birth = value

    def set_gender(self, value: Gender | None) -> None:
        self.session.form.gender = value

    def set_overall_experience(self, level: ExperienceLevel) -> None:
        self.session.form.overall_experience_level = level

    async def select_country(self, country: Country | None) -> None:
        """Select a country and load its cities; the latest selection wins."""
        form = self.session.form
        form.country = country
        self.session.errors.location = False
        if country is None or self._locations is None:
            self.session.cities = []
            form.city = None
            return

        try:
            cities = await self._locations.list_cities(country.id)
        except ServiceError as exc:
            self._surface(exc)
            return
        if self.session.form is not form or form.country != country:
            return
        self.session.cities = cities
        if form.city is not None and form.city.country_id != country.id:
            form.city = None

    def select_city(self, city: City | None) -> None:
        self.session.form.city = city
        self.session.errors.location = False

    def password_feedback(self) -> tuple[PolicyResult, PolicyResult]:
        form = self.session.form
        return (
            validate_password(form.password),
            validate_confirmation(form.password, form.confirm_password),
        )

    # Sports

    def find_sport(self, sport_id: int) -> Sport | None:
        """Look a sport up in the catalog, then among current selections."""
        for sport in self.session.available_sports:
            if sport.id == sport_id:
                return sport
        selection = self.session.form.find_selection(sport_id)
        return selection.sport if selection else None

    def toggle_sport(self, sport: Sport) -> bool:
        selected = self.session.form.toggle_sport(sport)
        self.session.errors.sports = False
        return selected

    def update_sport_experience(self, sport: Sport, level: ExperienceLevel) -> None:
        selection = self.session.form.find_selection(sport.id)
        if selection is not None:
            selection.experience_level = level

    def update_sport_preference(self, sport: Sport, is_preferred: bool) -> None:
        selection = self.session.form.find_selection(sport.id)
        if selection is not None:
            selection.is_preferred = is_preferred

    def update_sport_notes(self, sport: Sport, notes: str) -> None:
        selection = self.session.form.find_selection(sport.id)
        if selection is not None:
            selection.notes = notes

    # Navigation

    async def proceed(self) -> bool:
        """
        Advance past the current step, submitting on the final gated step.

        Returns:
            True if the wizard moved forward or the submission succeeded
        """
        step = self.steps.current
        outcome = self.steps.advance()
        if outcome is StepAdvance.BLOCKED:
            self._reject(step)
            return False

        self.session.error_message = ""
        if outcome is StepAdvance.SUBMIT:
            return await self.submit()
        return True

    def go_back(self) -> bool:
        """
        Return to the previous step; on the first step dismiss the wizard.

        Returns:
            True if the step changed
        """
        if self.steps.retreat():
            return True
        self.session.dismissed = True
        return False

    def jump_to(self, step: RegistrationStep) -> None:
        self.steps.jump_to(step)

    # Submission

    async def submit(self) -> bool:
        """
        Register the account from a snapshot of the form.

        Re-checks availability and every gated step first, since a check
        may have resolved to TAKEN after the gate was last evaluated.
        The service call is shielded from cancellation once dispatched.

        Returns:
            True on successful registration
        """
        session = self.session
        if session.is_loading or session.completed:
            return False

        form = session.form
        if form.username_availability is ValidationState.TAKEN:
            session.errors.username = True
            session.error_message = USERNAME_TAKEN
            logger.info("Submission aborted: username taken")
            return False
        if form.email_availability is ValidationState.TAKEN:
            session.errors.email = True
            session.error_message = EMAIL_TAKEN
            logger.info("Submission aborted: email taken")
            return False
        for step in list(RegistrationStep)[: self.steps.final_step.index + 1]:
            if not self._gate(step):
                self._reject(step)
                logger.info("Submission aborted: %s not satisfied", step.value)
                return False

        snapshot = form.snapshot()
        session.is_loading = True
        session.error_message = ""
        submission = asyncio.ensure_future(self._registration.register(snapshot))
        submission.add_done_callback(self._finish_submission)
        try:
            await asyncio.shield(submission)
        except ServiceError:
            return False
        return session.completed

    # Internals

    def _finish_submission(self, submission: "asyncio.Future[RegistrationResult]") -> None:
        """Record the outcome of a registration call, even if its caller was cancelled."""
        session = self.session
        session.is_loading = False
        if submission.cancelled():
            logger.warning("Registration call cancelled")
            session.error_message = UNKNOWN_ERROR
            return
        exc = submission.exception()
        if isinstance(exc, ServiceError):
            logger.warning("Registration call failed: %s", exc)
            session.error_message = exc.message or UNKNOWN_ERROR
            return
        if exc is not None:
            logger.error("Registration call raised %s", type(exc).__name__)
            session.error_message = UNKNOWN_ERROR
            return

        result = submission.result()
        if not result.success or result.credentials is None:
            logger.info("Registration rejected: %s", result.message)
            session.error_message = result.message or UNKNOWN_ERROR
            return

        if self._credential_store is not None:
            self._credential_store.save(result.credentials)
        session.credentials = result.credentials
        session.completed = True
        logger.info("Registration completed for user %s", result.credentials.user_id)

    def _gate(self, step: RegistrationStep) -> bool:
        return is_step_satisfied(self.session.form, step, self._enforce_declared_steps)

    def _on_username_state(self, state: ValidationState) -> None:
        self.session.form.username_availability = state

    def _on_email_state(self, state: ValidationState) -> None:
        self.session.form.email_availability = state

    def _surface(self, exc: ServiceError) -> None:
        logger.warning("Loading wizard data failed: %s", exc)
        self.session.error_message = exc.message or UNKNOWN_ERROR

    def _reject(self, step: RegistrationStep) -> None:
        """Flag every offending field of `step` and pick one message."""
        form = self.session.form
        errors = self.session.errors

        if step is RegistrationStep.BASIC_INFO:
            unusable = (ValidationState.TAKEN, ValidationState.ERROR)
            errors.username = not form.username or form.username_availability in unusable
            errors.email = (
                not form.email
                or not is_valid_email(form.email)
                or form.email_availability in unusable
            )
            password, confirmation = self.password_feedback()
            errors.password = not password.valid
            errors.confirm_password = not confirmation.valid
            errors.first_name = not form.first_name
            errors.last_name = not form.last_name
            errors.phone_number = not form.phone_number
            self.session.error_message = self._basic_info_message(password, confirmation)
            return

        if step is RegistrationStep.LOCATION:
            errors.location = not form.is_step_complete(step)
        elif step is RegistrationStep.SPORTS_PREFERENCES:
            errors.sports = not form.selected_sports
        elif step is RegistrationStep.PROFILE:
            errors.profile = not form.is_step_complete(step)
        self.session.error_message = COMPLETE_REQUIRED_FIELDS

    def _basic_info_message(self, password: PolicyResult, confirmation: PolicyResult) -> str:
        form = self.session.form
        username_state = form.username_availability
        email_state = form.email_availability

        if username_state is ValidationState.TAKEN:
            return USERNAME_TAKEN
        if email_state is ValidationState.TAKEN:
            return EMAIL_TAKEN
        if not password.valid:
            return password.message_key
        if not confirmation.valid:
            return confirmation.message_key
        if username_state is ValidationState.ERROR:
            return USERNAME_INVALID if not is_valid_username(form.username) else username_state.message_key
        if email_state is ValidationState.ERROR:
            return EMAIL_INVALID if not is_valid_email(form.email) else email_state.message_key
        if ValidationState.CHECKING in (username_state, email_state):
            return ValidationState.CHECKING.message_key
        return COMPLETE_REQUIRED_FIELDS
