"""
Unit tests for RegistrationOrchestrator.

Tests verify:
- Gated navigation and submission on the final gated step
- Error message priority and per-field error flags
- Submission guards (taken availability, re-checked gates, single flight)
- Service failures leave the form intact
- Location loading, sport preferences and session lifecycle
"""

import asyncio
import logging
from collections.abc import Callable
from unittest.mock import AsyncMock, Mock

import pytest

from src.domain.exceptions import ServiceError, UnknownField
from src.domain.models import (
    ExperienceLevel,
    RegistrationResult,
    RegistrationSnapshot,
    RegistrationStep,
    ValidationState,
)
from src.domain.orchestrator import (
    COMPLETE_REQUIRED_FIELDS,
    EMAIL_TAKEN,
    UNKNOWN_ERROR,
    USERNAME_INVALID,
    USERNAME_TAKEN,
    RegistrationOrchestrator,
)
from tests.conftest import (
    BASKETBALL,
    CREDENTIALS,
    GEORGIA,
    ISTANBUL,
    SWIMMING,
    TBILISI,
    TENNIS,
    TURKEY,
    FakeAvailabilityService,
    FakeCatalog,
    fill_basic_info,
    settle,
)

OrchestratorFactory = Callable[..., RegistrationOrchestrator]


async def reach_sports_step(orchestrator: RegistrationOrchestrator) -> None:
    await fill_basic_info(orchestrator)
    assert await orchestrator.proceed()
    assert await orchestrator.proceed()
    assert orchestrator.current_step is RegistrationStep.SPORTS_PREFERENCES


class TestProceed:
    """Tests for gated navigation through proceed()."""

    async def test_valid_basic_info_advances(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator)

        assert orchestrator.session.form.username_availability is ValidationState.AVAILABLE
        assert orchestrator.can_proceed
        assert await orchestrator.proceed() is True
        assert orchestrator.current_step is RegistrationStep.LOCATION
        assert orchestrator.session.error_message == ""

    async def test_taken_username_rejects(self, make_orchestrator: OrchestratorFactory) -> None:
        """A TAKEN username keeps the wizard on step one with the taken message."""
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator, username="admin")

        assert orchestrator.session.form.username_availability is ValidationState.TAKEN
        assert await orchestrator.proceed() is False
        assert orchestrator.current_step is RegistrationStep.BASIC_INFO
        assert orchestrator.session.errors.username is True
        assert orchestrator.session.error_message == USERNAME_TAKEN

    async def test_location_step_is_ungated(self, make_orchestrator: OrchestratorFactory) -> None:
        """Location can be left empty; the wizard still moves on."""
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator)
        await orchestrator.proceed()

        assert await orchestrator.proceed() is True
        assert orchestrator.current_step is RegistrationStep.SPORTS_PREFERENCES

    async def test_zero_sports_blocks_then_selection_submits(
        self, make_orchestrator: OrchestratorFactory, registration: AsyncMock
    ) -> None:
        """Without a sport the step rejects; after selecting one proceed submits."""
        orchestrator = make_orchestrator()
        await reach_sports_step(orchestrator)

        assert await orchestrator.proceed() is False
        assert orchestrator.session.errors.sports is True
        assert orchestrator.session.error_message == COMPLETE_REQUIRED_FIELDS
        registration.register.assert_not_awaited()

        orchestrator.toggle_sport(BASKETBALL)
        assert orchestrator.session.errors.sports is False
        assert await orchestrator.proceed() is True

        registration.register.assert_awaited_once()
        assert orchestrator.session.completed is True
        assert orchestrator.session.credentials == CREDENTIALS
        assert orchestrator.current_step is RegistrationStep.SPORTS_PREFERENCES

    async def test_declared_steps_enforced_when_enabled(
        self, make_orchestrator: OrchestratorFactory
    ) -> None:
        orchestrator = make_orchestrator(enforce_declared_steps=True)
        await fill_basic_info(orchestrator)
        await orchestrator.proceed()

        assert await orchestrator.proceed() is False
        assert orchestrator.session.errors.location is True
        assert orchestrator.session.error_message == COMPLETE_REQUIRED_FIELDS

    async def test_proceed_past_final_step_submits(
        self, make_orchestrator: OrchestratorFactory, registration: AsyncMock
    ) -> None:
        """Reaching the profile step by a jump, proceed submits."""
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator)
        orchestrator.toggle_sport(TENNIS)
        orchestrator.jump_to(RegistrationStep.PROFILE)

        assert await orchestrator.proceed() is True
        registration.register.assert_awaited_once()


class TestErrorMessagePriority:
    """Tests for the single message chosen when step one is rejected."""

    async def test_taken_beats_password_policy(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        await fill_basic_info(
            orchestrator, username="admin", password="abcdefgh", confirm_password="abcdefgh"
        )
        await orchestrator.proceed()
        assert orchestrator.session.error_message == USERNAME_TAKEN

    async def test_taken_email(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator, email="taken@example.com")
        await orchestrator.proceed()

        assert orchestrator.session.error_message == EMAIL_TAKEN
        assert orchestrator.session.errors.email is True
        assert orchestrator.session.errors.username is False

    async def test_weak_password_reports_first_failing_rule(
        self, make_orchestrator: OrchestratorFactory
    ) -> None:
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator, password="abcdefgh", confirm_password="abcdefgh")
        await orchestrator.proceed()

        assert orchestrator.session.error_message == "registration.error.password_missing_uppercase"
        assert orchestrator.session.errors.password is True
        assert orchestrator.session.errors.confirm_password is False

    async def test_confirmation_mismatch(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator, confirm_password="Abcdefg2")
        await orchestrator.proceed()

        assert orchestrator.session.error_message == "registration.error.password_mismatch"
        assert orchestrator.session.errors.confirm_password is True

    async def test_malformed_username(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator, username="ab!")
        await orchestrator.proceed()

        assert orchestrator.session.error_message == USERNAME_INVALID
        assert orchestrator.session.errors.username is True

    async def test_failed_availability_check(
        self, make_orchestrator: OrchestratorFactory, availability: FakeAvailabilityService
    ) -> None:
        availability.failure = ServiceError()
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator)
        await orchestrator.proceed()

        assert orchestrator.session.error_message == "registration.validation.error"
        assert orchestrator.current_step is RegistrationStep.BASIC_INFO

    async def test_still_checking(
        self, make_orchestrator: OrchestratorFactory, availability: FakeAvailabilityService
    ) -> None:
        availability.hold("validUser2")
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator)
        orchestrator.update_field("username", "validUser2")
        await asyncio.sleep(0.01)

        assert await orchestrator.proceed() is False
        assert orchestrator.session.error_message == "registration.validation.checking"
        await orchestrator.close()

    async def test_missing_field_is_generic(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator, first_name="")
        await orchestrator.proceed()

        assert orchestrator.session.error_message == COMPLETE_REQUIRED_FIELDS
        assert orchestrator.session.errors.first_name is True
        assert orchestrator.session.errors.username is False


class TestFieldEdits:
    """Tests for update_field() and error flag clearing."""

    async def test_edit_clears_its_error_flag(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator, first_name="")
        await orchestrator.proceed()
        assert orchestrator.session.errors.first_name is True

        orchestrator.update_field("first_name", "Ada")

        assert orchestrator.session.errors.first_name is False

    async def test_district_clears_location_flag(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        orchestrator.session.errors.location = True
        orchestrator.update_field("district", "Kadikoy")
        assert orchestrator.session.errors.location is False

    async def test_unknown_field_raises(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        with pytest.raises(UnknownField):
            orchestrator.update_field("nickname", "x")

    async def test_password_feedback(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        orchestrator.update_field("password", "Abcdefg1")
        orchestrator.update_field("confirm_password", "Abcdefg")

        password, confirmation = orchestrator.password_feedback()

        assert password.valid
        assert confirmation.message_key == "registration.error.password_mismatch"

    async def test_availability_written_to_form(
        self, make_orchestrator: OrchestratorFactory, availability: FakeAvailabilityService
    ) -> None:
        orchestrator = make_orchestrator()
        orchestrator.update_field("email", "taken@example.com")
        assert orchestrator.session.form.email_availability is ValidationState.CHECKING

        await settle(orchestrator)

        assert orchestrator.session.form.email_availability is ValidationState.TAKEN
        assert availability.email_calls == ["taken@example.com"]


class TestSubmit:
    """Tests for submit() guards and outcomes."""

    async def test_taken_email_aborts_without_calling_service(
        self, make_orchestrator: OrchestratorFactory, registration: AsyncMock
    ) -> None:
        """A TAKEN email at submit time aborts even if the gate passed earlier."""
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator)
        orchestrator.toggle_sport(TENNIS)
        orchestrator.session.form.email_availability = ValidationState.TAKEN

        assert await orchestrator.submit() is False
        registration.register.assert_not_awaited()
        assert orchestrator.session.errors.email is True
        assert orchestrator.session.error_message == EMAIL_TAKEN

    async def test_submit_rechecks_earlier_steps(
        self, make_orchestrator: OrchestratorFactory, registration: AsyncMock
    ) -> None:
        """Jumping straight to sports with an empty first step cannot submit."""
        orchestrator = make_orchestrator()
        orchestrator.jump_to(RegistrationStep.SPORTS_PREFERENCES)
        orchestrator.toggle_sport(TENNIS)

        assert await orchestrator.proceed() is False
        registration.register.assert_not_awaited()
        assert orchestrator.session.errors.username is True
        assert orchestrator.session.error_message == "registration.error.password_required"

    async def test_snapshot_sent_to_service(
        self, make_orchestrator: OrchestratorFactory, registration: AsyncMock
    ) -> None:
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator)
        orchestrator.toggle_sport(SWIMMING)
        orchestrator.update_sport_preference(SWIMMING, True)

        await orchestrator.submit()

        snapshot = registration.register.await_args.args[0]
        assert isinstance(snapshot, RegistrationSnapshot)
        assert snapshot.username == "validUser"
        assert snapshot.selected_sports[0].sport_id == SWIMMING.id
        assert snapshot.selected_sports[0].is_preferred is True

    async def test_service_failure_keeps_form(
        self, make_orchestrator: OrchestratorFactory, registration: AsyncMock
    ) -> None:
        """A failed call shows the message and leaves every input intact."""
        registration.register.side_effect = ServiceError("Server down")
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator)
        orchestrator.toggle_sport(TENNIS)

        assert await orchestrator.submit() is False
        assert orchestrator.session.error_message == "Server down"
        assert orchestrator.session.is_loading is False
        assert orchestrator.session.completed is False
        assert orchestrator.session.form.username == "validUser"
        assert orchestrator.session.form.has_sport(TENNIS)

    async def test_service_failure_without_message(
        self,
        make_orchestrator: OrchestratorFactory,
        registration: AsyncMock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        registration.register.side_effect = ServiceError()
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator)
        orchestrator.toggle_sport(TENNIS)

        with caplog.at_level(logging.WARNING):
            await orchestrator.submit()

        assert orchestrator.session.error_message == UNKNOWN_ERROR
        assert "Registration call failed" in caplog.text

    async def test_rejected_registration_shows_backend_message(
        self, make_orchestrator: OrchestratorFactory, registration: AsyncMock
    ) -> None:
        registration.register.return_value = RegistrationResult(
            success=False, message="registration.error.email_taken"
        )
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator)
        orchestrator.toggle_sport(TENNIS)

        assert await orchestrator.submit() is False
        assert orchestrator.session.error_message == "registration.error.email_taken"
        assert orchestrator.session.credentials is None

    async def test_success_without_credentials_is_failure(
        self, make_orchestrator: OrchestratorFactory, registration: AsyncMock
    ) -> None:
        registration.register.return_value = RegistrationResult(success=True)
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator)
        orchestrator.toggle_sport(TENNIS)

        assert await orchestrator.submit() is False
        assert orchestrator.session.error_message == UNKNOWN_ERROR

    async def test_credentials_handed_to_store(
        self, make_orchestrator: OrchestratorFactory
    ) -> None:
        store = Mock()
        orchestrator = make_orchestrator(credential_store=store)
        await fill_basic_info(orchestrator)
        orchestrator.toggle_sport(TENNIS)

        assert await orchestrator.submit() is True
        store.save.assert_called_once_with(CREDENTIALS)

    async def test_single_flight_and_frozen_snapshot(
        self, make_orchestrator: OrchestratorFactory, registration: AsyncMock
    ) -> None:
        """While loading a second submit is refused and edits do not reach the call."""
        release = asyncio.Event()

        async def slow_register(snapshot: RegistrationSnapshot) -> RegistrationResult:
            await release.wait()
            return RegistrationResult(success=True, credentials=CREDENTIALS)

        registration.register.side_effect = slow_register
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator)
        orchestrator.toggle_sport(TENNIS)

        first = asyncio.create_task(orchestrator.submit())
        await asyncio.sleep(0.01)
        assert orchestrator.session.is_loading is True

        assert await orchestrator.submit() is False
        orchestrator.update_field("username", "changedName")
        release.set()

        assert await first is True
        registration.register.assert_awaited_once()
        assert registration.register.await_args.args[0].username == "validUser"
        await orchestrator.close()

    async def test_completed_session_does_not_resubmit(
        self, make_orchestrator: OrchestratorFactory, registration: AsyncMock
    ) -> None:
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator)
        orchestrator.toggle_sport(TENNIS)
        await orchestrator.submit()

        assert await orchestrator.submit() is False
        registration.register.assert_awaited_once()


class TestGoBack:
    """Tests for go_back()."""

    async def test_first_step_dismisses(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        assert orchestrator.go_back() is False
        assert orchestrator.session.dismissed is True
        assert orchestrator.current_step is RegistrationStep.BASIC_INFO

    async def test_back_is_ungated(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        orchestrator.jump_to(RegistrationStep.SPORTS_PREFERENCES)

        assert orchestrator.go_back() is True
        assert orchestrator.current_step is RegistrationStep.LOCATION
        assert orchestrator.session.dismissed is False


class TestLocation:
    """Tests for country / city selection."""

    async def test_select_country_loads_cities(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        await orchestrator.select_country(TURKEY)

        assert orchestrator.session.form.country == TURKEY
        assert orchestrator.session.cities == [ISTANBUL]

    async def test_changing_country_clears_stale_city(
        self, make_orchestrator: OrchestratorFactory
    ) -> None:
        orchestrator = make_orchestrator()
        await orchestrator.select_country(TURKEY)
        orchestrator.select_city(ISTANBUL)

        await orchestrator.select_country(GEORGIA)

        assert orchestrator.session.form.city is None
        assert orchestrator.session.cities == [TBILISI]

    async def test_clearing_country(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        await orchestrator.select_country(TURKEY)
        orchestrator.select_city(ISTANBUL)

        await orchestrator.select_country(None)

        assert orchestrator.session.form.city is None
        assert orchestrator.session.cities == []

    async def test_selecting_clears_location_flag(
        self, make_orchestrator: OrchestratorFactory
    ) -> None:
        orchestrator = make_orchestrator()
        orchestrator.session.errors.location = True
        orchestrator.select_city(ISTANBUL)
        assert orchestrator.session.errors.location is False


class TestSports:
    """Tests for sport lookup and per-sport preferences."""

    async def test_find_sport_in_catalog(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        await orchestrator.open()

        assert orchestrator.find_sport(TENNIS.id) == TENNIS
        assert orchestrator.find_sport(999) is None

    async def test_preferences_follow_identity(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        orchestrator.toggle_sport(BASKETBALL)
        orchestrator.toggle_sport(TENNIS)

        orchestrator.update_sport_experience(TENNIS, ExperienceLevel.ADVANCED)
        orchestrator.update_sport_notes(TENNIS, "Clay courts")
        orchestrator.toggle_sport(BASKETBALL)

        selection = orchestrator.session.form.find_selection(TENNIS.id)
        assert selection.experience_level is ExperienceLevel.ADVANCED
        assert selection.notes == "Clay courts"

    async def test_updating_unselected_sport_is_ignored(
        self, make_orchestrator: OrchestratorFactory
    ) -> None:
        orchestrator = make_orchestrator()
        orchestrator.update_sport_preference(SWIMMING, True)
        assert orchestrator.session.form.selected_sports == []


class TestLifecycle:
    """Tests for open(), reset() and close()."""

    async def test_open_loads_catalog_and_countries(
        self, make_orchestrator: OrchestratorFactory
    ) -> None:
        orchestrator = make_orchestrator()
        await orchestrator.open()

        assert orchestrator.session.available_sports == [BASKETBALL, TENNIS, SWIMMING]
        assert orchestrator.session.countries == [TURKEY, GEORGIA]
        assert orchestrator.session.error_message == ""

    async def test_open_failure_surfaces_message(
        self, make_orchestrator: OrchestratorFactory, catalog: FakeCatalog
    ) -> None:
        """A catalog failure is shown but does not stop the countries loading."""
        catalog.failure = ServiceError("Sports unavailable")
        orchestrator = make_orchestrator()
        await orchestrator.open()

        assert orchestrator.session.error_message == "Sports unavailable"
        assert orchestrator.session.available_sports == []
        assert orchestrator.session.countries == [TURKEY, GEORGIA]

    async def test_reset_starts_over(self, make_orchestrator: OrchestratorFactory) -> None:
        orchestrator = make_orchestrator()
        await fill_basic_info(orchestrator, username="admin")
        await orchestrator.proceed()

        orchestrator.reset()

        assert orchestrator.current_step is RegistrationStep.BASIC_INFO
        assert orchestrator.session.form.username == ""
        assert orchestrator.session.error_message == ""
        assert not any(orchestrator.session.errors.as_dict().values())
        assert orchestrator.username_checker.state is ValidationState.IDLE

    async def test_close_cancels_pending_checks(
        self, make_orchestrator: OrchestratorFactory, availability: FakeAvailabilityService
    ) -> None:
        orchestrator = make_orchestrator(debounce_seconds=10)
        orchestrator.update_field("username", "validUser")

        await orchestrator.close()

        assert not orchestrator.username_checker.pending
        assert availability.username_calls == []
