"""
Step controller - The wizard's step state machine.

States are the RegistrationStep values in declaration order. Initial
state is BASIC_INFO.

Transitions
===========

    advance()   gated by is_step_satisfied(current); moves one step
                forward, or reports SUBMIT when the current step is the
                final gated step (or past it)
    retreat()   ungated; one step back, no-op on the first step
    jump_to(s)  ungated direct navigation (step indicator taps)

Gating
======

Only BASIC_INFO and SPORTS_PREFERENCES carry an advance gate by default.
LOCATION and PROFILE declare field requirements on the form, but those
are consulted only when the controller runs with enforce_declared_steps.
"""

import logging
from collections.abc import Callable
from enum import Enum

from .form import RegistrationFormState
from .formats import is_valid_email
from .models import RegistrationStep, ValidationState
from .password_policy import validate_confirmation, validate_password

logger = logging.getLogger(__name__)

# Structural pre-check, weaker than the password policy
MIN_STRUCTURAL_PASSWORD_LENGTH = 6

FINAL_GATED_STEP = RegistrationStep.SPORTS_PREFERENCES

_ACCEPTABLE_AVAILABILITY = frozenset({ValidationState.AVAILABLE, ValidationState.IDLE})


class StepAdvance(Enum):
    """Outcome of StepController.advance()."""

    BLOCKED = "blocked"
    ADVANCED = "advanced"
    SUBMIT = "submit"


def is_basic_info_satisfied(form: RegistrationFormState) -> bool:
    """Advance gate of the first step."""
    required = (
        form.username,
        form.email,
        form.password,
        form.confirm_password,
        form.first_name,
        form.last_name,
        form.phone_number,
    )
    if not all(required):
        return False
    if len(form.password) < MIN_STRUCTURAL_PASSWORD_LENGTH or form.password != form.confirm_password:
        return False
    if not is_valid_email(form.email):
        return False
    if not validate_password(form.password).valid:
        return False
    if not validate_confirmation(form.password, form.confirm_password).valid:
        return False
    availability = (form.username_availability, form.email_availability)
    if ValidationState.TAKEN in availability:
        return False
    return all(state in _ACCEPTABLE_AVAILABILITY for state in availability)


def is_step_satisfied(
    form: RegistrationFormState,
    step: RegistrationStep,
    enforce_declared_steps: bool = False,
) -> bool:
    """
    Whether the wizard may advance past `step` with the current inputs.

    Evaluated at decision time from the live form; never cached.
    """
    if step is RegistrationStep.BASIC_INFO:
        return is_basic_info_satisfied(form)
    if step is RegistrationStep.SPORTS_PREFERENCES:
        return bool(form.selected_sports)
    if enforce_declared_steps and step in (RegistrationStep.LOCATION, RegistrationStep.PROFILE):
        return form.is_step_complete(step)
    return True


class StepController:
    """
    Holds the active step and applies gated transitions.

    The gate is passed in as a predicate so the controller stays
    independent of where the form lives.
    """

    def __init__(
        self,
        gate: Callable[[RegistrationStep], bool],
        final_step: RegistrationStep = FINAL_GATED_STEP,
        initial_step: RegistrationStep = RegistrationStep.BASIC_INFO,
    ) -> None:
        self._gate = gate
        self._final_step = final_step
        self._current = initial_step

    @property
    def current(self) -> RegistrationStep:
        return self._current

    @property
    def final_step(self) -> RegistrationStep:
        return self._final_step

    @property
    def is_first_step(self) -> bool:
        return self._current.index == 0

    @property
    def is_final_step(self) -> bool:
        """True when advancing from here submits instead of moving on."""
        return self._current.index >= self._final_step.index

    def is_step_satisfied(self, step: RegistrationStep | None = None) -> bool:
        return self._gate(step or self._current)

    def advance(self) -> StepAdvance:
        if not self._gate(self._current):
            return StepAdvance.BLOCKED
        if self.is_final_step:
            return StepAdvance.SUBMIT
        steps = list(RegistrationStep)
        self._move(steps[self._current.index + 1])
        return StepAdvance.ADVANCED

    def retreat(self) -> bool:
        """
        Move one step back without re-validating the step being left.

        Returns:
            False if already on the first step (nothing happens)
        """
        if self.is_first_step:
            return False
        steps = list(RegistrationStep)
        self._move(steps[self._current.index - 1])
        return True

    def jump_to(self, step: RegistrationStep) -> None:
        self._move(step)

    def reset(self) -> None:
        self._move(RegistrationStep.BASIC_INFO)

    def _move(self, step: RegistrationStep) -> None:
        if step is not self._current:
            logger.debug("Step %s -> %s", self._current.value, step.value)
        self._current = step
