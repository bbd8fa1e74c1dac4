"""
Domain layer - Pure wizard logic with zero framework imports.

This package contains the registration wizard core: the password policy,
the debounced availability checkers, the form state, the step state
machine and the orchestrator tying them together. It defines its own
port interfaces for the external services, so adapters stay replaceable.
"""

from .availability import AvailabilityField, FieldAvailabilityChecker
from .exceptions import RegistrationError, ServiceError, SessionNotFound, UnknownField
from .form import FieldErrors, RegistrationFormState
from .models import (
    City,
    Country,
    Credentials,
    ExperienceLevel,
    Gender,
    RegistrationResult,
    RegistrationSnapshot,
    RegistrationStep,
    Sport,
    SportSelection,
    ValidationState,
)
from .orchestrator import RegistrationOrchestrator, RegistrationSession
from .password_policy import PasswordIssue, PolicyResult, validate_confirmation, validate_password
from .ports import (
    AvailabilityService,
    CredentialStore,
    LocationDirectory,
    RegistrationService,
    SportsCatalog,
)
from .steps import StepAdvance, StepController, is_step_satisfied

__all__ = [
    "AvailabilityField",
    "AvailabilityService",
    "City",
    "Country",
    "CredentialStore",
    "Credentials",
    "ExperienceLevel",
    "FieldAvailabilityChecker",
    "FieldErrors",
    "Gender",
    "LocationDirectory",
    "PasswordIssue",
    "PolicyResult",
    "RegistrationError",
    "RegistrationFormState",
    "RegistrationOrchestrator",
    "RegistrationResult",
    "RegistrationService",
    "RegistrationSession",
    "RegistrationSnapshot",
    "RegistrationStep",
    "ServiceError",
    "SessionNotFound",
    "Sport",
    "SportSelection",
    "SportsCatalog",
    "StepAdvance",
    "StepController",
    "UnknownField",
    "ValidationState",
    "is_step_satisfied",
    "validate_confirmation",
    "validate_password",
]
