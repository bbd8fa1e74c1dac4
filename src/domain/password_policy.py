"""
Password policy - Pure strength and confirmation checks.

Rules (checked in this order, first failure wins):
1. Not empty
2. At least 8 characters
3. At least one lowercase letter (a-z)
4. At least one uppercase letter (A-Z)
5. At least one digit (0-9)

The confirmation must be non-empty and equal to the password.

Nothing here has side effects; callers re-run the checks on every
evaluation instead of caching results.
"""

import re
from dataclasses import dataclass
from enum import Enum

MIN_PASSWORD_LENGTH = 8

_LOWERCASE = re.compile(r"[a-z]")
_UPPERCASE = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"[0-9]")


class PasswordIssue(str, Enum):
    """Reason a password or its confirmation was rejected."""

    REQUIRED = "password_required"
    TOO_SHORT = "password_too_short"
    MISSING_LOWERCASE = "password_missing_lowercase"
    MISSING_UPPERCASE = "password_missing_uppercase"
    MISSING_DIGIT = "password_missing_number"
    CONFIRMATION_REQUIRED = "confirm_password_required"
    MISMATCH = "password_mismatch"


@dataclass(frozen=True)
class PolicyResult:
    """Outcome of a policy check: valid, or the first failing reason."""

    valid: bool
    reason: PasswordIssue | None = None

    @property
    def message_key(self) -> str | None:
        if self.reason is None:
            return None
        return f"registration.error.{self.reason.value}"


_VALID = PolicyResult(valid=True)


def validate_password(password: str) -> PolicyResult:
    """
    Check password strength.

    Args:
        password: Candidate password as typed

    Returns:
        PolicyResult with the highest-priority failing reason, if any
    """
    if not password:
        return PolicyResult(False, PasswordIssue.REQUIRED)
    if len(password) < MIN_PASSWORD_LENGTH:
        return PolicyResult(False, PasswordIssue.TOO_SHORT)
    if not _LOWERCASE.search(password):
        return PolicyResult(False, PasswordIssue.MISSING_LOWERCASE)
    if not _UPPERCASE.search(password):
        return PolicyResult(False, PasswordIssue.MISSING_UPPERCASE)
    if not _DIGIT.search(password):
        return PolicyResult(False, PasswordIssue.MISSING_DIGIT)
    return _VALID


def validate_confirmation(password: str, confirm: str) -> PolicyResult:
    """Check that the confirmation was entered and matches the password."""
    if not confirm:
        return PolicyResult(False, PasswordIssue.CONFIRMATION_REQUIRED)
    if confirm != password:
        return PolicyResult(False, PasswordIssue.MISMATCH)
    return _VALID


def password_requirements(password: str) -> dict[str, bool]:
    """Per-rule checklist for strength indicators next to the field."""
    return {
        "min_length": len(password) >= MIN_PASSWORD_LENGTH,
        "lowercase": bool(_LOWERCASE.search(password)),
        "uppercase": bool(_UPPERCASE.search(password)),
        "digit": bool(_DIGIT.search(password)),
    }
