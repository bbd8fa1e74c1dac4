"""
Cheap local format checks for username and email.

These run before any network call; a value failing them is never sent
to the availability service.
"""

import re

USERNAME_MIN_LENGTH = 3

_USERNAME_RE = re.compile(r"[a-zA-Z0-9_]{3,20}")
_EMAIL_RE = re.compile(r"[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")


def is_valid_username(username: str) -> bool:
    """3-20 characters, letters, digits and underscore only."""
    return _USERNAME_RE.fullmatch(username) is not None


def is_valid_email(email: str) -> bool:
    """local@domain.tld with a TLD of at least two letters."""
    return _EMAIL_RE.fullmatch(email) is not None
