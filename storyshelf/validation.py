"""Email and password checks run before an account is created."""

import re
from typing import Optional

from .safety import Accepted, Rejected, ValidationResult

EMAIL_PATTERN = re.compile(r"[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,64}")
MIN_PASSWORD_LENGTH = 8

INVALID_EMAIL = "Please enter a valid email address."
WEAK_PASSWORD = (
    f"Password must be at least {MIN_PASSWORD_LENGTH} characters and include "
    "upper and lower case letters and a number."
)
PASSWORDS_MISMATCH = "Passwords do not match."


def validate_email(email: str) -> ValidationResult:
    """Accepts the trimmed address."""
    trimmed = email.strip()
    if not trimmed or EMAIL_PATTERN.fullmatch(trimmed) is None:
        return Rejected(reason=INVALID_EMAIL)
    return Accepted(trimmed)


def validate_password(password: str) -> ValidationResult:
    if len(password) < MIN_PASSWORD_LENGTH:
        return Rejected(reason=WEAK_PASSWORD)
    if not (re.search(r"[A-Z]", password) and re.search(r"[a-z]", password) and re.search(r"[0-9]", password)):
        return Rejected(reason=WEAK_PASSWORD)
    return Accepted(password)


def validate_password_match(password: str, confirm_password: str) -> ValidationResult:
    if password != confirm_password:
        return Rejected(reason=PASSWORDS_MISMATCH)
    return Accepted(password)


def validate_sign_up(email: str, password: str, confirm_password: Optional[str] = None) -> ValidationResult:
    """First failing check wins; on success the result carries the trimmed email."""
    result = validate_email(email)
    if not result.is_valid:
        return result
    trimmed = result.text

    result = validate_password(password)
    if not result.is_valid:
        return result

    if confirm_password is not None:
        result = validate_password_match(password, confirm_password)
        if not result.is_valid:
            return result

    return Accepted(trimmed)
