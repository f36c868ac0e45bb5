import pytest

from storyshelf.safety import Accepted, Rejected
from storyshelf.validation import (
    INVALID_EMAIL,
    PASSWORDS_MISMATCH,
    WEAK_PASSWORD,
    validate_email,
    validate_password,
    validate_password_match,
    validate_sign_up,
)


class TestEmail:
    @pytest.mark.parametrize("email", [
        "ada@example.com",
        "ada.lovelace+stories@mail.example.co.uk",
        "A_B%c-d@sub-domain.io",
    ])
    def test_valid(self, email):
        assert validate_email(email) == Accepted(email)

    @pytest.mark.parametrize("email", [
        "",
        "   ",
        "ada",
        "ada@example",
        "ada@example.c",
        "ada lovelace@example.com",
        "@example.com",
    ])
    def test_invalid(self, email):
        result = validate_email(email)
        assert isinstance(result, Rejected)
        assert result.reason == INVALID_EMAIL

    def test_surrounding_whitespace_is_trimmed(self):
        assert validate_email("  ada@example.com\n") == Accepted("ada@example.com")


class TestPassword:
    def test_strong(self):
        assert validate_password("Secret123").is_valid

    @pytest.mark.parametrize("password", [
        "Sec1et",       # too short
        "secret123",    # no upper case
        "SECRET123",    # no lower case
        "SecretWord",   # no digit
    ])
    def test_weak(self, password):
        result = validate_password(password)
        assert not result.is_valid
        assert result.reason == WEAK_PASSWORD

    def test_exactly_eight_characters(self):
        assert validate_password("Abcdefg1").is_valid

    def test_match(self):
        assert validate_password_match("Secret123", "Secret123").is_valid
        assert validate_password_match("Secret123", "secret123") == Rejected(reason=PASSWORDS_MISMATCH)


class TestSignUp:
    def test_first_failure_wins(self):
        result = validate_sign_up("not-an-email", "weak", "other")
        assert result.reason == INVALID_EMAIL

    def test_confirmation_checked_last(self):
        result = validate_sign_up("ada@example.com", "Secret123", "Secret12")
        assert result.reason == PASSWORDS_MISMATCH

    def test_confirmation_optional(self):
        assert validate_sign_up(" ada@example.com", "Secret123") == Accepted("ada@example.com")
