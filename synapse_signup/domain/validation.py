"""
Input validation for registration submissions.

Pure functions of the submitted fields plus static configuration.
The browser form validates the same rules, but only as a convenience;
these checks are the authoritative ones.
"""

import re
import secrets
from dataclasses import dataclass

from .exceptions import ValidationError
from .ports import RegistrationRequest, RegistrationState

USERNAME_PATTERN = re.compile(r"^[a-z0-9]+$")
_WHITESPACE = re.compile(r"\s")


@dataclass(frozen=True)
class ValidSubmission:
    """Normalized fields that passed every local check."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"ValidSubmission(username={self.username!r})"


def normalize_username(username: str) -> str:
    return username.lower()


def is_valid_username(username: str) -> bool:
    return USERNAME_PATTERN.fullmatch(username) is not None


def is_valid_password(password: str, confirmation: str, min_length: int) -> bool:
    """Length, confirmation match and no whitespace anywhere."""
    if len(password) < min_length:
        return False
    if _WHITESPACE.search(password):
        return False
    return secrets.compare_digest(password.encode(), confirmation.encode())


def is_token_ok(token: str, expected_token: str) -> bool:
    """Constant-time comparison of the user-facing token."""
    return secrets.compare_digest(token.encode(), expected_token.encode())


def validate_submission(
    request: RegistrationRequest,
    *,
    expected_token: str,
    min_password_length: int,
) -> ValidSubmission:
    """
    Validate and normalize a registration submission.

    Username and password are checked before the token, so a malformed
    submission reports INVALID_USER_OR_PASS even when the token is wrong.

    Args:
        request: Raw form submission
        expected_token: Configured user-facing token
        min_password_length: Minimum accepted password length

    Returns:
        ValidSubmission with the lower-cased username

    Raises:
        ValidationError: With state INVALID_USER_OR_PASS or INVALID_TOKEN
    """
    username = normalize_username(request.username)
    if not is_valid_username(username):
        raise ValidationError(RegistrationState.INVALID_USER_OR_PASS, "invalid username")

    if not is_valid_password(request.password, request.password_confirmation, min_password_length):
        raise ValidationError(RegistrationState.INVALID_USER_OR_PASS, "invalid password")

    if not is_token_ok(request.token, expected_token):
        raise ValidationError(RegistrationState.INVALID_TOKEN, "token mismatch")

    return ValidSubmission(username=username, password=request.password)
