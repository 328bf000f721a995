import re

from calcrm.errors import ValidationError

EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")
MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address, raising if it is malformed."""
    normalized = email.strip().lower()
    if not EMAIL_RE.fullmatch(normalized):
        raise ValidationError("Please provide a valid email")
    return normalized


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - Minimum length of 6 characters
    - No whitespace characters

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if any(char.isspace() for char in password):
        raise ValidationError("Password cannot contain whitespace characters")
