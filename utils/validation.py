"""Input validation and sanitization for the waitlist form"""
import re
from typing import Any, Dict, Optional

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

MISSING_FIELD = 'missing field'
INVALID_EMAIL = 'invalid email'

# What the visitor sees for each validation failure
VALIDATION_MESSAGES = {
    MISSING_FIELD: 'Please fill in all fields',
    INVALID_EMAIL: 'Please enter a valid email address',
}

NAME_MAX_LENGTH = 200
EMAIL_MAX_LENGTH = 320


class ValidationError(ValueError):
    """Raised when the form input is rejected before reaching the record store"""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    @property
    def user_message(self) -> str:
        return VALIDATION_MESSAGES.get(self.reason, 'Please check your input')


def sanitize_string(value: Any, max_length: Optional[int] = None) -> str:
    """Sanitize string input"""
    if value is None:
        return ''

    # Convert to string and strip whitespace
    sanitized = str(value).strip()

    # Remove null bytes and control characters (except newlines and tabs)
    sanitized = re.sub(r'[\x00-\x08\x0b-\x0c\x0e-\x1f]', '', sanitized)

    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized


def validate_email(email: str) -> bool:
    """Validate email has a basic local@domain.tld shape"""
    if not email:
        return False
    return bool(EMAIL_PATTERN.fullmatch(email))


def validate_waitlist_fields(name: Any, email: Any) -> Dict[str, str]:
    """
    Clean the two form fields and check the cleaned values.

    The returned values are exactly what was checked: empty after cleaning
    means MISSING_FIELD, and an email that does not match the pattern or is
    longer than EMAIL_MAX_LENGTH means INVALID_EMAIL.
    """
    name = sanitize_string(name, max_length=NAME_MAX_LENGTH)
    email = sanitize_string(email)

    if not name or not email:
        raise ValidationError(MISSING_FIELD)

    if len(email) > EMAIL_MAX_LENGTH or not validate_email(email):
        raise ValidationError(INVALID_EMAIL)

    return {'name': name, 'email': email}
