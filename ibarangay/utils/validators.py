"""Input validators shared by the route handlers.

Each validator returns the cleaned value or raises ``ValidationError``.
"""
import re
from typing import Iterable

from flask import jsonify

from ibarangay.utils.time import parse_iso_datetime


EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
PHONE_RE = re.compile(r"^09\d{9}$")
NAME_RE = re.compile(r"^[A-Za-z\s.\-]+$")
PASSWORD_STRENGTH_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


class ValidationError(Exception):
    """A single invalid input field."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message

    def to_dict(self):
        return {'field': self.field, 'message': self.message}


def validation_error_response(errors):
    """400 response for one ``ValidationError`` or a list of them."""
    if isinstance(errors, ValidationError):
        errors = [errors]
    return jsonify({
        'error': 'Validation failed',
        'errors': [e.to_dict() for e in errors],
    }), 400


def validate_required_fields(data: dict, fields: Iterable[str]):
    """Raise for the first field that is missing or blank."""
    if not isinstance(data, dict):
        raise ValidationError('body', 'Request body must be a JSON object')
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(field, f'{field} is required')


def sanitize_string(value, max_length: int = None) -> str:
    if value is None:
        return ''
    text = str(value).strip()
    if max_length:
        text = text[:max_length]
    return text


def validate_length(value, field: str, min_length: int = 1, max_length: int = None) -> str:
    text = sanitize_string(value)
    if len(text) < min_length:
        raise ValidationError(field, f'{field} must be at least {min_length} characters')
    if max_length and len(text) > max_length:
        raise ValidationError(field, f'{field} must be at most {max_length} characters')
    return text


def validate_email(email) -> str:
    email = sanitize_string(email).lower()
    if not email or not EMAIL_RE.match(email):
        raise ValidationError('email', 'Please provide a valid email')
    if len(email) > 255:
        raise ValidationError('email', 'Email is too long')
    return email


def validate_password(password) -> str:
    if not isinstance(password, str) or len(password) < 8:
        raise ValidationError('password', 'Password must be at least 8 characters')
    if len(password) > 128:
        raise ValidationError('password', 'Password is too long')
    if not PASSWORD_STRENGTH_RE.match(password):
        raise ValidationError(
            'password',
            'Password must contain at least one uppercase letter, one lowercase letter, and one number',
        )
    return password


def validate_name(name, field: str = 'name') -> str:
    name = validate_length(name, field, 2, 50)
    if not NAME_RE.match(name):
        raise ValidationError(field, f'{field} can only contain letters, spaces, dots, and dashes')
    return name


def validate_phone(phone, field: str = 'phone_number'):
    if phone in (None, ''):
        return None
    phone = sanitize_string(phone)
    if not PHONE_RE.match(phone):
        raise ValidationError(field, 'Phone number must start with 09 and be 11 digits')
    return phone


def validate_choice(value, choices, field: str) -> str:
    if value not in choices:
        raise ValidationError(field, f"{field} must be one of: {', '.join(choices)}")
    return value


def validate_datetime(value, field: str, required: bool = True):
    if value in (None, ''):
        if required:
            raise ValidationError(field, f'{field} is required')
        return None
    try:
        return parse_iso_datetime(value)
    except (TypeError, ValueError):
        raise ValidationError(field, f'{field} must be a valid ISO-8601 date')


def validate_positive_int(value, field: str, required: bool = False):
    if value in (None, ''):
        if required:
            raise ValidationError(field, f'{field} is required')
        return None
    if isinstance(value, bool):
        raise ValidationError(field, f'{field} must be a positive integer')
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(field, f'{field} must be a positive integer')
    if number < 1:
        raise ValidationError(field, f'{field} must be a positive integer')
    return number


def validate_id_list(value, field: str = 'ids'):
    """A non-empty JSON list of positive integer ids, order preserved."""
    if not isinstance(value, list) or not value:
        raise ValidationError(field, 'At least one ID is required')
    ids = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (int, str)):
            raise ValidationError(field, f'Invalid ID format: {item!r}')
        try:
            number = int(item)
        except ValueError:
            raise ValidationError(field, f'Invalid ID format: {item!r}')
        if number < 1:
            raise ValidationError(field, f'Invalid ID format: {item!r}')
        ids.append(number)
    return ids
