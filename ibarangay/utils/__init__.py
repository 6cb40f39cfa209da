"""Utility functions for the API.

Only model-free helpers are re-exported here; import the model-aware
modules (auth, audit, notifications, status_updates, ...) directly.
"""

from .time import utc_now, start_of_day, parse_iso_datetime

from .validators import (
    validate_email,
    validate_password,
    validate_phone,
    validate_name,
    validate_length,
    validate_choice,
    validate_datetime,
    validate_positive_int,
    validate_required_fields,
    validation_error_response,
    sanitize_string,
    ValidationError,
)

__all__ = [
    'utc_now',
    'start_of_day',
    'parse_iso_datetime',
    'validate_email',
    'validate_password',
    'validate_phone',
    'validate_name',
    'validate_length',
    'validate_choice',
    'validate_datetime',
    'validate_positive_int',
    'validate_required_fields',
    'validation_error_response',
    'sanitize_string',
    'ValidationError',
]
