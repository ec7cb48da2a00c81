"""
Input validation helper functions.
Validation runs before any transaction opens; failures raise ValidationError
with a field -> message map.
"""

import re
from datetime import date
from typing import Optional

from utils.datetime_helpers import parse_date
from utils.errors import ValidationError
from utils.messages import MESSAGES

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def validate_date_format(date_str: str) -> bool:
    """
    Validate date string format (YYYY-MM-DD).

    Args:
        date_str: Date string to validate

    Returns:
        True if valid format and a real calendar date
    """
    if not isinstance(date_str, str) or not DATE_PATTERN.match(date_str):
        return False
    try:
        parse_date(date_str)
        return True
    except ValueError:
        return False


def validate_date_range(start_date: str, end_date: str) -> dict:
    """
    Validate a half-open stay range.

    Args:
        start_date: Start date (YYYY-MM-DD)
        end_date: End date (YYYY-MM-DD), exclusive

    Returns:
        Dict of field errors (empty when valid)
    """
    errors = {}
    if not start_date:
        errors['start_date'] = MESSAGES['field_required']
    elif not validate_date_format(start_date):
        errors['start_date'] = MESSAGES['invalid_date']

    if not end_date:
        errors['end_date'] = MESSAGES['field_required']
    elif not validate_date_format(end_date):
        errors['end_date'] = MESSAGES['invalid_date']

    if not errors and parse_date(start_date) >= parse_date(end_date):
        errors['end_date'] = MESSAGES['invalid_date_range']
    return errors


def validate_not_in_past(start_date: str, today: date) -> dict:
    """Return a field error if the stay starts before today."""
    if validate_date_format(start_date) and parse_date(start_date) < today:
        return {'start_date': MESSAGES['date_in_past']}
    return {}


def validate_guest_name(name) -> Optional[str]:
    """
    Validate guest display name.

    Returns:
        Error message or None if valid
    """
    if not isinstance(name, str) or not name.strip():
        return MESSAGES['field_required']
    if len(name.strip()) < 2:
        return MESSAGES['guest_name_too_short']
    return None


def parse_price(value, field: str = 'total_price') -> float:
    """
    Parse a non-negative money amount rounded to cents.

    Raises:
        ValidationError: If the value is not a number >= 0
    """
    if isinstance(value, bool):
        raise ValidationError(MESSAGES['validation_failed'], {field: MESSAGES['invalid_price']})
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValidationError(MESSAGES['validation_failed'], {field: MESSAGES['invalid_price']})
    if price < 0 or price != price:
        raise ValidationError(MESSAGES['validation_failed'], {field: MESSAGES['invalid_price']})
    return round(price, 2)


def parse_positive_int(value) -> Optional[int]:
    """Return value as a positive int, or None if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
        return number if number > 0 else None
    return None


def require_reason(reason, field: str = 'reason') -> str:
    """
    Require a non-empty free-text reason.

    Raises:
        ValidationError: If the reason is missing or blank
    """
    if not isinstance(reason, str) or not reason.strip():
        raise ValidationError(MESSAGES['validation_failed'], {field: MESSAGES['reason_required']})
    return reason.strip()


def sanitize_input(text: str, max_length: int = None) -> str:
    """
    Sanitize user input by removing control characters and trimming.

    Args:
        text: Text to sanitize
        max_length: Optional maximum length

    Returns:
        Sanitized text
    """
    if not text:
        return ''

    # Strip control characters except newlines and tabs
    sanitized = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', str(text)).strip()

    if max_length:
        sanitized = sanitized[:max_length]

    return sanitized
