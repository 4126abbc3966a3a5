from __future__ import annotations

from datetime import datetime

from ..core.constants import PORTAL_DATE_FORMAT
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_secret(value: str, field_name: str) -> str:
    # Passwords are sent as typed, whitespace included.
    if not value:
        raise ValidationError(f"{field_name} is required")
    return value


def require_portal_date(value: str, field_name: str) -> str:
    value = require_non_empty(value, field_name)
    try:
        datetime.strptime(value, PORTAL_DATE_FORMAT)
    except ValueError:
        raise ValidationError(f"{field_name} must be DD-MM-YYYY, got {value!r}") from None
    return value
