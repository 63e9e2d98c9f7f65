from __future__ import annotations

import math
from typing import Optional

from stockbook.domain.dates import parse_datetime, to_store
from stockbook.domain.errors import InvalidDateRangeError, ValidationError

# SQLite INTEGER is a signed 64-bit value
MAX_SQL_INT = 2**63 - 1


def parse_id(value: object, label: str = "product") -> int:
    """Accept a positive int or an all-digit string; anything else is malformed."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {label} ID.")
    if isinstance(value, int):
        ident = value
    elif isinstance(value, str) and value.strip().isdigit():
        ident = int(value.strip())
    else:
        raise ValidationError(f"Invalid {label} ID.")
    if ident <= 0 or ident > MAX_SQL_INT:
        raise ValidationError(f"Invalid {label} ID.")
    return ident


def optional_id(value: object, label: str = "product") -> Optional[int]:
    if value is None or value == "":
        return None
    return parse_id(value, label)


def require_text(value: object, label: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationError(f"{label} is required.")
    return text


def optional_text(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def as_number(value: object, label: str) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{label} must be a number.")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise ValidationError(f"{label} must be a number.") from e
    return finite_amount(number, label)


def finite_amount(number: float, label: str) -> float:
    if not math.isfinite(number):
        raise ValidationError(f"{label} must be a finite number.")
    return number


def as_quantity(value: object, label: str = "Quantity") -> int:
    number = as_number(value, label)
    if not number.is_integer():
        raise ValidationError(f"{label} must be a whole number.")
    whole = value if isinstance(value, int) else int(number)
    if abs(whole) > MAX_SQL_INT:
        raise ValidationError(f"{label} is out of range.")
    return whole


def optional_entry_date(value: object) -> Optional[str]:
    """Normalize an optional ledger date to stored text; ``None`` means "now"."""
    if value is None or value == "":
        return None
    try:
        return to_store(parse_datetime(value))
    except InvalidDateRangeError as e:
        raise ValidationError(str(e)) from e
