"""Input sanitization shared by the services.

These checks run before any storage access; all of them raise
`finance_tracker.core.errors.ValidationError`.
"""

from __future__ import annotations

import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from finance_tracker.core.datetime_utils import parse_iso_datetime, shift_years, to_utc_naive, utcnow_naive
from finance_tracker.core.errors import ValidationError

MAX_SAFE_INTEGER = 2**53 - 1
MAX_AMOUNT = Decimal("9999999999.99")
MAX_TEXT_LENGTH = 1000
CENT = Decimal("0.01")

_DANGEROUS_CHARS = re.compile(r"[<>'\"&]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_string(value: str | None) -> str | None:
    if not value:
        return None

    cleaned = _DANGEROUS_CHARS.sub("", value)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned[:MAX_TEXT_LENGTH]


def validate_numeric_id(value: object, field_name: str) -> int:
    # bool is an int subclass; True must not pass as id 1.
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0 or value > MAX_SAFE_INTEGER:
        raise ValidationError(f"Invalid {field_name}: must be a positive integer within safe bounds")
    return value


def validate_amount(value: Decimal | float | int | str) -> Decimal:
    """Return the amount as a 2-place Decimal, or raise ValidationError."""

    if isinstance(value, bool):
        raise ValidationError("Amount must be a positive finite number")
    try:
        # str() keeps the shortest float repr, so 0.1 stays 0.1 and not 0.1000000000000000055...
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("Amount must be a positive finite number")

    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Amount must be a positive finite number")
    if amount > MAX_AMOUNT:
        raise ValidationError("Amount exceeds maximum allowed value")

    # Trailing zeros do not count as decimal places: 12.50 and 12.500 are both fine.
    exponent = amount.normalize().as_tuple().exponent
    if isinstance(exponent, int) and exponent < -2:
        raise ValidationError("Amount cannot have more than 2 decimal places")

    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def validate_transaction_date(value: datetime | str, now: datetime | None = None) -> datetime:
    """Parse and range-check a transaction date; returns it as UTC-naive."""

    if isinstance(value, str):
        try:
            value = parse_iso_datetime(value)
        except ValueError:
            raise ValidationError("Invalid transaction date format")
    if not isinstance(value, datetime):
        raise ValidationError("Invalid transaction date format")

    moment = to_utc_naive(value)
    current = now or utcnow_naive()
    today = current.replace(hour=0, minute=0, second=0, microsecond=0)
    if moment < shift_years(today, -1) or moment > shift_years(today, 1):
        raise ValidationError("Transaction date must be within one year of current date")

    return moment


def validate_name(value: str | None, *, label: str, max_length: int = 100) -> str:
    name = (value or "").strip()
    if not name:
        raise ValidationError(f"Valid {label} name is required")
    if len(name) > max_length:
        raise ValidationError(f"{label.capitalize()} name cannot exceed {max_length} characters")
    return name


def normalize_tag(value: str | None, max_length: int = 10) -> str | None:
    tag = (value or "").strip()
    if not tag:
        return None
    if len(tag) > max_length:
        raise ValidationError(f"Tag cannot exceed {max_length} characters")
    return tag
