"""Shared service helpers: input coercion and validation."""

from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from ..exceptions import InvalidDateRangeError, InvalidStatusError, MissingFieldError, ValidationError
from ..models.period import RentalPeriod
from ..utils.dates import as_date

CENTS = Decimal("0.01")


def _today() -> date:
    """Wrapper for easier testing/mocking."""
    return date.today()


def _lc(s):
    """Safe lowercase for case-insensitive compare."""
    return (s or "").lower()


def is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require(data: dict, *fields: str) -> None:
    """Raise MissingFieldError listing every blank required field."""
    missing = [f for f in fields if is_blank(data.get(f))]
    if missing:
        raise MissingFieldError(missing)


def check_choice(value, allowed) -> str:
    v = _lc(str(value) if value is not None else "").strip()
    if v not in allowed:
        raise InvalidStatusError(value, allowed)
    return v


# -------- number coercion --------
def to_money(value, field: str = "amount") -> Decimal:
    """Parse a currency amount into a Decimal rounded to cents."""
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"Invalid {field}: {value!r}")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_float_safe(value) -> Optional[float]:
    """Safely convert to float; return None if invalid."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_int(value, field: str, minimum: int | None = None, maximum: int | None = None) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"Invalid {field}: {value!r}")
    # int() truncates 12.9 to 12
    if isinstance(value, (float, Decimal)) and number != value:
        raise ValidationError(f"{field} must be a whole number, got {value!r}")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} must be <= {maximum}")
    return number


def to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


# -------- dates --------
def parse_date(value, field: str = "date") -> date:
    try:
        return as_date(value)
    except (TypeError, ValueError):
        raise InvalidDateRangeError(f"Invalid {field} (expected YYYY-MM-DD): {value!r}")


def parse_period(start, end) -> RentalPeriod:
    """Parse and order-check a rental range; end may equal start."""
    period = RentalPeriod(parse_date(start, "start_date"), parse_date(end, "end_date"))
    if not period.is_ordered:
        raise InvalidDateRangeError("End date must be on or after start date")
    return period
