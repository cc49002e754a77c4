"""
Business rules for session offerings.

Checks run in a fixed order and stop at the first failure:
required fields, price, duration, default date.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional, Union

from katha.forms import SessionDraft
from katha.models import SessionOffering

REQUIRED_FIELDS_MESSAGE = "Session Name, Duration, and Price are required."
PRICE_MESSAGE = "Price must be a positive whole amount in multiples of 10 (e.g. 50, 100, 150)."
DURATION_MESSAGE = (
    "Duration must be a positive number of minutes in multiples of 30 (e.g. 30, 60, 90)."
)
PAST_DATE_MESSAGE = "Session date cannot be in the past."

PRICE_STEP = 10
DURATION_STEP = 30

# candidate attribute -> keys accepted in a mapping
_FIELD_ALIASES = {
    "title": ("title", "name"),
    "duration": ("duration", "duration_minutes", "durationMinutes"),
    "price": ("price",),
    "default_date": ("default_date", "defaultDate"),
}

Candidate = Union[SessionDraft, SessionOffering, Mapping[str, Any]]


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validate(); only the first failing rule is reported"""
    valid: bool
    first_error: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, message: str) -> "ValidationResult":
        return cls(valid=False, first_error=message)


def _read(candidate: Candidate, name: str) -> Any:
    if isinstance(candidate, SessionOffering):
        return {
            "title": candidate.title,
            "duration": candidate.duration_minutes,
            "price": candidate.price,
            "default_date": candidate.default_date,
        }[name]
    if isinstance(candidate, Mapping):
        for key in _FIELD_ALIASES[name]:
            if key in candidate:
                return candidate[key]
        return None
    return getattr(candidate, name, None)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _as_whole_number(value: Any) -> Optional[int]:
    """Return value as an int if it is a whole number, else None"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return int(number) if number.is_integer() else None


def is_valid_multiple(value: Any, step: int) -> bool:
    number = _as_whole_number(value)
    return number is not None and number > 0 and number % step == 0


def validate(candidate: Candidate, today: Optional[date] = None) -> ValidationResult:
    """
    Check a candidate session offering against the business rules.

    Args:
        candidate: SessionDraft, SessionOffering or a mapping using either
            the Python or the wire field names
        today: Reference date for the past-date rule (defaults to date.today())

    Returns:
        ValidationResult with the first error message, if any
    """
    title = _read(candidate, "title")
    duration = _read(candidate, "duration")
    price = _read(candidate, "price")

    if _is_blank(title) or _is_blank(duration) or _is_blank(price):
        return ValidationResult.fail(REQUIRED_FIELDS_MESSAGE)

    if not is_valid_multiple(price, PRICE_STEP):
        return ValidationResult.fail(PRICE_MESSAGE)

    if not is_valid_multiple(duration, DURATION_STEP):
        return ValidationResult.fail(DURATION_MESSAGE)

    default_date = _read(candidate, "default_date")
    if not _is_blank(default_date):
        today_str = (today or date.today()).isoformat()
        # YYYY-MM-DD strings order the same way as the dates they name
        if str(default_date).strip() < today_str:
            return ValidationResult.fail(PAST_DATE_MESSAGE)

    return ValidationResult.ok()
