from __future__ import annotations

from datetime import date

from .errors import ConsentError, RegistrationValidationError

MIN_NAME_LENGTH = 2
MIN_AGE = 13
MAX_AGE = 120
CONSENT_REQUIRED_MESSAGE = "You must accept the privacy policy."


def parse_date_of_birth(value: date | str | None) -> date | None:
    if isinstance(value, date):
        return value
    text = (value or "").strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def calculate_age(date_of_birth: date, today: date | None = None) -> int:
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def _validate_name(value: str, label: str) -> str | None:
    cleaned = (value or "").strip()
    if not cleaned:
        return f"{label} is required"
    if len(cleaned) < MIN_NAME_LENGTH:
        return f"{label} must be at least {MIN_NAME_LENGTH} characters"
    return None


def validate_registration(
    first_name: str,
    last_name: str,
    date_of_birth: date | str | None,
    today: date | None = None,
) -> dict[str, str]:
    errors: dict[str, str] = {}
    first_error = _validate_name(first_name, "First name")
    if first_error:
        errors["first_name"] = first_error
    last_error = _validate_name(last_name, "Last name")
    if last_error:
        errors["last_name"] = last_error

    if date_of_birth is None or (isinstance(date_of_birth, str) and not date_of_birth.strip()):
        errors["date_of_birth"] = "Date of birth is required"
        return errors
    parsed = parse_date_of_birth(date_of_birth)
    if parsed is None:
        errors["date_of_birth"] = "Please enter a valid date of birth"
        return errors
    age = calculate_age(parsed, today)
    if age < MIN_AGE:
        errors["date_of_birth"] = f"You must be at least {MIN_AGE} years old to use this service"
    elif age > MAX_AGE:
        errors["date_of_birth"] = "Please enter a valid date of birth"
    return errors


def check_registration(
    first_name: str,
    last_name: str,
    date_of_birth: date | str | None,
    accepted_privacy: bool,
    today: date | None = None,
) -> date:
    """Raise on invalid input; return the parsed date of birth otherwise.

    Field errors take precedence over the consent check.
    """
    errors = validate_registration(first_name, last_name, date_of_birth, today)
    if errors:
        raise RegistrationValidationError(errors)
    if not accepted_privacy:
        raise ConsentError(CONSENT_REQUIRED_MESSAGE)
    return parse_date_of_birth(date_of_birth)  # type: ignore[return-value]
