from __future__ import annotations

from datetime import date

import pytest

from healthbot_core.errors import ConsentError, RegistrationValidationError
from healthbot_core.registration import calculate_age, check_registration, validate_registration

TODAY = date(2024, 5, 1)


def test_age_counts_birthday_within_year():
    assert calculate_age(date(2010, 5, 1), TODAY) == 14
    assert calculate_age(date(2010, 5, 2), TODAY) == 13
    assert calculate_age(date(2010, 4, 30), TODAY) == 14


@pytest.mark.parametrize(
    "dob, accepted",
    [
        (date(2011, 5, 2), False),  # 12
        (date(2011, 5, 1), True),  # 13
        (date(1904, 5, 1), True),  # 120
        (date(1903, 5, 1), False),  # 121
    ],
)
def test_age_bounds(dob, accepted):
    errors = validate_registration("Ann", "Lee", dob.isoformat(), TODAY)
    assert ("date_of_birth" not in errors) is accepted


def test_name_rules():
    errors = validate_registration(" ", "L ", "2010-05-01", TODAY)
    assert errors["first_name"] == "First name is required"
    assert errors["last_name"] == "Last name must be at least 2 characters"


def test_date_of_birth_required_and_parseable():
    assert validate_registration("Ann", "Lee", "", TODAY)["date_of_birth"] == "Date of birth is required"
    assert validate_registration("Ann", "Lee", "05/01/2010", TODAY)["date_of_birth"] == "Please enter a valid date of birth"


def test_under_age_message():
    errors = validate_registration("Ann", "Lee", "2020-01-01", TODAY)
    assert errors["date_of_birth"] == "You must be at least 13 years old to use this service"


def test_field_errors_take_precedence_over_consent():
    with pytest.raises(RegistrationValidationError) as exc_info:
        check_registration("A", "Lee", "2010-05-01", False, TODAY)
    assert set(exc_info.value.errors) == {"first_name"}


def test_consent_required_once_fields_are_valid():
    with pytest.raises(ConsentError, match="privacy policy"):
        check_registration("Ann", "Lee", "2010-05-01", False, TODAY)


def test_valid_registration_returns_parsed_date():
    assert check_registration("Ann", "Lee", "2010-05-01", True, TODAY) == date(2010, 5, 1)
