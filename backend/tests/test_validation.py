from __future__ import annotations

import pytest

from tutorly.core.models.user import Role
from tutorly.utils.validation import validate_individual_tutor_fields, validate_password_strength


@pytest.mark.parametrize("raw", ["Student", "student", " STUDENT "])
def test_role_parse_is_case_insensitive(raw):
    assert Role.parse(raw) is Role.STUDENT


def test_role_parse_rejects_unknown_values():
    with pytest.raises(ValueError, match="Must be one of: Student, Individual, Mass, Admin"):
        Role.parse("tutor")


def test_tutor_roles():
    assert Role.INDIVIDUAL.is_tutor and Role.MASS.is_tutor
    assert not Role.STUDENT.is_tutor and not Role.ADMIN.is_tutor


@pytest.mark.parametrize(
    ("password", "ok"),
    [("short", False), ("password123", False), ("correct horse battery", True)],
)
def test_password_strength(password, ok):
    valid, message = validate_password_strength(password)
    assert valid is ok
    assert (message is None) is ok


def test_individual_tutor_field_problems():
    problems = validate_individual_tutor_fields(
        subjects=["Maths"],
        titles=["Teacher"],
        hourly_rate=5000,
        phone_number="123",
    )
    assert problems == [
        "Hourly rate seems too high - please verify",
        "Phone number must be between 8 and 20 characters",
    ]


def test_individual_tutor_fields_ok():
    assert validate_individual_tutor_fields(
        subjects=["Maths"], titles=["Teacher"], hourly_rate=40, phone_number="0771234567"
    ) == []
