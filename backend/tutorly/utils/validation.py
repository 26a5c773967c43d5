from __future__ import annotations

from collections.abc import Sequence

MAX_HOURLY_RATE = 1000


def validate_password_strength(password: str) -> tuple[bool, str | None]:
    """Validate password strength."""
    if len(password) < 8:
        return False, "Password must be at least 8 characters long"

    weak_passwords = {"password", "123456", "12345678", "qwerty", "admin", "test", "password123"}
    if password.lower() in weak_passwords:
        return False, "Password is too weak. Please choose a stronger password."
    return True, None


def validate_individual_tutor_fields(
    *,
    subjects: Sequence[str] | None,
    titles: Sequence[str] | None,
    hourly_rate: float | None,
    phone_number: str | None,
) -> list[str]:
    """Return human-readable problems with an individual tutor's application.

    An empty list means the application can be stored.
    """
    errors: list[str] = []

    if not subjects:
        errors.append("At least one subject is required for individual tutors")
    if not titles:
        errors.append("At least one title/expertise is required for individual tutors")

    if hourly_rate is not None:
        if hourly_rate <= 0:
            errors.append("Invalid hourly rate - must be a positive number")
        elif hourly_rate > MAX_HOURLY_RATE:
            errors.append("Hourly rate seems too high - please verify")

    if phone_number:
        if not 8 <= len(phone_number) <= 20:
            errors.append("Phone number must be between 8 and 20 characters")

    return errors


def round_money(value: float | None) -> float | None:
    """Round a price to cents, keeping None."""
    if value is None:
        return None
    return round(float(value), 2)
