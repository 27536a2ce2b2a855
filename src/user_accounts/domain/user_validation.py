"""Field validation rules for inbound user create/update requests."""

from __future__ import annotations

import re
from typing import Final

NAME_MIN_LENGTH: Final = 2
NAME_MAX_LENGTH: Final = 50

_EMAIL_PATTERN: Final = re.compile(
    r"^[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)*$"
)


def is_valid_email(email: str) -> bool:
    """Return whether the value has a conventional `local@domain` shape."""

    return _EMAIL_PATTERN.fullmatch(email) is not None


def validate_user_fields(*, first_name: str, last_name: str, email: str) -> list[str]:
    """Return ordered field violations; an empty list means the fields are valid.

    Every rule is checked independently, so a single field may report more
    than one violation (an empty name is both blank and too short).
    """

    errors: list[str] = []
    errors.extend(_validate_name(field="firstName", label="First name", value=first_name))
    errors.extend(_validate_name(field="lastName", label="Last name", value=last_name))
    errors.extend(_validate_email(value=email))
    return errors


def _validate_name(*, field: str, label: str, value: str) -> list[str]:
    errors: list[str] = []
    if not value.strip():
        errors.append(f"{field}: {label} is required")
    if not NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH:
        errors.append(
            f"{field}: {label} must be between {NAME_MIN_LENGTH} "
            f"and {NAME_MAX_LENGTH} characters"
        )
    return errors


def _validate_email(*, value: str) -> list[str]:
    if not value.strip():
        return ["email: Email is required"]
    if not is_valid_email(value):
        return ["email: Email should be valid"]
    return []
