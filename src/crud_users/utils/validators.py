"""User payload validation.

Functions:
- validate_user(payload) -> bool: Check shape and types of a user payload
- parse_user_payload(payload) -> UserPayload | None: Validate, then decode

Rules:
- fullname: non-empty string
- study_level: non-empty string
- age: JSON number, integral, 0 < age <= MAX_AGE (booleans and numeric
  strings are rejected, 21.0 is accepted as 21)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

REQUIRED_TEXT_FIELDS = ("fullname", "study_level")

# Largest value an INTEGER age column holds on every supported backend
MAX_AGE = 2**31 - 1


@dataclass(frozen=True)
class UserPayload:
    """Validated body of a create or update request."""

    fullname: str
    study_level: str
    age: int


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def _is_positive_integer(value: Any) -> bool:
    # bool is a subclass of int
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return 0 < value <= MAX_AGE
    if isinstance(value, float):
        return value.is_integer() and 0 < value <= MAX_AGE
    return False


def validate_user(payload: Any) -> bool:
    """Check that a payload describes a valid user.

    Never raises: any unexpected input simply fails validation.

    Args:
        payload: Decoded request body (usually a dict, but anything is accepted)

    Returns:
        True if fullname, study_level and age are all present and valid
    """
    if not isinstance(payload, Mapping):
        return False

    for field_name in REQUIRED_TEXT_FIELDS:
        if not _is_non_empty_str(payload.get(field_name)):
            return False

    return _is_positive_integer(payload.get("age"))


def parse_user_payload(payload: Any) -> UserPayload | None:
    """Decode a request body into a UserPayload.

    Args:
        payload: Decoded request body

    Returns:
        UserPayload if the payload is valid, None otherwise
    """
    if not validate_user(payload):
        return None

    return UserPayload(
        fullname=payload["fullname"],
        study_level=payload["study_level"],
        age=int(payload["age"]),
    )
