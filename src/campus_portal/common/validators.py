from __future__ import annotations

import re
from typing import Any, Optional

from bson import ObjectId

from ..core.constants import PASSWORD_MIN_LENGTH
from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_CONTACT_RE = re.compile(r"\d{10}")
_FILE_URL_RE = re.compile(r"^(http|https)://[^ \"]+$|^/.+")


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} cannot exceed {max_len} characters")
    return value


def require_email(value: str) -> str:
    value = value.strip().lower()
    if not _EMAIL_RE.match(value):
        raise ValidationError("Invalid email format")
    return value


def require_strong_password(value: str) -> str:
    """Length, one uppercase letter and one digit."""
    require_min_length(value, "Password", PASSWORD_MIN_LENGTH)
    if not re.search(r"[A-Z]", value):
        raise ValidationError("Password must contain at least one uppercase letter")
    if not re.search(r"[0-9]", value):
        raise ValidationError("Password must contain at least one number")
    return value


def require_contact(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    value = str(value).strip()
    if not _CONTACT_RE.search(value):
        raise ValidationError(f"{value} is not a valid phone number!")
    return value


def require_file_url(value: str) -> str:
    if not value or not _FILE_URL_RE.match(value):
        raise ValidationError(f"{value} is not a valid URL!")
    return value


def require_object_id(value: Any, field_name: str = "id") -> str:
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise ValidationError(f"Invalid {field_name} format")
    return value
