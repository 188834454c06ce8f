from __future__ import annotations

from typing import Any, Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId

from ..core.exceptions import ValidationError


def to_object_id(value: Any, field_name: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {field_name} format")


def to_object_ids(values: Iterable[Any], field_name: str = "id") -> List[ObjectId]:
    return [to_object_id(v, field_name) for v in values]


def id_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def is_duplicate_key(exc: Exception) -> bool:
    """True for E11000 errors, raised directly or wrapped by a bulk write."""

    if getattr(exc, "code", None) == 11000:
        return True
    details = getattr(exc, "details", None) or {}
    return any(err.get("code") == 11000 for err in details.get("writeErrors", []))
