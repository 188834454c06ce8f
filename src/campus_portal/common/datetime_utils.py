from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Optional

from ..core.constants import DATE_FORMAT
from ..core.exceptions import ValidationError

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: str, field_name: str = "date") -> date:
    """Parse YYYY-MM-DD string into date."""
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value.strip()):
        raise ValidationError(f"Invalid {field_name} format (YYYY-MM-DD required)")
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid {field_name}: {value}")


def parse_optional_date(value: Optional[str], field_name: str) -> Optional[date]:
    if value is None or not str(value).strip():
        return None
    return parse_iso_date(str(value), field_name)


def utc_midnight(d: date) -> datetime:
    """Attendance dates are stored as midnight UTC of the calendar day."""
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # pymongo returns naive datetimes unless the client is tz_aware
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    value = as_utc(value)
    return value.isoformat().replace("+00:00", "Z") if value else None
