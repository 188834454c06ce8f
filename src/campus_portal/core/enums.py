from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for access control."""

    STUDENT = "student"
    TEACHER = "teacher"


class AttendanceStatus(str, Enum):
    """Attendance status stored per record."""

    PRESENT = "present"
    ABSENT = "absent"
