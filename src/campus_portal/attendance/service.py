from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional, Sequence

from ..common.datetime_utils import parse_iso_date, parse_optional_date, utc_midnight, utc_now
from ..common.validators import require_object_id
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .model import AttendanceMark, AttendanceRecord, AttendanceSummary, AttendanceView, MarkResult, StudentSummaryRow
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def parse_status(value: Any, *, required: bool = True) -> Optional[AttendanceStatus]:
    if value is None or value == "":
        if required:
            raise ValidationError("Status is required")
        return None
    try:
        return AttendanceStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError("Status must be either 'present' or 'absent'")


def _clean_subject(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("classSubject must be a string")
    return value.strip() or None


def _check_range(start: Optional[date], end: Optional[date]) -> None:
    if start and end and start > end:
        raise ValidationError("startDate must not be after endDate")


class AttendanceService:
    def __init__(self, attendance: AttendanceRepository, users: UserRepository):
        self._attendance = attendance
        self._users = users

    def mark(
        self,
        *,
        teacher: User,
        date_str: Any,
        attendance_data: Any,
        class_subject: Any = None,
    ) -> MarkResult:
        work_date = parse_iso_date(date_str if isinstance(date_str, str) else "", "date")
        subject = _clean_subject(class_subject)

        if not isinstance(attendance_data, list) or not attendance_data:
            raise ValidationError("attendanceData must be a non-empty list")

        marks: list[AttendanceMark] = []
        seen: set[str] = set()
        for entry in attendance_data:
            if not isinstance(entry, dict):
                raise ValidationError("Each attendance entry must be an object")
            student_id = require_object_id(entry.get("studentId"), "studentId")
            if student_id in seen:
                raise ValidationError(f"Duplicate studentId in attendanceData: {student_id}")
            seen.add(student_id)
            marks.append(AttendanceMark(student_id=student_id, status=parse_status(entry.get("status"))))

        if self._users.count_with_role(list(seen), Role.STUDENT) != len(seen):
            raise ValidationError("Invalid student IDs detected")

        result = self._attendance.bulk_upsert(
            marks=marks,
            date=utc_midnight(work_date),
            class_subject=subject,
            marked_by=teacher.user_id,
            marked_at=utc_now(),
        )
        logger.info(
            "attendance marked by %s for %s (%s): inserted=%d modified=%d",
            teacher.user_id,
            work_date.isoformat(),
            subject or "-",
            result.inserted,
            result.modified,
        )
        return result

    def teacher_records(
        self,
        *,
        date_str: Optional[str] = None,
        status: Optional[str] = None,
        class_subject: Optional[str] = None,
        student_name: Optional[str] = None,
    ) -> Sequence[AttendanceView]:
        day = parse_optional_date(date_str, "date")
        return self._attendance.find_for_teacher(
            date=utc_midnight(day) if day else None,
            status=parse_status(status, required=False),
            class_subject=_clean_subject(class_subject),
            student_name=(student_name or "").strip() or None,
        )

    def student_records(
        self,
        *,
        student: User,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        class_subject: Optional[str] = None,
    ) -> Sequence[AttendanceView]:
        start = parse_optional_date(start_date, "startDate")
        end = parse_optional_date(end_date, "endDate")
        _check_range(start, end)
        return self._attendance.find_for_student(
            student.user_id,
            start=utc_midnight(start) if start else None,
            end=utc_midnight(end) if end else None,
            class_subject=_clean_subject(class_subject),
        )

    def student_records_on(self, *, student: User, date_str: str) -> Sequence[AttendanceView]:
        day = utc_midnight(parse_iso_date(date_str, "date"))
        return self._attendance.find_for_student(student.user_id, start=day, end=day)

    def summary_for(
        self,
        *,
        requester: User,
        student_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        class_subject: Optional[str] = None,
    ) -> AttendanceSummary:
        """Summary for one student: the student themself or any teacher."""

        student_id = require_object_id(student_id, "studentId")
        if not requester.is_teacher and requester.user_id != student_id:
            raise AuthorizationError("You can only view your own attendance summary")

        student = self._users.get_by_id(student_id)
        if not student or student.role != Role.STUDENT:
            raise NotFoundError("Student not found")

        start = parse_optional_date(start_date, "startDate")
        end = parse_optional_date(end_date, "endDate")
        _check_range(start, end)
        return self._attendance.summarize_student(
            student_id,
            start=utc_midnight(start) if start else None,
            end=utc_midnight(end) if end else None,
            class_subject=_clean_subject(class_subject),
        )

    def teacher_summary(
        self,
        *,
        teacher: User,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        class_subject: Optional[str] = None,
    ) -> Sequence[StudentSummaryRow]:
        start = parse_optional_date(start_date, "startDate")
        end = parse_optional_date(end_date, "endDate")
        _check_range(start, end)
        return self._attendance.summarize_by_teacher(
            teacher.user_id,
            start=utc_midnight(start) if start else None,
            end=utc_midnight(end) if end else None,
            class_subject=_clean_subject(class_subject),
        )

    def update_record(self, *, teacher: User, record_id: str, status: Any) -> AttendanceRecord:
        record_id = require_object_id(record_id, "record id")
        new_status = parse_status(status)
        updated = self._attendance.update_status(
            record_id, status=new_status, marked_by=teacher.user_id, marked_at=utc_now()
        )
        if not updated:
            raise NotFoundError("Attendance record not found")
        return updated
