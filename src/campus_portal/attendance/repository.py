from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceMark, AttendanceRecord, AttendanceSummary, AttendanceView, MarkResult, StudentSummaryRow


class AttendanceRepository(Protocol):
    def bulk_upsert(
        self,
        *,
        marks: Sequence[AttendanceMark],
        date: datetime,
        class_subject: Optional[str],
        marked_by: str,
        marked_at: datetime,
    ) -> MarkResult:
        """Insert or update one record per mark, keyed by (student, date, class_subject)."""

        raise NotImplementedError

    def find_for_teacher(
        self,
        *,
        date: Optional[datetime] = None,
        status: Optional[AttendanceStatus] = None,
        class_subject: Optional[str] = None,
        student_name: Optional[str] = None,
    ) -> Sequence[AttendanceView]:
        raise NotImplementedError

    def find_for_student(
        self,
        student_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        class_subject: Optional[str] = None,
    ) -> Sequence[AttendanceView]:
        raise NotImplementedError

    def summarize_student(
        self,
        student_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        class_subject: Optional[str] = None,
    ) -> AttendanceSummary:
        raise NotImplementedError

    def summarize_by_teacher(
        self,
        teacher_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        class_subject: Optional[str] = None,
    ) -> Sequence[StudentSummaryRow]:
        raise NotImplementedError

    def update_status(
        self,
        record_id: str,
        *,
        status: AttendanceStatus,
        marked_by: str,
        marked_at: datetime,
    ) -> Optional[AttendanceRecord]:
        """Teacher edit; returns the updated record or None when it does not exist."""

        raise NotImplementedError
