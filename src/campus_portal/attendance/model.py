from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import isoformat
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceMark:
    """One line of a marking request."""

    student_id: str
    status: AttendanceStatus


@dataclass(frozen=True)
class MarkResult:
    inserted: int
    modified: int
    matched: int = 0


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's status for one day and subject."""

    record_id: str
    student_id: str
    date: datetime
    class_subject: Optional[str]
    status: AttendanceStatus
    marked_by: Optional[str]
    marked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "_id": self.record_id,
            "student": self.student_id,
            "date": isoformat(self.date),
            "classSubject": self.class_subject,
            "status": self.status.value,
            "markedBy": self.marked_by,
            "markedAt": isoformat(self.marked_at),
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }


@dataclass(frozen=True)
class PersonRef:
    user_id: str
    name: str
    email: Optional[str] = None

    def to_dict(self) -> dict:
        out = {"_id": self.user_id, "name": self.name}
        if self.email is not None:
            out["email"] = self.email
        return out


@dataclass(frozen=True)
class AttendanceView:
    """Read-model: a record joined with the user documents the views display."""

    record: AttendanceRecord
    student: Optional[PersonRef] = None
    marker: Optional[PersonRef] = None

    def to_dict(self) -> dict:
        out = self.record.to_dict()
        if self.student is not None:
            out["studentInfo"] = self.student.to_dict()
        if self.marker is not None:
            out["markedBy"] = self.marker.to_dict()
        return out


@dataclass(frozen=True)
class AttendanceSummary:
    present: int = 0
    absent: int = 0

    @property
    def total_days(self) -> int:
        return int(self.present) + int(self.absent)

    @property
    def present_percentage(self) -> float:
        total = self.total_days
        if total <= 0:
            return 0.0
        return round(self.present * 100.0 / total, 2)

    @property
    def absent_percentage(self) -> float:
        if self.total_days <= 0:
            return 0.0
        # complement keeps the pair summing to 100 after rounding
        return round(100.0 - self.present_percentage, 2)

    def to_dict(self) -> dict:
        return {
            "present": self.present,
            "absent": self.absent,
            "totalDays": self.total_days,
            "presentPercentage": self.present_percentage,
            "absentPercentage": self.absent_percentage,
        }


@dataclass(frozen=True)
class StudentSummaryRow:
    """Read-model for the teacher-wide summary table."""

    student_id: str
    name: str
    email: Optional[str]
    contact: Optional[str]
    summary: AttendanceSummary

    def to_dict(self) -> dict:
        return {
            "_id": self.student_id,
            "studentId": self.student_id,
            "name": self.name,
            "email": self.email,
            "contact": self.contact,
            **self.summary.to_dict(),
        }
