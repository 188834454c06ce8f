from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from pymongo import ReturnDocument, UpdateOne
from pymongo.errors import BulkWriteError, DuplicateKeyError

from ..core.constants import ATTENDANCE_COLLECTION
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mongo_base import id_str, is_duplicate_key, to_object_id
from . import pipelines
from .model import (
    AttendanceMark,
    AttendanceRecord,
    AttendanceSummary,
    AttendanceView,
    MarkResult,
    PersonRef,
    StudentSummaryRow,
)
from .repository import AttendanceRepository


def _to_record(doc: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=str(doc["_id"]),
        student_id=id_str(doc.get("student")),
        date=doc["date"],
        class_subject=doc.get("classSubject"),
        status=AttendanceStatus(doc["status"]),
        marked_by=id_str(doc.get("markedBy")),
        marked_at=doc.get("markedAt"),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


def _to_person(doc: Optional[Dict[str, Any]]) -> Optional[PersonRef]:
    if not doc or "_id" not in doc:
        return None
    return PersonRef(user_id=str(doc["_id"]), name=doc.get("name", ""), email=doc.get("email"))


class MongoAttendanceRepository(AttendanceRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _attendance(self):
        return self._conn.db[ATTENDANCE_COLLECTION]

    def bulk_upsert(
        self,
        *,
        marks: Sequence[AttendanceMark],
        date: datetime,
        class_subject: Optional[str],
        marked_by: str,
        marked_at: datetime,
    ) -> MarkResult:
        teacher_oid = to_object_id(marked_by, "teacher id")
        ops = [
            UpdateOne(
                {"student": to_object_id(m.student_id, "studentId"), "date": date, "classSubject": class_subject},
                {
                    "$set": {
                        "status": m.status.value,
                        "markedBy": teacher_oid,
                        "markedAt": marked_at,
                        "updatedAt": marked_at,
                    },
                    "$setOnInsert": {"createdAt": marked_at},
                },
                upsert=True,
            )
            for m in marks
        ]
        if not ops:
            return MarkResult(inserted=0, modified=0, matched=0)

        try:
            res = self._attendance.bulk_write(ops, ordered=False)
        except (BulkWriteError, DuplicateKeyError) as e:
            if is_duplicate_key(e):
                raise ConflictError("Duplicate attendance record for student, date and subject")
            raise
        return MarkResult(inserted=res.upserted_count, modified=res.modified_count, matched=res.matched_count)

    def find_for_teacher(
        self,
        *,
        date: Optional[datetime] = None,
        status: Optional[AttendanceStatus] = None,
        class_subject: Optional[str] = None,
        student_name: Optional[str] = None,
    ) -> Sequence[AttendanceView]:
        pipeline = pipelines.teacher_view_pipeline(
            date=date, status=status, class_subject=class_subject, student_name=student_name
        )
        return [
            AttendanceView(record=_to_record(doc), student=_to_person(doc.get("studentInfo")))
            for doc in self._attendance.aggregate(pipeline)
        ]

    def find_for_student(
        self,
        student_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        class_subject: Optional[str] = None,
    ) -> Sequence[AttendanceView]:
        pipeline = pipelines.student_history_pipeline(
            student_id=to_object_id(student_id, "student id"), start=start, end=end, class_subject=class_subject
        )
        return [
            AttendanceView(record=_to_record(doc), marker=_to_person(doc.get("markedByInfo")))
            for doc in self._attendance.aggregate(pipeline)
        ]

    def summarize_student(
        self,
        student_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        class_subject: Optional[str] = None,
    ) -> AttendanceSummary:
        pipeline = pipelines.student_summary_pipeline(
            student_id=to_object_id(student_id, "student id"), start=start, end=end, class_subject=class_subject
        )
        rows = list(self._attendance.aggregate(pipeline))
        if not rows:
            return AttendanceSummary(present=0, absent=0)
        return AttendanceSummary(present=int(rows[0].get("present", 0)), absent=int(rows[0].get("absent", 0)))

    def summarize_by_teacher(
        self,
        teacher_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        class_subject: Optional[str] = None,
    ) -> Sequence[StudentSummaryRow]:
        pipeline = pipelines.teacher_summary_pipeline(
            teacher_id=to_object_id(teacher_id, "teacher id"), start=start, end=end, class_subject=class_subject
        )
        return [
            StudentSummaryRow(
                student_id=str(doc["_id"]),
                name=doc.get("name", ""),
                email=doc.get("email"),
                contact=doc.get("contact"),
                summary=AttendanceSummary(present=int(doc.get("present", 0)), absent=int(doc.get("absent", 0))),
            )
            for doc in self._attendance.aggregate(pipeline)
        ]

    def update_status(
        self,
        record_id: str,
        *,
        status: AttendanceStatus,
        marked_by: str,
        marked_at: datetime,
    ) -> Optional[AttendanceRecord]:
        doc = self._attendance.find_one_and_update(
            {"_id": to_object_id(record_id, "record id")},
            {
                "$set": {
                    "status": status.value,
                    "markedBy": to_object_id(marked_by, "teacher id"),
                    "markedAt": marked_at,
                    "updatedAt": marked_at,
                }
            },
            return_document=ReturnDocument.AFTER,
        )
        return _to_record(doc) if doc else None
