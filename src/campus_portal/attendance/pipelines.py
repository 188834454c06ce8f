"""Aggregation pipelines for the attendance views.

Builders are pure functions returning plain lists of stages so they can be
checked without a running server.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId

from ..core.constants import USERS_COLLECTION
from ..core.enums import AttendanceStatus

Pipeline = List[Dict[str, Any]]


def _count_of(status: AttendanceStatus) -> dict:
    return {"$sum": {"$cond": [{"$eq": ["$status", status.value]}, 1, 0]}}


def _date_range(start: Optional[datetime], end: Optional[datetime]) -> Optional[dict]:
    rng: Dict[str, datetime] = {}
    if start is not None:
        rng["$gte"] = start
    if end is not None:
        rng["$lte"] = end
    return rng or None


def _scope_match(
    *,
    start: Optional[datetime],
    end: Optional[datetime],
    class_subject: Optional[str],
) -> Dict[str, Any]:
    match: Dict[str, Any] = {}
    rng = _date_range(start, end)
    if rng:
        match["date"] = rng
    if class_subject:
        match["classSubject"] = class_subject
    return match


def teacher_view_pipeline(
    *,
    date: Optional[datetime] = None,
    status: Optional[AttendanceStatus] = None,
    class_subject: Optional[str] = None,
    student_name: Optional[str] = None,
) -> Pipeline:
    match: Dict[str, Any] = {}
    if date is not None:
        match["date"] = date
    if status is not None:
        match["status"] = status.value
    if class_subject:
        match["classSubject"] = class_subject

    pipeline: Pipeline = [
        {"$match": match},
        {
            "$lookup": {
                "from": USERS_COLLECTION,
                "localField": "student",
                "foreignField": "_id",
                "as": "studentInfo",
            }
        },
        {"$unwind": "$studentInfo"},
    ]
    if student_name:
        pipeline.append(
            {"$match": {"studentInfo.name": {"$regex": re.escape(student_name), "$options": "i"}}}
        )
    pipeline += [
        {
            "$project": {
                "student": 1,
                "date": 1,
                "classSubject": 1,
                "status": 1,
                "markedBy": 1,
                "markedAt": 1,
                "createdAt": 1,
                "updatedAt": 1,
                "studentInfo._id": 1,
                "studentInfo.name": 1,
                "studentInfo.email": 1,
            }
        },
        {"$sort": {"date": -1, "studentInfo.name": 1}},
    ]
    return pipeline


def student_history_pipeline(
    *,
    student_id: ObjectId,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    class_subject: Optional[str] = None,
) -> Pipeline:
    match = {"student": student_id, **_scope_match(start=start, end=end, class_subject=class_subject)}
    return [
        {"$match": match},
        {"$sort": {"date": -1, "classSubject": 1}},
        {
            "$lookup": {
                "from": USERS_COLLECTION,
                "localField": "markedBy",
                "foreignField": "_id",
                "as": "markedByInfo",
            }
        },
        # keep records whose marking teacher was removed
        {"$unwind": {"path": "$markedByInfo", "preserveNullAndEmptyArrays": True}},
        {
            "$project": {
                "student": 1,
                "date": 1,
                "classSubject": 1,
                "status": 1,
                "markedBy": 1,
                "markedAt": 1,
                "createdAt": 1,
                "updatedAt": 1,
                "markedByInfo._id": 1,
                "markedByInfo.name": 1,
            }
        },
    ]


def student_summary_pipeline(
    *,
    student_id: ObjectId,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    class_subject: Optional[str] = None,
) -> Pipeline:
    match = {"student": student_id, **_scope_match(start=start, end=end, class_subject=class_subject)}
    return [
        {"$match": match},
        {
            "$group": {
                "_id": "$student",
                "present": _count_of(AttendanceStatus.PRESENT),
                "absent": _count_of(AttendanceStatus.ABSENT),
            }
        },
    ]


def teacher_summary_pipeline(
    *,
    teacher_id: ObjectId,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    class_subject: Optional[str] = None,
) -> Pipeline:
    match = {"markedBy": teacher_id, **_scope_match(start=start, end=end, class_subject=class_subject)}
    return [
        {"$match": match},
        {
            "$group": {
                "_id": "$student",
                "present": _count_of(AttendanceStatus.PRESENT),
                "absent": _count_of(AttendanceStatus.ABSENT),
            }
        },
        {
            "$lookup": {
                "from": USERS_COLLECTION,
                "localField": "_id",
                "foreignField": "_id",
                "as": "studentDetails",
            }
        },
        {"$unwind": "$studentDetails"},
        {
            "$project": {
                "_id": 1,
                "present": 1,
                "absent": 1,
                "name": "$studentDetails.name",
                "email": "$studentDetails.email",
                "contact": "$studentDetails.contact",
            }
        },
        {"$sort": {"name": 1}},
    ]
