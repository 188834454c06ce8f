from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body
from ..container import Container
from ..users.guards import current_user, login_required, teacher_required


def register(app: Flask, container: Container) -> None:
    def _scope_args() -> dict:
        return {
            "start_date": request.args.get("startDate"),
            "end_date": request.args.get("endDate"),
            "class_subject": request.args.get("classSubject"),
        }

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @teacher_required
    def attendance_mark():
        data = json_body()
        result = container.attendance_service.mark(
            teacher=current_user(),
            date_str=data.get("date"),
            attendance_data=data.get("attendanceData"),
            class_subject=data.get("classSubject"),
        )
        return jsonify(
            {
                "message": "Attendance marked successfully",
                "inserted": result.inserted,
                "modified": result.modified,
                "matched": result.matched,
            }
        )

    @app.route("/api/attendance/teacher", methods=["GET"], endpoint="attendance_teacher")
    @teacher_required
    def attendance_teacher():
        rows = container.attendance_service.teacher_records(
            date_str=request.args.get("date"),
            status=request.args.get("status"),
            class_subject=request.args.get("classSubject"),
            student_name=request.args.get("studentName"),
        )
        return jsonify([r.to_dict() for r in rows])

    @app.route("/api/attendance/student", methods=["GET"], endpoint="attendance_student")
    @login_required
    def attendance_student():
        rows = container.attendance_service.student_records(student=current_user(), **_scope_args())
        return jsonify([r.to_dict() for r in rows])

    @app.route("/api/attendance/student/date/<date_str>", methods=["GET"], endpoint="attendance_student_date")
    @login_required
    def attendance_student_date(date_str: str):
        rows = container.attendance_service.student_records_on(student=current_user(), date_str=date_str)
        return jsonify({"date": date_str, "records": [r.to_dict() for r in rows]})

    @app.route("/api/attendance/summary", methods=["GET"], endpoint="attendance_summary_teacher")
    @teacher_required
    def attendance_summary_teacher():
        rows = container.attendance_service.teacher_summary(teacher=current_user(), **_scope_args())
        return jsonify([r.to_dict() for r in rows])

    @app.route("/api/attendance/summary/me", methods=["GET"], endpoint="attendance_summary_me")
    @login_required
    def attendance_summary_me():
        me = current_user()
        summary = container.attendance_service.summary_for(requester=me, student_id=me.user_id, **_scope_args())
        return jsonify({"studentId": me.user_id, **summary.to_dict()})

    @app.route("/api/attendance/summary/<student_id>", methods=["GET"], endpoint="attendance_summary_student")
    @login_required
    def attendance_summary_student(student_id: str):
        summary = container.attendance_service.summary_for(
            requester=current_user(), student_id=student_id, **_scope_args()
        )
        return jsonify({"studentId": student_id, **summary.to_dict()})

    @app.route("/api/attendance/students", methods=["GET"], endpoint="attendance_students")
    @teacher_required
    def attendance_students():
        students = container.user_service.list_students(search=request.args.get("search"))
        return jsonify(
            [{"_id": s.user_id, "name": s.name, "email": s.email, "contact": s.contact} for s in students]
        )

    @app.route("/api/attendance/<record_id>", methods=["PUT"], endpoint="attendance_update")
    @teacher_required
    def attendance_update(record_id: str):
        data = json_body()
        record = container.attendance_service.update_record(
            teacher=current_user(), record_id=record_id, status=data.get("status")
        )
        return jsonify(record.to_dict())
