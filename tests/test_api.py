from __future__ import annotations

import io

import pytest

from campus_portal.notes.storage import key_from_url

PASSWORD = "Secret123"


def _register(client, *, email, role, headers=None, **extra):
    payload = {"name": "New Person", "email": email, "password": PASSWORD, "role": role, **extra}
    return client.post("/api/auth/register", json=payload, headers=headers or {})


def test_root_and_health(client):
    assert client.get("/").get_json() == {"status": "OK"}

    body = client.get("/api/health").get_json()
    assert body["status"] == "OK"
    assert body["dbState"] == "connected"
    assert body["timestamp"].endswith("Z")


def test_unknown_endpoint_is_json_404(client):
    resp = client.get("/api/nowhere")

    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Endpoint not found"}


def test_teacher_bootstrap_then_gated(client):
    first = _register(client, email="first@campus.edu", role="teacher")
    assert first.status_code == 201
    body = first.get_json()
    assert body["role"] == "teacher"
    assert body["message"] == "User registered successfully"

    anonymous = _register(client, email="second@campus.edu", role="teacher")
    assert anonymous.status_code == 403

    bad_token = _register(
        client, email="second@campus.edu", role="teacher", headers={"Authorization": "Bearer garbage"}
    )
    assert bad_token.status_code == 401

    by_teacher = _register(
        client,
        email="second@campus.edu",
        role="teacher",
        headers={"Authorization": f"Bearer {body['token']}"},
    )
    assert by_teacher.status_code == 201


def test_register_validation_and_duplicates(client, student):
    weak = client.post(
        "/api/auth/register",
        json={"name": "X", "email": "x@campus.edu", "password": "weak", "role": "student"},
    )
    assert weak.status_code == 400
    assert "error" in weak.get_json()

    dup = _register(client, email=student.email, role="student")
    assert dup.status_code == 409


def test_login_and_validate(client, student):
    wrong = client.post("/api/auth/login", json={"email": student.email, "password": "Wrong1234"})
    assert wrong.status_code == 401
    assert wrong.get_json() == {"error": "Invalid credentials"}

    ok = client.post("/api/auth/login", json={"email": student.email, "password": PASSWORD})
    assert ok.status_code == 200
    body = ok.get_json()
    assert body["user"] == {"id": student.user_id, "name": student.name, "email": student.email, "role": "student"}

    me = client.get("/api/auth/validate", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.get_json()["user"]["email"] == student.email
    assert "password" not in me.get_json()["user"]


def test_login_with_non_string_password_is_a_bad_request(client, student):
    resp = client.post("/api/auth/login", json={"email": student.email, "password": 12345678})

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Email and password are required"}


def test_anonymous_teacher_signup_is_forbidden_before_validation(client, teacher):
    weak = _register(client, email="second@campus.edu", role="teacher", password="weak")
    taken = _register(client, email=teacher.email, role="teacher")

    assert weak.status_code == 403
    assert taken.status_code == 403
    assert taken.get_json() == {"error": "Only existing teachers can create new teacher accounts"}


def test_protected_routes_need_a_token(client):
    resp = client.get("/api/attendance/student")

    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Not authorized - No token found"}


def test_token_cookie_is_accepted(client, student, token_service):
    client.set_cookie("token", token_service.issue(student))

    assert client.get("/api/attendance/student").status_code == 200


def test_attendance_flow(client, auth_header, teacher, student, other_student):
    payload = {
        "date": "2025-03-10",
        "classSubject": "Math",
        "attendanceData": [
            {"studentId": student.user_id, "status": "present"},
            {"studentId": other_student.user_id, "status": "absent"},
        ],
    }

    forbidden = client.post("/api/attendance/mark", json=payload, headers=auth_header(student))
    assert forbidden.status_code == 403
    assert forbidden.get_json() == {"error": "Access restricted to teachers only"}

    marked = client.post("/api/attendance/mark", json=payload, headers=auth_header(teacher))
    assert marked.status_code == 200
    assert marked.get_json()["inserted"] == 2

    rows = client.get("/api/attendance/teacher?date=2025-03-10&status=absent", headers=auth_header(teacher))
    (row,) = rows.get_json()
    assert row["studentInfo"]["name"] == "Alex Other"
    assert row["date"].startswith("2025-03-10T00:00:00")

    mine = client.get("/api/attendance/student", headers=auth_header(student)).get_json()
    assert [r["status"] for r in mine] == ["present"]
    assert mine[0]["markedBy"]["name"] == teacher.name

    on_day = client.get("/api/attendance/student/date/2025-03-10", headers=auth_header(student)).get_json()
    assert len(on_day["records"]) == 1

    summary = client.get("/api/attendance/summary/me", headers=auth_header(student)).get_json()
    assert (summary["present"], summary["totalDays"], summary["presentPercentage"]) == (1, 1, 100.0)


def test_summary_of_another_student(client, auth_header, teacher, student, other_student):
    url = f"/api/attendance/summary/{student.user_id}"

    assert client.get(url, headers=auth_header(other_student)).status_code == 403
    ok = client.get(url, headers=auth_header(teacher))
    assert ok.status_code == 200
    assert ok.get_json()["totalDays"] == 0


def test_mark_rejects_bad_date(client, auth_header, teacher, student):
    resp = client.post(
        "/api/attendance/mark",
        json={"date": "10/03/2025", "attendanceData": [{"studentId": student.user_id, "status": "present"}]},
        headers=auth_header(teacher),
    )

    assert resp.status_code == 400


def test_student_roster_for_teachers(client, auth_header, teacher, student, other_student):
    resp = client.get("/api/attendance/students?search=alex", headers=auth_header(teacher))

    assert [s["name"] for s in resp.get_json()] == ["Alex Other"]


def _upload(client, headers, *, filename="lecture.pdf", title="Linear Algebra"):
    data = {
        "title": title,
        "subject": "Math",
        "description": "Week 1",
        "file": (io.BytesIO(b"%PDF-1.4 notes"), filename),
    }
    return client.post("/api/notes", data=data, headers=headers, content_type="multipart/form-data")


def test_notes_upload_list_serve_and_delete(client, auth_header, student, other_student, teacher):
    created = _upload(client, auth_header(student))
    assert created.status_code == 201
    note = created.get_json()
    assert note["uploadedBy"]["name"] == student.name
    assert note["fileUrl"].startswith("http://localhost/uploads/")

    listed = client.get("/api/notes?search=linear", headers=auth_header(other_student)).get_json()
    assert [n["_id"] for n in listed] == [note["_id"]]

    served = client.get(f"/uploads/{key_from_url(note['fileUrl'])}")
    assert served.status_code == 200
    assert served.data == b"%PDF-1.4 notes"
    assert served.headers["X-Content-Type-Options"] == "nosniff"
    served.close()

    downloaded = client.patch(f"/api/notes/{note['_id']}/download")
    assert downloaded.get_json()["downloads"] == 1

    denied = client.delete(f"/api/notes/{note['_id']}", headers=auth_header(other_student))
    assert denied.status_code == 403
    assert denied.get_json() == {"error": "Unauthorized deletion"}

    removed = client.delete(f"/api/notes/{note['_id']}", headers=auth_header(teacher))
    assert removed.status_code == 200
    assert client.get(f"/uploads/{key_from_url(note['fileUrl'])}").status_code == 404


@pytest.mark.parametrize("filename, status", [("virus.exe", 400), ("notes.txt", 201)])
def test_notes_upload_extension_check(client, auth_header, student, filename, status):
    assert _upload(client, auth_header(student), filename=filename).status_code == status


def test_notes_upload_too_large(client, auth_header, student, app):
    app.config["MAX_CONTENT_LENGTH"] = 64
    data = {"title": "Big file", "subject": "Math", "file": (io.BytesIO(b"x" * 1024), "big.pdf")}

    resp = client.post("/api/notes", data=data, headers=auth_header(student), content_type="multipart/form-data")

    assert resp.status_code == 413
    assert resp.get_json() == {"error": "File too large"}


def test_missing_upload_is_json_404(client):
    resp = client.get("/uploads/nothing-here.pdf")

    assert resp.status_code == 404
    assert resp.get_json() == {"error": "File not found"}
