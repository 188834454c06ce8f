from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from bson import ObjectId
from werkzeug.security import generate_password_hash

from campus_portal.attendance.model import (
    AttendanceRecord,
    AttendanceSummary,
    AttendanceView,
    MarkResult,
    PersonRef,
    StudentSummaryRow,
)
from campus_portal.common.datetime_utils import utc_now
from campus_portal.container import wire_services
from campus_portal.core.enums import Role
from campus_portal.core.exceptions import ConflictError
from campus_portal.main import create_app
from campus_portal.notes.model import Note, Uploader
from campus_portal.notes.storage import LocalFileStorage
from campus_portal.users.model import User
from campus_portal.users.tokens import TokenService

PASSWORD = "Secret123"


def new_id() -> str:
    return str(ObjectId())


class InMemoryUsers:
    def __init__(self):
        self.by_id: dict[str, User] = {}

    def add(self, *, name: str, email: str, role: Role, password: str = PASSWORD, contact=None, changed_at=None) -> User:
        changed_at = changed_at or utc_now() - timedelta(minutes=5)
        user = User(
            user_id=new_id(),
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            contact=contact,
            changed_password_at=changed_at,
            created_at=changed_at,
        )
        self.by_id[user.user_id] = user
        return user

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.by_id.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.by_id.values() if u.email == email), None)

    def exists_with_role(self, role: Role) -> bool:
        return any(u.role == role for u in self.by_id.values())

    def create_user(self, *, name, email, password_hash, role, contact, changed_password_at) -> str:
        if self.get_by_email(email):
            raise ConflictError("User already exists")
        user = User(
            user_id=new_id(),
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
            contact=contact,
            changed_password_at=changed_password_at,
            created_at=changed_password_at,
        )
        self.by_id[user.user_id] = user
        return user.user_id

    def set_password_changed_at(self, user_id: str, changed_at: datetime) -> bool:
        user = self.by_id.get(user_id)
        if not user:
            return False
        self.by_id[user_id] = replace(user, changed_password_at=changed_at)
        return True

    def count_with_role(self, user_ids, role: Role) -> int:
        return sum(1 for uid in user_ids if uid in self.by_id and self.by_id[uid].role == role)

    def list_by_role(self, role: Role, *, search=None):
        out = [u for u in self.by_id.values() if u.role == role]
        if search:
            out = [u for u in out if search.lower() in u.name.lower()]
        return sorted(out, key=lambda u: u.name)


class InMemoryAttendance:
    """Keyed like the unique index: (student, date, classSubject)."""

    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.records: dict[tuple, AttendanceRecord] = {}

    def _person(self, user_id, *, with_email: bool) -> Optional[PersonRef]:
        user = self._users.get_by_id(user_id)
        if not user:
            return None
        return PersonRef(user_id=user.user_id, name=user.name, email=user.email if with_email else None)

    def bulk_upsert(self, *, marks, date, class_subject, marked_by, marked_at) -> MarkResult:
        inserted = modified = 0
        for m in marks:
            key = (m.student_id, date, class_subject)
            existing = self.records.get(key)
            if existing:
                self.records[key] = replace(
                    existing, status=m.status, marked_by=marked_by, marked_at=marked_at, updated_at=marked_at
                )
                modified += 1
            else:
                self.records[key] = AttendanceRecord(
                    record_id=new_id(),
                    student_id=m.student_id,
                    date=date,
                    class_subject=class_subject,
                    status=m.status,
                    marked_by=marked_by,
                    marked_at=marked_at,
                    created_at=marked_at,
                    updated_at=marked_at,
                )
                inserted += 1
        return MarkResult(inserted=inserted, modified=modified, matched=modified)

    def _in_scope(self, r, *, start=None, end=None, class_subject=None) -> bool:
        if start and r.date < start:
            return False
        if end and r.date > end:
            return False
        if class_subject and r.class_subject != class_subject:
            return False
        return True

    def find_for_teacher(self, *, date=None, status=None, class_subject=None, student_name=None):
        out = []
        for r in self.records.values():
            if date and r.date != date:
                continue
            if status and r.status != status:
                continue
            if class_subject and r.class_subject != class_subject:
                continue
            student = self._person(r.student_id, with_email=True)
            if student is None:
                continue
            if student_name and student_name.lower() not in student.name.lower():
                continue
            out.append(AttendanceView(record=r, student=student))
        return sorted(out, key=lambda v: (-v.record.date.timestamp(), v.student.name))

    def find_for_student(self, student_id, *, start=None, end=None, class_subject=None):
        rows = [
            AttendanceView(record=r, marker=self._person(r.marked_by, with_email=False))
            for r in self.records.values()
            if r.student_id == student_id and self._in_scope(r, start=start, end=end, class_subject=class_subject)
        ]
        return sorted(rows, key=lambda v: v.record.date, reverse=True)

    def summarize_student(self, student_id, *, start=None, end=None, class_subject=None) -> AttendanceSummary:
        rows = [
            r
            for r in self.records.values()
            if r.student_id == student_id and self._in_scope(r, start=start, end=end, class_subject=class_subject)
        ]
        present = sum(1 for r in rows if r.status.value == "present")
        return AttendanceSummary(present=present, absent=len(rows) - present)

    def summarize_by_teacher(self, teacher_id, *, start=None, end=None, class_subject=None):
        counts: dict[str, list[int]] = {}
        for r in self.records.values():
            if r.marked_by != teacher_id or not self._in_scope(r, start=start, end=end, class_subject=class_subject):
                continue
            c = counts.setdefault(r.student_id, [0, 0])
            c[0 if r.status.value == "present" else 1] += 1
        out = []
        for sid, (present, absent) in counts.items():
            user = self._users.get_by_id(sid)
            if user is None:
                continue
            out.append(
                StudentSummaryRow(
                    student_id=sid,
                    name=user.name,
                    email=user.email,
                    contact=user.contact,
                    summary=AttendanceSummary(present=present, absent=absent),
                )
            )
        return sorted(out, key=lambda r: r.name)

    def update_status(self, record_id, *, status, marked_by, marked_at):
        for key, r in self.records.items():
            if r.record_id == record_id:
                self.records[key] = replace(r, status=status, marked_by=marked_by, marked_at=marked_at, updated_at=marked_at)
                return self.records[key]
        return None


class InMemoryNotes:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.notes: dict[str, Note] = {}
        self.fail_on_create = False
        self._clock = itertools.count()

    def create_note(self, *, title, subject, description, file_url, uploaded_by, created_at) -> str:
        if self.fail_on_create:
            raise RuntimeError("database unavailable")
        note = Note(
            note_id=new_id(),
            title=title,
            subject=subject,
            file_url=file_url,
            uploaded_by=uploaded_by,
            description=description,
            created_at=created_at + timedelta(microseconds=next(self._clock)),
            updated_at=created_at,
        )
        self.notes[note.note_id] = note
        return note.note_id

    def _populate(self, note: Note) -> Note:
        user = self._users.get_by_id(note.uploaded_by)
        if not user:
            return note
        return replace(note, uploader=Uploader(user_id=user.user_id, name=user.name, email=user.email, contact=user.contact))

    def get_by_id(self, note_id, *, with_uploader=False):
        note = self.notes.get(note_id)
        if note and with_uploader:
            return self._populate(note)
        return note

    def search(self, *, text=None, subject=None):
        out = list(self.notes.values())
        if text:
            t = text.lower()
            out = [n for n in out if t in n.title.lower() or t in (n.description or "").lower()]
        if subject:
            out = [n for n in out if n.subject == subject]
        out.sort(key=lambda n: n.created_at, reverse=True)
        return [self._populate(n) for n in out]

    def delete_by_id(self, note_id) -> bool:
        return self.notes.pop(note_id, None) is not None

    def increment_downloads(self, note_id):
        note = self.notes.get(note_id)
        if not note:
            return None
        self.notes[note_id] = replace(note, downloads=note.downloads + 1)
        return self.notes[note_id]


class FakeConnection:
    def __init__(self, alive: bool = True):
        self.alive = alive

    def ping(self) -> bool:
        return self.alive


class RecordedCursor:
    def __init__(self, docs):
        self._docs = list(docs)
        self.sort_spec = None

    def sort(self, key, direction):
        self.sort_spec = (key, direction)
        return self

    def __iter__(self):
        return iter(self._docs)


class RecordingCollection:
    """Stands in for a pymongo collection: records each call and replays `results[method]`."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.results: dict = {}
        self.cursor: Optional[RecordedCursor] = None

    def _call(self, method, *args, **kwargs):
        self.calls.append((method, args, kwargs))
        result = self.results.get(method)
        if isinstance(result, Exception):
            raise result
        return result

    def bulk_write(self, requests, ordered=True):
        return self._call("bulk_write", list(requests), ordered=ordered)

    def aggregate(self, pipeline):
        return iter(self._call("aggregate", pipeline) or [])

    def find(self, filter, projection=None):
        self.cursor = RecordedCursor(self._call("find", filter, projection=projection) or [])
        return self.cursor

    def find_one(self, filter, projection=None):
        return self._call("find_one", filter, projection=projection)

    def find_one_and_update(self, filter, update, return_document=None):
        return self._call("find_one_and_update", filter, update, return_document=return_document)

    def insert_one(self, document):
        return self._call("insert_one", document)

    def update_one(self, filter, update):
        return self._call("update_one", filter, update)

    def delete_one(self, filter):
        return self._call("delete_one", filter)

    def count_documents(self, filter):
        return self._call("count_documents", filter) or 0


class RecordingDatabase:
    def __init__(self):
        self.collections: dict[str, RecordingCollection] = {}

    def __getitem__(self, name: str) -> RecordingCollection:
        return self.collections.setdefault(name, RecordingCollection())


class RecordingConnection(FakeConnection):
    def __init__(self):
        super().__init__()
        self.db = RecordingDatabase()


@pytest.fixture
def fixed_now():
    return datetime(2025, 3, 10, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def users_repo():
    return InMemoryUsers()


@pytest.fixture
def attendance_repo(users_repo):
    return InMemoryAttendance(users_repo)


@pytest.fixture
def notes_repo(users_repo):
    return InMemoryNotes(users_repo)


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def storage(upload_dir):
    return LocalFileStorage(upload_dir)


@pytest.fixture
def recording_conn():
    return RecordingConnection()


@pytest.fixture
def token_service():
    return TokenService("test-jwt-secret", expires_days=7)


@pytest.fixture
def container(users_repo, attendance_repo, notes_repo, storage, token_service):
    return wire_services(
        conn=FakeConnection(),
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        notes_repo=notes_repo,
        note_storage=storage,
        token_service=token_service,
        allowed_extensions={"pdf", "txt", "png"},
    )


@pytest.fixture
def app(container, upload_dir):
    app = create_app(container, settings_module="config.testing")
    app.config["UPLOAD_FOLDER"] = str(upload_dir)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def teacher(users_repo):
    return users_repo.add(name="Tara Teacher", email="tara@campus.edu", role=Role.TEACHER)


@pytest.fixture
def student(users_repo):
    return users_repo.add(name="Sam Student", email="sam@campus.edu", role=Role.STUDENT, contact="9876543210")


@pytest.fixture
def other_student(users_repo):
    return users_repo.add(name="Alex Other", email="alex@campus.edu", role=Role.STUDENT)


@pytest.fixture
def auth_header(token_service):
    def _header(user: User) -> dict:
        return {"Authorization": f"Bearer {token_service.issue(user)}"}

    return _header
