from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .attendance.mongo_attendance_repository import MongoAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_TOKEN_DAYS
from .database.connection import DatabaseConnection, MongoConfig
from .notes.mongo_note_repository import MongoNoteRepository
from .notes.repository import NoteRepository
from .notes.service import NoteService
from .notes.storage import LocalFileStorage, NoteFileStorage
from .users.mongo_user_repository import MongoUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService
from .users.tokens import TokenService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    notes_repo: NoteRepository
    note_storage: NoteFileStorage

    token_service: TokenService
    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService
    note_service: NoteService


def wire_services(
    *,
    conn,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    notes_repo: NoteRepository,
    note_storage: NoteFileStorage,
    token_service: TokenService,
    allowed_extensions: Optional[Iterable[str]] = None,
) -> Container:
    """Build the service layer on top of whatever repositories are given."""

    return Container(
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        notes_repo=notes_repo,
        note_storage=note_storage,
        token_service=token_service,
        auth_service=AuthService(users_repo, token_service),
        user_service=UserService(users_repo),
        attendance_service=AttendanceService(attendance_repo, users_repo),
        note_service=NoteService(notes_repo, note_storage, allowed_extensions=allowed_extensions),
    )


def build_container(
    *,
    mongo_config: dict,
    jwt_secret: str,
    upload_folder: str,
    jwt_expires_days: int = DEFAULT_TOKEN_DAYS,
    allowed_extensions: Optional[Iterable[str]] = None,
) -> Container:
    config = MongoConfig(
        uri=str(mongo_config["uri"]),
        database=str(mongo_config["database"]),
        server_selection_timeout_ms=int(mongo_config.get("server_selection_timeout_ms", 5000)),
        socket_timeout_ms=int(mongo_config.get("socket_timeout_ms", 45000)),
    )
    conn = DatabaseConnection.get_instance(config)

    return wire_services(
        conn=conn,
        users_repo=MongoUserRepository(conn),
        attendance_repo=MongoAttendanceRepository(conn),
        notes_repo=MongoNoteRepository(conn),
        note_storage=LocalFileStorage(upload_folder),
        token_service=TokenService(jwt_secret, expires_days=jwt_expires_days),
        allowed_extensions=allowed_extensions,
    )
