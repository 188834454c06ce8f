from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Sequence

from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from ..core.constants import USERS_COLLECTION
from ..core.enums import Role
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mongo_base import to_object_id, to_object_ids
from .model import User
from .repository import UserRepository


def _to_user(doc: Dict[str, Any]) -> User:
    return User(
        user_id=str(doc["_id"]),
        name=doc.get("name", ""),
        email=doc.get("email", ""),
        password_hash=doc.get("password", ""),
        role=Role(doc.get("role", Role.STUDENT.value)),
        contact=doc.get("contact"),
        changed_password_at=doc.get("changedPasswordAt"),
        created_at=doc.get("createdAt"),
    )


class MongoUserRepository(UserRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _users(self):
        return self._conn.db[USERS_COLLECTION]

    def get_by_id(self, user_id: str) -> Optional[User]:
        doc = self._users.find_one({"_id": to_object_id(user_id, "user id")})
        return _to_user(doc) if doc else None

    def get_by_email(self, email: str) -> Optional[User]:
        doc = self._users.find_one({"email": email})
        return _to_user(doc) if doc else None

    def exists_with_role(self, role: Role) -> bool:
        return self._users.find_one({"role": role.value}, projection={"_id": 1}) is not None

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        contact: Optional[str],
        changed_password_at: datetime,
    ) -> str:
        doc = {
            "name": name,
            "email": email,
            "password": password_hash,
            "role": role.value,
            "contact": contact,
            "changedPasswordAt": changed_password_at,
            "createdAt": changed_password_at,
            "updatedAt": changed_password_at,
        }
        try:
            res = self._users.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("User already exists")
        return str(res.inserted_id)

    def set_password_changed_at(self, user_id: str, changed_at: datetime) -> bool:
        res = self._users.update_one(
            {"_id": to_object_id(user_id, "user id")},
            {"$set": {"changedPasswordAt": changed_at, "updatedAt": changed_at}},
        )
        return res.matched_count > 0

    def count_with_role(self, user_ids: Iterable[str], role: Role) -> int:
        ids = to_object_ids(user_ids, "studentId")
        if not ids:
            return 0
        return self._users.count_documents({"_id": {"$in": ids}, "role": role.value})

    def list_by_role(self, role: Role, *, search: Optional[str] = None) -> Sequence[User]:
        query: Dict[str, Any] = {"role": role.value}
        if search:
            query["name"] = {"$regex": re.escape(search), "$options": "i"}
        cursor = self._users.find(query, projection={"password": 0}).sort("name", ASCENDING)
        return [_to_user(d) for d in cursor]
