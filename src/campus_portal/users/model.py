from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import as_utc, isoformat
from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: campus account.

    The password hash stays on the entity for verification only; `to_public_dict`
    never includes it.
    """

    user_id: str
    name: str
    email: str
    password_hash: str
    role: Role
    contact: Optional[str] = None
    changed_password_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_teacher(self) -> bool:
        return self.role == Role.TEACHER

    def changed_password_after(self, issued_at: int) -> bool:
        """True when a token issued at `issued_at` (epoch seconds) predates the last password stamp."""
        changed = as_utc(self.changed_password_at)
        if changed is None:
            return False
        return int(issued_at) < int(changed.timestamp())

    def to_public_dict(self) -> dict:
        return {
            "_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "contact": self.contact,
            "createdAt": isoformat(self.created_at),
        }
