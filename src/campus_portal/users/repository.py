from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Services depend on this protocol, never on the MongoDB implementation directly.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def exists_with_role(self, role: Role) -> bool:
        raise NotImplementedError

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
        raise NotImplementedError

    def set_password_changed_at(self, user_id: str, changed_at: datetime) -> bool:
        raise NotImplementedError

    def count_with_role(self, user_ids: Iterable[str], role: Role) -> int:
        raise NotImplementedError

    def list_by_role(self, role: Role, *, search: Optional[str] = None) -> Sequence[User]:
        raise NotImplementedError
