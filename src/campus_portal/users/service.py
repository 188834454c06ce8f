from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import utc_now
from ..common.validators import (
    require_contact,
    require_email,
    require_non_empty,
    require_object_id,
    require_strong_password,
)
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ConflictError, ValidationError
from .model import User
from .repository import UserRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredUser:
    user_id: str
    token: str
    role: Role


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User


class AuthService:
    """Use cases: register, login and resolve bearer tokens."""

    def __init__(self, users: UserRepository, tokens: TokenService):
        self._users = users
        self._tokens = tokens

    def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: str,
        contact: Optional[str] = None,
        caller: Optional[User] = None,
    ) -> RegisteredUser:
        if not all(isinstance(v, str) and v.strip() for v in (name, email, password, role)):
            raise ValidationError("All fields are required")

        try:
            role_e = Role(role.strip().lower())
        except ValueError:
            raise ValidationError("Role must be either 'student' or 'teacher'")

        # the first teacher bootstraps the system; later ones need a teacher to vouch
        if role_e == Role.TEACHER and self._users.exists_with_role(Role.TEACHER):
            if caller is None or not caller.is_teacher:
                raise AuthorizationError("Only existing teachers can create new teacher accounts")

        name = require_non_empty(name, "Name")
        email = require_email(email)
        if self._users.get_by_email(email):
            raise ConflictError("User already exists")
        require_strong_password(password)
        contact = require_contact(contact)

        now = utc_now()
        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role_e,
            contact=contact,
            changed_password_at=now,
        )
        user = User(
            user_id=user_id,
            name=name,
            email=email,
            password_hash="",
            role=role_e,
            contact=contact,
            changed_password_at=now,
            created_at=now,
        )
        logger.info("registered %s account %s", role_e.value, user_id)
        return RegisteredUser(user_id=user_id, token=self._tokens.issue(user, issued_at=now), role=role_e)

    def login(self, email: str, password: str) -> LoginResult:
        if not isinstance(email, str) or not isinstance(password, str) or not email.strip() or not password:
            raise ValidationError("Email and password are required")

        user = self._users.get_by_email(email.strip().lower())
        if not user:
            raise AuthenticationError("Invalid credentials")

        try:
            ok = check_password_hash(user.password_hash, password)
        except (TypeError, ValueError):
            # e.g. placeholder or corrupted hashes
            ok = False
        if not ok:
            raise AuthenticationError("Invalid credentials")

        # Re-stamping invalidates every token issued before this login.
        now = utc_now()
        self._users.set_password_changed_at(user.user_id, now)
        return LoginResult(token=self._tokens.issue(user, issued_at=now), user=user)

    def resolve_token(self, token: Optional[str]) -> User:
        if not token:
            raise AuthenticationError("Not authorized - No token found")

        claims = self._tokens.decode(token)
        try:
            require_object_id(claims.user_id)
        except ValidationError:
            raise AuthenticationError("Invalid token")

        user = self._users.get_by_id(claims.user_id)
        if not user:
            raise AuthenticationError("User belonging to this token no longer exists")
        if user.changed_password_after(claims.issued_at):
            raise AuthenticationError("Password changed - Please log in again")
        return user


class UserService:
    """Use case: student roster for teachers."""

    def __init__(self, users: UserRepository):
        self._users = users

    def list_students(self, *, search: Optional[str] = None) -> Sequence[User]:
        search = search.strip() if search else None
        return self._users.list_by_role(Role.STUDENT, search=search or None)
