from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt

from ..common.datetime_utils import utc_now
from ..core.constants import DEFAULT_TOKEN_DAYS
from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from .model import User


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    role: Role
    issued_at: int


class TokenService:
    """Signs and verifies the bearer tokens handed to the SPA."""

    def __init__(self, secret: str, *, expires_days: int = DEFAULT_TOKEN_DAYS, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._expires = timedelta(days=int(expires_days))
        self._algorithm = algorithm

    def issue(self, user: User, *, issued_at: datetime | None = None) -> str:
        issued_at = issued_at or utc_now()
        payload = {
            "id": user.user_id,
            "role": user.role.value,
            "name": user.name,
            "email": user.email,
            "iat": int(issued_at.timestamp()),
            "exp": issued_at + self._expires,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired - Please log in again")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token - Malformed JWT")

        user_id = payload.get("id")
        if not user_id:
            raise AuthenticationError("Invalid token")
        try:
            role = Role(payload.get("role"))
        except ValueError:
            raise AuthenticationError("Invalid token")
        return TokenClaims(user_id=str(user_id), role=role, issued_at=int(payload["iat"]))
