from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import g

from ..common.http import bearer_token, get_container
from ..core.exceptions import AuthenticationError, AuthorizationError
from .model import User


def current_user() -> User:
    user = g.get("current_user")
    if user is None:
        raise AuthenticationError("Authentication required")
    return user


def optional_user() -> Optional[User]:
    """Resolve the caller when a token is presented; anonymous otherwise.

    A token that is present but invalid still fails with 401.
    """

    token = bearer_token()
    if not token:
        return None
    return get_container().auth_service.resolve_token(token)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.current_user = get_container().auth_service.resolve_token(bearer_token())
        return view(*args, **kwargs)

    return wrapper


def teacher_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        user = get_container().auth_service.resolve_token(bearer_token())
        if not user.is_teacher:
            raise AuthorizationError("Access restricted to teachers only")
        g.current_user = user
        return view(*args, **kwargs)

    return wrapper
