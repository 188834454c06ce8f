from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body
from ..container import Container
from .guards import current_user, login_required, optional_user


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def auth_register():
        data = json_body()
        role = data.get("role")
        # Only teacher sign-ups look at the caller; a bad token then fails with 401.
        caller = optional_user() if str(role or "").strip().lower() == "teacher" else None

        registered = container.auth_service.register(
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
            role=role,
            contact=data.get("contact"),
            caller=caller,
        )
        return (
            jsonify(
                {
                    "id": registered.user_id,
                    "token": registered.token,
                    "role": registered.role.value,
                    "message": "User registered successfully",
                }
            ),
            201,
        )

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def auth_login():
        data = json_body()
        result = container.auth_service.login(data.get("email"), data.get("password"))
        user = result.user
        return jsonify(
            {
                "token": result.token,
                "user": {"id": user.user_id, "name": user.name, "email": user.email, "role": user.role.value},
                "message": "Login successful",
            }
        )

    @app.route("/api/auth/validate", methods=["GET"], endpoint="auth_validate")
    @login_required
    def auth_validate():
        return jsonify({"valid": True, "user": current_user().to_public_dict()})
