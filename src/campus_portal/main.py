from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .common.datetime_utils import isoformat, utc_now
from .common.http import CONTAINER_KEY, register_error_handlers
from .container import Container, build_container
from .database.bootstrap import ensure_indexes
from .attendance.controller import register as register_attendance
from .notes.controller import register as register_notes
from .users.controller import register as register_users

logger = logging.getLogger("campus_portal")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["UPLOAD_FOLDER"] = str(getattr(settings, "UPLOAD_FOLDER"))
    app.config["MAX_CONTENT_LENGTH"] = int(getattr(settings, "MAX_CONTENT_LENGTH", 10 * 1024 * 1024))
    app.config["PUBLIC_BASE_URL"] = getattr(settings, "PUBLIC_BASE_URL", None)
    app.json.sort_keys = False

    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    mongo_config = getattr(settings, "MONGO_CONFIG")

    if container is None:
        logger.info(
            "settings=%s db=%s uploads=%s",
            settings_module,
            mongo_config.get("database"),
            app.config["UPLOAD_FOLDER"],
        )
        container = build_container(
            mongo_config=mongo_config,
            jwt_secret=getattr(settings, "JWT_SECRET"),
            jwt_expires_days=int(getattr(settings, "JWT_EXPIRES_DAYS", 7)),
            upload_folder=app.config["UPLOAD_FOLDER"],
            allowed_extensions=getattr(settings, "ALLOWED_NOTE_EXTENSIONS", None),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            created = ensure_indexes(container.conn.db)
            logger.info("indexes ready (%d)", len(created))

    app.extensions[CONTAINER_KEY] = container
    register_error_handlers(app)

    @app.route("/", methods=["GET"], endpoint="root")
    def root():
        return jsonify({"status": "OK"})

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        db_state = "connected" if container.conn.ping() else "disconnected"
        return jsonify({"status": "OK", "dbState": db_state, "timestamp": isoformat(utc_now())})

    register_users(app, container)
    register_attendance(app, container)
    register_notes(app, container)

    return app
