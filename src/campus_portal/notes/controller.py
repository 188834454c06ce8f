from __future__ import annotations

from flask import Flask, jsonify, request, send_from_directory
from werkzeug.exceptions import NotFound

from ..common.http import error_response
from ..container import Container
from ..users.guards import current_user, login_required
from .storage import UPLOADS_URL_PREFIX


def register(app: Flask, container: Container) -> None:
    @app.route("/api/notes", methods=["POST"], endpoint="notes_upload")
    @login_required
    def notes_upload():
        note = container.note_service.upload(
            uploader=current_user(),
            upload=request.files.get("file"),
            title=request.form.get("title"),
            subject=request.form.get("subject"),
            description=request.form.get("description"),
            base_url=app.config.get("PUBLIC_BASE_URL") or request.host_url,
        )
        return jsonify(note.to_dict()), 201

    @app.route("/api/notes", methods=["GET"], endpoint="notes_list")
    @login_required
    def notes_list():
        notes = container.note_service.list_notes(
            search=request.args.get("search"),
            subject=request.args.get("subject"),
        )
        return jsonify([n.to_dict() for n in notes])

    @app.route("/api/notes/<note_id>", methods=["DELETE"], endpoint="notes_delete")
    @login_required
    def notes_delete(note_id: str):
        container.note_service.delete(requester=current_user(), note_id=note_id)
        return jsonify({"message": "Note deleted successfully"})

    @app.route("/api/notes/<note_id>/download", methods=["PATCH"], endpoint="notes_download")
    def notes_download(note_id: str):
        return jsonify(container.note_service.register_download(note_id).to_dict())

    @app.route(f"/{UPLOADS_URL_PREFIX}/<path:filename>", methods=["GET"], endpoint="uploaded_file")
    def uploaded_file(filename: str):
        try:
            response = send_from_directory(app.config["UPLOAD_FOLDER"], filename)
        except NotFound:
            return error_response("File not found", 404)
        response.headers["X-Content-Type-Options"] = "nosniff"
        return response
