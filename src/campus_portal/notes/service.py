from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from werkzeug.datastructures import FileStorage

from ..common.datetime_utils import utc_now
from ..common.validators import (
    require_file_url,
    require_max_length,
    require_min_length,
    require_non_empty,
    require_object_id,
)
from ..core.constants import DEFAULT_NOTE_EXTENSIONS, NOTE_DESCRIPTION_MAX_LENGTH, NOTE_TITLE_MIN_LENGTH
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import User
from .model import Note
from .repository import NoteRepository
from .storage import NoteFileStorage, file_extension, key_from_url, public_url

logger = logging.getLogger(__name__)


class NoteService:
    def __init__(
        self,
        notes: NoteRepository,
        storage: NoteFileStorage,
        *,
        allowed_extensions: Optional[Iterable[str]] = None,
    ):
        self._notes = notes
        self._storage = storage
        self._allowed = frozenset(e.lower().lstrip(".") for e in (allowed_extensions or DEFAULT_NOTE_EXTENSIONS))

    def upload(
        self,
        *,
        uploader: User,
        upload: Optional[FileStorage],
        title: Optional[str],
        subject: Optional[str],
        description: Optional[str],
        base_url: str,
    ) -> Note:
        if upload is None or not upload.filename:
            raise ValidationError("No file uploaded")
        ext = file_extension(upload.filename)
        if ext not in self._allowed:
            raise ValidationError(f"File type not allowed: .{ext}" if ext else "File type not allowed")

        stored = self._storage.save(upload)
        try:
            title = require_min_length(require_non_empty(title, "Title"), "Title", NOTE_TITLE_MIN_LENGTH)
            subject = require_non_empty(subject, "Subject")
            description = (description or "").strip() or None
            require_max_length(description, "Description", NOTE_DESCRIPTION_MAX_LENGTH)
            file_url = require_file_url(public_url(base_url, stored.key))

            note_id = self._notes.create_note(
                title=title,
                subject=subject,
                description=description,
                file_url=file_url,
                uploaded_by=uploader.user_id,
                created_at=utc_now(),
            )
            note = self._notes.get_by_id(note_id, with_uploader=True)
            if note is None:
                raise NotFoundError("Note not found")
        except Exception:
            # nothing may point at the file once the note failed to persist
            self._storage.delete(stored.key)
            raise

        logger.info("note %s uploaded by %s (%s)", note.note_id, uploader.user_id, stored.key)
        return note

    def list_notes(self, *, search: Optional[str] = None, subject: Optional[str] = None) -> Sequence[Note]:
        return self._notes.search(
            text=(search or "").strip() or None,
            subject=(subject or "").strip() or None,
        )

    def delete(self, *, requester: User, note_id: str) -> None:
        note_id = require_object_id(note_id, "note id")
        note = self._notes.get_by_id(note_id)
        if not note:
            raise NotFoundError("Note not found")
        if note.uploaded_by != requester.user_id and not requester.is_teacher:
            raise AuthorizationError("Unauthorized deletion")

        key = key_from_url(note.file_url)
        if key is None:
            logger.warning("note %s has no local file behind %s", note_id, note.file_url)
        elif not self._storage.delete(key):
            logger.warning("file %s for note %s was already missing", key, note_id)

        self._notes.delete_by_id(note_id)

    def register_download(self, note_id: str) -> Note:
        note = self._notes.increment_downloads(require_object_id(note_id, "note id"))
        if not note:
            raise NotFoundError("Note not found")
        return note
