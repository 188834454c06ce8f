from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import unquote, urlparse

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)

UPLOADS_URL_PREFIX = "uploads"


@dataclass(frozen=True)
class StoredFile:
    key: str


class NoteFileStorage(Protocol):
    def save(self, upload: FileStorage) -> StoredFile:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def public_url(base_url: str, key: str) -> str:
    return f"{base_url.rstrip('/')}/{UPLOADS_URL_PREFIX}/{key}"


def key_from_url(file_url: str) -> Optional[str]:
    """Storage key of a note URL, whether absolute or a root-relative path."""

    path = unquote(urlparse(file_url).path or "")
    prefix = f"/{UPLOADS_URL_PREFIX}/"
    if not path.startswith(prefix):
        return None
    key = path[len(prefix):]
    if not key or "/" in key or key in {".", ".."}:
        return None
    return key


class LocalFileStorage(NoteFileStorage):
    """Stores uploads flat in one directory under collision-free names."""

    def __init__(self, root: str | os.PathLike):
        self._root = Path(root)

    def save(self, upload: FileStorage) -> StoredFile:
        original = upload.filename or ""
        safe = secure_filename(original)
        ext = secure_filename(file_extension(original))
        # non-ASCII names can lose everything but the extension
        if ext and not safe.lower().endswith(f".{ext}"):
            stem = safe if safe and safe.lower() != ext else "upload"
            safe = f"{stem}.{ext}"
        if not safe:
            raise ValidationError("Invalid file name")

        self._root.mkdir(parents=True, exist_ok=True)
        key = f"{uuid.uuid4().hex}-{safe}"
        upload.save(str(self._root / key))
        logger.debug("stored upload %s as %s", original, key)
        return StoredFile(key=key)

    def delete(self, key: str) -> bool:
        target = self._root / secure_filename(key)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        return True
