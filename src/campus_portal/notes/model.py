from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import isoformat


@dataclass(frozen=True)
class Uploader:
    user_id: str
    name: str
    email: Optional[str] = None
    contact: Optional[str] = None

    def to_dict(self) -> dict:
        return {"_id": self.user_id, "name": self.name, "email": self.email, "contact": self.contact}


@dataclass(frozen=True)
class Note:
    """Domain entity: uploaded study note metadata."""

    note_id: str
    title: str
    subject: str
    file_url: str
    uploaded_by: str
    description: Optional[str] = None
    downloads: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    uploader: Optional[Uploader] = None

    def to_dict(self) -> dict:
        return {
            "_id": self.note_id,
            "title": self.title,
            "subject": self.subject,
            "description": self.description,
            "fileUrl": self.file_url,
            "uploadedBy": self.uploader.to_dict() if self.uploader else self.uploaded_by,
            "downloads": self.downloads,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
