from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from pymongo import ReturnDocument

from ..core.constants import NOTES_COLLECTION, USERS_COLLECTION
from ..database.connection import DatabaseConnection
from ..database.mongo_base import id_str, to_object_id
from .model import Note, Uploader
from .repository import NoteRepository

_UPLOADER_STAGES: List[Dict[str, Any]] = [
    {
        "$lookup": {
            "from": USERS_COLLECTION,
            "localField": "uploadedBy",
            "foreignField": "_id",
            "as": "uploader",
        }
    },
    {"$unwind": {"path": "$uploader", "preserveNullAndEmptyArrays": True}},
    {"$project": {"uploader.password": 0}},
]


def search_query(*, text: Optional[str] = None, subject: Optional[str] = None) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    if text:
        pattern = {"$regex": re.escape(text), "$options": "i"}
        query["$or"] = [{"title": pattern}, {"description": pattern}]
    if subject:
        query["subject"] = subject
    return query


def _to_note(doc: Dict[str, Any]) -> Note:
    up = doc.get("uploader")
    uploader = None
    if up and "_id" in up:
        uploader = Uploader(
            user_id=str(up["_id"]), name=up.get("name", ""), email=up.get("email"), contact=up.get("contact")
        )
    return Note(
        note_id=str(doc["_id"]),
        title=doc.get("title", ""),
        subject=doc.get("subject", ""),
        file_url=doc.get("fileUrl", ""),
        uploaded_by=id_str(doc.get("uploadedBy")),
        description=doc.get("description"),
        downloads=int(doc.get("downloads", 0)),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
        uploader=uploader,
    )


class MongoNoteRepository(NoteRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _notes(self):
        return self._conn.db[NOTES_COLLECTION]

    def create_note(
        self,
        *,
        title: str,
        subject: str,
        description: Optional[str],
        file_url: str,
        uploaded_by: str,
        created_at: datetime,
    ) -> str:
        res = self._notes.insert_one(
            {
                "title": title,
                "subject": subject,
                "description": description,
                "fileUrl": file_url,
                "uploadedBy": to_object_id(uploaded_by, "uploader id"),
                "downloads": 0,
                "createdAt": created_at,
                "updatedAt": created_at,
            }
        )
        return str(res.inserted_id)

    def get_by_id(self, note_id: str, *, with_uploader: bool = False) -> Optional[Note]:
        oid = to_object_id(note_id, "note id")
        if not with_uploader:
            doc = self._notes.find_one({"_id": oid})
            return _to_note(doc) if doc else None
        docs = list(self._notes.aggregate([{"$match": {"_id": oid}}, *_UPLOADER_STAGES]))
        return _to_note(docs[0]) if docs else None

    def search(self, *, text: Optional[str] = None, subject: Optional[str] = None) -> Sequence[Note]:
        pipeline = [
            {"$match": search_query(text=text, subject=subject)},
            {"$sort": {"createdAt": -1}},
            *_UPLOADER_STAGES,
        ]
        return [_to_note(d) for d in self._notes.aggregate(pipeline)]

    def delete_by_id(self, note_id: str) -> bool:
        res = self._notes.delete_one({"_id": to_object_id(note_id, "note id")})
        return res.deleted_count > 0

    def increment_downloads(self, note_id: str) -> Optional[Note]:
        doc = self._notes.find_one_and_update(
            {"_id": to_object_id(note_id, "note id")},
            {"$inc": {"downloads": 1}},
            return_document=ReturnDocument.AFTER,
        )
        return _to_note(doc) if doc else None
