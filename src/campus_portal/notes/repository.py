from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Note


class NoteRepository(Protocol):
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
        raise NotImplementedError

    def get_by_id(self, note_id: str, *, with_uploader: bool = False) -> Optional[Note]:
        raise NotImplementedError

    def search(self, *, text: Optional[str] = None, subject: Optional[str] = None) -> Sequence[Note]:
        """Newest first, uploader populated."""

        raise NotImplementedError

    def delete_by_id(self, note_id: str) -> bool:
        raise NotImplementedError

    def increment_downloads(self, note_id: str) -> Optional[Note]:
        raise NotImplementedError
