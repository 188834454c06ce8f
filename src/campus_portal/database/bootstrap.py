from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database

from ..core.constants import ATTENDANCE_COLLECTION, NOTES_COLLECTION, USERS_COLLECTION

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexSpec:
    collection: str
    keys: Sequence[tuple]
    unique: bool = False
    name: str | None = None


INDEXES: tuple[IndexSpec, ...] = (
    IndexSpec(USERS_COLLECTION, [("email", ASCENDING)], unique=True),
    IndexSpec(USERS_COLLECTION, [("role", ASCENDING)]),
    # one record per student per day per subject
    IndexSpec(
        ATTENDANCE_COLLECTION,
        [("student", ASCENDING), ("date", ASCENDING), ("classSubject", ASCENDING)],
        unique=True,
        name="student_date_subject_unique",
    ),
    IndexSpec(ATTENDANCE_COLLECTION, [("markedBy", ASCENDING), ("date", ASCENDING)]),
    IndexSpec(NOTES_COLLECTION, [("subject", ASCENDING), ("createdAt", DESCENDING)]),
    IndexSpec(NOTES_COLLECTION, [("uploadedBy", ASCENDING)]),
)


def ensure_indexes(db: Database, indexes: Sequence[IndexSpec] = INDEXES) -> list[str]:
    """Create the indexes the application relies on (idempotent)."""

    created: list[str] = []
    for spec in indexes:
        kwargs = {"unique": spec.unique}
        if spec.name:
            kwargs["name"] = spec.name
        name = db[spec.collection].create_index(list(spec.keys), **kwargs)
        logger.debug("index ready: %s.%s", spec.collection, name)
        created.append(f"{spec.collection}.{name}")
    return created


def list_collections(db: Database) -> list[str]:
    return sorted(db.list_collection_names())
