from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for p in (REPO_ROOT, REPO_ROOT / "src"):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from dotenv import load_dotenv

from config import get_settings_module

from campus_portal.database.bootstrap import ensure_indexes, list_collections
from campus_portal.database.connection import DatabaseConnection, MongoConfig


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    mongo = dict(settings.MONGO_CONFIG)

    conn = DatabaseConnection(MongoConfig(uri=mongo["uri"], database=mongo["database"]))
    try:
        created = ensure_indexes(conn.db)
        collections = list_collections(conn.db)
    finally:
        conn.close()

    print(f"OK: Ensured {len(created)} indexes -> {mongo['database']} (collections={', '.join(collections) or '-'})")


if __name__ == "__main__":
    main()
