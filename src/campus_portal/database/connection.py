from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError


@dataclass
class MongoConfig:
    uri: str
    database: str
    server_selection_timeout_ms: int = 5000
    socket_timeout_ms: int = 45000


class DatabaseConnection:
    """Singleton-like holder of the process-wide MongoClient.

    Note: MongoClient pools connections and is thread-safe, so one client is shared
    by every request handler.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: MongoConfig):
        self._config = config
        self._client: Optional[MongoClient] = None
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls, config: MongoConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    @property
    def client(self) -> MongoClient:
        if self._client is None:
            with self._lock:
                # first requests may race on different threads
                if self._client is None:
                    self._client = MongoClient(
                        self._config.uri,
                        serverSelectionTimeoutMS=int(self._config.server_selection_timeout_ms),
                        socketTimeoutMS=int(self._config.socket_timeout_ms),
                        tz_aware=True,
                        connect=False,
                    )
        return self._client

    @property
    def db(self) -> Database:
        return self.client[self._config.database]

    def ping(self) -> bool:
        try:
            self.client.admin.command("ping")
            return True
        except PyMongoError:
            return False

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None
