"""Durable storage slot for the chat collection snapshot."""

import os
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from models.errors import PersistenceDegraded
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_STORAGE_KEY = "chat_history"


class ChatStorage(ABC):
    """
    A single string-keyed slot holding the full serialized chat collection.

    Implementations raise PersistenceDegraded on I/O failure; the conversation
    store absorbs it.
    """

    @abstractmethod
    def load(self) -> str | None:
        """Return the stored snapshot, or None if the slot is empty."""

    @abstractmethod
    def save(self, snapshot: str) -> None:
        """Overwrite the slot with ``snapshot``."""

    @abstractmethod
    def clear(self) -> None:
        """Erase the slot."""


class InMemoryChatStorage(ChatStorage):
    """Process-local slot; used by tests and as a last-resort fallback."""

    def __init__(self, initial: str | None = None):
        self.value = initial
        self.save_count = 0

    def load(self) -> str | None:
        return self.value

    def save(self, snapshot: str) -> None:
        self.value = snapshot
        self.save_count += 1

    def clear(self) -> None:
        self.value = None


class SqliteChatStorage(ChatStorage):
    """Key-value row in a local SQLite database."""

    def __init__(self, db_path: str, key: str = DEFAULT_STORAGE_KEY):
        self.db_path = db_path
        self.key = key
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, check_same_thread=False)

    def _init_db(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.db_path))
        try:
            os.makedirs(directory, exist_ok=True)
            with self._get_conn() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key         TEXT PRIMARY KEY,
                        value       TEXT NOT NULL,
                        updated_at  TEXT NOT NULL
                    )
                """)
        except (sqlite3.Error, OSError) as e:
            raise PersistenceDegraded("Could not initialise chat history database", details=str(e)) from e
        logger.info("Chat history database initialised at %s", self.db_path)

    def load(self) -> str | None:
        try:
            with self._get_conn() as conn:
                row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (self.key,)).fetchone()
        except sqlite3.Error as e:
            raise PersistenceDegraded("Could not read chat history", details=str(e)) from e
        return row[0] if row else None

    def save(self, snapshot: str) -> None:
        ts = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        try:
            with self._get_conn() as conn:
                conn.execute(
                    """INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                       ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                      updated_at = excluded.updated_at""",
                    (self.key, snapshot, ts),
                )
        except sqlite3.Error as e:
            raise PersistenceDegraded("Could not write chat history", details=str(e)) from e

    def clear(self) -> None:
        try:
            with self._get_conn() as conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (self.key,))
        except sqlite3.Error as e:
            raise PersistenceDegraded("Could not erase chat history", details=str(e)) from e
