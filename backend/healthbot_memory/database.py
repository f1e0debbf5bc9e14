from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class SQLiteHealthbotDB:
    def __init__(self, db_path: str) -> None:
        self._path = Path(db_path).expanduser().resolve()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_schema()

    @property
    def path(self) -> str:
        return str(self._path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._path), timeout=30.0, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._lock, self.connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS chat_logs (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  session_id TEXT NOT NULL,
                  healthcare_context TEXT NOT NULL,
                  privacy_style TEXT NOT NULL,
                  user_first_name TEXT,
                  user_last_name TEXT,
                  user_age INTEGER,
                  user_dob TEXT,
                  user_input TEXT NOT NULL,
                  bot_reply TEXT NOT NULL,
                  timestamp TEXT NOT NULL,
                  created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS conversation_slots (
                  slot_key TEXT PRIMARY KEY,
                  snapshot_json TEXT NOT NULL,
                  updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_chat_logs_session_time
                  ON chat_logs(session_id, timestamp);
                CREATE INDEX IF NOT EXISTS idx_chat_logs_context_style
                  ON chat_logs(healthcare_context, privacy_style);
                """
            )
