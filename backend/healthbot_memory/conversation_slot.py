from __future__ import annotations

import json
from typing import Any

from .database import SQLiteHealthbotDB
from .time_utils import to_iso, utc_now

DEFAULT_SLOT_KEY = "chatbotState"


def _json_dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


class ConversationSlot:
    """One named record holding the serialized conversation snapshot."""

    def __init__(self, db: SQLiteHealthbotDB, slot_key: str = DEFAULT_SLOT_KEY) -> None:
        self._db = db
        self._slot_key = slot_key

    @property
    def slot_key(self) -> str:
        return self._slot_key

    def load(self) -> dict[str, Any]:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT snapshot_json FROM conversation_slots WHERE slot_key = ?",
                (self._slot_key,),
            ).fetchone()
        if not row:
            return {}
        try:
            payload = json.loads(row["snapshot_json"])
        except json.JSONDecodeError:
            return {}
        return payload if isinstance(payload, dict) else {}

    def save(self, snapshot: dict[str, Any]) -> None:
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO conversation_slots (slot_key, snapshot_json, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(slot_key) DO UPDATE SET
                  snapshot_json = excluded.snapshot_json,
                  updated_at = excluded.updated_at
                """,
                (self._slot_key, _json_dumps(snapshot), to_iso(utc_now())),
            )

    def clear(self) -> None:
        with self._db.connection() as conn:
            conn.execute("DELETE FROM conversation_slots WHERE slot_key = ?", (self._slot_key,))
