from __future__ import annotations

from typing import Any

from .database import SQLiteHealthbotDB
from .time_utils import to_iso, utc_now


class ChatLogStore:
    def __init__(self, db: SQLiteHealthbotDB) -> None:
        self._db = db

    def append(
        self,
        *,
        session_id: str,
        healthcare_context: str,
        privacy_style: str,
        user_input: str,
        bot_reply: str,
        user_details: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        details = user_details or {}
        now = to_iso(utc_now())
        with self._db.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO chat_logs (
                  session_id, healthcare_context, privacy_style,
                  user_first_name, user_last_name, user_age, user_dob,
                  user_input, bot_reply, timestamp, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session_id,
                    healthcare_context,
                    privacy_style,
                    details.get("first_name") or None,
                    details.get("last_name") or None,
                    details.get("age") or None,
                    details.get("date_of_birth") or None,
                    user_input,
                    bot_reply,
                    now,
                    now,
                ),
            )
            log_id = cursor.lastrowid
        return {"id": log_id, "session_id": session_id, "timestamp": now}

    def list_for_session(self, session_id: str) -> list[dict[str, Any]]:
        with self._db.connection() as conn:
            rows = conn.execute(
                """
                SELECT id, session_id, healthcare_context, privacy_style,
                       user_first_name, user_last_name, user_age,
                       user_input, bot_reply, timestamp
                FROM chat_logs
                WHERE session_id = ?
                ORDER BY timestamp ASC, id ASC
                """,
                (session_id,),
            ).fetchall()
        return [dict(row) for row in rows]

    def statistics(self) -> dict[str, Any]:
        with self._db.connection() as conn:
            breakdown = [
                {
                    "healthcare_context": row["healthcare_context"],
                    "privacy_style": row["privacy_style"],
                    "context_count": row["context_count"],
                    "unique_sessions": row["unique_sessions"],
                }
                for row in conn.execute(
                    """
                    SELECT healthcare_context, privacy_style,
                           COUNT(*) AS context_count,
                           COUNT(DISTINCT session_id) AS unique_sessions
                    FROM chat_logs
                    GROUP BY healthcare_context, privacy_style
                    ORDER BY healthcare_context, privacy_style
                    """
                ).fetchall()
            ]
            totals = conn.execute(
                """
                SELECT COUNT(*) AS total_conversations,
                       COUNT(DISTINCT session_id) AS unique_sessions
                FROM chat_logs
                """
            ).fetchone()
        return {
            "total_conversations": totals["total_conversations"],
            "unique_sessions": totals["unique_sessions"],
            "breakdown": breakdown,
        }
