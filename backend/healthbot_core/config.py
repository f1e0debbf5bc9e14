from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from healthbot_memory import DEFAULT_SLOT_KEY


def _default_state_db_path() -> str:
    return str(Path.home() / ".caps-healthbot" / "client-state.sqlite")


@dataclass(frozen=True)
class ClientSettings:
    api_base_url: str = "http://localhost:3001"
    chat_timeout_seconds: float = 30.0
    state_db_path: str = field(default_factory=_default_state_db_path)
    slot_key: str = DEFAULT_SLOT_KEY

    @classmethod
    def from_env(cls) -> "ClientSettings":
        return cls(
            api_base_url=(os.getenv("HEALTHBOT_API_BASE_URL") or "http://localhost:3001").rstrip("/"),
            chat_timeout_seconds=float(os.getenv("HEALTHBOT_CHAT_TIMEOUT_SECONDS", "30")),
            state_db_path=os.getenv("HEALTHBOT_STATE_DB_PATH") or _default_state_db_path(),
            slot_key=(os.getenv("HEALTHBOT_STATE_SLOT") or DEFAULT_SLOT_KEY).strip(),
        )
